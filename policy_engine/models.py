"""
Core data models for the Policy Engine.

This module defines the Pydantic models used throughout the system
for organization policies, organization memberships, wire responses
and the effective options derived from merging policies.
"""

import logging
import re
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional, Type, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)


class PolicyType(IntEnum):
    """Kinds of organization policy, using their wire values."""
    TWO_FACTOR_AUTHENTICATION = 0
    MASTER_PASSWORD = 1
    PASSWORD_GENERATOR = 2
    SINGLE_ORG = 3
    REQUIRE_SSO = 4
    PERSONAL_OWNERSHIP = 5
    DISABLE_SEND = 6
    SEND_OPTIONS = 7
    RESET_PASSWORD = 8
    MAXIMUM_VAULT_TIMEOUT = 9
    DISABLE_PERSONAL_VAULT_EXPORT = 10
    ACTIVATE_AUTOFILL = 11


class OrganizationUserStatus(IntEnum):
    """Status of a user's membership in an organization."""
    REVOKED = -1
    INVITED = 0
    ACCEPTED = 1
    CONFIRMED = 2


class OrganizationUserType(IntEnum):
    """Role held by a user within an organization."""
    OWNER = 0
    ADMIN = 1
    USER = 2
    MANAGER = 3
    CUSTOM = 4


class VaultTimeoutAction(str, Enum):
    """Action taken when the vault timeout elapses."""
    LOCK = "lock"
    LOG_OUT = "logOut"


def _coerce_enum(enum_cls: Type[IntEnum], value: Any) -> Any:
    """
    Coerce a wire value into a member of enum_cls.

    Integers, numeric strings, member names ("MASTER_PASSWORD") and
    PascalCase names ("MasterPassword") are recognised. Anything else is
    returned untouched so unknown values survive decoding.
    """
    if isinstance(value, enum_cls) or isinstance(value, bool):
        return value

    if isinstance(value, str):
        key = value.strip()
        if re.fullmatch(r"-?\d+", key):
            value = int(key)
        else:
            if key.upper() in enum_cls.__members__:
                return enum_cls[key.upper()]
            snake = re.sub(r"(?<!^)(?=[A-Z])", "_", key).upper()
            return enum_cls.__members__.get(snake, value)

    if isinstance(value, int):
        try:
            return enum_cls(value)
        except ValueError:
            return value

    return value


# =============================================================================
# Organization membership
# =============================================================================


class Permissions(BaseModel):
    """Custom-role permissions relevant to policy exemption."""
    manage_policies: bool = Field(
        False, validation_alias=AliasChoices("manage_policies", "managePolicies")
    )


class OrganizationMembership(BaseModel):
    """Facts about the current user's membership in one organization."""
    organization_id: str = Field(
        ..., validation_alias=AliasChoices("organization_id", "organizationId", "id")
    )
    enabled: bool = Field(True, description="Whether the organization is enabled")
    use_policies: bool = Field(
        False,
        validation_alias=AliasChoices("use_policies", "usePolicies"),
        description="Whether the organization's plan supports policies",
    )
    status: Union[OrganizationUserStatus, int, str] = OrganizationUserStatus.INVITED
    role: Union[OrganizationUserType, int, str] = Field(
        OrganizationUserType.USER, validation_alias=AliasChoices("role", "type")
    )
    permissions: Permissions = Field(default_factory=Permissions)

    @field_validator("status", mode="before")
    @classmethod
    def coerce_status(cls, v: Any) -> Any:
        return _coerce_enum(OrganizationUserStatus, v)

    @field_validator("role", mode="before")
    @classmethod
    def coerce_role(cls, v: Any) -> Any:
        return _coerce_enum(OrganizationUserType, v)

    @field_validator("permissions", mode="before")
    @classmethod
    def default_permissions(cls, v: Any) -> Any:
        return {} if v is None else v


# =============================================================================
# Policy records
# =============================================================================


class Policy(BaseModel):
    """One organization's configuration for one policy type."""
    model_config = ConfigDict(frozen=True)

    id: str
    organization_id: str = Field(
        ..., validation_alias=AliasChoices("organization_id", "organizationId")
    )
    type: Union[PolicyType, int, str]
    enabled: bool = False
    data: Optional[Dict[str, Any]] = Field(None, description="Type-specific payload")

    @field_validator("type", mode="before")
    @classmethod
    def coerce_type(cls, v: Any) -> Any:
        return _coerce_enum(PolicyType, v)

    @field_validator("data", mode="before")
    @classmethod
    def drop_non_mapping_data(cls, v: Any) -> Any:
        if v is not None and not isinstance(v, dict):
            logger.warning(f"Discarding non-mapping policy data of type {type(v).__name__}")
            return None
        return v

    def typed_data(self) -> Optional["PolicyDataModel"]:
        """Return the payload parsed into the variant for this policy's type."""
        return parse_policy_data(self.type, self.data)


class PolicyDataModel(BaseModel):
    """Base for typed policy payloads. Absent fields stay None."""
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class MasterPasswordPolicyData(PolicyDataModel):
    min_complexity: Optional[int] = Field(None, alias="minComplexity")
    min_length: Optional[int] = Field(None, alias="minLength")
    require_upper: Optional[bool] = Field(None, alias="requireUpper")
    require_lower: Optional[bool] = Field(None, alias="requireLower")
    require_numbers: Optional[bool] = Field(None, alias="requireNumbers")
    require_special: Optional[bool] = Field(None, alias="requireSpecial")
    enforce_on_login: Optional[bool] = Field(None, alias="enforceOnLogin")


class ResetPasswordPolicyData(PolicyDataModel):
    auto_enroll_enabled: Optional[bool] = Field(None, alias="autoEnrollEnabled")


class MaximumVaultTimeoutPolicyData(PolicyDataModel):
    minutes: Optional[int] = None
    action: Optional[str] = None


class SendOptionsPolicyData(PolicyDataModel):
    disable_hide_email: Optional[bool] = Field(None, alias="disableHideEmail")


class PasswordGeneratorPolicyData(PolicyDataModel):
    default_type: Optional[str] = Field(None, alias="defaultType")
    min_length: Optional[int] = Field(None, alias="minLength")
    use_upper: Optional[bool] = Field(None, alias="useUpper")
    use_lower: Optional[bool] = Field(None, alias="useLower")
    use_numbers: Optional[bool] = Field(None, alias="useNumbers")
    use_special: Optional[bool] = Field(None, alias="useSpecial")
    min_numbers: Optional[int] = Field(None, alias="minNumbers")
    min_special: Optional[int] = Field(None, alias="minSpecial")
    min_number_words: Optional[int] = Field(None, alias="minNumberWords")
    capitalize: Optional[bool] = None
    include_number: Optional[bool] = Field(None, alias="includeNumber")


POLICY_DATA_MODELS: Dict[PolicyType, Type[PolicyDataModel]] = {
    PolicyType.MASTER_PASSWORD: MasterPasswordPolicyData,
    PolicyType.RESET_PASSWORD: ResetPasswordPolicyData,
    PolicyType.MAXIMUM_VAULT_TIMEOUT: MaximumVaultTimeoutPolicyData,
    PolicyType.SEND_OPTIONS: SendOptionsPolicyData,
    PolicyType.PASSWORD_GENERATOR: PasswordGeneratorPolicyData,
}


def parse_policy_data(
    policy_type: Union[PolicyType, int, str], data: Optional[Dict[str, Any]]
) -> Optional[PolicyDataModel]:
    """
    Parse a raw policy payload into the typed variant for policy_type.

    Args:
        policy_type: Tag selecting the payload variant
        data: Raw payload, possibly None

    Returns:
        The typed payload, an all-defaults payload if data is missing or
        malformed, or None for policy types that carry no configuration
    """
    model = POLICY_DATA_MODELS.get(policy_type) if isinstance(policy_type, PolicyType) else None
    if model is None:
        return None

    if not data:
        return model()

    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Ignoring malformed {policy_type.name} payload: {e}")
        return model()


# =============================================================================
# Effective options
# =============================================================================


class MasterPasswordPolicyOptions(BaseModel):
    """Strictest-wins master password requirements."""
    min_complexity: int = 0
    min_length: int = 0
    require_upper: bool = False
    require_lower: bool = False
    require_numbers: bool = False
    require_special: bool = False
    enforce_on_login: bool = False


class ResetPasswordPolicyOptions(BaseModel):
    """Account recovery options for one organization."""
    auto_enroll_enabled: bool = False


class PasswordGeneratorPolicyOptions(BaseModel):
    """Strictest-wins password generator constraints."""
    default_type: Optional[str] = None
    min_length: int = 0
    use_upper: bool = False
    use_lower: bool = False
    use_numbers: bool = False
    use_special: bool = False
    min_numbers: int = 0
    min_special: int = 0
    min_number_words: int = 0
    capitalize: bool = False
    include_number: bool = False


class MaximumVaultTimeoutPolicyOptions(BaseModel):
    """Strictest-wins vault timeout. minutes=None means no limit."""
    minutes: Optional[int] = None
    action: VaultTimeoutAction = VaultTimeoutAction.LOCK


# =============================================================================
# Wire responses
# =============================================================================


class PolicyResponse(BaseModel):
    """Policy DTO as received from the server."""
    id: str = Field(..., validation_alias=AliasChoices("Id", "id"))
    organization_id: str = Field(
        ..., validation_alias=AliasChoices("OrganizationId", "organizationId", "organization_id")
    )
    type: Union[PolicyType, int, str] = Field(..., validation_alias=AliasChoices("Type", "type"))
    enabled: bool = Field(False, validation_alias=AliasChoices("Enabled", "enabled"))
    data: Optional[Dict[str, Any]] = Field(None, validation_alias=AliasChoices("Data", "data"))

    @field_validator("type", mode="before")
    @classmethod
    def coerce_type(cls, v: Any) -> Any:
        return _coerce_enum(PolicyType, v)


class ListResponse(BaseModel):
    """List-shaped server response. data=None is distinct from an empty list."""
    data: Optional[List[PolicyResponse]] = Field(
        default_factory=list, validation_alias=AliasChoices("Data", "data")
    )
    continuation_token: Optional[str] = Field(
        None, validation_alias=AliasChoices("ContinuationToken", "continuationToken")
    )

    @classmethod
    def from_response(cls, response: Optional[Dict[str, Any]]) -> "ListResponse":
        """Build a ListResponse from a decoded JSON body; None yields an empty list."""
        if response is None:
            return cls()
        return cls.model_validate(response)


# Type aliases for convenience
PolicyRecords = Dict[str, Policy]
Policies = List[Policy]
Memberships = List[OrganizationMembership]


def coerce_policy_type(value: Any) -> Union[PolicyType, int, str]:
    """Normalise a caller-supplied policy type (enum, int or name) to PolicyType when known."""
    return _coerce_enum(PolicyType, value)


def policy_type_name(policy_type: Union[PolicyType, int, str]) -> str:
    """Display name of a policy type; unknown values are shown as given."""
    return getattr(policy_type, "name", str(policy_type))
