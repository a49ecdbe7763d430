"""
Policy Service for the Policy Engine.

The application-facing boundary: resolves the active user once, forwards
to the per-user PolicyStore, and derives applicability-checked and merged
views by combining stored records with the user's organization memberships.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ..errors import NoActiveUserError
from ..models import (
    ListResponse,
    MasterPasswordPolicyOptions,
    Policy,
    PolicyType,
    ResetPasswordPolicyOptions,
)
from .aggregation import (
    merge_master_password_policies,
    merge_maximum_vault_timeout_policies,
    merge_password_generator_policies,
    merge_reset_password_policies,
)
from .applicability import filter_applicable, filter_by_type
from .evaluators import evaluate_master_password, map_policies_from_token
from .observable import Observable, combine_latest
from .organization_service import OrganizationService
from .policy_store import PolicyStore
from .state_provider import AccountService

logger = logging.getLogger(__name__)

PolicyTypeLike = Union[PolicyType, int, str]


class PolicyService:
    """
    Evaluates organization policies for the active (or a named) user.

    Read views are Observables that recompute whenever the user's stored
    policies, memberships, or the active account change.
    """

    def __init__(
        self,
        account_service: AccountService,
        organization_service: OrganizationService,
        policy_store: Optional[PolicyStore] = None,
    ):
        """
        Initialize the policy service.

        Args:
            account_service: Source of the active user identity
            organization_service: Source of per-user organization memberships
            policy_store: Per-user policy records (in-memory store if omitted)
        """
        self.account_service = account_service
        self.organization_service = organization_service
        self.store = policy_store or PolicyStore()

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def _for_user(self, user_id: Optional[str], build: Callable[[Optional[str]], Observable]) -> Observable:
        if user_id is not None:
            return build(user_id)
        return self.account_service.active_user_id().switch_map(build)

    def policies(self) -> Observable:
        """All stored policy records for the active user, unfiltered."""
        return self._for_user(None, self.store.records)

    def get_all(
        self,
        policy_type: PolicyTypeLike,
        user_id: Optional[str] = None,
        allow_admin_override: bool = False,
    ) -> Observable:
        """
        Policies of policy_type that apply to the user.

        Args:
            policy_type: Policy type to select
            user_id: User to evaluate for; defaults to the active user
            allow_admin_override: Include policies the user's role is exempt from
        """

        def build(uid: Optional[str]) -> Observable:
            return combine_latest(
                self.store.records(uid), self.organization_service.memberships(uid)
            ).map(
                lambda latest: filter_by_type(
                    filter_applicable(latest[0], latest[1], allow_admin_override), policy_type
                )
            )

        return self._for_user(user_id, build)

    def get(self, policy_type: PolicyTypeLike, user_id: Optional[str] = None) -> Observable:
        """The first applicable policy of policy_type, or None."""
        return self.get_all(policy_type, user_id).map(lambda policies: policies[0] if policies else None)

    def policy_applies_to_active_user(self, policy_type: PolicyTypeLike) -> Observable:
        """Whether at least one policy of policy_type applies to the active user."""
        return self.get(policy_type).map(lambda policy: policy is not None)

    def master_password_policy_options(
        self, policies: Optional[Iterable[Policy]] = None
    ) -> Observable:
        """
        Effective master password options.

        Args:
            policies: Explicit policies to merge as given. If omitted, the
                      master password policies applying to the active user
                      are used.
        """
        if policies is not None:
            source = Observable.of(list(policies))
        else:
            source = self.get_all(PolicyType.MASTER_PASSWORD)
        return source.map(merge_master_password_policies)

    def password_generator_policy_options(self) -> Observable:
        """Effective password generator options for the active user, or None."""
        return self.get_all(PolicyType.PASSWORD_GENERATOR).map(merge_password_generator_policies)

    def maximum_vault_timeout_policy_options(self) -> Observable:
        """Effective maximum vault timeout for the active user, or None."""
        return self.get_all(PolicyType.MAXIMUM_VAULT_TIMEOUT).map(
            merge_maximum_vault_timeout_policies
        )

    def get_reset_password_policy_options(
        self, policies: Optional[Iterable[Policy]], organization_id: Optional[str]
    ) -> Tuple[ResetPasswordPolicyOptions, bool]:
        """Reset password options and auto-enroll flag for organization_id."""
        return merge_reset_password_policies(policies, organization_id)

    def evaluate_master_password(
        self,
        password_strength_score: int,
        password: str,
        options: Optional[MasterPasswordPolicyOptions] = None,
    ) -> bool:
        """True if password violates options."""
        return evaluate_master_password(password_strength_score, password, options)

    def map_policies_from_token(
        self, response: Optional[Union[ListResponse, Dict[str, Any]]]
    ) -> Optional[List[Policy]]:
        """Decode a wire policy list into policy records."""
        return map_policies_from_token(response)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def _resolve_user(self, user_id: Optional[str], operation: str) -> str:
        if user_id is not None:
            return user_id
        active = self.account_service.current_user_id
        if active is None:
            raise NoActiveUserError(operation)
        return active

    def replace(
        self,
        records: Optional[Union[Mapping[str, Policy], Iterable[Policy]]],
        user_id: Optional[str] = None,
    ) -> None:
        """Replace the full policy set for user_id (default: the active user)."""
        self.store.replace(records, self._resolve_user(user_id, "replace policies"))

    def upsert(self, record: Policy, user_id: Optional[str] = None) -> None:
        """Insert or overwrite one policy for user_id (default: the active user)."""
        self.store.upsert(record, self._resolve_user(user_id, "upsert policy"))

    def clear(self, user_id: Optional[str] = None) -> None:
        """Forget all policies for user_id (default: the active user)."""
        self.store.clear(self._resolve_user(user_id, "clear policies"))
