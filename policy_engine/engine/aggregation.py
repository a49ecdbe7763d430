"""
Aggregation Engine for the Policy Engine.

Merges the payloads of several policies of one type into a single
effective options object. Each merge is a fold over a pairwise combine
step that is commutative and associative, so the result does not depend on
the order or grouping of the contributing policies: numeric minimums take
the maximum, boolean requirements are OR-ed, and absent fields count as
the most permissive value.
"""

import logging
from functools import reduce
from typing import Iterable, List, Optional, Tuple

from ..models import (
    MasterPasswordPolicyData,
    MasterPasswordPolicyOptions,
    MaximumVaultTimeoutPolicyData,
    MaximumVaultTimeoutPolicyOptions,
    PasswordGeneratorPolicyData,
    PasswordGeneratorPolicyOptions,
    Policy,
    PolicyType,
    ResetPasswordPolicyData,
    ResetPasswordPolicyOptions,
    VaultTimeoutAction,
)

logger = logging.getLogger(__name__)

# Generator types in increasing order of precedence
_GENERATOR_TYPE_PRECEDENCE = ("passphrase", "password")


def _enabled_of_type(policies: Iterable[Policy], policy_type: PolicyType) -> List[Policy]:
    return [policy for policy in policies if policy.type == policy_type and policy.enabled]


# =============================================================================
# Master password
# =============================================================================


def _master_password_options(data: MasterPasswordPolicyData) -> MasterPasswordPolicyOptions:
    return MasterPasswordPolicyOptions(
        min_complexity=max(data.min_complexity or 0, 0),
        min_length=max(data.min_length or 0, 0),
        require_upper=bool(data.require_upper),
        require_lower=bool(data.require_lower),
        require_numbers=bool(data.require_numbers),
        require_special=bool(data.require_special),
        enforce_on_login=bool(data.enforce_on_login),
    )


def combine_master_password_options(
    a: MasterPasswordPolicyOptions, b: MasterPasswordPolicyOptions
) -> MasterPasswordPolicyOptions:
    """Return the stricter combination of two master password option sets."""
    return MasterPasswordPolicyOptions(
        min_complexity=max(a.min_complexity, b.min_complexity),
        min_length=max(a.min_length, b.min_length),
        require_upper=a.require_upper or b.require_upper,
        require_lower=a.require_lower or b.require_lower,
        require_numbers=a.require_numbers or b.require_numbers,
        require_special=a.require_special or b.require_special,
        enforce_on_login=a.enforce_on_login or b.enforce_on_login,
    )


def merge_master_password_policies(
    policies: Optional[Iterable[Policy]],
) -> Optional[MasterPasswordPolicyOptions]:
    """
    Merge master password policies into the strictest effective options.

    Args:
        policies: Policies to merge; records of other types and disabled
                  records are ignored

    Returns:
        Effective options, or None if no enabled master password policy
        was supplied
    """
    contributing = _enabled_of_type(policies or [], PolicyType.MASTER_PASSWORD)
    if not contributing:
        return None

    options = reduce(
        combine_master_password_options,
        (_master_password_options(policy.typed_data()) for policy in contributing),
        MasterPasswordPolicyOptions(),
    )
    logger.debug(f"Merged {len(contributing)} master password policies: {options}")
    return options


# =============================================================================
# Reset password
# =============================================================================


def merge_reset_password_policies(
    policies: Optional[Iterable[Policy]], organization_id: Optional[str]
) -> Tuple[ResetPasswordPolicyOptions, bool]:
    """
    Resolve the reset password options for one organization.

    Args:
        policies: Candidate policies, or None
        organization_id: Organization to resolve for, or None

    Returns:
        Tuple of (options, auto_enroll_enabled). The first enabled reset
        password policy for organization_id wins; with none, the defaults
        and False are returned.
    """
    default = ResetPasswordPolicyOptions()
    if policies is None or organization_id is None:
        return default, False

    policy = next(
        (
            p
            for p in _enabled_of_type(policies, PolicyType.RESET_PASSWORD)
            if p.organization_id == organization_id
        ),
        None,
    )
    if policy is None:
        return default, False

    data: ResetPasswordPolicyData = policy.typed_data()
    auto_enroll_enabled = bool(data.auto_enroll_enabled)
    return ResetPasswordPolicyOptions(auto_enroll_enabled=auto_enroll_enabled), auto_enroll_enabled


# =============================================================================
# Password generator
# =============================================================================


def _generator_type(a: Optional[str], b: Optional[str]) -> Optional[str]:
    ranked = [t for t in (a, b) if t in _GENERATOR_TYPE_PRECEDENCE]
    if not ranked:
        return None
    return max(ranked, key=_GENERATOR_TYPE_PRECEDENCE.index)


def _password_generator_options(data: PasswordGeneratorPolicyData) -> PasswordGeneratorPolicyOptions:
    return PasswordGeneratorPolicyOptions(
        default_type=_generator_type(data.default_type, None),
        min_length=max(data.min_length or 0, 0),
        use_upper=bool(data.use_upper),
        use_lower=bool(data.use_lower),
        use_numbers=bool(data.use_numbers),
        use_special=bool(data.use_special),
        min_numbers=max(data.min_numbers or 0, 0),
        min_special=max(data.min_special or 0, 0),
        min_number_words=max(data.min_number_words or 0, 0),
        capitalize=bool(data.capitalize),
        include_number=bool(data.include_number),
    )


def combine_password_generator_options(
    a: PasswordGeneratorPolicyOptions, b: PasswordGeneratorPolicyOptions
) -> PasswordGeneratorPolicyOptions:
    """Return the stricter combination of two generator option sets."""
    return PasswordGeneratorPolicyOptions(
        default_type=_generator_type(a.default_type, b.default_type),
        min_length=max(a.min_length, b.min_length),
        use_upper=a.use_upper or b.use_upper,
        use_lower=a.use_lower or b.use_lower,
        use_numbers=a.use_numbers or b.use_numbers,
        use_special=a.use_special or b.use_special,
        min_numbers=max(a.min_numbers, b.min_numbers),
        min_special=max(a.min_special, b.min_special),
        min_number_words=max(a.min_number_words, b.min_number_words),
        capitalize=a.capitalize or b.capitalize,
        include_number=a.include_number or b.include_number,
    )


def merge_password_generator_policies(
    policies: Optional[Iterable[Policy]],
) -> Optional[PasswordGeneratorPolicyOptions]:
    """Merge password generator policies; None if none are enabled."""
    contributing = _enabled_of_type(policies or [], PolicyType.PASSWORD_GENERATOR)
    if not contributing:
        return None

    return reduce(
        combine_password_generator_options,
        (_password_generator_options(policy.typed_data()) for policy in contributing),
        PasswordGeneratorPolicyOptions(),
    )


# =============================================================================
# Maximum vault timeout
# =============================================================================


def _vault_timeout_options(data: MaximumVaultTimeoutPolicyData) -> MaximumVaultTimeoutPolicyOptions:
    minutes = data.minutes if data.minutes is not None and data.minutes > 0 else None
    action = (
        VaultTimeoutAction.LOG_OUT
        if data.action == VaultTimeoutAction.LOG_OUT.value
        else VaultTimeoutAction.LOCK
    )
    return MaximumVaultTimeoutPolicyOptions(minutes=minutes, action=action)


def combine_vault_timeout_options(
    a: MaximumVaultTimeoutPolicyOptions, b: MaximumVaultTimeoutPolicyOptions
) -> MaximumVaultTimeoutPolicyOptions:
    """Shortest timeout wins; logging out wins over locking."""
    limits = [m for m in (a.minutes, b.minutes) if m is not None]
    log_out = VaultTimeoutAction.LOG_OUT in (a.action, b.action)
    return MaximumVaultTimeoutPolicyOptions(
        minutes=min(limits) if limits else None,
        action=VaultTimeoutAction.LOG_OUT if log_out else VaultTimeoutAction.LOCK,
    )


def merge_maximum_vault_timeout_policies(
    policies: Optional[Iterable[Policy]],
) -> Optional[MaximumVaultTimeoutPolicyOptions]:
    """Merge maximum vault timeout policies; None if none are enabled."""
    contributing = _enabled_of_type(policies or [], PolicyType.MAXIMUM_VAULT_TIMEOUT)
    if not contributing:
        return None

    return reduce(
        combine_vault_timeout_options,
        (_vault_timeout_options(policy.typed_data()) for policy in contributing),
        MaximumVaultTimeoutPolicyOptions(),
    )
