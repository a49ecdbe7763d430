"""
Applicability rules for the Policy Engine.

Decides whether a policy record is currently in force for a user, given
that user's membership in the policy's organization.
"""

import logging
from typing import Iterable, List, Optional, Union

from ..models import (
    OrganizationMembership,
    OrganizationUserStatus,
    OrganizationUserType,
    Policy,
    PolicyType,
    coerce_policy_type,
)

logger = logging.getLogger(__name__)

EXEMPT_ROLES = frozenset({OrganizationUserType.OWNER, OrganizationUserType.ADMIN})


def has_policy_exemption(membership: OrganizationMembership) -> bool:
    """
    Check whether a membership's role exempts it from policy enforcement.

    Owners and Admins are exempt, as are Custom members granted the
    manage-policies permission. Unknown roles are not exempt.
    """
    if membership.role in EXEMPT_ROLES:
        return True
    return membership.role == OrganizationUserType.CUSTOM and membership.permissions.manage_policies


def applies_to_user(
    record: Policy,
    membership: Optional[OrganizationMembership],
    allow_admin_override: bool = False,
) -> bool:
    """
    Decide whether a policy is in force for the user holding membership.

    Args:
        record: Policy record to check
        membership: The user's membership in the record's organization, or None
        allow_admin_override: Ignore role exemption (for admin-facing views)

    Returns:
        True only if the policy is enabled, the user is a confirmed member of
        an enabled organization that uses policies, and the user's role is
        not exempt (unless allow_admin_override is set)
    """
    if not record.enabled:
        return False

    if membership is None or membership.organization_id != record.organization_id:
        return False

    if not membership.enabled:
        return False

    if not membership.use_policies:
        return False

    if membership.status != OrganizationUserStatus.CONFIRMED:
        return False

    if not allow_admin_override and has_policy_exemption(membership):
        return False

    return True


def filter_applicable(
    policies: Iterable[Policy],
    memberships: Iterable[OrganizationMembership],
    allow_admin_override: bool = False,
) -> List[Policy]:
    """Return the policies in force for a user, preserving input order."""
    by_org = {membership.organization_id: membership for membership in memberships}
    policies = list(policies)
    applicable = [
        policy
        for policy in policies
        if applies_to_user(policy, by_org.get(policy.organization_id), allow_admin_override)
    ]
    logger.debug(f"{len(applicable)} of {len(policies)} policies apply")
    return applicable


def filter_by_type(
    policies: Iterable[Policy], policy_type: Union[PolicyType, int, str]
) -> List[Policy]:
    """Return the policies of policy_type, preserving input order."""
    policy_type = coerce_policy_type(policy_type)
    return [policy for policy in policies if policy.type == policy_type]
