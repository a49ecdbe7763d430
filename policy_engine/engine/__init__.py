"""
Policy Engine Core Package.

This package provides the per-user policy store, the applicability rules,
the strictest-wins aggregation of policy payloads, the evaluators, and the
PolicyService that ties them to the active user.
"""

from .aggregation import (
    merge_master_password_policies,
    merge_maximum_vault_timeout_policies,
    merge_password_generator_policies,
    merge_reset_password_policies,
)
from .applicability import applies_to_user, filter_applicable, filter_by_type, has_policy_exemption
from .evaluators import evaluate_master_password, map_policies_from_token, master_password_violations
from .observable import BehaviorSubject, Observable, Subscription, combine_latest
from .organization_service import OrganizationService
from .policy_service import PolicyService
from .policy_store import PolicyStore
from .state_provider import AccountService, StateProvider

__all__ = [
    "AccountService",
    "StateProvider",
    "OrganizationService",
    "PolicyStore",
    "PolicyService",
    "Observable",
    "BehaviorSubject",
    "Subscription",
    "combine_latest",
    "has_policy_exemption",
    "applies_to_user",
    "filter_applicable",
    "filter_by_type",
    "merge_master_password_policies",
    "merge_reset_password_policies",
    "merge_password_generator_policies",
    "merge_maximum_vault_timeout_policies",
    "evaluate_master_password",
    "master_password_violations",
    "map_policies_from_token",
]
