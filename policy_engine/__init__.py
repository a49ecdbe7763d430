"""
Organization Policy Engine

Determines which organization security policies apply to a user across
all of the user's organization memberships, and merges policies of the
same type into one strictest-wins effective configuration.
"""

__version__ = "1.0.0"
__author__ = "Policy Engine Team"
__email__ = "team@example.com"

from .engine.organization_service import OrganizationService
from .engine.policy_service import PolicyService
from .engine.policy_store import PolicyStore
from .engine.state_provider import AccountService, StateProvider

__all__ = [
    "AccountService",
    "OrganizationService",
    "PolicyService",
    "PolicyStore",
    "StateProvider",
]
