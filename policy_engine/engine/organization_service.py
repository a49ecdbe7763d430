"""
Organization membership source for the Policy Engine.

Exposes, per user identity, the list of organization memberships whose
facts (enabled, uses policies, status, role) decide policy exemption.
Membership lifecycle is decided elsewhere; this service only holds the
already-decided records.
"""

import logging
from typing import Iterable, List, Optional

from ..models import OrganizationMembership
from .observable import Observable
from .state_provider import ORGANIZATIONS, StateProvider

logger = logging.getLogger(__name__)


class OrganizationService:
    """Per-user organization memberships backed by a StateProvider."""

    def __init__(self, state_provider: Optional[StateProvider] = None):
        self._state = state_provider or StateProvider()

    def memberships(self, user_id: Optional[str]) -> Observable:
        """Sequence of the user's memberships; empty for unknown or absent users."""
        if user_id is None:
            return Observable.of([])
        return self._state.state(ORGANIZATIONS, user_id).map(lambda value: list(value or []))

    def get(self, user_id: str, organization_id: str) -> Optional[OrganizationMembership]:
        """Return the user's membership in organization_id, if any."""
        for membership in self._state.get(ORGANIZATIONS, user_id) or []:
            if membership.organization_id == organization_id:
                return membership
        return None

    def replace(self, user_id: str, memberships: Iterable[OrganizationMembership]) -> None:
        """Set the full membership list for user_id."""
        memberships = list(memberships)
        self._state.set(ORGANIZATIONS, user_id, memberships)
        logger.info(f"Replaced memberships for user {user_id}: {len(memberships)} organizations")

    def upsert(self, user_id: str, membership: OrganizationMembership) -> None:
        """Insert or overwrite the membership for its organization."""
        current: List[OrganizationMembership] = list(self._state.get(ORGANIZATIONS, user_id) or [])
        for i, existing in enumerate(current):
            if existing.organization_id == membership.organization_id:
                current[i] = membership
                break
        else:
            current.append(membership)

        self._state.set(ORGANIZATIONS, user_id, current)
        logger.info(f"Upserted membership in {membership.organization_id} for user {user_id}")
