"""
Per-user state for the Policy Engine.

Holds the active account identity and the raw per-user state that the
policy store and organization service read and write. State is kept in
memory; each (state key, user identity) pair has its own subject so writes
for one user never emit on another user's stream.
"""

import logging
from threading import Lock
from typing import Any, Dict, Optional, Tuple

from .observable import BehaviorSubject, Observable

logger = logging.getLogger(__name__)

# State keys
POLICIES = "policies"
ORGANIZATIONS = "organizations"


class AccountService:
    """Tracks which user identity is currently active."""

    def __init__(self, active_user_id: Optional[str] = None):
        self._active_user = BehaviorSubject(active_user_id)

    def active_user_id(self) -> Observable:
        """Sequence of the active user id (None when signed out)."""
        return self._active_user

    @property
    def current_user_id(self) -> Optional[str]:
        return self._active_user.value

    def switch_account(self, user_id: Optional[str]) -> None:
        """Make user_id the active identity (None signs out)."""
        logger.info(f"Switching active account to {user_id}")
        self._active_user.next(user_id)


class StateProvider:
    """
    In-memory keyed state, one subject per (state key, user identity).

    Several services may share one provider; each reads and writes only
    under its own key. The stored value is opaque to the provider.
    """

    def __init__(self):
        self._states: Dict[Tuple[str, str], BehaviorSubject] = {}
        self._lock = Lock()

    def _subject(self, key: str, user_id: str) -> BehaviorSubject:
        with self._lock:
            subject = self._states.get((key, user_id))
            if subject is None:
                subject = BehaviorSubject(None)
                self._states[(key, user_id)] = subject
            return subject

    def state(self, key: str, user_id: str) -> Observable:
        """Sequence of the value stored under key for user_id."""
        return self._subject(key, user_id)

    def get(self, key: str, user_id: str) -> Any:
        """Synchronously read the value stored under key for user_id."""
        return self._subject(key, user_id).value

    def set(self, key: str, user_id: str, value: Any) -> None:
        """Synchronously replace the value stored under key for user_id and notify subscribers."""
        self._subject(key, user_id).next(value)
        logger.debug(f"Updated {key} state for user {user_id}")
