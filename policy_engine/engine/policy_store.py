"""
Policy Store for the Policy Engine.

Holds the raw policy records known for each user identity as a mapping of
policy id to Policy. Every operation names the user identity explicitly;
resolving the active user is left to PolicyService.
"""

import logging
from typing import Iterable, List, Mapping, Optional, Union

from ..models import Policy, PolicyRecords, policy_type_name
from .observable import Observable
from .state_provider import POLICIES, StateProvider

logger = logging.getLogger(__name__)


class PolicyStore:
    """
    Per-user keyed container of policy records.

    Writes to one user identity never touch another's stored mapping. Reads
    are Observables that re-emit whenever that user's mapping changes, in the
    mapping's insertion order.
    """

    def __init__(self, state_provider: Optional[StateProvider] = None):
        self._state = state_provider or StateProvider()

    def raw(self, user_id: str) -> Optional[PolicyRecords]:
        """Synchronously read a copy of the stored mapping for user_id (None when cleared)."""
        return _copy(self._state.get(POLICIES, user_id))

    def raw_state(self, user_id: str) -> Observable:
        """Sequence of copies of the stored mapping for user_id, as written."""
        return self._state.state(POLICIES, user_id).map(_copy)

    def records(self, user_id: Optional[str]) -> Observable:
        """Sequence of the user's policy records; empty when none are known."""
        if user_id is None:
            return Observable.of([])
        return self._state.state(POLICIES, user_id).map(records_to_list)

    def replace(
        self,
        records: Optional[Union[Mapping[str, Policy], Iterable[Policy]]],
        user_id: str,
    ) -> None:
        """
        Set the full record set for user_id.

        Args:
            records: Mapping of policy id to Policy, an iterable of Policy
                     (keyed by their ids), or None
            user_id: User identity to write
        """
        if records is None:
            mapping = None
        elif isinstance(records, Mapping):
            mapping = dict(records)
        else:
            mapping = {record.id: record for record in records}

        self._state.set(POLICIES, user_id, mapping)
        logger.info(
            f"Replaced policies for user {user_id}: {len(mapping) if mapping else 0} records"
        )

    def upsert(self, record: Policy, user_id: str) -> None:
        """Insert or overwrite record by id in user_id's set, creating the set if absent."""
        mapping = dict(self._state.get(POLICIES, user_id) or {})
        existed = record.id in mapping
        mapping[record.id] = record

        self._state.set(POLICIES, user_id, mapping)
        logger.info(
            f"{'Updated' if existed else 'Inserted'} policy {record.id} "
            f"({policy_type_name(record.type)}) for user {user_id}"
        )

    def clear(self, user_id: str) -> None:
        """Set the stored mapping for user_id to None."""
        self._state.set(POLICIES, user_id, None)
        logger.info(f"Cleared policies for user {user_id}")


def records_to_list(mapping: Optional[PolicyRecords]) -> List[Policy]:
    """Flatten a stored mapping into a list in insertion order."""
    return list((mapping or {}).values())


def _copy(mapping: Optional[PolicyRecords]) -> Optional[PolicyRecords]:
    return None if mapping is None else dict(mapping)
