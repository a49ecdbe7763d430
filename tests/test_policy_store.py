"""
Tests for the per-user Policy Store.
"""

import pytest

from policy_engine.engine.policy_store import PolicyStore
from policy_engine.engine.state_provider import StateProvider
from policy_engine.models import Policy, PolicyType


class TestPolicyStore:
    """Test cases for PolicyStore."""

    @pytest.fixture
    def store(self):
        return PolicyStore(StateProvider())

    @pytest.fixture
    def vault_timeout(self):
        return Policy(id="1", organization_id="A", type=PolicyType.MAXIMUM_VAULT_TIMEOUT,
                      enabled=True, data={"minutes": 14})

    @pytest.fixture
    def disable_send(self):
        return Policy(id="99", organization_id="A", type=PolicyType.DISABLE_SEND, enabled=True)

    def test_unknown_user_reads_empty(self, store):
        assert store.records("nobody").first() == []
        assert store.raw("nobody") is None

    def test_replace_then_upsert_keeps_both_in_insertion_order(self, store, vault_timeout, disable_send):
        store.replace({"1": vault_timeout}, "user-1")
        store.upsert(disable_send, "user-1")

        assert store.records("user-1").first() == [vault_timeout, disable_send]

    def test_upsert_creates_set(self, store, disable_send):
        store.upsert(disable_send, "user-1")

        assert store.raw("user-1") == {"99": disable_send}

    def test_upsert_overwrites_only_that_entry(self, store, vault_timeout, disable_send):
        store.replace([vault_timeout, disable_send], "user-1")
        updated = vault_timeout.model_copy(update={"data": {"minutes": 5}})

        store.upsert(updated, "user-1")

        assert store.records("user-1").first() == [updated, disable_send]

    def test_replace_stores_exactly_what_was_given(self, store, vault_timeout):
        store.replace({"1": vault_timeout}, "user-1")

        store.replace({}, "user-1")
        assert store.raw("user-1") == {}
        assert store.records("user-1").first() == []

        store.replace(None, "user-1")
        assert store.raw("user-1") is None
        assert store.records("user-1").first() == []

    def test_replace_does_not_alias_caller_mapping(self, store, vault_timeout, disable_send):
        given = {"1": vault_timeout}
        store.replace(given, "user-1")

        store.upsert(disable_send, "user-1")

        assert given == {"1": vault_timeout}

    def test_users_are_independent(self, store, vault_timeout, disable_send):
        store.replace([vault_timeout], "user-1")
        store.replace([disable_send], "user-2")
        user_1_emissions = []
        subscription = store.records("user-1").subscribe(user_1_emissions.append)

        store.clear("user-2")
        store.upsert(vault_timeout, "user-2")
        subscription.unsubscribe()

        assert user_1_emissions == [[vault_timeout]]
        assert store.records("user-1").first() == [vault_timeout]
        assert store.records("user-2").first() == [vault_timeout]

    def test_clear_sets_raw_state_to_none(self, store, vault_timeout):
        store.replace([vault_timeout], "user-1")
        raw_emissions = []
        subscription = store.raw_state("user-1").subscribe(raw_emissions.append)

        store.clear("user-1")
        subscription.unsubscribe()

        assert raw_emissions == [{"1": vault_timeout}, None]

    def test_raw_reads_are_copies(self, store, vault_timeout, disable_send):
        store.replace([vault_timeout], "user-1")
        emissions = []
        subscription = store.raw_state("user-1").subscribe(emissions.append)

        store.raw("user-1")["99"] = disable_send
        emissions[0]["99"] = disable_send
        subscription.unsubscribe()

        assert store.raw("user-1") == {"1": vault_timeout}
        assert store.records("user-1").first() == [vault_timeout]

    def test_shared_provider_keeps_state_separate(self, vault_timeout):
        provider = StateProvider()
        provider.set("organizations", "user-1", ["not a policy map"])
        store = PolicyStore(provider)

        store.upsert(vault_timeout, "user-1")

        assert store.raw("user-1") == {"1": vault_timeout}
        assert provider.get("organizations", "user-1") == ["not a policy map"]

    def test_records_without_user(self, store):
        assert store.records(None).first() == []
