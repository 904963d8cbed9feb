"""
RegFree Bridge - Device Store Tests

Tests for InMemoryDeviceStore and registration conflict resolution.
These tests verify:
- Lookups by identifier and msisdn
- Rebinding a known identifier to a new number
- Replacing the device that held a number
- Idempotent deletes
- Both uniqueness constraints under interleaved registrations

Run with: pytest tests/test_device_store.py -v
"""

import asyncio

import pytest

from app.core.device_store import DeviceStore, InMemoryDeviceStore, create_device_store
from app.core.exceptions import ConflictError, StoreError


def assert_unique(records):
    identifiers = [r.identifier for r in records]
    msisdns = [r.msisdn for r in records]
    assert len(identifiers) == len(set(identifiers))
    assert len(msisdns) == len(set(msisdns))


class TestRegistration:
    """Tests for registering new devices."""

    @pytest.mark.asyncio
    async def test_register_creates_record(self, store: InMemoryDeviceStore):
        """A fresh registration should be retrievable by both keys."""
        record = await store.register("1000", "A", "ios")

        assert record.identifier == "A"
        assert record.msisdn == "1000"
        assert record.os_type == "ios"

        by_identifier = await store.get_by_identifier("A")
        by_msisdn = await store.get_by_msisdn("1000")
        assert by_identifier == record
        assert by_msisdn == record

    @pytest.mark.asyncio
    async def test_register_defaults_to_android(self, store: InMemoryDeviceStore):
        record = await store.register("1000", "A")
        assert record.os_type == "android"

    @pytest.mark.asyncio
    async def test_register_accepts_free_text_os_type(self, store: InMemoryDeviceStore):
        record = await store.register("1000", "A", "harmonyos")
        assert record.os_type == "harmonyos"

    @pytest.mark.asyncio
    async def test_ids_increase(self, store: InMemoryDeviceStore):
        first = await store.register("1000", "A")
        second = await store.register("2000", "B")
        assert second.id > first.id

    @pytest.mark.asyncio
    async def test_ids_are_not_reused(self, store: InMemoryDeviceStore):
        """Deleting the newest record must not free its id."""
        first = await store.register("1000", "A")
        await store.delete_by_identifier("A")
        second = await store.register("1000", "A")
        assert second.id > first.id

    @pytest.mark.asyncio
    async def test_empty_fields_rejected(self, store: InMemoryDeviceStore):
        with pytest.raises(StoreError):
            await store.register("", "A")
        with pytest.raises(StoreError):
            await store.register("1000", "")
        assert await store.list() == []


class TestConflictResolution:
    """Tests for the two uniqueness constraints."""

    @pytest.mark.asyncio
    async def test_known_identifier_is_rebound(self, store: InMemoryDeviceStore):
        """Same identifier, new number: same record, new msisdn."""
        original = await store.register("1000", "A", "ios")
        rebound = await store.register("2000", "A")

        assert rebound.id == original.id
        assert rebound.msisdn == "2000"
        assert rebound.os_type == "ios"
        assert await store.get_by_msisdn("1000") is None
        assert len(await store.list()) == 1

    @pytest.mark.asyncio
    async def test_reregister_same_pair_is_idempotent(self, store: InMemoryDeviceStore):
        original = await store.register("1000", "A")
        again = await store.register("1000", "A")

        assert again == original
        assert len(await store.list()) == 1

    @pytest.mark.asyncio
    async def test_taken_msisdn_replaces_device(self, store: InMemoryDeviceStore):
        """New identifier on a bound number drops the old device."""
        old = await store.register("1000", "A")
        new = await store.register("1000", "B")

        assert new.id != old.id
        assert new.identifier == "B"
        assert await store.get_by_identifier("A") is None
        assert (await store.get_by_msisdn("1000")).identifier == "B"
        assert len(await store.list()) == 1

    @pytest.mark.asyncio
    async def test_rebind_onto_number_of_other_device_is_rejected(self, store: InMemoryDeviceStore):
        """Identifier A moving onto B's number is a conflict, not a silent duplicate."""
        await store.register("1000", "A")
        await store.register("2000", "B")

        with pytest.raises(ConflictError):
            await store.register("2000", "A")

        assert (await store.get_by_identifier("A")).msisdn == "1000"
        assert (await store.get_by_identifier("B")).msisdn == "2000"
        assert_unique(await store.list())

    @pytest.mark.asyncio
    async def test_full_scenario(self, store: InMemoryDeviceStore):
        """Register, rebind, then take over the number with another device."""
        a = await store.register("1000", "A", "ios")
        assert (a.identifier, a.msisdn, a.os_type) == ("A", "1000", "ios")

        a_moved = await store.register("2000", "A")
        assert a_moved.id == a.id
        assert a_moved.msisdn == "2000"

        b = await store.register("2000", "B")
        assert b.msisdn == "2000"
        assert b.id != a.id
        assert await store.get_by_identifier("A") is None

        records = await store.list()
        assert [r.identifier for r in records] == ["B"]


class TestDeletion:
    """Tests for deletes."""

    @pytest.mark.asyncio
    async def test_delete_by_identifier(self, store: InMemoryDeviceStore):
        await store.register("1000", "A")
        await store.delete_by_identifier("A")

        assert await store.get_by_identifier("A") is None
        assert await store.get_by_msisdn("1000") is None

    @pytest.mark.asyncio
    async def test_delete_by_msisdn(self, store: InMemoryDeviceStore):
        await store.register("1000", "A")
        await store.delete_by_msisdn("1000")

        assert await store.list() == []

    @pytest.mark.asyncio
    async def test_delete_missing_is_noop(self, store: InMemoryDeviceStore):
        await store.register("1000", "A")

        await store.delete_by_identifier("missing")
        await store.delete_by_msisdn("9999")

        assert len(await store.list()) == 1

    @pytest.mark.asyncio
    async def test_clear(self, store: InMemoryDeviceStore):
        await store.register("1000", "A")
        await store.register("2000", "B")
        await store.clear()

        assert await store.count() == 0


class TestIsolation:
    """Returned records are snapshots, not live views."""

    @pytest.mark.asyncio
    async def test_mutating_result_does_not_touch_store(self, store: InMemoryDeviceStore):
        record = await store.register("1000", "A")
        record.msisdn = "9999"

        assert (await store.get_by_identifier("A")).msisdn == "1000"
        assert await store.get_by_msisdn("9999") is None


class TestConcurrency:
    """Interleaved registrations must keep both constraints."""

    @pytest.mark.asyncio
    async def test_concurrent_registrations_stay_unique(self, store: InMemoryDeviceStore):
        pairs = [
            (f"{1000 + (i % 5)}", f"token-{i % 7}")
            for i in range(60)
        ]

        results = await asyncio.gather(
            *(store.register(msisdn, identifier) for msisdn, identifier in pairs),
            return_exceptions=True,
        )

        for result in results:
            if isinstance(result, Exception):
                assert isinstance(result, ConflictError)

        assert_unique(await store.list())

    @pytest.mark.asyncio
    async def test_concurrent_takeover_leaves_single_owner(self, store: InMemoryDeviceStore):
        await asyncio.gather(*(store.register("1000", f"token-{i}") for i in range(10)))

        records = await store.list()
        assert len(records) == 1
        assert records[0].msisdn == "1000"


class TestFactory:

    def test_create_device_store(self):
        store = create_device_store()
        assert isinstance(store, DeviceStore)
