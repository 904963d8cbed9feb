"""
RegFree Bridge - Device Store

Keyed store of device records with two independent uniqueness constraints:
one record per push identifier and one record per MSISDN.

Registration reconciles the two constraints instead of rejecting requests:
- identifier already known: the device is rebound to the new number
- number already bound to another device: that device is dropped

Storage Notes:
    - Records live in memory only and are lost on restart
    - Record ids are monotonically increasing and never reused
    - All mutations are serialized by a single asyncio.Lock
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from abc import abstractmethod
from typing import Dict, List, Optional, Protocol, runtime_checkable

from app.core.exceptions import ConflictError, StoreError
from app.core.types import (
    DEFAULT_OS_TYPE,
    ConflictReason,
    DeviceRecord,
    InsertResult,
)
from app.telephony.privacy import mask_identifier, mask_phone_number

logger = logging.getLogger(__name__)


# =============================================================================
# Protocol
# =============================================================================

@runtime_checkable
class DeviceStore(Protocol):
    """
    Protocol for device record storage.

    Implementations must keep both uniqueness constraints intact under
    interleaved requests.
    """

    @abstractmethod
    async def list(self) -> List[DeviceRecord]:
        """Get all records, in no particular order."""
        ...

    @abstractmethod
    async def get_by_identifier(self, identifier: str) -> Optional[DeviceRecord]:
        ...

    @abstractmethod
    async def get_by_msisdn(self, msisdn: str) -> Optional[DeviceRecord]:
        ...

    @abstractmethod
    async def delete_by_identifier(self, identifier: str) -> None:
        """Delete the record for a push identifier. Missing records are ignored."""
        ...

    @abstractmethod
    async def delete_by_msisdn(self, msisdn: str) -> None:
        """Delete the record for a phone number. Missing records are ignored."""
        ...

    @abstractmethod
    async def register(
        self,
        msisdn: str,
        identifier: str,
        os_type: str = DEFAULT_OS_TYPE,
    ) -> DeviceRecord:
        """Bind a push identifier to a phone number, resolving conflicts."""
        ...


# =============================================================================
# In-Memory Implementation
# =============================================================================

class InMemoryDeviceStore:
    """
    In-memory implementation of DeviceStore.

    Records are indexed by id, identifier and msisdn. The two secondary
    indices double as the uniqueness constraints.

    Usage:
        store = InMemoryDeviceStore()
        record = await store.register("1000", "token-a", "ios")
    """

    # A retry after dropping the msisdn holder can only conflict again if
    # something mutated the store in between, which the lock rules out.
    MAX_REGISTER_ATTEMPTS = 2

    def __init__(self):
        self._lock = asyncio.Lock()
        self._records: Dict[int, DeviceRecord] = {}
        self._by_identifier: Dict[str, int] = {}
        self._by_msisdn: Dict[str, int] = {}
        self._ids = itertools.count(1)

        logger.info("InMemoryDeviceStore initialized")

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def list(self) -> List[DeviceRecord]:
        async with self._lock:
            return [self._copy(r) for r in self._records.values()]

    async def count(self) -> int:
        async with self._lock:
            return len(self._records)

    async def get_by_identifier(self, identifier: str) -> Optional[DeviceRecord]:
        async with self._lock:
            record_id = self._by_identifier.get(identifier)
            return self._copy(self._records[record_id]) if record_id is not None else None

    async def get_by_msisdn(self, msisdn: str) -> Optional[DeviceRecord]:
        async with self._lock:
            record_id = self._by_msisdn.get(msisdn)
            return self._copy(self._records[record_id]) if record_id is not None else None

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def delete_by_identifier(self, identifier: str) -> None:
        async with self._lock:
            logger.info("Removing device %s", mask_identifier(identifier))
            self._delete(self._by_identifier.get(identifier))

    async def delete_by_msisdn(self, msisdn: str) -> None:
        async with self._lock:
            logger.info("Removing all devices with msisdn %s", mask_phone_number(msisdn))
            self._delete(self._by_msisdn.get(msisdn))

    async def clear(self) -> None:
        async with self._lock:
            count = len(self._records)
            self._records.clear()
            self._by_identifier.clear()
            self._by_msisdn.clear()
        logger.info("InMemoryDeviceStore cleared: %d records", count)

    async def register(
        self,
        msisdn: str,
        identifier: str,
        os_type: str = DEFAULT_OS_TYPE,
    ) -> DeviceRecord:
        """
        Bind a push identifier to a phone number.

        Resolution order:
            1. Insert a new record.
            2. Identifier taken: rebind that record to ``msisdn``.
            3. Msisdn taken: drop the record holding it and insert again.

        The whole sequence runs under the store lock.

        Raises:
            StoreError: If identifier or msisdn is empty
            ConflictError: If a rebind would take a number held by
                another device
        """
        async with self._lock:
            for _ in range(self.MAX_REGISTER_ATTEMPTS):
                result = self._insert(os_type, identifier, msisdn)

                if result.ok:
                    logger.info(
                        "New device %s:%s registered MSISDN %s => %d",
                        os_type,
                        mask_identifier(identifier),
                        mask_phone_number(msisdn),
                        result.record.id,
                    )
                    return self._copy(result.record)

                if result.conflict is ConflictReason.IDENTIFIER:
                    return self._copy(self._update_msisdn(identifier, msisdn))

                if result.conflict is ConflictReason.MSISDN:
                    logger.info(
                        "MSISDN %s moves to a new device, dropping previous binding",
                        mask_phone_number(msisdn),
                    )
                    self._delete(self._by_msisdn.get(msisdn))
                    continue

                raise StoreError(f"Unexpected insert outcome: {result!r}")

        raise ConflictError(
            f"MSISDN {mask_phone_number(msisdn)} is still bound after resolution",
            details={"constraint": ConflictReason.MSISDN.value},
        )

    # -------------------------------------------------------------------------
    # Primitives (caller holds the lock)
    # -------------------------------------------------------------------------

    def _insert(self, os_type: str, identifier: str, msisdn: str) -> InsertResult:
        if not identifier or not msisdn:
            raise StoreError("Device records require both identifier and msisdn")

        # identifier is checked first so a double collision reads as a rebind
        if identifier in self._by_identifier:
            return InsertResult(conflict=ConflictReason.IDENTIFIER)
        if msisdn in self._by_msisdn:
            return InsertResult(conflict=ConflictReason.MSISDN)

        record = DeviceRecord(
            id=next(self._ids),
            os_type=os_type or DEFAULT_OS_TYPE,
            identifier=identifier,
            msisdn=msisdn,
        )
        self._records[record.id] = record
        self._by_identifier[identifier] = record.id
        self._by_msisdn[msisdn] = record.id
        return InsertResult(record=record)

    def _update_msisdn(self, identifier: str, msisdn: str) -> DeviceRecord:
        record = self._records[self._by_identifier[identifier]]
        if record.msisdn == msisdn:
            return record

        holder_id = self._by_msisdn.get(msisdn)
        if holder_id is not None and holder_id != record.id:
            raise ConflictError(
                f"Cannot rebind device {mask_identifier(identifier)}: "
                f"MSISDN {mask_phone_number(msisdn)} belongs to another device",
                details={"constraint": ConflictReason.MSISDN.value},
            )

        del self._by_msisdn[record.msisdn]
        record.msisdn = msisdn
        self._by_msisdn[msisdn] = record.id

        logger.info(
            "Updated device %s with new MSISDN %s",
            mask_identifier(identifier),
            mask_phone_number(msisdn),
        )
        return record

    def _delete(self, record_id: Optional[int]) -> None:
        if record_id is None:
            return
        record = self._records.pop(record_id)
        del self._by_identifier[record.identifier]
        del self._by_msisdn[record.msisdn]

    @staticmethod
    def _copy(record: DeviceRecord) -> DeviceRecord:
        return DeviceRecord(
            id=record.id,
            os_type=record.os_type,
            identifier=record.identifier,
            msisdn=record.msisdn,
        )


# =============================================================================
# Factory
# =============================================================================

def create_device_store() -> InMemoryDeviceStore:
    """Create the process-wide device store. Starts empty."""
    return InMemoryDeviceStore()
