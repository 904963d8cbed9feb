"""
RegFree Bridge - Core Domain Types

Internal type definitions shared by the store, the registration service and
notification dispatch. These are independent of API serialization; the API
layer converts them to Pydantic schemas.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


DEFAULT_OS_TYPE = "android"

UNREGISTERED_ERROR_CODE = "messaging/registration-token-not-registered"
"""Push provider code meaning the device token is permanently invalid."""

UNKNOWN_ERROR_CODE = "unknown-error"


# =============================================================================
# Device Records
# =============================================================================

@dataclass
class DeviceRecord:
    """
    A push token bound to a phone number.

    Only ``msisdn`` is mutated after creation (rebind on re-registration).
    """
    id: int
    os_type: str
    identifier: str
    msisdn: str


class ConflictReason(str, Enum):
    """Which uniqueness constraint rejected a write."""
    IDENTIFIER = "identifier"
    MSISDN = "msisdn"


@dataclass(frozen=True)
class InsertResult:
    """Outcome of the store's insert primitive."""
    record: Optional[DeviceRecord] = None
    conflict: Optional[ConflictReason] = None

    @property
    def ok(self) -> bool:
        return self.record is not None


# =============================================================================
# Push Delivery
# =============================================================================

@dataclass(frozen=True)
class PushOptions:
    """Delivery options understood by every push provider."""
    priority: str = "high"
    time_to_live: int = 30  # seconds


@dataclass(frozen=True)
class DeliveryError:
    code: str = UNKNOWN_ERROR_CODE
    message: Optional[str] = None


@dataclass(frozen=True)
class DeliveryResult:
    """Per-message delivery report from a push provider."""
    failure_count: int = 0
    success_count: int = 0
    errors: List[Optional[DeliveryError]] = field(default_factory=list)

    @property
    def first_error_code(self) -> str:
        """Code of the first message's error, or ``unknown-error``."""
        first = self.errors[0] if self.errors else None
        if first is not None and first.code:
            return first.code
        return UNKNOWN_ERROR_CODE


# =============================================================================
# Call Notifications
# =============================================================================

@dataclass(frozen=True)
class CallNotification:
    """Payload pushed to a device to invite it into a call session."""
    session: str
    caller_id: Optional[str]
    ringing_url: str

    def to_data(self) -> Dict[str, str]:
        # Push data payloads only carry string values
        return {
            "session": self.session,
            "callerId": self.caller_id or "",
            "ringingURL": self.ringing_url,
        }


@dataclass(frozen=True)
class DispatchOutcome:
    """Result of forwarding an inbound call to a device."""
    delivered: bool
    message: str
    error_code: Optional[str] = None
    stale_identifier: Optional[str] = None
    """Identifier to discard because the provider reported it unregistered."""
