"""
RegFree Bridge - Core Package

Contains the device registry and call forwarding logic:
- device_store: Device records and registration conflict resolution
- registration: Register/list/originate request handling
- dispatch: Inbound call → push notification forwarding
- types: Internal domain types
"""

from .types import (
    DeviceRecord,
    ConflictReason,
    InsertResult,
    PushOptions,
    DeliveryError,
    DeliveryResult,
    CallNotification,
    DispatchOutcome,
)
from .device_store import DeviceStore, InMemoryDeviceStore, create_device_store
from .registration import RegistrationService
from .dispatch import NotificationDispatcher

__all__ = [
    # Store
    "DeviceStore",
    "InMemoryDeviceStore",
    "create_device_store",
    # Services
    "RegistrationService",
    "NotificationDispatcher",
    # Types
    "DeviceRecord",
    "ConflictReason",
    "InsertResult",
    "PushOptions",
    "DeliveryError",
    "DeliveryResult",
    "CallNotification",
    "DispatchOutcome",
]
