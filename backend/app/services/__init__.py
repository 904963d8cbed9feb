"""
RegFree Bridge - Services Package

External collaborators behind Protocol interfaces:
- Push notification delivery

Design Pattern:
    Each service defines a Protocol (interface) and one or more implementations.
    The concrete implementation is chosen at startup and injected into the
    core components, so tests can swap in the dummy provider.
"""

from .push import (
    PushProvider,
    DummyPushProvider,
    FirebasePushProvider,
    create_push_provider,
)

__all__ = [
    "PushProvider",
    "DummyPushProvider",
    "FirebasePushProvider",
    "create_push_provider",
]
