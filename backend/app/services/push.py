"""
RegFree Bridge - Push Provider Service

Delivers call invitations to a single device token.

Architecture:
    - Protocol defines the interface for push providers
    - DummyPushProvider: In-memory provider for development/testing
    - FirebasePushProvider: Firebase Cloud Messaging via firebase-admin

Every provider reports a DeliveryResult instead of raising for per-device
failures, so dispatch can tell a dead token from a broken provider. Only
provider-wide failures (credentials, transport, timeout) raise
PushDeliveryError.
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import abstractmethod
from datetime import timedelta
from typing import Dict, List, Optional, Protocol, Set, runtime_checkable

import firebase_admin
from firebase_admin import credentials, exceptions, messaging

from app.config import Settings
from app.core.exceptions import ConfigurationError, PushDeliveryError
from app.core.types import (
    UNKNOWN_ERROR_CODE,
    UNREGISTERED_ERROR_CODE,
    DeliveryError,
    DeliveryResult,
    PushOptions,
)
from app.telephony.privacy import mask_identifier

logger = logging.getLogger(__name__)


# =============================================================================
# Protocol (Interface)
# =============================================================================

@runtime_checkable
class PushProvider(Protocol):
    """Protocol for push notification providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name."""
        ...

    @abstractmethod
    async def send(
        self,
        identifier: str,
        data: Dict[str, str],
        options: PushOptions,
    ) -> DeliveryResult:
        """
        Send a data message to one device.

        Args:
            identifier: Provider token of the target device
            data: String-valued payload
            options: Priority and time-to-live

        Returns:
            DeliveryResult with per-message errors

        Raises:
            PushDeliveryError: If the provider itself could not be reached
        """
        ...


# =============================================================================
# Dummy Implementation (Development/Testing)
# =============================================================================

class DummyPushProvider:
    """
    Push provider that keeps messages in memory.

    Tokens listed in ``unregistered`` are reported as permanently invalid,
    tokens in ``failing`` fail with the mapped error code. Everything else
    is delivered.
    """

    def __init__(self):
        self.sent: List[dict] = []
        self.unregistered: Set[str] = set()
        self.failing: Dict[str, str] = {}

    @property
    def name(self) -> str:
        return "dummy"

    async def send(
        self,
        identifier: str,
        data: Dict[str, str],
        options: PushOptions,
    ) -> DeliveryResult:
        self.sent.append({"identifier": identifier, "data": dict(data), "options": options})

        if identifier in self.unregistered:
            code = UNREGISTERED_ERROR_CODE
        else:
            code = self.failing.get(identifier)

        if code:
            return DeliveryResult(failure_count=1, errors=[DeliveryError(code=code)])
        return DeliveryResult(success_count=1, errors=[None])


# =============================================================================
# Firebase Cloud Messaging
# =============================================================================

class FirebasePushProvider:
    """
    Firebase Cloud Messaging provider.

    The firebase-admin SDK is synchronous, so sends run in a worker thread
    bounded by ``timeout_seconds``.
    """

    APP_NAME = "regfree-bridge"

    def __init__(
        self,
        credentials_path: Optional[str] = None,
        project_id: Optional[str] = None,
        timeout_seconds: float = 10.0,
    ):
        try:
            self._app = firebase_admin.get_app(self.APP_NAME)
        except ValueError:
            try:
                if credentials_path:
                    credential = credentials.Certificate(credentials_path)
                else:
                    credential = credentials.ApplicationDefault()
            except (OSError, ValueError) as e:
                raise ConfigurationError(f"Failed to load Firebase credentials: {e}")

            options = {"projectId": project_id} if project_id else None
            self._app = firebase_admin.initialize_app(credential, options, name=self.APP_NAME)

        self._timeout = timeout_seconds
        logger.info("Firebase push provider configured (project=%s)", project_id or "default")

    @property
    def name(self) -> str:
        return "firebase"

    async def send(
        self,
        identifier: str,
        data: Dict[str, str],
        options: PushOptions,
    ) -> DeliveryResult:
        message = self._build_message(identifier, data, options)

        try:
            batch = await asyncio.wait_for(
                asyncio.to_thread(messaging.send_each, [message], False, self._app),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            raise PushDeliveryError(
                f"Push provider timed out after {self._timeout}s",
                details={"provider": self.name},
            )
        except (exceptions.FirebaseError, ValueError) as e:
            logger.error("Firebase send to %s failed: %s", mask_identifier(identifier), e)
            raise PushDeliveryError(f"Push provider error: {e}", details={"provider": self.name})

        errors = [
            None if response.success else DeliveryError(
                code=self._error_code(response.exception),
                message=str(response.exception),
            )
            for response in batch.responses
        ]
        return DeliveryResult(
            failure_count=batch.failure_count,
            success_count=batch.success_count,
            errors=errors,
        )

    @staticmethod
    def _build_message(identifier: str, data: Dict[str, str], options: PushOptions):
        ttl = timedelta(seconds=options.time_to_live)
        apns_priority = "10" if options.priority == "high" else "5"

        return messaging.Message(
            token=identifier,
            data=data,
            android=messaging.AndroidConfig(priority=options.priority, ttl=ttl),
            apns=messaging.APNSConfig(
                headers={
                    "apns-priority": apns_priority,
                    "apns-expiration": str(int(time.time()) + options.time_to_live),
                },
                payload=messaging.APNSPayload(aps=messaging.Aps(content_available=True)),
            ),
        )

    @staticmethod
    def _error_code(exc: Optional[Exception]) -> str:
        if isinstance(exc, messaging.UnregisteredError):
            return UNREGISTERED_ERROR_CODE

        code = getattr(exc, "code", None)
        if not code:
            return UNKNOWN_ERROR_CODE
        return "messaging/" + str(code).lower().replace("_", "-")


# =============================================================================
# Factory
# =============================================================================

def create_push_provider(settings: Settings) -> PushProvider:
    """
    Select the push provider named by ``settings.push_backend``.

    Raises:
        ConfigurationError: Unknown backend or unusable credentials
    """
    backend = settings.push_backend.lower()

    if backend == "firebase":
        return FirebasePushProvider(
            credentials_path=settings.firebase_credentials_path,
            project_id=settings.firebase_project_id,
            timeout_seconds=settings.push_timeout_seconds,
        )

    if backend == "dummy":
        if settings.is_production:
            logger.warning("Dummy push provider in production: notifications are not delivered")
        return DummyPushProvider()

    raise ConfigurationError(f"Unknown push backend: {settings.push_backend}")
