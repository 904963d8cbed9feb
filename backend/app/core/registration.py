"""
RegFree Bridge - Registration Service

Request-level orchestration over the device store: validates register
requests before any store access and forwards outbound call requests to the
telephony platform.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional

from app.core.device_store import DeviceStore
from app.core.exceptions import TelephonyError, UpstreamError, ValidationError
from app.core.types import DEFAULT_OS_TYPE, DeviceRecord

if TYPE_CHECKING:
    from app.telephony.client import TelephonyClient

logger = logging.getLogger(__name__)


class RegistrationService:
    """
    Handles list/register/originate requests.

    Args:
        store: Device store shared with notification dispatch
        telephony: Client for outbound call origination
    """

    def __init__(self, store: DeviceStore, telephony: Optional[TelephonyClient] = None):
        self._store = store
        self._telephony = telephony

    async def list_devices(self) -> List[DeviceRecord]:
        """All registered devices. Debug affordance, exposes every token."""
        return await self._store.list()

    async def register_device(
        self,
        identifier: Optional[str],
        msisdn: Optional[str],
        os_type: Optional[str] = None,
    ) -> DeviceRecord:
        """
        Register or rebind a device.

        Raises:
            ValidationError: If identifier or msisdn is missing
        """
        if not identifier:
            raise ValidationError("Missing device 'identifier'", details={"field": "identifier"})
        if not msisdn:
            raise ValidationError("Missing device 'msisdn'", details={"field": "msisdn"})

        return await self._store.register(msisdn, identifier, os_type or DEFAULT_OS_TYPE)

    async def originate_call(self, msisdn: Optional[str], destination: Optional[str]) -> str:
        """
        Start an outbound call and return its session token.

        Raises:
            ValidationError: If msisdn or destination is missing
            UpstreamError: If the telephony platform call fails for any reason
        """
        if not msisdn:
            raise ValidationError("Missing 'msisdn'", details={"field": "msisdn"})
        if not destination:
            raise ValidationError("Missing 'destination'", details={"field": "destination"})

        if self._telephony is None:
            raise TelephonyError("Outbound calling is not configured")

        try:
            return await self._telephony.originate_call(msisdn, destination)
        except UpstreamError:
            raise
        except Exception as e:
            logger.exception("Unexpected failure originating call")
            raise TelephonyError(f"Failed to originate call: {e}")
