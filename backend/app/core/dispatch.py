"""
RegFree Bridge - Notification Dispatch

Turns an inbound-call event into a push notification for the device bound
to the called number, and reports whether the device token is dead.

Flow:
    event → get_by_msisdn(dnid) → CallNotification → PushProvider.send
          → DispatchOutcome (delivered / failed, optional stale identifier)

Removing a stale device is left to the caller via ``discard_device`` so it
can run after the HTTP response is sent.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from app.core.device_store import DeviceStore
from app.core.exceptions import SubscriberNotFoundError, ValidationError
from app.core.types import (
    UNREGISTERED_ERROR_CODE,
    CallNotification,
    DispatchOutcome,
    PushOptions,
)
from app.telephony.privacy import mask_identifier, mask_phone_number

if TYPE_CHECKING:
    from app.services.push import PushProvider

logger = logging.getLogger(__name__)


def build_ringing_url(endpoint: str, domain: str, msisdn: str, session: str) -> str:
    """Callback URL the device hits to start ringing for ``session``."""
    return f"{endpoint}/calls/{domain}/ringing/{msisdn}/{session}"


class NotificationDispatcher:
    """
    Forwards inbound calls to registered devices.

    Args:
        store: Device store used for lookups and cleanup
        push: Push provider for delivery
        options: Delivery priority and time-to-live
    """

    def __init__(
        self,
        store: DeviceStore,
        push: PushProvider,
        options: Optional[PushOptions] = None,
    ):
        self._store = store
        self._push = push
        self._options = options or PushOptions()

    async def dispatch(
        self,
        session: Optional[str],
        dnid: Optional[str],
        caller_id: Optional[str] = None,
        endpoint: Optional[str] = None,
        domain: Optional[str] = None,
        subscriber_msisdn: Optional[str] = None,
    ) -> DispatchOutcome:
        """
        Notify the device registered for ``dnid`` about call ``session``.

        Raises:
            ValidationError: If session is missing
            SubscriberNotFoundError: If no device is bound to dnid
            PushDeliveryError: If the push provider could not be reached
        """
        if not session:
            raise ValidationError("Not a valid registration-free message!")

        device = await self._store.get_by_msisdn(dnid) if dnid else None
        if device is None:
            raise SubscriberNotFoundError(
                f"Subscriber {dnid} could not be found",
                details={"dnid": dnid},
            )

        notification = CallNotification(
            session=session,
            caller_id=caller_id,
            ringing_url=build_ringing_url(
                endpoint or "",
                domain or "",
                subscriber_msisdn or dnid,
                session,
            ),
        )

        logger.info(
            "Sending push notification to device %s (%s) for %s",
            device.id,
            mask_identifier(device.identifier),
            mask_phone_number(dnid),
        )
        result = await self._push.send(device.identifier, notification.to_data(), self._options)

        if result.failure_count > 0:
            error = result.first_error_code
            logger.warning("Push to device %s failed: %s", device.id, error)
            return DispatchOutcome(
                delivered=False,
                message=f"Failed to send push notification due to {error}",
                error_code=error,
                stale_identifier=device.identifier if error == UNREGISTERED_ERROR_CODE else None,
            )

        logger.info("Push to device %s delivered", device.id)
        return DispatchOutcome(delivered=True, message="Sent push notification")

    async def discard_device(self, identifier: str) -> None:
        """
        Best-effort removal of a device whose token the provider rejected.

        Failures are logged, never raised.
        """
        try:
            await self._store.delete_by_identifier(identifier)
        except Exception:
            logger.exception("Failed to discard device %s", mask_identifier(identifier))
