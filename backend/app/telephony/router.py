"""
RegFree Bridge - Telephony HTTP Endpoints

Webhook for inbound calls from the telephony platform and the outbound
dial companion endpoint.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from fastapi.responses import JSONResponse

from app.core.dispatch import NotificationDispatcher
from app.core.exceptions import PushDeliveryError
from app.core.logging import LogContext
from app.core.registration import RegistrationService
from .models import DialRequest, DialResponse, IncomingCallEvent

logger = logging.getLogger(__name__)

router = APIRouter(tags=["telephony"])


# =============================================================================
# Dependencies
# =============================================================================

def get_dispatcher(request: Request) -> NotificationDispatcher:
    """Dependency to get the notification dispatcher from app state."""
    return request.app.state.dispatcher


def get_registration(request: Request) -> RegistrationService:
    """Dependency to get the registration service from app state."""
    return request.app.state.registration


# =============================================================================
# Webhook Endpoints
# =============================================================================

@router.post(
    "/incoming",
    status_code=status.HTTP_201_CREATED,
    summary="Handle incoming call",
    description="Webhook for the telephony platform: pushes a ringing invitation to the called device.",
)
async def handle_incoming_call(
    event: IncomingCallEvent,
    background_tasks: BackgroundTasks,
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> JSONResponse:
    """
    Forward an inbound call to the device registered for ``dnid``.

    When the push provider reports the device token as unregistered, the
    device is removed after the response has been sent.
    """
    with LogContext(call_session=event.session):
        outcome = await dispatcher.dispatch(
            session=event.session,
            dnid=event.dnid,
            caller_id=event.caller_id,
            endpoint=event.endpoint,
            domain=event.domain,
            subscriber_msisdn=event.subscriber.msisdn if event.subscriber else None,
        )

    if outcome.delivered:
        return JSONResponse(
            status_code=status.HTTP_201_CREATED,
            content={"status": True, "message": outcome.message},
        )

    if outcome.stale_identifier:
        background_tasks.add_task(dispatcher.discard_device, outcome.stale_identifier)

    return JSONResponse(
        status_code=PushDeliveryError.status_code,
        content={
            "status": False,
            "message": outcome.message,
            "code": PushDeliveryError.code,
        },
    )


# =============================================================================
# Outbound Calls
# =============================================================================

@router.post(
    "/dial",
    status_code=status.HTTP_201_CREATED,
    response_model=DialResponse,
    summary="Originate outbound call",
)
async def dial(
    body: DialRequest,
    registration: RegistrationService = Depends(get_registration),
) -> DialResponse:
    """Create an outbound call through the telephony platform."""
    token = await registration.originate_call(body.msisdn, body.destination)
    return DialResponse(session=token)
