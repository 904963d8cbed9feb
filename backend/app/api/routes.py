"""
RegFree Bridge - Device Registration Routes

Endpoints for registering devices and inspecting the registry.

Architecture:
    All registry operations flow through the RegistrationService, accessed
    via dependency injection from app.state. The same store instance backs
    notification dispatch, so a registration is visible to the next
    inbound call immediately.
"""

from typing import List
import logging

from fastapi import APIRouter, Depends, Request

from app.config import Settings
from app.core.exceptions import NotFoundError
from app.core.registration import RegistrationService
from app.core.types import DeviceRecord

from .schemas import DeviceRegistrationRequest, DeviceSchema

logger = logging.getLogger(__name__)

router = APIRouter(tags=["devices"])


# =============================================================================
# Dependencies
# =============================================================================

def get_registration(request: Request) -> RegistrationService:
    """Dependency to get the registration service from app state."""
    return request.app.state.registration


def get_settings(request: Request) -> Settings:
    """Dependency to get settings from app state."""
    return request.app.state.settings


# =============================================================================
# Converters (Domain -> API Schema)
# =============================================================================

def record_to_schema(record: DeviceRecord) -> DeviceSchema:
    """Convert a domain DeviceRecord to the API DeviceSchema."""
    return DeviceSchema(
        id=record.id,
        os_type=record.os_type,
        identifier=record.identifier,
        msisdn=record.msisdn,
    )


# =============================================================================
# Device Endpoints
# =============================================================================

@router.get(
    "/devices",
    response_model=List[DeviceSchema],
    summary="List registered devices",
    description="Debug helper listing every device. Insecure: disable with EXPOSE_DEVICE_LIST=false.",
)
async def list_devices(
    registration: RegistrationService = Depends(get_registration),
    settings: Settings = Depends(get_settings),
) -> List[DeviceSchema]:
    if not settings.expose_device_list:
        raise NotFoundError("Device listing is disabled")

    records = await registration.list_devices()
    return [record_to_schema(r) for r in records]


@router.post(
    "/devices",
    response_model=DeviceSchema,
    summary="Register a device",
)
async def register_device(
    body: DeviceRegistrationRequest,
    registration: RegistrationService = Depends(get_registration),
) -> DeviceSchema:
    """
    Bind a push token to a phone number.

    Re-registering a known token moves it to the new number; registering a
    number that belongs to another token replaces that device.
    """
    record = await registration.register_device(
        identifier=body.identifier,
        msisdn=body.msisdn,
        os_type=body.type,
    )
    return record_to_schema(record)
