"""
RegFree Bridge - API Schemas

Pydantic models for request/response validation.
These define the contract between mobile clients and the bridge.
"""

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


# ===========================================
# Device Schemas
# ===========================================

class DeviceRegistrationRequest(BaseModel):
    """
    Request to bind a push token to a phone number.

    Example: {"identifier": "your-app-PN-identifier", "msisdn": "12125551234", "type": "ios"}
    """

    model_config = ConfigDict(coerce_numbers_to_str=True)

    identifier: Optional[str] = Field(None, description="Push provider token of the device")
    msisdn: Optional[str] = Field(None, description="Phone number routed to the device")
    type: Optional[str] = Field(None, description="Device platform, defaults to android")


class DeviceSchema(BaseModel):
    """A registered device."""

    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(description="Store-assigned record id")
    os_type: str = Field(alias="osType", description="Device platform")
    identifier: str = Field(description="Push provider token")
    msisdn: str = Field(description="Bound phone number")


# ===========================================
# Common Responses
# ===========================================

class ErrorResponse(BaseModel):
    """Body of every failed request."""

    status: bool = False
    message: str
    code: str
    details: Optional[Dict] = None


class StatusResponse(BaseModel):
    status: bool = True
