"""
RegFree Bridge - Telephony Data Models

Pydantic models for telephony webhook and dial requests.

Fields are optional at the schema level; presence is checked by the core
services so missing fields surface as 400 responses with a readable message.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SubscriberInfo(BaseModel):
    """Subscriber block of an inbound call event."""

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    msisdn: Optional[str] = None


class IncomingCallEvent(BaseModel):
    """
    Request body for POST /incoming

    Sent by the telephony platform when a call reaches a registration-free
    subscriber. Unknown fields are accepted and ignored.
    """

    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    session: Optional[str] = Field(None, description="Call session id")
    dnid: Optional[str] = Field(None, description="Called number")
    caller_id: Optional[str] = Field(None, alias="caller-id", description="Caller number")
    endpoint: Optional[str] = Field(None, description="Platform base URL for callbacks")
    domain: Optional[str] = Field(None, description="Platform domain")
    subscriber: Optional[SubscriberInfo] = None


class DialRequest(BaseModel):
    """Request body for POST /dial"""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    msisdn: Optional[str] = Field(None, description="Registered number placing the call")
    destination: Optional[str] = Field(None, description="Number to call")


class DialResponse(BaseModel):
    session: str = Field(..., description="Session token of the outbound call")
