"""
RegFree Bridge - Telephony Integration Module

Integration with the telephony platform.

Components:
- router: Inbound call webhook and outbound dial endpoints
- client: REST client for call origination
- models: Webhook and dial request bodies
- privacy: Phone number and token masking for logs
"""

from .privacy import mask_phone_number, mask_identifier
from .client import TelephonyClient, create_telephony_client

__all__ = [
    "TelephonyClient",
    "create_telephony_client",
    "mask_phone_number",
    "mask_identifier",
]
