"""
RegFree Bridge - Exception Hierarchy

Structured exceptions for consistent error handling across the system.
All exceptions include error codes for API responses.
"""

from typing import Optional


class BridgeError(Exception):
    """Base exception for all bridge errors."""

    code: str = "UNKNOWN_ERROR"
    status_code: int = 500

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# =============================================================================
# Validation Errors
# =============================================================================

class ValidationError(BridgeError):
    """Missing or malformed request fields."""
    code = "VALIDATION_ERROR"
    status_code = 400


# =============================================================================
# Lookup Errors
# =============================================================================

class NotFoundError(BridgeError):
    """Referenced entity does not exist."""
    code = "NOT_FOUND"
    status_code = 404


class SubscriberNotFoundError(NotFoundError):
    """No device is registered for the called number."""
    code = "SUBSCRIBER_NOT_FOUND"


# =============================================================================
# Store Errors
# =============================================================================

class StoreError(BridgeError):
    """Unexpected device store failure."""
    code = "STORE_ERROR"
    status_code = 500


class ConflictError(StoreError):
    """Uniqueness violation the registration policy does not resolve."""
    code = "CONFLICT"
    status_code = 500


# =============================================================================
# Upstream Errors
# =============================================================================

class UpstreamError(BridgeError):
    """External collaborator failed or timed out."""
    code = "UPSTREAM_ERROR"
    status_code = 500


class PushDeliveryError(UpstreamError):
    """Push provider call failed."""
    code = "PUSH_DELIVERY_FAILED"


class TelephonyError(UpstreamError):
    """Telephony REST API call failed."""
    code = "TELEPHONY_ERROR"


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(BridgeError):
    """Configuration error."""
    code = "CONFIGURATION_ERROR"
    status_code = 500
