"""
RegFree Bridge - Structured Logging

Provides JSON or human-readable log output with context injection for
request correlation ids and telephony session ids. Phone numbers and push
tokens passed as structured data are masked.
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime
from typing import Optional

from app.telephony.privacy import mask_identifier, mask_phone_number


# =============================================================================
# Context Variables
# =============================================================================

correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)
call_session_var: ContextVar[Optional[str]] = ContextVar('call_session', default=None)


# =============================================================================
# Masking Utilities
# =============================================================================

PHONE_KEYS = {'msisdn', 'dnid', 'caller', 'caller-id', 'callerid', 'destination', 'phone'}
TOKEN_KEYS = {'identifier', 'token', 'secret', 'key', 'password', 'authorization'}


def mask_session(session: Optional[str]) -> Optional[str]:
    """Mask a call session id to its first 8 characters."""
    if not session:
        return None
    return session[:8] if len(session) > 8 else session


def mask_sensitive_data(data: dict) -> dict:
    """Recursively mask phone numbers and tokens in a dictionary."""
    masked = {}
    for key, value in data.items():
        key_lower = key.lower()

        if key_lower in PHONE_KEYS:
            masked[key] = mask_phone_number(value) if isinstance(value, str) else "[REDACTED]"
        elif any(s in key_lower for s in TOKEN_KEYS):
            masked[key] = mask_identifier(value) if isinstance(value, str) else "[REDACTED]"
        elif isinstance(value, dict):
            masked[key] = mask_sensitive_data(value)
        else:
            masked[key] = value

    return masked


# =============================================================================
# Formatters
# =============================================================================

class StructuredFormatter(logging.Formatter):
    """
    JSON formatter that injects context variables and masks sensitive data.

    Output format:
    {
        "timestamp": "2024-11-30T00:00:00.000Z",
        "level": "INFO",
        "logger": "app.core.dispatch",
        "correlation_id": "req_abc123",
        "session": "3f9c1a2b",
        "message": "Human-readable message",
        "data": { ... }
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = correlation_id_var.get()
        if correlation_id:
            log_entry["correlation_id"] = correlation_id

        session = call_session_var.get()
        if session:
            log_entry["session"] = mask_session(session)

        if hasattr(record, 'data') and record.data:
            log_entry["data"] = mask_sensitive_data(record.data)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


class HumanReadableFormatter(logging.Formatter):
    """Human-readable formatter for development."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.utcnow().strftime("%Y-%m-%d %H:%M:%S")

        context_parts = []

        correlation_id = correlation_id_var.get()
        if correlation_id:
            context_parts.append(f"req={correlation_id}")

        session = call_session_var.get()
        if session:
            context_parts.append(f"session={mask_session(session)}")

        context_str = f" [{', '.join(context_parts)}]" if context_parts else ""

        message = f"{timestamp} | {record.levelname:<8} | {record.name}{context_str} | {record.getMessage()}"

        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)

        return message


# =============================================================================
# Logger Setup
# =============================================================================

def setup_structured_logging(
    level: str = "INFO",
    json_format: bool = False,
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: Use JSON format (True for production, False for development)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level.upper()))

    if json_format:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(HumanReadableFormatter())

    root_logger.addHandler(handler)

    # Suppress noisy loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# =============================================================================
# Context Managers
# =============================================================================

class LogContext:
    """
    Context manager for setting log context variables.

    Usage:
        with LogContext(call_session="abc123"):
            logger.info("Forwarding call")
    """

    def __init__(
        self,
        correlation_id: Optional[str] = None,
        call_session: Optional[str] = None,
    ):
        self._correlation_id = correlation_id
        self._call_session = call_session
        self._tokens = []

    def __enter__(self):
        if self._correlation_id:
            self._tokens.append((correlation_id_var, correlation_id_var.set(self._correlation_id)))
        if self._call_session:
            self._tokens.append((call_session_var, call_session_var.set(self._call_session)))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens.clear()
        return False
