"""
RegFree Bridge - Log Masking Utilities

Phone numbers and push tokens are routing secrets: anyone holding a device
token can push to that device. Log lines carry masked forms only.
"""

import re
from typing import Optional


def mask_phone_number(number: Optional[str], show_last_digits: int = 2) -> str:
    """
    Mask a phone number for logging.

    Examples:
        +14155551234 → ***34
        1000         → ***00
        None         → unknown
    """
    if not number:
        return "unknown"

    digits = re.sub(r'\D', '', str(number))

    if len(digits) < show_last_digits:
        return "***"

    return f"***{digits[-show_last_digits:]}"


def mask_identifier(identifier: Optional[str], show_chars: int = 8) -> str:
    """
    Mask a push token, keeping a short prefix for correlation.

    Examples:
        fMEP0vJqS0aP1xn1:APA91b... → fMEP0vJq...
        abc                         → ***
    """
    if not identifier:
        return "unknown"

    if len(identifier) <= show_chars:
        return "***"

    return f"{identifier[:show_chars]}..."
