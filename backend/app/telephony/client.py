"""
RegFree Bridge - Telephony REST Client

Originates outbound calls through the telephony platform's REST API:

    POST https://{api_host}/calls/{domain}/outgoing/{msisdn}
    Authorization: Bearer {api_key}
    {"callerId": msisdn, "destination": destination}

A 2xx response carries {"token": ...}, the id of the new call session.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from app.config import Settings
from app.core.exceptions import TelephonyError
from .privacy import mask_phone_number

logger = logging.getLogger(__name__)


class TelephonyClient:
    """
    Async client for the telephony platform.

    Any failure (transport, timeout, non-2xx status, missing token) is
    reported as TelephonyError regardless of its cause.
    """

    def __init__(
        self,
        api_host: str,
        domain: str,
        api_key: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_host = api_host
        self.domain = domain
        self._client = httpx.AsyncClient(
            base_url=f"https://{api_host}",
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=timeout,
            transport=transport,
        )
        logger.info("Telephony client initialized for %s (domain=%s)", api_host, domain or "unset")

    async def originate_call(self, msisdn: str, destination: str) -> str:
        """
        Create an outbound call session from ``msisdn`` to ``destination``.

        Returns:
            Session token issued by the platform

        Raises:
            TelephonyError: On any failure of the REST call
        """
        path = f"/calls/{self.domain}/outgoing/{msisdn}"

        try:
            response = await self._client.post(
                path,
                json={"callerId": msisdn, "destination": destination},
            )
            response.raise_for_status()
            token = response.json().get("token")
        except httpx.TimeoutException:
            raise TelephonyError("Telephony API timed out", details={"path": path})
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Telephony API rejected call from %s: HTTP %d",
                mask_phone_number(msisdn),
                e.response.status_code,
            )
            raise TelephonyError(
                f"Telephony API returned {e.response.status_code}",
                details={"status": e.response.status_code},
            )
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            # ValueError/AttributeError: body is not a JSON object
            raise TelephonyError(f"Telephony API call failed: {e}")

        if not token:
            raise TelephonyError("Telephony API response carried no session token")

        logger.info(
            "Outbound call from %s to %s created",
            mask_phone_number(msisdn),
            mask_phone_number(destination),
        )
        return str(token)

    async def aclose(self) -> None:
        await self._client.aclose()


def create_telephony_client(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> TelephonyClient:
    """Build the telephony client from settings."""
    if not settings.telephony_api_key:
        logger.warning("TELEPHONY_API_KEY is not set: outbound calls will be rejected upstream")

    return TelephonyClient(
        api_host=settings.telephony_api_host,
        domain=settings.telephony_domain,
        api_key=settings.telephony_api_key,
        timeout=settings.telephony_timeout_seconds,
        transport=transport,
    )
