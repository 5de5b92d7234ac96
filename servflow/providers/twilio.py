"""Twilio REST binding for SMS and voice."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from ..config import TwilioConfig
from .base import ProviderResponse, SmsProvider, VoiceProvider

logger = logging.getLogger(__name__)


class TwilioClient(SmsProvider, VoiceProvider):
    """Send SMS and place calls through the Twilio REST API."""

    def __init__(
        self, config: TwilioConfig, client: Optional[httpx.AsyncClient] = None
    ) -> None:
        self.config = config
        self._client = client

    def _account_url(self, resource: str) -> str:
        return f"{self.config.api_base}/Accounts/{self.config.account_sid}/{resource}.json"

    async def _post(self, resource: str, form: Dict[str, str]) -> ProviderResponse:
        if not self.config.account_sid or not self.config.auth_token:
            return ProviderResponse(ok=False, error="Missing Twilio credentials")

        auth = (self.config.account_sid, self.config.auth_token)
        try:
            if self._client is not None:
                response = await self._client.post(
                    self._account_url(resource), data=form, auth=auth
                )
            else:
                async with httpx.AsyncClient(timeout=self.config.timeout) as client:
                    response = await client.post(
                        self._account_url(resource), data=form, auth=auth
                    )
        except httpx.TimeoutException:
            logger.warning(f"Twilio {resource} request timed out")
            return ProviderResponse(ok=False, error="Request timed out")
        except httpx.RequestError as e:
            logger.warning(f"Twilio {resource} request error: {e}")
            return ProviderResponse(ok=False, error=str(e))

        try:
            payload: Dict[str, Any] = response.json()
        except ValueError:
            payload = {"body": response.text[:500]}

        if response.is_success:
            return ProviderResponse(
                ok=True,
                provider_id=payload.get("sid"),
                status_code=response.status_code,
                data=payload,
            )

        logger.warning(
            f"Twilio {resource} request failed: HTTP {response.status_code}"
        )
        return ProviderResponse(
            ok=False,
            status_code=response.status_code,
            error=response.text[:500],
            data=payload,
        )

    async def send_sms(
        self, from_number: str, to_number: str, body: str
    ) -> ProviderResponse:
        return await self._post(
            "Messages", {"To": to_number, "From": from_number, "Body": body}
        )

    async def place_call(
        self, from_number: str, to_number: str, announcement_url: str
    ) -> ProviderResponse:
        return await self._post(
            "Calls", {"To": to_number, "From": from_number, "Url": announcement_url}
        )
