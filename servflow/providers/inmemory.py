"""In-process providers that record outbound traffic."""

from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional

from .base import EmailTransport, ProviderResponse, SmsProvider, VoiceProvider


class InMemoryProvider(SmsProvider, VoiceProvider, EmailTransport):
    """Record every SMS, call and email instead of sending it.

    Useful for tests and dry runs. Set ``fail_with`` to make every call
    return a failed response carrying that error text.
    """

    def __init__(self, fail_with: Optional[str] = None) -> None:
        self.fail_with = fail_with
        self.sms: List[Dict[str, Any]] = []
        self.calls: List[Dict[str, Any]] = []
        self.emails: List[Dict[str, Any]] = []

    def _respond(self) -> ProviderResponse:
        if self.fail_with is not None:
            return ProviderResponse(ok=False, status_code=400, error=self.fail_with)
        return ProviderResponse(ok=True, provider_id=uuid.uuid4().hex)

    async def send_sms(
        self, from_number: str, to_number: str, body: str
    ) -> ProviderResponse:
        self.sms.append({"from": from_number, "to": to_number, "body": body})
        return self._respond()

    async def place_call(
        self, from_number: str, to_number: str, announcement_url: str
    ) -> ProviderResponse:
        self.calls.append(
            {"from": from_number, "to": to_number, "url": announcement_url}
        )
        return self._respond()

    async def send_email(
        self,
        from_email: str,
        to_email: str,
        subject: str,
        text: str,
        html: Optional[str] = None,
    ) -> ProviderResponse:
        self.emails.append(
            {
                "from": from_email,
                "to": to_email,
                "subject": subject,
                "text": text,
                "html": html,
            }
        )
        return self._respond()
