"""Interfaces for outbound communication providers."""

from __future__ import annotations

import abc
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ProviderResponse(BaseModel):
    """Normalised result of a provider call."""

    ok: bool
    provider_id: Optional[str] = None
    status_code: Optional[int] = None
    error: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)


class SmsProvider(metaclass=abc.ABCMeta):
    """Sends text messages."""

    @abc.abstractmethod
    async def send_sms(
        self, from_number: str, to_number: str, body: str
    ) -> ProviderResponse:
        raise NotImplementedError


class VoiceProvider(metaclass=abc.ABCMeta):
    """Places outbound calls that play a fixed announcement flow."""

    @abc.abstractmethod
    async def place_call(
        self, from_number: str, to_number: str, announcement_url: str
    ) -> ProviderResponse:
        raise NotImplementedError


class EmailTransport(metaclass=abc.ABCMeta):
    """Hands email off for delivery."""

    @abc.abstractmethod
    async def send_email(
        self,
        from_email: str,
        to_email: str,
        subject: str,
        text: str,
        html: Optional[str] = None,
    ) -> ProviderResponse:
        raise NotImplementedError
