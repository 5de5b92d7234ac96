"""Outbound provider bindings and factory."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..config import ServflowConfig, load_config
from .base import EmailTransport, ProviderResponse, SmsProvider, VoiceProvider
from .inmemory import InMemoryProvider
from .mail import LoggingEmailTransport, render_html
from .twilio import TwilioClient


@dataclass
class ProviderSet:
    """The collaborators an automation run talks to."""

    sms: SmsProvider
    voice: VoiceProvider
    email: EmailTransport


def get_providers(
    backend: Optional[str] = None, config: Optional[ServflowConfig] = None
) -> ProviderSet:
    """Factory function to build the configured providers."""

    config = config or load_config()
    backend = (backend or config.providers).lower()

    if backend == "inmemory":
        provider = InMemoryProvider()
        return ProviderSet(sms=provider, voice=provider, email=provider)
    elif backend == "twilio":
        twilio = TwilioClient(config.twilio)
        return ProviderSet(sms=twilio, voice=twilio, email=LoggingEmailTransport())
    else:
        raise ValueError(f"Unsupported provider backend: {backend}")


__all__ = [
    "EmailTransport",
    "InMemoryProvider",
    "LoggingEmailTransport",
    "ProviderResponse",
    "ProviderSet",
    "SmsProvider",
    "TwilioClient",
    "VoiceProvider",
    "get_providers",
    "render_html",
]
