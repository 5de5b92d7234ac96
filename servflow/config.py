from __future__ import annotations

import os
from typing import Literal, Optional

import yaml
from pydantic import BaseModel

from .constants import DEFAULT_COUNTRY_CODE, DEFAULT_DELAY_UNIT_SECONDS


class TwilioConfig(BaseModel):
    """Credentials and endpoints for the Twilio SMS and voice binding."""

    account_sid: Optional[str] = None
    auth_token: Optional[str] = None
    from_number: Optional[str] = None
    announcement_url: Optional[str] = None
    api_base: str = "https://api.twilio.com/2010-04-01"
    timeout: float = 10.0


class WebhookConfig(BaseModel):
    """Settings for outbound webhook actions."""

    timeout: float = 10.0


class EmailConfig(BaseModel):
    """Settings for the email hand-off."""

    from_email: str = "automations@localhost"


class EngineConfig(BaseModel):
    """Execution settings for the orchestrator."""

    delay_unit_seconds: float = DEFAULT_DELAY_UNIT_SECONDS
    default_country_code: str = DEFAULT_COUNTRY_CODE


class ServflowConfig(BaseModel):
    """Top-level configuration model."""

    database_url: Optional[str] = None
    providers: Literal["twilio", "inmemory"] = "twilio"
    twilio: TwilioConfig = TwilioConfig()
    webhook: WebhookConfig = WebhookConfig()
    email: EmailConfig = EmailConfig()
    engine: EngineConfig = EngineConfig()


_TWILIO_ENV = {
    "account_sid": "TWILIO_ACCOUNT_SID",
    "auth_token": "TWILIO_AUTH_TOKEN",
    "from_number": "TWILIO_PHONE_NUMBER",
    "announcement_url": "TWILIO_ANNOUNCEMENT_URL",
}


def load_config(path: Optional[str] = None) -> ServflowConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to SERVFLOW_CONFIG env
            variable or 'config.yaml' in the current directory.
    """

    config_path = path or os.getenv("SERVFLOW_CONFIG", "config.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = ServflowConfig(**data)
    else:
        config = ServflowConfig()

    env_db_url = os.getenv("SERVFLOW_DATABASE_URL") or os.getenv("DATABASE_URL")
    if env_db_url:
        config.database_url = env_db_url
    for field, env_name in _TWILIO_ENV.items():
        value = os.getenv(env_name)
        if value:
            setattr(config.twilio, field, value)
    return config
