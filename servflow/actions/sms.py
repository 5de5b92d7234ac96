"""SMS action."""

from __future__ import annotations

import logging
from typing import Any, Dict

from ..contracts import Action, ActionType
from ..errors import ProviderError
from ..utils.phone import to_e164
from .base import ActionContext, BaseAction

logger = logging.getLogger(__name__)


class SendSmsAction(BaseAction):
    """Send a text message from the tenant's configured number."""

    action_type = ActionType.SEND_SMS
    required_fields = ("to_number", "message")

    async def execute(
        self, config: Dict[str, Any], action: Action, context: ActionContext
    ) -> Dict[str, Any]:
        from_number = context.config.twilio.from_number
        if not from_number:
            raise ProviderError("SMS sending number is not configured")

        to_number = to_e164(
            config["to_number"], context.config.engine.default_country_code
        )
        response = await context.providers.sms.send_sms(
            from_number, to_number, config["message"]
        )
        if not response.ok:
            raise ProviderError(
                "SMS provider rejected message",
                status_code=response.status_code,
                detail=response.error,
            )
        logger.info(f"SMS sent for action {action.id} sid={response.provider_id}")
        return {"sid": response.provider_id, "to": to_number}
