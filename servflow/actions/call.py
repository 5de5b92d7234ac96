"""Outbound voice call action."""

from __future__ import annotations

import logging
from typing import Any, Dict

from ..contracts import Action, ActionType
from ..errors import ProviderError
from ..utils.phone import to_e164
from .base import ActionContext, BaseAction

logger = logging.getLogger(__name__)


class MakeCallAction(BaseAction):
    """Call ``to_number`` and play the configured announcement flow."""

    action_type = ActionType.MAKE_CALL
    required_fields = ("to_number",)

    async def execute(
        self, config: Dict[str, Any], action: Action, context: ActionContext
    ) -> Dict[str, Any]:
        twilio = context.config.twilio
        if not twilio.from_number or not twilio.announcement_url:
            raise ProviderError("Voice calling number or announcement is not configured")

        to_number = to_e164(
            config["to_number"], context.config.engine.default_country_code
        )
        response = await context.providers.voice.place_call(
            twilio.from_number, to_number, twilio.announcement_url
        )
        if not response.ok:
            raise ProviderError(
                "Voice provider rejected call",
                status_code=response.status_code,
                detail=response.error,
            )
        logger.info(f"Call placed for action {action.id} sid={response.provider_id}")
        return {"sid": response.provider_id, "to": to_number}
