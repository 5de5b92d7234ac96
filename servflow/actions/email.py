"""Email action."""

from __future__ import annotations

from typing import Any, Dict

from ..contracts import Action, ActionType
from ..errors import ProviderError
from ..providers import render_html
from .base import ActionContext, BaseAction


class SendEmailAction(BaseAction):
    action_type = ActionType.SEND_EMAIL
    required_fields = ("to_email", "subject", "body")

    async def execute(
        self, config: Dict[str, Any], action: Action, context: ActionContext
    ) -> Dict[str, Any]:
        response = await context.providers.email.send_email(
            from_email=context.config.email.from_email,
            to_email=config["to_email"],
            subject=config["subject"],
            text=config["body"],
            html=render_html(config["body"]),
        )
        if not response.ok:
            raise ProviderError(
                "Email transport rejected message",
                status_code=response.status_code,
                detail=response.error,
            )
        return {"message_id": response.provider_id, "recipient": config["to_email"]}
