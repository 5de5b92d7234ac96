"""Action variants and the tag-keyed dispatcher."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional

from ..contracts import Action
from ..errors import UnknownActionType
from .base import ActionContext, BaseAction
from .call import MakeCallAction
from .email import SendEmailAction
from .sms import SendSmsAction
from .task import CreateTaskAction
from .webhook import WebhookAction

logger = logging.getLogger(__name__)


def default_actions() -> list[BaseAction]:
    return [
        SendSmsAction(),
        SendEmailAction(),
        MakeCallAction(),
        CreateTaskAction(),
        WebhookAction(),
    ]


class ActionDispatcher:
    """Route an action to the handler registered for its ``action_type``."""

    def __init__(self, handlers: Optional[Iterable[BaseAction]] = None) -> None:
        self._handlers: Dict[str, BaseAction] = {
            h.action_type.value: h for h in (handlers or default_actions())
        }

    @property
    def action_types(self) -> list[str]:
        return sorted(self._handlers)

    def handler_for(self, action_type: str) -> BaseAction:
        handler = self._handlers.get(action_type)
        if handler is None:
            raise UnknownActionType(action_type)
        return handler

    async def dispatch(self, action: Action, context: ActionContext) -> Dict[str, Any]:
        handler = self.handler_for(action.action_type)
        logger.info(
            f"Dispatching action {action.id} ({action.action_type}) for run {context.run_id}"
        )
        return await handler.run(action, context)


__all__ = [
    "ActionContext",
    "ActionDispatcher",
    "BaseAction",
    "CreateTaskAction",
    "MakeCallAction",
    "SendEmailAction",
    "SendSmsAction",
    "WebhookAction",
    "default_actions",
]
