"""Base class and execution context for automation actions."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple

import httpx

from ..config import ServflowConfig
from ..contracts import Action, ActionType
from ..errors import InvalidConfig
from ..interpolate import interpolate_config
from ..persistence import AutomationRepository
from ..providers import ProviderSet


@dataclass
class ActionContext:
    """Everything an action may touch while it runs."""

    automation_id: str
    run_id: str
    trigger_data: Mapping[str, Any]
    repository: AutomationRepository
    providers: ProviderSet
    config: ServflowConfig
    http_client: Optional[httpx.AsyncClient] = None


def _has_value(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


class BaseAction(metaclass=abc.ABCMeta):
    """One executable action variant.

    Subclasses declare their tag and required config fields and implement
    :meth:`execute`. Config is validated on the stored values, then every
    string field is interpolated against the run's trigger data.
    """

    action_type: ClassVar[ActionType]
    required_fields: ClassVar[Tuple[str, ...]] = ()

    def validate(self, config: Mapping[str, Any]) -> None:
        missing = [f for f in self.required_fields if not _has_value(config.get(f))]
        if missing:
            raise InvalidConfig(self.action_type.value, missing)

    def prepare(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Reshape the stored config before placeholders are filled in."""
        return config

    async def run(self, action: Action, context: ActionContext) -> Dict[str, Any]:
        self.validate(action.action_config)
        config = interpolate_config(
            self.prepare(dict(action.action_config)), context.trigger_data
        )
        return await self.execute(config, action, context)

    @abc.abstractmethod
    async def execute(
        self, config: Dict[str, Any], action: Action, context: ActionContext
    ) -> Dict[str, Any]:
        """Perform the side effect and return a result summary."""
        raise NotImplementedError
