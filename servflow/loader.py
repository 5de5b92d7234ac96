"""Load automation definitions for execution."""

from __future__ import annotations

from .contracts import Automation
from .errors import AutomationNotFound
from .persistence import AutomationRepository


class AutomationLoader:
    """Read-only projection of active automations from storage."""

    def __init__(self, repository: AutomationRepository) -> None:
        self._repository = repository

    async def load(self, automation_id: str) -> Automation:
        """Return the active automation with actions in execution order.

        Actions are ordered by ``sequence_order``; ties keep the order in
        which storage returned them (insertion order).

        Raises:
            AutomationNotFound: If the automation is missing or not active.
        """
        automation = await self._repository.get_automation(automation_id)
        if automation is None or not automation.is_active:
            raise AutomationNotFound(automation_id)
        # sorted() is stable, so equal sequence_order values keep storage order
        automation.actions = sorted(automation.actions, key=lambda a: a.sequence_order)
        return automation
