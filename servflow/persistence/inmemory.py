"""In-memory implementation of the automation repository."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

from ..contracts import Automation, Run, RunStatus, TaskRecord
from .repository import AutomationRepository


class InMemoryAutomationRepository(AutomationRepository):
    """Store automations, runs and tasks in local memory.

    Useful for tests or when no database is configured. Data is not
    persisted across process restarts. Stored objects are copied on the way
    in and out so callers never share state with the store.
    """

    def __init__(self) -> None:
        self._automations: Dict[str, Automation] = {}
        self._runs: Dict[str, Run] = {}
        self._tasks: Dict[str, TaskRecord] = {}

    # ------------------------------------------------------------------
    async def save_automation(self, automation: Automation) -> None:
        stored = automation.model_copy(deep=True)
        existing = self._automations.get(automation.id)
        if existing is not None:
            # counters belong to record_run_result, not to the definition
            stored.run_count = existing.run_count
            stored.success_count = existing.success_count
            stored.failure_count = existing.failure_count
            stored.last_run_at = existing.last_run_at
            stored.created_at = existing.created_at
        self._automations[automation.id] = stored

    async def get_automation(self, automation_id: str) -> Automation | None:
        automation = self._automations.get(automation_id)
        return automation.model_copy(deep=True) if automation else None

    async def list_automations(self) -> list[Automation]:
        return [
            a.model_copy(update={"actions": []}, deep=True)
            for a in self._automations.values()
        ]

    async def create_run(self, run: Run) -> None:
        self._runs[run.id] = run.model_copy(deep=True)

    async def finish_run(
        self,
        run_id: str,
        status: RunStatus,
        actions_executed: int,
        error_message: Optional[str],
        completed_at: datetime,
    ) -> bool:
        run = self._runs.get(run_id)
        if run is None or run.status.is_terminal:
            return False
        run.status = status
        run.actions_executed = actions_executed
        run.error_message = error_message
        run.completed_at = completed_at
        return True

    async def get_run(self, run_id: str) -> Run | None:
        run = self._runs.get(run_id)
        return run.model_copy(deep=True) if run else None

    async def list_runs(self, automation_id: Optional[str] = None) -> list[Run]:
        return [
            r.model_copy(deep=True)
            for r in self._runs.values()
            if automation_id is None or r.automation_id == automation_id
        ]

    async def record_run_result(
        self, automation_id: str, succeeded: bool, at: datetime
    ) -> None:
        # no await between read and write: atomic within one event loop
        automation = self._automations.get(automation_id)
        if automation is None:
            return
        automation.run_count += 1
        if succeeded:
            automation.success_count += 1
        else:
            automation.failure_count += 1
        automation.last_run_at = at

    async def create_task(self, task: TaskRecord) -> TaskRecord:
        self._tasks[task.id] = task.model_copy(deep=True)
        return task

    async def list_tasks(self) -> list[TaskRecord]:
        return [t.model_copy(deep=True) for t in self._tasks.values()]
