"""Repository abstraction for automation, run and task persistence."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ..contracts import Automation, Run, RunStatus, TaskRecord


class AutomationRepository(Protocol):
    """Protocol for storage backends used by the execution engine."""

    async def save_automation(self, automation: Automation) -> None:
        """Insert or replace an automation and its actions."""

    async def get_automation(self, automation_id: str) -> Automation | None:
        """Return the automation with actions in insertion order."""

    async def list_automations(self) -> list[Automation]:
        """Return all automations without their actions."""

    async def create_run(self, run: Run) -> None:
        """Persist a newly opened run."""

    async def finish_run(
        self,
        run_id: str,
        status: RunStatus,
        actions_executed: int,
        error_message: Optional[str],
        completed_at: datetime,
    ) -> bool:
        """Close a running run.

        Returns ``False`` without writing when the run is missing or already
        terminal.
        """

    async def get_run(self, run_id: str) -> Run | None:
        """Retrieve a run by id."""

    async def list_runs(self, automation_id: Optional[str] = None) -> list[Run]:
        """Return runs, oldest first, optionally filtered by automation."""

    async def record_run_result(
        self, automation_id: str, succeeded: bool, at: datetime
    ) -> None:
        """Atomically bump the automation's counters and ``last_run_at``."""

    async def create_task(self, task: TaskRecord) -> TaskRecord:
        """Insert a task row."""

    async def list_tasks(self) -> list[TaskRecord]:
        """Return all task rows."""
