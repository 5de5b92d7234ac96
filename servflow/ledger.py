"""Run ledger: the audit record of each automation execution."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from .contracts import Completed, Failed, Run, RunOutcome, RunStatus, utcnow
from .persistence import AutomationRepository

logger = logging.getLogger(__name__)


class RunLedger:
    """Open and close run records through the repository."""

    def __init__(self, repository: AutomationRepository) -> None:
        self._repository = repository

    async def open(
        self,
        automation_id: str,
        trigger_data: Mapping[str, Any],
        context_data: Optional[Dict[str, Any]] = None,
    ) -> Run:
        run = Run(
            automation_id=automation_id,
            trigger_data=dict(trigger_data),
            context_data=context_data or {},
        )
        await self._repository.create_run(run)
        logger.info(f"Opened run {run.id} for automation {automation_id}")
        return run

    async def close(self, run_id: str, outcome: RunOutcome) -> Run | None:
        """Record the terminal state of a run.

        Closing a run that is already terminal leaves the stored record as
        it is: the first close wins.
        """
        if isinstance(outcome, Completed):
            status, error = RunStatus.COMPLETED, None
        elif isinstance(outcome, Failed):
            status, error = RunStatus.FAILED, outcome.error_message
        else:
            raise TypeError(f"Unsupported run outcome: {outcome!r}")

        written = await self._repository.finish_run(
            run_id,
            status=status,
            actions_executed=outcome.actions_executed,
            error_message=error,
            completed_at=utcnow(),
        )
        if written:
            logger.info(
                f"Closed run {run_id} as {status.value} "
                f"after {outcome.actions_executed} action(s)"
            )
        else:
            logger.warning(f"Run {run_id} is missing or already closed; ignoring close")
        return await self._repository.get_run(run_id)

    async def get(self, run_id: str) -> Run | None:
        return await self._repository.get_run(run_id)

    async def list_runs(self, automation_id: Optional[str] = None) -> list[Run]:
        return await self._repository.list_runs(automation_id)
