"""Automation execution engine."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

import httpx

from .actions import ActionContext, ActionDispatcher
from .config import ServflowConfig, load_config
from .contracts import (
    Action,
    ActionResult,
    Completed,
    ExecutionRequest,
    ExecutionResult,
    Failed,
    utcnow,
)
from .errors import ActionError
from .ledger import RunLedger
from .loader import AutomationLoader
from .persistence import AutomationRepository, get_repository
from .providers import ProviderSet, get_providers

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[Any]]


class AutomationExecutor:
    """Runs an automation's actions in order against one trigger event.

    Each call to :meth:`execute` is an independent unit of work. Actions of
    one run execute strictly one after another; the first failing action
    halts the run. Delays are process-local sleeps: if the process dies
    while a run is waiting, that run stays ``running`` in storage.
    """

    def __init__(
        self,
        repository: AutomationRepository | None = None,
        providers: ProviderSet | None = None,
        config: ServflowConfig | None = None,
        dispatcher: ActionDispatcher | None = None,
        sleep: Optional[Sleeper] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config or load_config()
        self._repository = repository or get_repository(config=self.config)
        self._providers = providers or get_providers(config=self.config)
        self._dispatcher = dispatcher or ActionDispatcher()
        self._loader = AutomationLoader(self._repository)
        self._ledger = RunLedger(self._repository)
        self._sleep = sleep or asyncio.sleep
        self._http_client = http_client

    @property
    def repository(self) -> AutomationRepository:
        return self._repository

    @property
    def ledger(self) -> RunLedger:
        return self._ledger

    async def execute_request(self, request: ExecutionRequest) -> ExecutionResult:
        """Execute from a parsed inbound request."""
        context_data: Dict[str, Any] = {}
        if request.entity_id is not None:
            context_data["entity_id"] = request.entity_id
        if request.entity_type is not None:
            context_data["entity_type"] = request.entity_type
        return await self.execute(
            request.automation_id, request.trigger_data, context_data=context_data
        )

    async def execute(
        self,
        automation_id: str,
        trigger_data: Mapping[str, Any],
        context_data: Optional[Dict[str, Any]] = None,
    ) -> ExecutionResult:
        """Execute the automation and return the closed run's summary.

        Raises:
            AutomationNotFound: If the automation is missing or inactive. No
                run is created in that case.
        """
        automation = await self._loader.load(automation_id)
        trigger_data = dict(trigger_data)
        run = await self._ledger.open(automation.id, trigger_data, context_data)

        context = ActionContext(
            automation_id=automation.id,
            run_id=run.id,
            trigger_data=trigger_data,
            repository=self._repository,
            providers=self._providers,
            config=self.config,
            http_client=self._http_client,
        )

        actions_executed = 0
        error: Optional[str] = None
        results: list[ActionResult] = []

        for action in automation.actions:
            if action.delay_minutes > 0:
                await self._wait(action, run.id)

            try:
                output = await self._dispatcher.dispatch(action, context)
            except ActionError as e:
                error = str(e)
            except Exception as e:
                logger.exception(
                    f"Unexpected error in action {action.id} for run {run.id}"
                )
                error = f"{type(e).__name__}: {e}"

            if error is not None:
                logger.error(
                    f"Action {action.id} ({action.action_type}) failed for run "
                    f"{run.id}: {error}"
                )
                results.append(
                    ActionResult(
                        action_id=action.id,
                        action_type=action.action_type,
                        status="failed",
                        error=error,
                    )
                )
                break

            actions_executed += 1
            results.append(
                ActionResult(
                    action_id=action.id,
                    action_type=action.action_type,
                    status="success",
                    result=output,
                )
            )

        if error is None:
            outcome = Completed(actions_executed=actions_executed)
        else:
            outcome = Failed(actions_executed=actions_executed, error_message=error)
        await self._ledger.close(run.id, outcome)

        await self._repository.record_run_result(
            automation.id, succeeded=error is None, at=utcnow()
        )
        logger.debug(f"Updated counters for automation {automation.id}")

        return ExecutionResult(
            success=error is None,
            run_id=run.id,
            actions_executed=actions_executed,
            error=error,
            results=results,
        )

    async def _wait(self, action: Action, run_id: str) -> None:
        seconds = action.delay_minutes * self.config.engine.delay_unit_seconds
        logger.info(
            f"Waiting {action.delay_minutes} minute(s) before action {action.id} "
            f"for run {run_id}"
        )
        await self._sleep(seconds)
