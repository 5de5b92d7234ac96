"""End-to-end tests for the automation executor."""

import asyncio

import httpx
import pytest

from servflow import AutomationExecutor
from servflow.actions import ActionDispatcher
from servflow.contracts import AutomationStatus, ExecutionRequest, RunStatus
from servflow.errors import AutomationNotFound
from servflow.persistence import SQLiteAutomationRepository

TRIGGER = {
    "CustomerName": "Ana",
    "CustomerPhone": "+15552223333",
    "CustomerEmail": "ana@example.com",
    "JobId": "42",
    "UserId": "user-7",
}


def _sms(order, message="Hi {CustomerName}", **extra):
    return {
        "action_type": "send_sms",
        "sequence_order": order,
        "action_config": {"to_number": "{CustomerPhone}", "message": message},
        **extra,
    }


def _failing_webhook(order):
    return {
        "action_type": "webhook",
        "sequence_order": order,
        "action_config": {"url": "https://hooks.example.com/fail"},
    }


class ExplodingDispatcher(ActionDispatcher):
    """Raise a non-action error for one action id."""

    def __init__(self, explode_on: str) -> None:
        super().__init__()
        self.explode_on = explode_on

    async def dispatch(self, action, context):
        if action.id == self.explode_on:
            raise KeyError("surprise")
        return await super().dispatch(action, context)


@pytest.mark.asyncio
async def test_all_actions_succeed(executor, repository, provider, make_automation):
    automation = make_automation(
        _sms(1, "Hello {CustomerName}"),
        {
            "action_type": "create_task",
            "sequence_order": 2,
            "action_config": {"title": "Call {CustomerName} about job {JobId}"},
        },
        {
            "action_type": "send_email",
            "sequence_order": 3,
            "action_config": {
                "to_email": "{CustomerEmail}",
                "subject": "Job {JobId}",
                "body": "Thanks {CustomerName}",
            },
        },
    )
    await repository.save_automation(automation)

    result = await executor.execute(automation.id, TRIGGER)

    assert result.success
    assert result.actions_executed == 3
    assert result.error is None
    assert [r.status for r in result.results] == ["success"] * 3
    assert provider.sms[0]["body"] == "Hello Ana"
    assert provider.emails[0]["subject"] == "Job 42"
    tasks = await repository.list_tasks()
    assert tasks[0].title == "Call Ana about job 42"

    run = await repository.get_run(result.run_id)
    assert run.status is RunStatus.COMPLETED
    assert run.actions_executed == 3
    assert run.error_message is None
    assert run.trigger_data == TRIGGER

    stored = await repository.get_automation(automation.id)
    assert stored.run_count == 1
    assert stored.success_count == 1
    assert stored.failure_count == 0
    assert stored.last_run_at is not None


@pytest.mark.asyncio
async def test_actions_run_in_sequence_order(executor, repository, provider, make_automation):
    automation = make_automation(_sms(3, "third"), _sms(1, "first"), _sms(2, "second"))
    await repository.save_automation(automation)

    await executor.execute(automation.id, TRIGGER)

    assert [m["body"] for m in provider.sms] == ["first", "second", "third"]


@pytest.mark.asyncio
async def test_first_failure_halts_run(repository, providers, provider, config, sleeper, make_automation):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(500, text="upstream broke")

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    executor = AutomationExecutor(
        repository=repository,
        providers=providers,
        config=config,
        sleep=sleeper,
        http_client=http,
    )
    automation = make_automation(_sms(1, "first"), _failing_webhook(2), _sms(3, "never"))
    await repository.save_automation(automation)

    result = await executor.execute(automation.id, TRIGGER)
    await http.aclose()

    assert not result.success
    assert result.actions_executed == 1
    assert "500" in result.error
    assert [r.status for r in result.results] == ["success", "failed"]
    assert len(requests) == 1
    assert [m["body"] for m in provider.sms] == ["first"]

    run = await repository.get_run(result.run_id)
    assert run.status is RunStatus.FAILED
    assert run.actions_executed == 1
    assert run.error_message == result.error

    stored = await repository.get_automation(automation.id)
    assert (stored.run_count, stored.success_count, stored.failure_count) == (1, 0, 1)


class CountingDispatcher(ActionDispatcher):
    def __init__(self) -> None:
        super().__init__()
        self.dispatched = []

    async def dispatch(self, action, context):
        self.dispatched.append(action.id)
        return await super().dispatch(action, context)


@pytest.mark.asyncio
async def test_invalid_config_halts_before_later_actions(repository, providers, provider, config, sleeper, make_automation):
    dispatcher = CountingDispatcher()
    executor = AutomationExecutor(
        repository=repository,
        providers=providers,
        config=config,
        sleep=sleeper,
        dispatcher=dispatcher,
    )
    automation = make_automation(
        _sms(1, "first"),
        {"action_type": "send_email", "sequence_order": 2, "action_config": {}},
        _sms(3, "never"),
    )
    await repository.save_automation(automation)

    result = await executor.execute(automation.id, TRIGGER)

    assert result.actions_executed == 1
    assert result.error.startswith("Invalid send_email config")
    assert dispatcher.dispatched == [a.id for a in automation.actions[:2]]
    assert [m["body"] for m in provider.sms] == ["first"]
    run = await repository.get_run(result.run_id)
    assert run.status is RunStatus.FAILED
    assert run.actions_executed == 1


@pytest.mark.asyncio
async def test_invalid_config_fails_without_side_effect(executor, repository, provider, make_automation):
    automation = make_automation(
        {"action_type": "send_sms", "action_config": {"message": "no number"}}
    )
    await repository.save_automation(automation)

    result = await executor.execute(automation.id, TRIGGER)

    assert not result.success
    assert result.actions_executed == 0
    assert "to_number" in result.error
    assert provider.sms == []


@pytest.mark.asyncio
async def test_unknown_action_type_fails_run(executor, repository, make_automation):
    automation = make_automation(
        _sms(1), {"action_type": "send_fax", "sequence_order": 2}
    )
    await repository.save_automation(automation)

    result = await executor.execute(automation.id, TRIGGER)

    assert not result.success
    assert result.actions_executed == 1
    assert result.error == "Unknown action type: send_fax"


@pytest.mark.asyncio
async def test_unexpected_exception_closes_run_as_failed(repository, providers, config, sleeper, make_automation):
    automation = make_automation(_sms(1), _sms(2))
    await repository.save_automation(automation)
    executor = AutomationExecutor(
        repository=repository,
        providers=providers,
        config=config,
        sleep=sleeper,
        dispatcher=ExplodingDispatcher(automation.actions[1].id),
    )

    result = await executor.execute(automation.id, TRIGGER)

    assert not result.success
    assert result.actions_executed == 1
    assert result.error.startswith("KeyError")
    run = await repository.get_run(result.run_id)
    assert run.status is RunStatus.FAILED


@pytest.mark.asyncio
async def test_unknown_automation_creates_no_run(executor, repository):
    with pytest.raises(AutomationNotFound):
        await executor.execute("missing", TRIGGER)

    assert await repository.list_runs() == []


@pytest.mark.asyncio
async def test_inactive_automation_is_not_run(executor, repository, provider, make_automation):
    automation = make_automation(_sms(1), status=AutomationStatus.INACTIVE)
    await repository.save_automation(automation)

    with pytest.raises(AutomationNotFound):
        await executor.execute(automation.id, TRIGGER)

    assert provider.sms == []
    stored = await repository.get_automation(automation.id)
    assert stored.run_count == 0


@pytest.mark.asyncio
async def test_empty_automation_completes(executor, repository, make_automation):
    automation = make_automation()
    await repository.save_automation(automation)

    result = await executor.execute(automation.id, {})

    assert result.success
    assert result.actions_executed == 0
    run = await repository.get_run(result.run_id)
    assert run.status is RunStatus.COMPLETED


@pytest.mark.asyncio
async def test_delays_wait_before_their_action(executor, repository, sleeper, make_automation):
    automation = make_automation(
        _sms(1), _sms(2, delay_minutes=2), _sms(3, delay_minutes=0), _sms(4, delay_minutes=5)
    )
    await repository.save_automation(automation)

    result = await executor.execute(automation.id, TRIGGER)

    assert result.success
    assert sleeper.calls == [120, 300]


@pytest.mark.asyncio
async def test_no_wait_for_actions_after_failure(executor, repository, sleeper, make_automation):
    automation = make_automation(
        {"action_type": "send_sms", "sequence_order": 1, "action_config": {}},
        _sms(2, delay_minutes=10),
    )
    await repository.save_automation(automation)

    await executor.execute(automation.id, TRIGGER)

    assert sleeper.calls == []


@pytest.mark.asyncio
async def test_concurrent_runs_are_independent(executor, repository, provider, make_automation):
    automation = make_automation(
        _sms(1, "{CustomerName} first"),
        _sms(2, "{CustomerName} second", delay_minutes=1),
    )
    await repository.save_automation(automation)

    first, second = await asyncio.gather(
        executor.execute(automation.id, {**TRIGGER, "CustomerName": "Ana"}),
        executor.execute(automation.id, {**TRIGGER, "CustomerName": "Ben"}),
    )

    assert first.run_id != second.run_id
    assert first.success and second.success
    stored = await repository.get_automation(automation.id)
    assert stored.run_count == 2
    assert stored.success_count == 2
    # both runs were in flight at once: each waited between its two messages
    assert [m["body"] for m in provider.sms] == [
        "Ana first",
        "Ben first",
        "Ana second",
        "Ben second",
    ]


@pytest.mark.asyncio
async def test_concurrent_runs_on_sqlite_count_every_run(tmp_path, providers, config, sleeper, make_automation):
    repository = SQLiteAutomationRepository(str(tmp_path / "runs.db"))
    executor = AutomationExecutor(
        repository=repository, providers=providers, config=config, sleep=sleeper
    )
    automation = make_automation(_sms(1), _sms(2, delay_minutes=1))
    await repository.save_automation(automation)

    results = await asyncio.gather(
        *(executor.execute(automation.id, TRIGGER) for _ in range(5))
    )

    assert len({r.run_id for r in results}) == 5
    assert all(r.success for r in results)
    stored = await repository.get_automation(automation.id)
    assert (stored.run_count, stored.success_count, stored.failure_count) == (5, 5, 0)
    runs = await repository.list_runs(automation.id)
    assert {r.status for r in runs} == {RunStatus.COMPLETED}


@pytest.mark.asyncio
async def test_execute_request_records_entity_context(executor, repository, make_automation):
    automation = make_automation(_sms(1))
    await repository.save_automation(automation)
    request = ExecutionRequest.model_validate(
        {
            "automationId": automation.id,
            "triggerData": TRIGGER,
            "entityId": "job-42",
            "entityType": "job",
        }
    )

    result = await executor.execute_request(request)

    run = await repository.get_run(result.run_id)
    assert run.context_data == {"entity_id": "job-42", "entity_type": "job"}


@pytest.mark.asyncio
async def test_missing_sending_number_fails_sms(repository, providers, config, sleeper, make_automation):
    config.twilio.from_number = None
    executor = AutomationExecutor(
        repository=repository, providers=providers, config=config, sleep=sleeper
    )
    automation = make_automation(_sms(1))
    await repository.save_automation(automation)

    result = await executor.execute(automation.id, TRIGGER)

    assert not result.success
    assert "not configured" in result.error
