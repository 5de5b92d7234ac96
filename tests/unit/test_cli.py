import asyncio
import json

import pytest
from typer.testing import CliRunner

import servflow.persistence as persistence
from servflow.cli import app
from servflow.contracts import Completed, Failed
from servflow.ledger import RunLedger
from servflow.persistence import InMemoryAutomationRepository

runner = CliRunner()


@pytest.fixture
def repo(monkeypatch, tmp_path) -> InMemoryAutomationRepository:
    repo = InMemoryAutomationRepository()
    monkeypatch.setattr(persistence, "_repository_instance", repo)
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        "providers: inmemory\n"
        "twilio:\n"
        "  from_number: '+15550001111'\n"
    )
    monkeypatch.setenv("SERVFLOW_CONFIG", str(config_file))
    return repo


def test_execute_prints_result(repo, make_automation):
    automation = make_automation(
        {
            "action_type": "send_sms",
            "action_config": {"to_number": "5552223333", "message": "Hi {Name}"},
        }
    )
    asyncio.run(repo.save_automation(automation))

    result = runner.invoke(
        app, ["execute", automation.id, "--data", json.dumps({"Name": "Ana"})]
    )

    assert result.exit_code == 0, result.stdout
    body = json.loads(result.stdout)
    assert body["success"] is True
    assert body["actionsExecuted"] == 1
    run = asyncio.run(repo.get_run(body["runId"]))
    assert run.trigger_data == {"Name": "Ana"}


def test_execute_failed_run_exits_1(repo, make_automation):
    automation = make_automation({"action_type": "create_task", "action_config": {}})
    asyncio.run(repo.save_automation(automation))

    result = runner.invoke(app, ["execute", automation.id])

    assert result.exit_code == 1
    assert json.loads(result.stdout)["success"] is False


def test_execute_missing_automation(repo):
    result = runner.invoke(app, ["execute", "missing"])

    assert result.exit_code == 1
    assert "not found or inactive" in result.stdout


@pytest.mark.parametrize("data", ["{not json", "[1, 2]"])
def test_execute_rejects_bad_data(repo, data):
    result = runner.invoke(app, ["execute", "anything", "--data", data])

    assert result.exit_code == 1
    assert asyncio.run(repo.list_runs()) == []


def test_runs_list_and_show(repo):
    ledger = RunLedger(repo)
    done = asyncio.run(ledger.open("auto-1", {"JobId": "42"}))
    asyncio.run(ledger.close(done.id, Completed(actions_executed=2)))
    failed = asyncio.run(ledger.open("auto-2", {}))
    asyncio.run(ledger.close(failed.id, Failed(actions_executed=0, error_message="boom")))

    result = runner.invoke(app, ["runs", "list"])
    assert result.exit_code == 0
    assert f"{done.id}\tauto-1\tcompleted\t2" in result.stdout
    assert failed.id in result.stdout

    result = runner.invoke(app, ["runs", "list", "--automation", "auto-2"])
    assert done.id not in result.stdout
    assert failed.id in result.stdout

    result = runner.invoke(app, ["runs", "show", failed.id])
    assert result.exit_code == 0
    assert "failed" in result.stdout
    assert "Error: boom" in result.stdout


def test_runs_list_empty_and_show_missing(repo):
    result = runner.invoke(app, ["runs", "list"])
    assert "No runs found" in result.stdout

    result = runner.invoke(app, ["runs", "show", "missing-id"])
    assert result.exit_code == 1
    assert "Run not found" in result.stdout


def test_automation_show(repo, make_automation):
    automation = make_automation(
        {"action_type": "webhook", "sequence_order": 2, "delay_minutes": 5},
        {"action_type": "send_sms", "sequence_order": 1},
        name="Job completed follow-up",
    )
    asyncio.run(repo.save_automation(automation))

    result = runner.invoke(app, ["automation", "show", automation.id])

    assert result.exit_code == 0
    assert "Job completed follow-up (active)" in result.stdout
    lines = result.stdout.splitlines()
    assert lines[-2] == "- [1] send_sms"
    assert lines[-1] == "- [2] webhook after 5 min"

    missing = runner.invoke(app, ["automation", "show", "missing"])
    assert missing.exit_code == 1
    assert "Automation not found" in missing.stdout
