"""Command line interface for operating servflow."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional

import typer

from servflow import AutomationExecutor, get_repository
from servflow.errors import AutomationNotFound

app = typer.Typer(help="CLI for servflow automations")

# Command groups
runs_app = typer.Typer(help="Commands for inspecting automation runs")
automation_app = typer.Typer(help="Commands for inspecting automations")

app.add_typer(runs_app, name="runs")
app.add_typer(automation_app, name="automation")


@app.callback()
def main() -> None:
    """servflow CLI entry point."""
    pass


@app.command("serve")
def serve(
    host: str = "127.0.0.1",
    port: int = 8000,
    log_level: str = typer.Option("info", help="Python logging level"),
) -> None:
    """
    Serve the automation execution endpoint over HTTP.

    Example:
        servflow serve --port 9000
    """
    import uvicorn

    from servflow.api import create_app

    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(create_app(), host=host, port=port, log_level=log_level.lower())


@app.command("execute")
def execute(
    automation_id: str,
    data: Optional[str] = typer.Option(
        None, help="Trigger data as a JSON object, e.g. '{\"CustomerName\": \"Ana\"}'"
    ),
) -> None:
    """
    Execute an automation once and print the run summary.

    Exits with code 1 when the automation is missing or the run failed.

    Example:
        servflow execute 3f0c... --data '{"CustomerName": "Ana", "JobId": "42"}'
    """
    try:
        trigger_data = json.loads(data) if data else {}
    except json.JSONDecodeError as exc:
        typer.secho(f"Invalid --data JSON: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    if not isinstance(trigger_data, dict):
        typer.secho("--data must be a JSON object", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    executor = AutomationExecutor(repository=get_repository())
    try:
        result = asyncio.run(executor.execute(automation_id, trigger_data))
    except AutomationNotFound as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1)

    typer.echo(json.dumps(result.to_response(), indent=2))
    if not result.success:
        raise typer.Exit(code=1)


@runs_app.command("list")
def runs_list(
    automation: Optional[str] = typer.Option(None, help="Filter by automation id"),
) -> None:
    """
    List runs with their status.

    Example:
        servflow runs list --automation 3f0c...
        # Output: 9a1b...    3f0c...    completed    3
    """
    repo = get_repository()
    runs = asyncio.run(repo.list_runs(automation))
    if not runs:
        typer.echo("No runs found")
        return
    for run in runs:
        typer.echo(
            f"{run.id}\t{run.automation_id}\t{run.status.value}\t{run.actions_executed}"
        )


@runs_app.command("show")
def runs_show(run_id: str) -> None:
    """Show details for a single run."""
    repo = get_repository()
    run = asyncio.run(repo.get_run(run_id))
    if run is None:
        typer.echo("Run not found")
        raise typer.Exit(code=1)
    typer.echo(f"Run {run.id}: {run.status.value}")
    typer.echo(f"Automation: {run.automation_id}")
    typer.echo(f"Actions executed: {run.actions_executed}")
    typer.echo(f"Started: {run.started_at}")
    if run.completed_at:
        typer.echo(f"Completed: {run.completed_at}")
    if run.error_message:
        typer.echo(f"Error: {run.error_message}")
    if run.trigger_data:
        typer.echo(f"Trigger data: {json.dumps(run.trigger_data)}")


@automation_app.command("show")
def automation_show(automation_id: str) -> None:
    """Show an automation, its counters and its actions in execution order."""
    repo = get_repository()
    automation = asyncio.run(repo.get_automation(automation_id))
    if automation is None:
        typer.echo("Automation not found")
        raise typer.Exit(code=1)
    typer.echo(f"Automation {automation.id}: {automation.name} ({automation.status.value})")
    typer.echo(
        f"Runs: {automation.run_count} "
        f"succeeded: {automation.success_count} failed: {automation.failure_count}"
    )
    if automation.last_run_at:
        typer.echo(f"Last run: {automation.last_run_at}")
    for action in sorted(automation.actions, key=lambda a: a.sequence_order):
        delay = f" after {action.delay_minutes} min" if action.delay_minutes else ""
        typer.echo(f"- [{action.sequence_order}] {action.action_type}{delay}")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
