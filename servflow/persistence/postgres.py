"""PostgreSQL implementation of the automation repository."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Optional

import asyncpg

from ..contracts import Action, Automation, Run, RunStatus, TaskRecord
from .repository import AutomationRepository


def _json(value: Any) -> Any:
    # asyncpg hands JSONB back as text unless a codec is registered
    if isinstance(value, str):
        return json.loads(value)
    return value or {}


class PostgresAutomationRepository(AutomationRepository):
    """Persist automations, runs and tasks using PostgreSQL."""

    def __init__(self, dsn: str):
        self._dsn = dsn
        self._initialized = False

    async def _connect(self) -> asyncpg.Connection:
        conn = await asyncpg.connect(self._dsn)
        if not self._initialized:
            try:
                await self._ensure_schema(conn)
            except Exception:
                await conn.close()
                raise
            self._initialized = True
        return conn

    async def _ensure_schema(self, conn: asyncpg.Connection) -> None:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS automations (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                description TEXT,
                category TEXT NOT NULL,
                status TEXT NOT NULL,
                run_count INTEGER NOT NULL DEFAULT 0,
                success_count INTEGER NOT NULL DEFAULT 0,
                failure_count INTEGER NOT NULL DEFAULT 0,
                last_run_at TIMESTAMPTZ,
                created_at TIMESTAMPTZ NOT NULL
            )
            """
        )
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS automation_actions (
                seq BIGSERIAL PRIMARY KEY,
                id TEXT NOT NULL UNIQUE,
                automation_id TEXT NOT NULL REFERENCES automations(id) ON DELETE CASCADE,
                action_type TEXT NOT NULL,
                action_config JSONB NOT NULL,
                sequence_order INTEGER,
                delay_minutes INTEGER,
                created_at TIMESTAMPTZ NOT NULL
            )
            """
        )
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS automation_runs (
                id TEXT PRIMARY KEY,
                automation_id TEXT NOT NULL,
                trigger_data JSONB,
                context_data JSONB,
                status TEXT NOT NULL,
                actions_executed INTEGER NOT NULL DEFAULT 0,
                error_message TEXT,
                started_at TIMESTAMPTZ NOT NULL,
                completed_at TIMESTAMPTZ
            )
            """
        )
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS tasks (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                description TEXT,
                status TEXT NOT NULL,
                assigned_to TEXT,
                job_id TEXT,
                created_by TEXT,
                automation_id TEXT,
                created_by_automation BOOLEAN NOT NULL,
                created_at TIMESTAMPTZ NOT NULL
            )
            """
        )

    @staticmethod
    def _row_to_run(r: asyncpg.Record) -> Run:
        return Run(
            id=r["id"],
            automation_id=r["automation_id"],
            trigger_data=_json(r["trigger_data"]),
            context_data=_json(r["context_data"]),
            status=r["status"],
            actions_executed=r["actions_executed"],
            error_message=r["error_message"],
            started_at=r["started_at"],
            completed_at=r["completed_at"],
        )

    @staticmethod
    def _row_to_automation(r: asyncpg.Record, actions: list[Action]) -> Automation:
        return Automation(
            id=r["id"],
            name=r["name"],
            description=r["description"],
            category=r["category"],
            status=r["status"],
            actions=actions,
            run_count=r["run_count"],
            success_count=r["success_count"],
            failure_count=r["failure_count"],
            last_run_at=r["last_run_at"],
            created_at=r["created_at"],
        )

    # ------------------------------------------------------------------
    async def save_automation(self, automation: Automation) -> None:
        conn = await self._connect()
        try:
            async with conn.transaction():
                await conn.execute(
                    """
                    INSERT INTO automations (
                        id, name, description, category, status, run_count,
                        success_count, failure_count, last_run_at, created_at
                    ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
                    ON CONFLICT (id) DO UPDATE SET
                        name = EXCLUDED.name,
                        description = EXCLUDED.description,
                        category = EXCLUDED.category,
                        status = EXCLUDED.status
                    """,
                    automation.id,
                    automation.name,
                    automation.description,
                    automation.category,
                    automation.status.value,
                    automation.run_count,
                    automation.success_count,
                    automation.failure_count,
                    automation.last_run_at,
                    automation.created_at,
                )
                await conn.execute(
                    "DELETE FROM automation_actions WHERE automation_id = $1",
                    automation.id,
                )
                await conn.executemany(
                    """
                    INSERT INTO automation_actions (
                        id, automation_id, action_type, action_config,
                        sequence_order, delay_minutes, created_at
                    ) VALUES ($1, $2, $3, $4, $5, $6, $7)
                    """,
                    [
                        (
                            a.id,
                            automation.id,
                            a.action_type,
                            json.dumps(a.action_config),
                            a.sequence_order,
                            a.delay_minutes,
                            a.created_at,
                        )
                        for a in automation.actions
                    ],
                )
        finally:
            await conn.close()

    async def get_automation(self, automation_id: str) -> Automation | None:
        conn = await self._connect()
        try:
            row = await conn.fetchrow(
                "SELECT * FROM automations WHERE id = $1", automation_id
            )
            if not row:
                return None
            action_rows = await conn.fetch(
                "SELECT * FROM automation_actions WHERE automation_id = $1 ORDER BY seq",
                automation_id,
            )
        finally:
            await conn.close()
        actions = [
            Action(
                id=r["id"],
                automation_id=r["automation_id"],
                action_type=r["action_type"],
                action_config=_json(r["action_config"]),
                sequence_order=r["sequence_order"],
                delay_minutes=r["delay_minutes"],
                created_at=r["created_at"],
            )
            for r in action_rows
        ]
        return self._row_to_automation(row, actions)

    async def list_automations(self) -> list[Automation]:
        conn = await self._connect()
        try:
            rows = await conn.fetch("SELECT * FROM automations ORDER BY created_at")
        finally:
            await conn.close()
        return [self._row_to_automation(r, []) for r in rows]

    async def create_run(self, run: Run) -> None:
        conn = await self._connect()
        try:
            await conn.execute(
                """
                INSERT INTO automation_runs (
                    id, automation_id, trigger_data, context_data, status,
                    actions_executed, error_message, started_at, completed_at
                ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
                """,
                run.id,
                run.automation_id,
                json.dumps(run.trigger_data),
                json.dumps(run.context_data),
                run.status.value,
                run.actions_executed,
                run.error_message,
                run.started_at,
                run.completed_at,
            )
        finally:
            await conn.close()

    async def finish_run(
        self,
        run_id: str,
        status: RunStatus,
        actions_executed: int,
        error_message: Optional[str],
        completed_at: datetime,
    ) -> bool:
        conn = await self._connect()
        try:
            result = await conn.execute(
                """
                UPDATE automation_runs
                SET status = $1, actions_executed = $2, error_message = $3, completed_at = $4
                WHERE id = $5 AND status = $6
                """,
                status.value,
                actions_executed,
                error_message,
                completed_at,
                run_id,
                RunStatus.RUNNING.value,
            )
        finally:
            await conn.close()
        # command tag looks like "UPDATE 1"
        return result.split()[-1] == "1"

    async def get_run(self, run_id: str) -> Run | None:
        conn = await self._connect()
        try:
            row = await conn.fetchrow(
                "SELECT * FROM automation_runs WHERE id = $1", run_id
            )
        finally:
            await conn.close()
        return self._row_to_run(row) if row else None

    async def list_runs(self, automation_id: Optional[str] = None) -> list[Run]:
        conn = await self._connect()
        try:
            if automation_id is None:
                rows = await conn.fetch(
                    "SELECT * FROM automation_runs ORDER BY started_at"
                )
            else:
                rows = await conn.fetch(
                    "SELECT * FROM automation_runs WHERE automation_id = $1 ORDER BY started_at",
                    automation_id,
                )
        finally:
            await conn.close()
        return [self._row_to_run(r) for r in rows]

    async def record_run_result(
        self, automation_id: str, succeeded: bool, at: datetime
    ) -> None:
        conn = await self._connect()
        try:
            await conn.execute(
                """
                UPDATE automations
                SET run_count = run_count + 1,
                    success_count = success_count + $1,
                    failure_count = failure_count + $2,
                    last_run_at = $3
                WHERE id = $4
                """,
                1 if succeeded else 0,
                0 if succeeded else 1,
                at,
                automation_id,
            )
        finally:
            await conn.close()

    async def create_task(self, task: TaskRecord) -> TaskRecord:
        conn = await self._connect()
        try:
            await conn.execute(
                """
                INSERT INTO tasks (
                    id, title, description, status, assigned_to, job_id,
                    created_by, automation_id, created_by_automation, created_at
                ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
                """,
                task.id,
                task.title,
                task.description,
                task.status,
                task.assigned_to,
                task.job_id,
                task.created_by,
                task.automation_id,
                task.created_by_automation,
                task.created_at,
            )
        finally:
            await conn.close()
        return task

    async def list_tasks(self) -> list[TaskRecord]:
        conn = await self._connect()
        try:
            rows = await conn.fetch("SELECT * FROM tasks ORDER BY created_at")
        finally:
            await conn.close()
        return [
            TaskRecord(
                id=r["id"],
                title=r["title"],
                description=r["description"] or "",
                status=r["status"],
                assigned_to=r["assigned_to"],
                job_id=r["job_id"],
                created_by=r["created_by"],
                automation_id=r["automation_id"],
                created_by_automation=r["created_by_automation"],
                created_at=r["created_at"],
            )
            for r in rows
        ]
