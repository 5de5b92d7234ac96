"""SQLite implementation of the automation repository."""

from __future__ import annotations

import asyncio
import json
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from ..contracts import Action, Automation, Run, RunStatus, TaskRecord
from .repository import AutomationRepository


def _ts(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class SQLiteAutomationRepository(AutomationRepository):
    """Persist automations, runs and tasks using SQLite."""

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        # one connection shared by worker threads
        self._lock = threading.Lock()
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        with self._lock:
            self._conn.executescript(
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
                    last_run_at TEXT,
                    created_at TEXT NOT NULL
                );
                CREATE TABLE IF NOT EXISTS automation_actions (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL UNIQUE,
                    automation_id TEXT NOT NULL,
                    action_type TEXT NOT NULL,
                    action_config TEXT NOT NULL,
                    sequence_order INTEGER,
                    delay_minutes INTEGER,
                    created_at TEXT NOT NULL
                );
                CREATE TABLE IF NOT EXISTS automation_runs (
                    id TEXT PRIMARY KEY,
                    automation_id TEXT NOT NULL,
                    trigger_data TEXT,
                    context_data TEXT,
                    status TEXT NOT NULL,
                    actions_executed INTEGER NOT NULL DEFAULT 0,
                    error_message TEXT,
                    started_at TEXT NOT NULL,
                    completed_at TEXT
                );
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    description TEXT,
                    status TEXT NOT NULL,
                    assigned_to TEXT,
                    job_id TEXT,
                    created_by TEXT,
                    automation_id TEXT,
                    created_by_automation INTEGER NOT NULL,
                    created_at TEXT NOT NULL
                );
                """
            )
            self._conn.commit()

    # ------------------------------------------------------------------
    # Helper methods
    def _execute(self, query: str, *params: Any) -> int:
        with self._lock:
            cur = self._conn.cursor()
            cur.execute(query, params)
            self._conn.commit()
            return cur.rowcount

    def _fetchone(self, query: str, *params: Any) -> sqlite3.Row | None:
        with self._lock:
            cur = self._conn.cursor()
            cur.execute(query, params)
            return cur.fetchone()

    def _fetchall(self, query: str, *params: Any) -> list[sqlite3.Row]:
        with self._lock:
            cur = self._conn.cursor()
            cur.execute(query, params)
            return cur.fetchall()

    def _upsert_automation(self, automation: Automation) -> None:
        with self._lock:
            cur = self._conn.cursor()
            cur.execute(
                """
                INSERT INTO automations (
                    id, name, description, category, status, run_count,
                    success_count, failure_count, last_run_at, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    description = excluded.description,
                    category = excluded.category,
                    status = excluded.status
                """,
                (
                    automation.id,
                    automation.name,
                    automation.description,
                    automation.category,
                    automation.status.value,
                    automation.run_count,
                    automation.success_count,
                    automation.failure_count,
                    _ts(automation.last_run_at),
                    _ts(automation.created_at),
                ),
            )
            cur.execute(
                "DELETE FROM automation_actions WHERE automation_id = ?",
                (automation.id,),
            )
            cur.executemany(
                """
                INSERT INTO automation_actions (
                    id, automation_id, action_type, action_config,
                    sequence_order, delay_minutes, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        a.id,
                        automation.id,
                        a.action_type,
                        json.dumps(a.action_config),
                        a.sequence_order,
                        a.delay_minutes,
                        _ts(a.created_at),
                    )
                    for a in automation.actions
                ],
            )
            self._conn.commit()

    @staticmethod
    def _row_to_automation(row: sqlite3.Row, actions: list[Action]) -> Automation:
        return Automation(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            category=row["category"],
            status=row["status"],
            actions=actions,
            run_count=row["run_count"],
            success_count=row["success_count"],
            failure_count=row["failure_count"],
            last_run_at=_parse_ts(row["last_run_at"]),
            created_at=_parse_ts(row["created_at"]),
        )

    @staticmethod
    def _row_to_run(row: sqlite3.Row) -> Run:
        return Run(
            id=row["id"],
            automation_id=row["automation_id"],
            trigger_data=json.loads(row["trigger_data"]) if row["trigger_data"] else {},
            context_data=json.loads(row["context_data"]) if row["context_data"] else {},
            status=row["status"],
            actions_executed=row["actions_executed"],
            error_message=row["error_message"],
            started_at=_parse_ts(row["started_at"]),
            completed_at=_parse_ts(row["completed_at"]),
        )

    # ------------------------------------------------------------------
    # Repository API
    async def save_automation(self, automation: Automation) -> None:
        await asyncio.to_thread(self._upsert_automation, automation)

    async def get_automation(self, automation_id: str) -> Automation | None:
        row = await asyncio.to_thread(
            self._fetchone, "SELECT * FROM automations WHERE id = ?", automation_id
        )
        if not row:
            return None
        action_rows = await asyncio.to_thread(
            self._fetchall,
            "SELECT * FROM automation_actions WHERE automation_id = ? ORDER BY seq",
            automation_id,
        )
        actions = [
            Action(
                id=r["id"],
                automation_id=r["automation_id"],
                action_type=r["action_type"],
                action_config=json.loads(r["action_config"]),
                sequence_order=r["sequence_order"],
                delay_minutes=r["delay_minutes"],
                created_at=_parse_ts(r["created_at"]),
            )
            for r in action_rows
        ]
        return self._row_to_automation(row, actions)

    async def list_automations(self) -> list[Automation]:
        rows = await asyncio.to_thread(
            self._fetchall, "SELECT * FROM automations ORDER BY created_at"
        )
        return [self._row_to_automation(r, []) for r in rows]

    async def create_run(self, run: Run) -> None:
        await asyncio.to_thread(
            self._execute,
            """
            INSERT INTO automation_runs (
                id, automation_id, trigger_data, context_data, status,
                actions_executed, error_message, started_at, completed_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            run.id,
            run.automation_id,
            json.dumps(run.trigger_data),
            json.dumps(run.context_data),
            run.status.value,
            run.actions_executed,
            run.error_message,
            _ts(run.started_at),
            _ts(run.completed_at),
        )

    async def finish_run(
        self,
        run_id: str,
        status: RunStatus,
        actions_executed: int,
        error_message: Optional[str],
        completed_at: datetime,
    ) -> bool:
        updated = await asyncio.to_thread(
            self._execute,
            """
            UPDATE automation_runs
            SET status = ?, actions_executed = ?, error_message = ?, completed_at = ?
            WHERE id = ? AND status = ?
            """,
            status.value,
            actions_executed,
            error_message,
            _ts(completed_at),
            run_id,
            RunStatus.RUNNING.value,
        )
        return updated == 1

    async def get_run(self, run_id: str) -> Run | None:
        row = await asyncio.to_thread(
            self._fetchone, "SELECT * FROM automation_runs WHERE id = ?", run_id
        )
        return self._row_to_run(row) if row else None

    async def list_runs(self, automation_id: Optional[str] = None) -> list[Run]:
        if automation_id is None:
            rows = await asyncio.to_thread(
                self._fetchall, "SELECT * FROM automation_runs ORDER BY started_at"
            )
        else:
            rows = await asyncio.to_thread(
                self._fetchall,
                "SELECT * FROM automation_runs WHERE automation_id = ? ORDER BY started_at",
                automation_id,
            )
        return [self._row_to_run(r) for r in rows]

    async def record_run_result(
        self, automation_id: str, succeeded: bool, at: datetime
    ) -> None:
        await asyncio.to_thread(
            self._execute,
            """
            UPDATE automations
            SET run_count = run_count + 1,
                success_count = success_count + ?,
                failure_count = failure_count + ?,
                last_run_at = ?
            WHERE id = ?
            """,
            1 if succeeded else 0,
            0 if succeeded else 1,
            _ts(at),
            automation_id,
        )

    async def create_task(self, task: TaskRecord) -> TaskRecord:
        await asyncio.to_thread(
            self._execute,
            """
            INSERT INTO tasks (
                id, title, description, status, assigned_to, job_id,
                created_by, automation_id, created_by_automation, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            task.id,
            task.title,
            task.description,
            task.status,
            task.assigned_to,
            task.job_id,
            task.created_by,
            task.automation_id,
            int(task.created_by_automation),
            _ts(task.created_at),
        )
        return task

    async def list_tasks(self) -> list[TaskRecord]:
        rows = await asyncio.to_thread(
            self._fetchall, "SELECT * FROM tasks ORDER BY created_at"
        )
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
                created_by_automation=bool(r["created_by_automation"]),
                created_at=_parse_ts(r["created_at"]),
            )
            for r in rows
        ]
