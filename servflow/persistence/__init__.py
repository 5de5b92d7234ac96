"""Persistence layer for automations, runs and tasks."""

from __future__ import annotations

import os
from typing import Optional

from ..config import ServflowConfig, load_config
from .inmemory import InMemoryAutomationRepository
from .repository import AutomationRepository
from .sqlite import SQLiteAutomationRepository

_repository_instance: AutomationRepository | None = None
_repository_url: str | None = None


def get_repository(
    database_url: Optional[str] = None, config: Optional[ServflowConfig] = None
) -> AutomationRepository:
    """Factory function to obtain an automation repository.

    The repository backend is selected based on ``database_url`` which can be
    provided explicitly, via environment variable ``SERVFLOW_DATABASE_URL`` or
    ``DATABASE_URL``, or from loaded configuration. When no database is
    configured, an in-memory repository is returned. The last repository is
    cached and handed out again while the resolved URL stays the same.
    """

    global _repository_instance, _repository_url
    if _repository_instance is not None and database_url is None and config is None:
        return _repository_instance

    config = config or load_config()
    database_url = (
        database_url
        or os.getenv("SERVFLOW_DATABASE_URL")
        or os.getenv("DATABASE_URL")
        or config.database_url
    )

    if _repository_instance is not None and database_url == _repository_url:
        return _repository_instance

    repository: AutomationRepository
    if not database_url:
        repository = InMemoryAutomationRepository()
    elif database_url.startswith("sqlite://"):
        path = database_url.replace("sqlite://", "", 1)
        repository = SQLiteAutomationRepository(path)
    elif database_url.startswith("postgres://") or database_url.startswith(
        "postgresql://"
    ):
        from .postgres import PostgresAutomationRepository

        repository = PostgresAutomationRepository(database_url)
    else:
        raise ValueError(f"Unsupported database backend: {database_url}")

    _repository_instance, _repository_url = repository, database_url
    return repository


__all__ = [
    "AutomationRepository",
    "InMemoryAutomationRepository",
    "SQLiteAutomationRepository",
    "get_repository",
]
