"""Task creation action."""

from __future__ import annotations

import logging
from typing import Any, Dict

from ..constants import TASK_JOB_KEY, TASK_USER_KEY
from ..contracts import Action, ActionType, TaskRecord
from ..errors import StorageError
from .base import ActionContext, BaseAction

logger = logging.getLogger(__name__)


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


class CreateTaskAction(BaseAction):
    """Insert a pending task linked to the job and user of the trigger."""

    action_type = ActionType.CREATE_TASK
    required_fields = ("title",)

    async def execute(
        self, config: Dict[str, Any], action: Action, context: ActionContext
    ) -> Dict[str, Any]:
        task = TaskRecord(
            title=config["title"],
            description=config.get("description") or "",
            assigned_to=_optional_str(config.get("assigned_to")),
            job_id=_optional_str(context.trigger_data.get(TASK_JOB_KEY)),
            created_by=_optional_str(context.trigger_data.get(TASK_USER_KEY)),
            automation_id=context.automation_id,
        )
        try:
            await context.repository.create_task(task)
        except Exception as e:
            raise StorageError(f"Failed to create task: {e}") from e
        logger.info(f"Task {task.id} created for action {action.id}")
        return {"task_id": task.id}
