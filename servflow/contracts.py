"""Core data contracts for the automation execution engine."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class ActionType(str, Enum):
    """Capabilities an action can invoke."""

    SEND_SMS = "send_sms"
    SEND_EMAIL = "send_email"
    MAKE_CALL = "make_call"
    CREATE_TASK = "create_task"
    WEBHOOK = "webhook"


class AutomationStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    DRAFT = "draft"


class RunStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not RunStatus.RUNNING


class Action(BaseModel):
    """One step of an automation.

    ``action_type`` is kept as a plain string so that rows written by a newer
    authoring UI (or corrupted rows) still load; the dispatcher rejects tags it
    does not know.
    """

    id: str = Field(default_factory=new_id)
    automation_id: str
    action_type: str
    action_config: Dict[str, Any] = Field(default_factory=dict)
    sequence_order: int = 0
    delay_minutes: int = 0
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("sequence_order", "delay_minutes", mode="before")
    @classmethod
    def _none_as_zero(cls, v: Any) -> Any:
        return 0 if v is None else v

    @field_validator("delay_minutes")
    @classmethod
    def _non_negative_delay(cls, v: int) -> int:
        if v < 0:
            raise ValueError("delay_minutes must be non-negative")
        return v


class Automation(BaseModel):
    """A user-authored, ordered sequence of actions."""

    id: str = Field(default_factory=new_id)
    name: str = ""
    description: Optional[str] = None
    category: str = "general"
    status: AutomationStatus = AutomationStatus.ACTIVE
    actions: List[Action] = Field(default_factory=list)
    run_count: int = 0
    success_count: int = 0
    failure_count: int = 0
    last_run_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def is_active(self) -> bool:
        return self.status is AutomationStatus.ACTIVE


class Run(BaseModel):
    """Audit record for one execution of an automation."""

    id: str = Field(default_factory=new_id)
    automation_id: str
    trigger_data: Dict[str, Any] = Field(default_factory=dict)
    context_data: Dict[str, Any] = Field(default_factory=dict)
    status: RunStatus = RunStatus.RUNNING
    actions_executed: int = 0
    error_message: Optional[str] = None
    started_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None


class Completed(BaseModel):
    """Run outcome when every action succeeded."""

    kind: Literal["completed"] = "completed"
    actions_executed: int


class Failed(BaseModel):
    """Run outcome when an action halted the run."""

    kind: Literal["failed"] = "failed"
    actions_executed: int
    error_message: str


RunOutcome = Union[Completed, Failed]


class TaskRecord(BaseModel):
    """Task row inserted by the ``create_task`` action."""

    id: str = Field(default_factory=new_id)
    title: str
    description: str = ""
    status: str = "pending"
    assigned_to: Optional[str] = None
    job_id: Optional[str] = None
    created_by: Optional[str] = None
    automation_id: Optional[str] = None
    created_by_automation: bool = True
    created_at: datetime = Field(default_factory=utcnow)


class ActionResult(BaseModel):
    """Outcome of a single dispatched action."""

    action_id: str
    action_type: str
    status: Literal["success", "failed"]
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class ExecutionRequest(BaseModel):
    """Inbound request body for the execution endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    automation_id: str = Field(alias="automationId", min_length=1)
    trigger_data: Dict[str, Any] = Field(default_factory=dict, alias="triggerData")
    entity_id: Optional[str] = Field(default=None, alias="entityId")
    entity_type: Optional[str] = Field(default=None, alias="entityType")


class ExecutionResult(BaseModel):
    """Result returned to the caller after a run has been closed."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    run_id: str = Field(serialization_alias="runId")
    actions_executed: int = Field(serialization_alias="actionsExecuted")
    error: Optional[str] = None
    results: List[ActionResult] = Field(default_factory=list)

    def to_response(self) -> Dict[str, Any]:
        """Serialize using the camelCase wire names."""
        return self.model_dump(mode="json", by_alias=True)
