"""servflow: automation execution engine for field-service workflows."""

from .actions import ActionDispatcher
from .contracts import (
    Action,
    ActionType,
    Automation,
    AutomationStatus,
    ExecutionRequest,
    ExecutionResult,
    Run,
    RunStatus,
)
from .execute import AutomationExecutor
from .interpolate import interpolate
from .persistence import get_repository
from .providers import get_providers

__version__ = "0.1.0"
__all__ = [
    "Action",
    "ActionDispatcher",
    "ActionType",
    "Automation",
    "AutomationExecutor",
    "AutomationStatus",
    "ExecutionRequest",
    "ExecutionResult",
    "Run",
    "RunStatus",
    "get_providers",
    "get_repository",
    "interpolate",
]
