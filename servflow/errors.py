"""Exception hierarchy for automation execution."""

from __future__ import annotations

from typing import Iterable, Optional


class AutomationError(Exception):
    """Base class for all servflow errors."""


class AutomationNotFound(AutomationError):
    """Raised when an automation does not exist or is not active."""

    def __init__(self, automation_id: str) -> None:
        super().__init__(f"Automation {automation_id} not found or inactive")
        self.automation_id = automation_id


class ActionError(AutomationError):
    """An action failed; the run halts and is closed as failed."""


class InvalidConfig(ActionError):
    """The action config is missing required fields."""

    def __init__(self, action_type: str, missing: Iterable[str]) -> None:
        self.action_type = action_type
        self.missing = list(missing)
        super().__init__(
            f"Invalid {action_type} config: missing {', '.join(self.missing)}"
        )


class ProviderError(ActionError):
    """A downstream provider returned a non-success result."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        detail: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        self.detail = detail
        parts = [message]
        if status_code is not None:
            parts.append(f"status {status_code}")
        if detail:
            parts.append(detail)
        super().__init__(": ".join(parts))


class StorageError(ActionError):
    """A storage write performed by an action failed."""


class UnknownActionType(ActionError):
    def __init__(self, action_type: str) -> None:
        self.action_type = action_type
        super().__init__(f"Unknown action type: {action_type}")
