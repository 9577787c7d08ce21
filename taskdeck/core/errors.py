from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

Severity = Literal["error", "warning", "information"]

DEFAULT_SEVERITY_BY_CODE: dict[str, Severity] = {
    "validation": "warning",
    "not_found": "information",
}


@dataclass
class TaskDeckError(Exception):
    code: str
    message: str
    detail: str | None = None
    severity: Severity = "error"

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message} ({self.detail})"
        return self.message


@dataclass
class ValidationError(TaskDeckError):
    """Raised when user input is rejected. Never mutates store state."""

    code: str = "validation"
    message: str = "Invalid input"
    fields: tuple[str, ...] = field(default_factory=tuple)
    severity: Severity = "warning"


@dataclass
class NotFoundError(TaskDeckError):
    code: str = "not_found"
    message: str = "Task not found"
    task_id: int | None = None
    severity: Severity = "information"


def format_error(error: BaseException) -> tuple[str, Severity]:
    """Render an error for a UI notification as ``(message, severity)``.

    Task errors carry their code, e.g. ``[validation] Task text and due date are
    required. (text)``; anything else is shown as a plain error.
    """
    if isinstance(error, TaskDeckError):
        prefix = f"[{error.code}] " if error.code else ""
        severity = DEFAULT_SEVERITY_BY_CODE.get(error.code, error.severity)
        return f"{prefix}{error}", severity
    return f"{error}", "error"


def wrap_error(
    error: BaseException,
    *,
    code: str,
    message: str,
    severity: Severity = "error",
) -> TaskDeckError:
    """Turn an unexpected failure (usually ``OSError`` from storage) into a TaskDeckError."""
    if isinstance(error, TaskDeckError):
        return error
    detail = str(error)
    return TaskDeckError(code=code, message=message, detail=detail, severity=severity)
