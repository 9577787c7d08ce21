from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Iterable, Literal, Sequence

if TYPE_CHECKING:
    from taskdeck.core.task_store import Task

StatusFilter = Literal["all", "completed", "pending"]
SortDirection = Literal["asc", "desc"]

STATUS_CHOICES: tuple[StatusFilter, ...] = ("all", "completed", "pending")

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True, slots=True)
class FilterState:
    status: StatusFilter = "all"
    date_from: str | None = None
    date_to: str | None = None
    search_term: str = ""

    @property
    def is_default(self) -> bool:
        return self == FilterState()


@dataclass(frozen=True, slots=True)
class SortState:
    direction: SortDirection = "asc"

    @property
    def descending(self) -> bool:
        return self.direction == "desc"

    def toggled(self) -> SortState:
        return SortState("asc" if self.descending else "desc")


@dataclass(frozen=True, slots=True)
class TaskStats:
    total: int = 0
    completed: int = 0
    pending: int = 0
    percentage: int = 0


def normalize_search_term(term: str | None) -> str:
    return (term or "").strip().lower()


def matches_filter(task: Task, state: FilterState) -> bool:
    if state.status == "completed" and not task.completed:
        return False
    if state.status == "pending" and task.completed:
        return False
    # ISO dates compare correctly as strings.
    if state.date_from and task.due_date < state.date_from:
        return False
    if state.date_to and task.due_date > state.date_to:
        return False
    if state.search_term and state.search_term not in task.text.lower():
        return False
    return True


def filter_tasks(tasks: Iterable[Task], state: FilterState) -> list[Task]:
    return [task for task in tasks if matches_filter(task, state)]


def sort_tasks(tasks: Iterable[Task], state: SortState) -> list[Task]:
    """Order by due date. Equal dates keep their input order in both directions."""
    return sorted(tasks, key=lambda task: task.due_date, reverse=state.descending)


def compute_stats(tasks: Sequence[Task]) -> TaskStats:
    total = len(tasks)
    completed = sum(1 for task in tasks if task.completed)
    percentage = math.floor(completed / total * 100 + 0.5) if total else 0
    return TaskStats(
        total=total,
        completed=completed,
        pending=total - completed,
        percentage=percentage,
    )


def today_iso(today: date | None = None) -> str:
    return (today or date.today()).isoformat()


def parse_due_date(value: str) -> date | None:
    if not isinstance(value, str) or not _ISO_DATE_RE.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        return None


def is_overdue(task: Task, today: date | None = None) -> bool:
    if task.completed:
        return False
    due = parse_due_date(task.due_date)
    if due is None:
        return False
    return due < (today or date.today())


def format_due_date(value: str) -> str:
    due = parse_due_date(value)
    if due is None:
        return value
    return f"{due.strftime('%b')} {due.day}, {due.year}"
