from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Sequence

from taskdeck.core.errors import NotFoundError, ValidationError
from taskdeck.core.logging import get_logger, log_event
from taskdeck.core.protocols import KeyValueStorage
from taskdeck.core.views import (
    STATUS_CHOICES,
    FilterState,
    SortState,
    StatusFilter,
    TaskStats,
    compute_stats,
    filter_tasks,
    normalize_search_term,
    parse_due_date,
    sort_tasks,
)

DEFAULT_STORAGE_KEY = "todos"

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _format_timestamp(stamp: datetime) -> str:
    return stamp.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def _parse_timestamp(value: object) -> datetime:
    """Parse a stored creation time; naive values are UTC, unusable ones become now."""
    if not isinstance(value, str):
        return _utcnow()
    try:
        stamp = datetime.fromisoformat(value)
    except ValueError:
        return _utcnow()
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)
    return stamp


@dataclass(slots=True)
class Task:
    id: int
    text: str
    due_date: str
    completed: bool = False
    created_at: datetime = field(default_factory=_utcnow)

    def to_json(self) -> dict[str, object]:
        return {
            "id": self.id,
            "text": self.text,
            "dueDate": self.due_date,
            "completed": self.completed,
            "createdAt": _format_timestamp(self.created_at),
        }

    @classmethod
    def from_json(cls, payload: dict[str, object]) -> Task:
        """Build a task from its stored record.

        Raises ``ValueError`` for records without a usable id, text or due date.
        """
        raw_id = payload.get("id")
        if isinstance(raw_id, bool) or not isinstance(raw_id, (int, float)):
            raise ValueError(f"invalid task id: {raw_id!r}")
        text = str(payload.get("text") or "").strip()
        due_date = str(payload.get("dueDate") or "")
        if not text or not due_date:
            raise ValueError(f"task {raw_id} is missing text or dueDate")
        completed = payload.get("completed")
        return cls(
            id=int(raw_id),
            text=text,
            due_date=due_date,
            completed=completed if isinstance(completed, bool) else False,
            created_at=_parse_timestamp(payload.get("createdAt")),
        )


def _validate_entry(text: str, due_date: str) -> tuple[str, str]:
    normalized = (text or "").strip()
    due = (due_date or "").strip()
    missing: list[str] = []
    if not normalized:
        missing.append("text")
    if not due:
        missing.append("due_date")
    if missing:
        raise ValidationError(
            message="Task text and due date are required.",
            detail=", ".join(missing),
            fields=tuple(missing),
        )
    if parse_due_date(due) is None:
        raise ValidationError(
            message="Due date must be a valid YYYY-MM-DD date.",
            detail=due,
            fields=("due_date",),
        )
    return normalized, due


def _validate_bound(value: str | None, name: str) -> str | None:
    bound = (value or "").strip()
    if not bound:
        return None
    if parse_due_date(bound) is None:
        raise ValidationError(
            message="Filter dates must be valid YYYY-MM-DD dates.",
            detail=bound,
            fields=(name,),
        )
    return bound


class TaskStore:
    """Task collection with filter, sort and edit state, persisted on every mutation."""

    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        storage_key: str = DEFAULT_STORAGE_KEY,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.storage = storage
        self.storage_key = storage_key
        self._clock = clock
        self._tasks: list[Task] = []
        self._filter = FilterState()
        self._sort = SortState()
        self._editing_id: int | None = None
        self._listeners: set[Callable[[Sequence[Task]], None]] = set()
        self.load()

    # persistence

    def load(self) -> list[Task]:
        try:
            raw = self.storage.get_item(self.storage_key)
            data = json.loads(raw) if raw is not None else []
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            log_event(logger, "tasks_load_failed", level=logging.WARNING, error=str(exc))
            self._tasks = []
            return []

        if not isinstance(data, list):
            log_event(
                logger,
                "tasks_load_failed",
                level=logging.WARNING,
                error=f"expected a list, got {type(data).__name__}",
            )
            self._tasks = []
            return []

        tasks: list[Task] = []
        seen: set[int] = set()
        for raw_task in data:
            if not isinstance(raw_task, dict):
                continue
            try:
                task = Task.from_json(raw_task)
            except ValueError as exc:
                log_event(
                    logger, "task_record_skipped", level=logging.WARNING, error=str(exc)
                )
                continue
            if task.id in seen:
                log_event(
                    logger,
                    "task_record_skipped",
                    level=logging.WARNING,
                    error="duplicate id",
                    id=task.id,
                )
                continue
            seen.add(task.id)
            tasks.append(task)
        self._tasks = tasks
        return list(self._tasks)

    def save(self) -> None:
        payload = [task.to_json() for task in self._tasks]
        self.storage.set_item(self.storage_key, json.dumps(payload))

    # listeners

    def subscribe(self, callback: Callable[[Sequence[Task]], None]) -> None:
        self._listeners.add(callback)
        callback(tuple(self._tasks))

    def unsubscribe(self, callback: Callable[[Sequence[Task]], None]) -> None:
        self._listeners.discard(callback)

    def _emit(self) -> None:
        snapshot = tuple(self._tasks)
        for callback in list(self._listeners):
            callback(snapshot)

    def _commit(self) -> None:
        self.save()
        self._emit()

    # queries

    @property
    def filter_state(self) -> FilterState:
        return self._filter

    @property
    def sort_state(self) -> SortState:
        return self._sort

    @property
    def editing_id(self) -> int | None:
        return self._editing_id

    @property
    def is_editing(self) -> bool:
        return self._editing_id is not None

    def all(self) -> list[Task]:
        return list(self._tasks)

    def get(self, task_id: int) -> Task | None:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def view(self) -> list[Task]:
        return sort_tasks(filter_tasks(self._tasks, self._filter), self._sort)

    def stats(self) -> TaskStats:
        return compute_stats(self._tasks)

    # mutations

    def _next_id(self, now: datetime) -> int:
        candidate = int(now.timestamp() * 1000)
        highest = max((task.id for task in self._tasks), default=None)
        if highest is not None and candidate <= highest:
            candidate = highest + 1
        return candidate

    def add(self, text: str, due_date: str) -> Task:
        normalized, due = _validate_entry(text, due_date)
        now = self._clock()
        new_task = Task(
            id=self._next_id(now),
            text=normalized,
            due_date=due,
            completed=False,
            created_at=now,
        )
        self._tasks.append(new_task)
        log_event(logger, "task_added", id=new_task.id, due_date=due)
        self._commit()
        return new_task

    def update(self, task_id: int, text: str, due_date: str) -> Task:
        normalized, due = _validate_entry(text, due_date)
        task = self.get(task_id)
        if task is None:
            raise NotFoundError(detail=str(task_id), task_id=task_id)
        task.text = normalized
        task.due_date = due
        log_event(logger, "task_updated", id=task_id, due_date=due)
        self._commit()
        return task

    def toggle_completed(self, task_id: int) -> Task | None:
        task = self.get(task_id)
        if task is None:
            return None
        task.completed = not task.completed
        log_event(logger, "task_toggled", id=task_id, completed=task.completed)
        self._commit()
        return task

    def delete(self, task_id: int) -> bool:
        before = len(self._tasks)
        self._tasks = [task for task in self._tasks if task.id != task_id]
        if len(self._tasks) == before:
            return False
        if self._editing_id == task_id:
            self._editing_id = None
        log_event(logger, "task_deleted", id=task_id)
        self._commit()
        return True

    def delete_all(self) -> int:
        removed = len(self._tasks)
        if not removed:
            return 0
        self._tasks = []
        self._editing_id = None
        log_event(logger, "tasks_cleared", count=removed)
        self._commit()
        return removed

    # filter and sort

    def set_filter(
        self,
        status: StatusFilter = "all",
        date_from: str | None = None,
        date_to: str | None = None,
        search_term: str = "",
    ) -> FilterState:
        if status not in STATUS_CHOICES:
            raise ValidationError(
                message="Unknown status filter.",
                detail=str(status),
                fields=("status",),
            )
        self._filter = FilterState(
            status=status,
            date_from=_validate_bound(date_from, "date_from"),
            date_to=_validate_bound(date_to, "date_to"),
            search_term=normalize_search_term(search_term),
        )
        log_event(
            logger,
            "filter_changed",
            status=self._filter.status,
            date_from=self._filter.date_from,
            date_to=self._filter.date_to,
        )
        self._emit()
        return self._filter

    def set_search_term(self, term: str) -> FilterState:
        self._filter = FilterState(
            status=self._filter.status,
            date_from=self._filter.date_from,
            date_to=self._filter.date_to,
            search_term=normalize_search_term(term),
        )
        self._emit()
        return self._filter

    def set_sort_direction(self, state: SortState) -> SortState:
        self._sort = state
        self._emit()
        return self._sort

    def toggle_sort_direction(self) -> SortState:
        return self.set_sort_direction(self._sort.toggled())

    # edit mode

    def begin_edit(self, task_id: int) -> Task | None:
        task = self.get(task_id)
        if task is None:
            return None
        self._editing_id = task_id
        return task

    def cancel_edit(self) -> None:
        self._editing_id = None

    def submit(self, text: str, due_date: str) -> Task | None:
        """Add a task, or update the one being edited and return to create mode.

        Validation errors propagate and leave the edit mode unchanged.
        """
        if self._editing_id is None:
            return self.add(text, due_date)
        task_id = self._editing_id
        try:
            task = self.update(task_id, text, due_date)
        except NotFoundError:
            log_event(logger, "edit_target_missing", level=logging.WARNING, id=task_id)
            task = None
        self._editing_id = None
        return task
