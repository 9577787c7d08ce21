"""Shared fixtures for taskdeck tests.

Stores are built on MemoryStorage unless a test needs files, in which case
JsonFileStorage is pointed at tmp_path.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest

from taskdeck.core.storage import MemoryStorage
from taskdeck.core.task_store import Task, TaskStore

EPOCH = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


class StepClock:
    """Returns EPOCH, then one second later on every call."""

    def __init__(self, start: datetime = EPOCH, step: timedelta = timedelta(seconds=1)):
        self._current = start
        self._step = step

    def __call__(self) -> datetime:
        value = self._current
        self._current += self._step
        return value


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def store(storage: MemoryStorage, clock: StepClock) -> TaskStore:
    return TaskStore(storage, clock=clock)


def _make_task(
    id: int,
    text: str = "",
    due_date: str = "2024-01-01",
    completed: bool = False,
) -> Task:
    return Task(
        id=id,
        text=text or f"Task {id}",
        due_date=due_date,
        completed=completed,
        created_at=EPOCH,
    )


@pytest.fixture
def make_task() -> Callable[..., Task]:
    """Factory fixture that creates Task instances."""
    return _make_task
