from __future__ import annotations

import json
import time
from datetime import datetime, timezone
from pathlib import Path

import pytest

from taskdeck.core.errors import NotFoundError, ValidationError
from taskdeck.core.storage import JsonFileStorage, MemoryStorage
from taskdeck.core.task_store import Task, TaskStore


def test_add_creates_pending_task_and_persists(store: TaskStore, storage: MemoryStorage) -> None:
    task = store.add("  Buy milk  ", "2024-01-01")

    assert task.text == "Buy milk"
    assert task.due_date == "2024-01-01"
    assert task.completed is False
    assert store.all() == [task]

    stored = json.loads(storage.get_item("todos"))
    assert stored == [
        {
            "id": task.id,
            "text": "Buy milk",
            "dueDate": "2024-01-01",
            "completed": False,
            "createdAt": "2024-01-01T09:00:00.000Z",
        }
    ]


def test_add_uses_creation_timestamp_as_id(store: TaskStore) -> None:
    task = store.add("Buy milk", "2024-01-01")
    expected = int(datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc).timestamp() * 1000)
    assert task.id == expected


@pytest.mark.parametrize(
    ("text", "due_date", "fields"),
    [
        ("", "2024-01-01", ("text",)),
        ("   ", "2024-01-01", ("text",)),
        ("Buy milk", "", ("due_date",)),
        ("", "", ("text", "due_date")),
        ("Buy milk", "01/02/2024", ("due_date",)),
        ("Buy milk", "2024-02-30", ("due_date",)),
    ],
)
def test_add_rejects_invalid_input_without_mutating(
    store: TaskStore,
    storage: MemoryStorage,
    text: str,
    due_date: str,
    fields: tuple[str, ...],
) -> None:
    store.add("Existing", "2024-01-01")
    before = storage.get_item("todos")

    with pytest.raises(ValidationError) as excinfo:
        store.add(text, due_date)

    assert excinfo.value.fields == fields
    assert [task.text for task in store.all()] == ["Existing"]
    assert storage.get_item("todos") == before


def test_ids_stay_unique_when_clock_does_not_advance(storage: MemoryStorage) -> None:
    frozen = datetime(2024, 1, 1, tzinfo=timezone.utc)
    store = TaskStore(storage, clock=lambda: frozen)

    ids = [store.add(f"Task {n}", "2024-01-01").id for n in range(5)]

    assert len(set(ids)) == 5
    assert ids == sorted(ids)


def test_update_overwrites_text_and_date_but_keeps_state(store: TaskStore) -> None:
    task = store.add("Pay rent", "2024-01-05")
    store.toggle_completed(task.id)
    created_at = task.created_at

    updated = store.update(task.id, "Pay rent early", "2024-01-03")

    assert updated.id == task.id
    assert updated.text == "Pay rent early"
    assert updated.due_date == "2024-01-03"
    assert updated.completed is True
    assert updated.created_at == created_at


def test_update_unknown_id_raises_not_found(store: TaskStore) -> None:
    with pytest.raises(NotFoundError) as excinfo:
        store.update(12345, "Anything", "2024-01-01")
    assert excinfo.value.task_id == 12345


def test_update_validates_before_lookup(store: TaskStore) -> None:
    task = store.add("Pay rent", "2024-01-05")
    with pytest.raises(ValidationError):
        store.update(task.id, "", "2024-01-05")
    assert store.get(task.id).text == "Pay rent"


def test_toggle_completed_flips_and_ignores_unknown_ids(
    store: TaskStore, storage: MemoryStorage
) -> None:
    task = store.add("Buy milk", "2024-01-01")

    assert store.toggle_completed(task.id).completed is True
    assert store.toggle_completed(task.id).completed is False

    before = storage.get_item("todos")
    assert store.toggle_completed(999) is None
    assert storage.get_item("todos") == before


def test_delete_removes_only_matching_task(store: TaskStore) -> None:
    first = store.add("Buy milk", "2024-01-01")
    second = store.add("Pay rent", "2024-01-05")

    assert store.delete(first.id) is True
    assert store.delete(first.id) is False
    assert store.all() == [second]


def test_delete_all_clears_collection(store: TaskStore, storage: MemoryStorage) -> None:
    assert store.delete_all() == 0
    assert storage.get_item("todos") is None

    store.add("Buy milk", "2024-01-01")
    store.add("Pay rent", "2024-01-05")

    assert store.delete_all() == 2
    assert store.all() == []
    assert json.loads(storage.get_item("todos")) == []


def test_example_stats_after_toggle(store: TaskStore) -> None:
    store.add("Buy milk", "2024-01-01")
    rent = store.add("Pay rent", "2024-01-05")
    store.toggle_completed(rent.id)

    stats = store.stats()

    assert (stats.total, stats.completed, stats.pending, stats.percentage) == (2, 1, 1, 50)


def test_stats_ignore_active_filter(store: TaskStore) -> None:
    store.add("Buy milk", "2024-01-01")
    store.add("Pay rent", "2024-01-05")
    store.set_filter("completed")

    assert store.view() == []
    assert store.stats().total == 2


def test_view_filters_by_status(store: TaskStore) -> None:
    milk = store.add("Buy milk", "2024-01-01")
    rent = store.add("Pay rent", "2024-01-05")
    store.toggle_completed(rent.id)

    store.set_filter("completed")
    assert [task.id for task in store.view()] == [rent.id]
    assert all(task.completed for task in store.view())

    store.set_filter("pending")
    assert [task.id for task in store.view()] == [milk.id]


def test_view_applies_inclusive_date_range(store: TaskStore) -> None:
    store.add("Before", "2024-01-01")
    lower = store.add("Lower bound", "2024-01-02")
    upper = store.add("Upper bound", "2024-01-04")
    store.add("After", "2024-01-05")

    store.set_filter("all", "2024-01-02", "2024-01-04")

    assert [task.id for task in store.view()] == [lower.id, upper.id]


def test_open_ended_date_ranges(store: TaskStore) -> None:
    store.add("Early", "2024-01-01")
    late = store.add("Late", "2024-03-01")

    store.set_filter("all", "2024-02-01", "")
    assert store.view() == [late]

    store.set_filter("all", None, "2024-02-01")
    assert [task.text for task in store.view()] == ["Early"]


def test_set_filter_replaces_state_wholesale(store: TaskStore) -> None:
    store.set_filter("pending", "2024-01-01", "2024-01-31", "  MILK ")
    assert store.filter_state.search_term == "milk"

    state = store.set_filter("completed")

    assert state.status == "completed"
    assert state.date_from is None
    assert state.date_to is None
    assert state.search_term == ""


def test_set_filter_rejects_unknown_status_and_bad_dates(store: TaskStore) -> None:
    store.set_filter("pending")

    with pytest.raises(ValidationError):
        store.set_filter("archived")  # type: ignore[arg-type]
    with pytest.raises(ValidationError) as excinfo:
        store.set_filter("all", "tomorrow")

    assert excinfo.value.fields == ("date_from",)
    assert store.filter_state.status == "pending"


def test_search_term_is_case_insensitive_and_keeps_other_filters(store: TaskStore) -> None:
    store.add("Buy MILK", "2024-01-01")
    oat = store.add("Buy oat milk", "2024-01-10")
    store.add("Pay rent", "2024-01-05")
    store.set_filter("all", "2024-01-02", None)

    state = store.set_search_term("  Milk ")

    assert state.search_term == "milk"
    assert state.date_from == "2024-01-02"
    assert store.view() == [oat]


def test_view_sorts_by_due_date_and_toggle_reverses(store: TaskStore) -> None:
    store.add("Third", "2024-03-01")
    store.add("First", "2024-01-01")
    store.add("Second", "2024-02-01")

    ascending = [task.text for task in store.view()]
    assert ascending == ["First", "Second", "Third"]

    assert store.toggle_sort_direction().direction == "desc"
    assert [task.text for task in store.view()] == list(reversed(ascending))

    assert store.toggle_sort_direction().direction == "asc"
    assert [task.text for task in store.view()] == ascending


def test_equal_due_dates_keep_insertion_order(store: TaskStore) -> None:
    store.add("A", "2024-01-01")
    store.add("B", "2024-01-01")
    store.add("C", "2023-12-31")

    assert [task.text for task in store.view()] == ["C", "A", "B"]
    store.toggle_sort_direction()
    assert [task.text for task in store.view()] == ["A", "B", "C"]


def test_listeners_receive_snapshots_on_changes(store: TaskStore) -> None:
    snapshots: list[int] = []

    def listener(tasks) -> None:
        snapshots.append(len(tasks))

    store.subscribe(listener)
    task = store.add("Buy milk", "2024-01-01")
    store.toggle_completed(task.id)
    store.set_search_term("milk")
    store.unsubscribe(listener)
    store.delete(task.id)

    assert snapshots == [0, 1, 1, 1]


def test_round_trip_through_file_storage(tmp_path: Path, clock) -> None:
    storage = JsonFileStorage(tmp_path / "data")
    store = TaskStore(storage, clock=clock)
    store.add("Buy milk", "2024-01-01")
    rent = store.add("Pay rent", "2024-01-05")
    store.toggle_completed(rent.id)

    reloaded = TaskStore(JsonFileStorage(tmp_path / "data"))

    def key(task: Task) -> tuple:
        return (task.id, task.text, task.due_date, task.completed)

    assert [key(task) for task in reloaded.view()] == [key(task) for task in store.view()]
    assert (tmp_path / "data" / "todos.json").exists()


def test_loads_records_written_by_browser_version(storage: MemoryStorage) -> None:
    storage.set_item(
        "todos",
        json.dumps(
            [
                {
                    "id": 1704099600000,
                    "text": "Buy milk",
                    "dueDate": "2024-01-01",
                    "completed": True,
                    "createdAt": "2024-01-01T09:00:00.000Z",
                }
            ]
        ),
    )

    store = TaskStore(storage)

    [task] = store.all()
    assert task.id == 1704099600000
    assert task.completed is True
    assert task.created_at == datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("payload", ["not json", '{"id": 1}', "42"])
def test_malformed_storage_loads_empty(storage: MemoryStorage, payload: str) -> None:
    storage.set_item("todos", payload)
    assert TaskStore(storage).all() == []


def test_invalid_and_duplicate_records_are_skipped(storage: MemoryStorage) -> None:
    good = {"id": 1, "text": "Keep", "dueDate": "2024-01-01", "completed": False}
    storage.set_item(
        "todos",
        json.dumps(
            [
                good,
                "junk",
                {"id": "abc", "text": "Bad id", "dueDate": "2024-01-01"},
                {"id": 2, "text": "", "dueDate": "2024-01-01"},
                {"id": 1, "text": "Duplicate", "dueDate": "2024-01-02"},
            ]
        ),
    )

    assert [task.text for task in TaskStore(storage).all()] == ["Keep"]


def test_custom_storage_key(storage: MemoryStorage, clock) -> None:
    store = TaskStore(storage, storage_key="work", clock=clock)
    store.add("Ship release", "2024-01-01")

    assert storage.get_item("todos") is None
    assert storage.get_item("work") is not None


def test_directory_in_place_of_task_file_loads_empty(tmp_path: Path) -> None:
    (tmp_path / "data" / "todos.json").mkdir(parents=True)

    store = TaskStore(JsonFileStorage(tmp_path / "data"))

    assert store.all() == []


def test_non_utf8_task_file_loads_empty(tmp_path: Path) -> None:
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "todos.json").write_bytes(b'[{"id": 1, "text": "caf\xe9"}]')

    store = TaskStore(JsonFileStorage(data_dir))

    assert store.all() == []


def test_naive_created_at_is_treated_as_utc(
    storage: MemoryStorage, monkeypatch: pytest.MonkeyPatch
) -> None:
    if not hasattr(time, "tzset"):
        pytest.skip("tzset is unavailable on this platform")
    monkeypatch.setenv("TZ", "America/New_York")
    time.tzset()
    try:
        storage.set_item(
            "todos",
            json.dumps(
                [
                    {
                        "id": 1,
                        "text": "Buy milk",
                        "dueDate": "2024-01-01",
                        "createdAt": "2024-01-01T09:00:00",
                    }
                ]
            ),
        )
        store = TaskStore(storage)
        store.save()
    finally:
        monkeypatch.undo()
        time.tzset()

    [record] = json.loads(storage.get_item("todos"))
    assert record["createdAt"] == "2024-01-01T09:00:00.000Z"


def test_unparseable_created_at_keeps_the_task(storage: MemoryStorage) -> None:
    storage.set_item(
        "todos",
        json.dumps(
            [{"id": 1, "text": "keep me", "dueDate": "2024-01-01", "createdAt": "yesterday"}]
        ),
    )

    [task] = TaskStore(storage).all()

    assert task.text == "keep me"
    assert task.created_at.tzinfo is not None


@pytest.mark.parametrize("value", ["false", "true", 1, None])
def test_only_real_booleans_mark_tasks_completed(storage: MemoryStorage, value) -> None:
    storage.set_item(
        "todos",
        json.dumps([{"id": 1, "text": "Buy milk", "dueDate": "2024-01-01", "completed": value}]),
    )

    [task] = TaskStore(storage).all()

    assert task.completed is False
