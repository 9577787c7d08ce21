from __future__ import annotations

from pathlib import Path

from taskdeck.core.storage import JsonFileStorage, MemoryStorage


def test_file_storage_maps_keys_to_json_files(tmp_path: Path) -> None:
    storage = JsonFileStorage(tmp_path / "nested" / "data")

    assert storage.get_item("todos") is None
    storage.set_item("todos", "[]")

    assert (tmp_path / "nested" / "data" / "todos.json").read_text(encoding="utf-8") == "[]"
    assert storage.get_item("todos") == "[]"

    storage.remove_item("todos")
    storage.remove_item("todos")
    assert storage.get_item("todos") is None


def test_memory_storage() -> None:
    storage = MemoryStorage({"todos": "[]"})

    assert storage.get_item("todos") == "[]"
    storage.set_item("todos", "[1]")
    assert storage.get_item("todos") == "[1]"
    storage.remove_item("todos")
    storage.remove_item("missing")
    assert storage.get_item("todos") is None
