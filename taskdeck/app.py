from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

from platformdirs import user_config_path, user_data_path, user_log_path
from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.theme import Theme
from textual.widgets import Footer, Header, Input

from taskdeck import __version__
from taskdeck.core.config import RuntimeConfig, get_runtime_config
from taskdeck.core.errors import ValidationError, format_error, wrap_error
from taskdeck.core.logging import configure_logging, get_logger, log_event
from taskdeck.core.paths import APP_AUTHOR, APP_NAME, LOG_FILENAME, SETTINGS_FILENAME
from taskdeck.core.settings_store import SettingsStore
from taskdeck.core.storage import JsonFileStorage
from taskdeck.core.task_store import Task, TaskStore
from taskdeck.core.views import SortState
from taskdeck.widgets import (
    ConfirmDialog,
    FilterModal,
    FilterRequest,
    TaskForm,
    TaskList,
    TaskStatsBar,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class AppPaths:
    data_dir: Path
    config_dir: Path
    logs_dir: Path
    settings_file: Path


def resolve_paths(config: RuntimeConfig, data_dir: Path | None = None) -> AppPaths:
    resolved_data = data_dir or config.data_dir or user_data_path(APP_NAME, APP_AUTHOR)
    config_dir = Path(user_config_path(APP_NAME, APP_AUTHOR))
    return AppPaths(
        data_dir=Path(resolved_data).expanduser(),
        config_dir=config_dir,
        logs_dir=Path(user_log_path(APP_NAME, APP_AUTHOR)),
        settings_file=config_dir / SETTINGS_FILENAME,
    )


class TaskDeck(App):
    TITLE = "taskdeck"
    SUB_TITLE = f"v{__version__}"
    CSS_PATH = Path(__file__).parent / "styles" / "index.tcss"

    BINDINGS = [
        Binding("ctrl+f", "focus_search", "Search", show=True),
        Binding("ctrl+n", "focus_form", "New task", show=True),
        Binding("space", "toggle_task", "Toggle", show=True),
        Binding("e", "edit_task", "Edit", show=True),
        Binding("delete", "delete_task", "Delete", show=True),
        Binding("s", "toggle_sort", "Sort by date", show=True),
        Binding("f", "show_filter", "Filter", show=True),
        Binding("D", "delete_all", "Delete all", show=True),
        Binding("escape", "cancel_edit", "Cancel edit", show=False),
    ]

    def __init__(
        self,
        store: TaskStore,
        *,
        settings_store: SettingsStore | None = None,
    ) -> None:
        super().__init__()
        self.task_store = store
        self.settings_store = settings_store
        self.settings: dict[str, Any] = (
            settings_store.load() if settings_store is not None else {}
        )
        if settings_store is not None and settings_store.sort_descending(self.settings):
            self.task_store.set_sort_direction(SortState("desc"))
        self._task_list: TaskList | None = None
        self._stats_bar: TaskStatsBar | None = None

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="app_main_container"):
            yield TaskForm(self.task_store.submit)
            yield Input(
                id="search_input",
                placeholder="Search tasks…",
                value=self.task_store.filter_state.search_term,
            )
            yield TaskList()
            yield TaskStatsBar()
        yield Footer()

    def on_mount(self) -> None:
        self._task_list = self.query_one(TaskList)
        self._stats_bar = self.query_one(TaskStatsBar)
        theme_name = self.settings.get("userPreferences", {}).get("theme")
        if theme_name and theme_name in self.available_themes:
            self.theme = theme_name
        self.theme_changed_signal.subscribe(self, self.on_theme_changed)
        self.task_store.subscribe(self._handle_store_update)
        self.query_one(TaskForm).focus_text()

    def on_unmount(self) -> None:
        self.task_store.unsubscribe(self._handle_store_update)

    def on_theme_changed(self, theme: Theme) -> None:
        if self.settings_store is not None:
            self.settings_store.update_theme(self.settings, theme.name)

    def _handle_store_update(self, _: Sequence[Task]) -> None:
        self.refresh_tasks()

    def refresh_tasks(self) -> None:
        if self._task_list is None or self._stats_bar is None:
            return
        tasks = self.task_store.view()
        empty_message = "No tasks yet"
        if self.task_store.all() and not self.task_store.filter_state.is_default:
            empty_message = "No tasks match the current filter"
        self._task_list.show_tasks(tasks, empty_message=empty_message)
        self._stats_bar.update_stats(self.task_store.stats())
        direction = "↑" if not self.task_store.sort_state.descending else "↓"
        self._task_list.border_title = f"Tasks (due {direction})"

    def show_error(self, error: BaseException) -> None:
        message, severity = format_error(error)
        self.notify(message, severity=severity, timeout=4.0)

    def _selected_task(self) -> Task | None:
        if self._task_list is None:
            return None
        return self._task_list.selected_task()

    @on(Input.Changed, "#search_input")
    def _handle_search_changed(self, event: Input.Changed) -> None:
        event.stop()
        self.task_store.set_search_term(event.value)

    def action_focus_search(self) -> None:
        field = self.query_one("#search_input", Input)
        field.focus()
        field.cursor_position = len(field.value)

    def action_focus_form(self) -> None:
        self.query_one(TaskForm).focus_text()

    def action_toggle_task(self) -> None:
        task = self._selected_task()
        if task:
            self.task_store.toggle_completed(task.id)

    def action_edit_task(self) -> None:
        task = self._selected_task()
        if not task:
            return
        editing = self.task_store.begin_edit(task.id)
        if editing is not None:
            self.query_one(TaskForm).load_task(editing)

    def action_cancel_edit(self) -> None:
        if not self.task_store.is_editing:
            return
        self.task_store.cancel_edit()
        self.query_one(TaskForm).reset()

    def action_delete_task(self) -> None:
        task = self._selected_task()
        if not task:
            return
        was_editing = self.task_store.editing_id == task.id
        self.task_store.delete(task.id)
        if was_editing:
            self.query_one(TaskForm).reset()

    def action_delete_all(self) -> None:
        if not self.task_store.all():
            return

        def after(choice: bool | None) -> None:
            if choice:
                self.task_store.delete_all()
                self.query_one(TaskForm).reset()

        self.push_screen(ConfirmDialog("Are you sure you want to delete all tasks?"), after)

    def action_toggle_sort(self) -> None:
        state = self.task_store.toggle_sort_direction()
        if self.settings_store is not None:
            self.settings_store.update_sort_descending(self.settings, state.descending)

    def action_show_filter(self) -> None:
        def after(request: FilterRequest | None) -> None:
            if request is None:
                return
            try:
                self.task_store.set_filter(
                    request.status,
                    request.date_from,
                    request.date_to,
                    self.task_store.filter_state.search_term,
                )
            except ValidationError as exc:
                self.show_error(exc)

        self.push_screen(FilterModal(self.task_store.filter_state), after)


def build_store(config: RuntimeConfig, paths: AppPaths) -> TaskStore:
    return TaskStore(JsonFileStorage(paths.data_dir), storage_key=config.storage_key)


def main(data_dir: Path | None = None) -> None:
    config = get_runtime_config()
    paths = resolve_paths(config, data_dir)
    configure_logging(
        level=config.log_level,
        format_name=config.log_format,
        log_dir=paths.logs_dir,
        filename=LOG_FILENAME,
    )
    try:
        store = build_store(config, paths)
    except OSError as exc:
        raise wrap_error(exc, code="storage", message="Unable to open task storage") from exc
    log_event(logger, "app_started", data_dir=str(paths.data_dir), tasks=len(store.all()))
    TaskDeck(store, settings_store=SettingsStore(paths.settings_file)).run()
