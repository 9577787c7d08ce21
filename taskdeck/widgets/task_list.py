from __future__ import annotations

from datetime import date
from typing import Sequence

from rich.markup import escape
from textual.containers import Horizontal
from textual.widgets import Label, ListItem, ListView

from taskdeck.core.task_store import Task
from taskdeck.core.views import format_due_date, is_overdue


class TaskListItem(ListItem):
    """Visual row representing a task."""

    def __init__(self, task: Task, *, today: date | None = None) -> None:
        self._task_model = task
        self._today = today
        self._text_widget = Label("", classes="task_item_text", markup=True)
        self._due_widget = Label("", classes="task_item_due", markup=True)
        self._status_widget = Label("", classes="task_item_status", markup=True)
        super().__init__(
            Horizontal(
                self._text_widget,
                self._due_widget,
                self._status_widget,
            ),
            classes="task_item",
        )
        self._apply_classes()

    def on_mount(self) -> None:
        self._render_all()

    @property
    def task_model(self) -> Task:
        return self._task_model

    def update_task(self, task: Task) -> None:
        self._task_model = task
        self._apply_classes()
        self._render_all()

    def _apply_classes(self) -> None:
        task = self._task_model
        self.set_class(task.completed, "task_item--completed")
        self.set_class(is_overdue(task, self._today), "task_item--overdue")

    def _render_all(self) -> None:
        task = self._task_model
        self._text_widget.update(self.render_text(task, today=self._today))
        self._due_widget.update(self.render_due(task, today=self._today))
        self._status_widget.update(self.render_status(task))

    @staticmethod
    def render_text(task: Task, *, today: date | None = None) -> str:
        safe = escape(task.text)
        if task.completed:
            return f"[strike dim]{safe}[/]"
        if is_overdue(task, today):
            return f"[red]{safe}[/]"
        return safe

    @staticmethod
    def render_due(task: Task, *, today: date | None = None) -> str:
        label = escape(format_due_date(task.due_date))
        if is_overdue(task, today):
            return f"[red]{label}[/] [dim red](overdue)[/]"
        return label

    @staticmethod
    def render_status(task: Task) -> str:
        if task.completed:
            return "[green]✓ Completed[/]"
        return "[yellow]● Pending[/]"


class TaskList(ListView):
    """List of the store's current view, reusing rows when the order is unchanged."""

    def __init__(self, *, id: str | None = None) -> None:
        super().__init__(id=id or "task_list_view")

    def show_tasks(self, tasks: Sequence[Task], *, empty_message: str) -> None:
        if not tasks:
            self.index = None
            self.clear()
            placeholder = ListItem(
                Label(empty_message, classes="task_item_text"),
                classes="task_item task_item--empty",
            )
            placeholder.disabled = True
            self.append(placeholder)
            return

        reusable = self._reuse_items_if_possible(tasks)
        if reusable is not None:
            for item, task in zip(reusable, tasks):
                item.update_task(task)
            return

        previous = self.selected_task()
        self.index = None
        self.clear()
        for task in tasks:
            self.append(TaskListItem(task))
        target = 0
        if previous is not None:
            for position, task in enumerate(tasks):
                if task.id == previous.id:
                    target = position
                    break
        self.call_after_refresh(self._restore_index, target)

    def selected_task(self) -> Task | None:
        item = self.highlighted_child
        if isinstance(item, TaskListItem):
            return item.task_model
        return None

    def _restore_index(self, target: int) -> None:
        children = [
            child for child in self.children if not getattr(child, "disabled", False)
        ]
        if not children:
            self.index = None
            return
        self.index = max(0, min(target, len(self.children) - 1))

    def _reuse_items_if_possible(
        self, tasks: Sequence[Task]
    ) -> list[TaskListItem] | None:
        items: list[TaskListItem] = []
        for child in self.children:
            if not isinstance(child, TaskListItem):
                return None
            items.append(child)
        if len(items) != len(tasks):
            return None
        if any(item.task_model.id != task.id for item, task in zip(items, tasks)):
            return None
        return items

