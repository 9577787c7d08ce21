from __future__ import annotations

from typing import Callable

from textual import on
from textual.containers import Horizontal, Vertical
from textual.timer import Timer
from textual.widgets import Button, Input, Static

from taskdeck.core.errors import ValidationError
from taskdeck.core.task_store import Task
from taskdeck.core.views import today_iso

SubmitHandler = Callable[[str, str], Task | None]


class TaskForm(Vertical):
    """Entry row for new tasks; doubles as the editor while a task is being edited."""

    def __init__(self, on_submit: SubmitHandler, *, id: str | None = None) -> None:
        super().__init__(id=id or "task_form")
        self._on_submit = on_submit
        self._text_input = Input(id="task_text_input", placeholder="What needs doing?")
        self._date_input = Input(
            value=today_iso(),
            id="task_date_input",
            placeholder="YYYY-MM-DD",
            max_length=10,
        )
        self._submit_button = Button("Add", id="task_submit", variant="primary")
        self._text_error = Static("", id="task_text_error", classes="task_form_error")
        self._date_error = Static("", id="task_date_error", classes="task_form_error")
        self._status = Static("", classes="task_form_status")
        self._clear_timer: Timer | None = None

    def compose(self):
        yield Horizontal(self._text_input, self._date_input, self._submit_button)
        yield Horizontal(self._text_error, self._date_error)
        yield self._status

    def on_mount(self) -> None:
        self.border_title = "Add Task"

    @property
    def text_value(self) -> str:
        return self._text_input.value

    @property
    def date_value(self) -> str:
        return self._date_input.value

    def focus_text(self) -> None:
        self._text_input.focus()

    def load_task(self, task: Task) -> None:
        self._text_input.value = task.text
        self._date_input.value = task.due_date
        self._submit_button.label = "Save"
        self.border_title = "Edit Task"
        self._clear_errors()
        self._text_input.focus()

    def reset(self) -> None:
        self._text_input.value = ""
        self._date_input.value = today_iso()
        self._submit_button.label = "Add"
        self.border_title = "Add Task"
        self._clear_errors()

    def submit(self) -> None:
        try:
            task = self._on_submit(self._text_input.value, self._date_input.value)
        except ValidationError as exc:
            self.show_errors(exc)
            return
        self.reset()
        if task is not None:
            self._set_status("[green]Task saved[/]")

    def show_errors(self, error: ValidationError) -> None:
        fields = set(error.fields)
        self._text_error.update(
            "[red]Please enter a task[/]" if "text" in fields else ""
        )
        if "due_date" in fields:
            message = (
                "[red]Please select a due date[/]"
                if not self._date_input.value.strip()
                else "[red]Use a YYYY-MM-DD date[/]"
            )
        else:
            message = ""
        self._date_error.update(message)

    @on(Input.Submitted, "#task_text_input, #task_date_input")
    def _handle_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.submit()

    @on(Button.Pressed, "#task_submit")
    def _handle_submit_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        self.submit()

    def _clear_errors(self) -> None:
        self._text_error.update("")
        self._date_error.update("")

    def _set_status(self, message: str) -> None:
        self._status.update(message)
        if self._clear_timer:
            self._clear_timer.stop()
        self._clear_timer = self.set_timer(1.5, self._clear_status)

    def _clear_status(self) -> None:
        self._status.update("")
        if self._clear_timer:
            self._clear_timer.stop()
            self._clear_timer = None
