from __future__ import annotations

from dataclasses import dataclass

from textual import on
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Footer, Input, Label, Select

from taskdeck.core.views import STATUS_CHOICES, FilterState, StatusFilter


@dataclass(frozen=True)
class FilterRequest:
    status: StatusFilter
    date_from: str
    date_to: str


class FilterModal(ModalScreen[FilterRequest | None]):
    """Status and due-date range picker. The search term is edited elsewhere."""

    BINDINGS = [
        Binding("escape", "close", "Close", show=True),
    ]

    def __init__(self, current: FilterState) -> None:
        super().__init__()
        self._current = current

    def compose(self):
        yield Container(
            Vertical(
                Label("Status"),
                Select(
                    [(choice.title(), choice) for choice in STATUS_CHOICES],
                    value=self._current.status,
                    allow_blank=False,
                    id="filter_status",
                ),
                Label("Due from"),
                Input(
                    value=self._current.date_from or "",
                    placeholder="YYYY-MM-DD",
                    id="filter_date_from",
                ),
                Label("Due to"),
                Input(
                    value=self._current.date_to or "",
                    placeholder="YYYY-MM-DD",
                    id="filter_date_to",
                ),
                Horizontal(
                    Button("Apply", id="filter_apply", variant="primary"),
                    Button("Reset", id="filter_reset"),
                    classes="dialog_buttons",
                ),
                Footer(),
            ),
            id="filter_modal",
        )

    def on_mount(self) -> None:
        container = self.query_one("#filter_modal", Container)
        container.border_title = "Filter Tasks"
        self.query_one("#filter_status", Select).focus()

    def _build_request(self) -> FilterRequest:
        status = self.query_one("#filter_status", Select).value
        return FilterRequest(
            status=status if status in STATUS_CHOICES else "all",
            date_from=self.query_one("#filter_date_from", Input).value.strip(),
            date_to=self.query_one("#filter_date_to", Input).value.strip(),
        )

    @on(Button.Pressed, "#filter_apply")
    def _handle_apply(self, event: Button.Pressed) -> None:
        event.stop()
        self.dismiss(self._build_request())

    @on(Button.Pressed, "#filter_reset")
    def _handle_reset(self, event: Button.Pressed) -> None:
        event.stop()
        self.dismiss(FilterRequest(status="all", date_from="", date_to=""))

    @on(Input.Submitted)
    def _handle_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.dismiss(self._build_request())

    def action_close(self) -> None:
        self.dismiss(None)
