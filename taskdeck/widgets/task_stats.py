from textual.widgets import Static

from taskdeck.core.views import TaskStats


class TaskStatsBar(Static):
    """Totals and completion progress for the whole collection."""

    def __init__(self, id: str | None = None) -> None:
        super().__init__("", id=id or "task_stats")
        self._stats = TaskStats()
        self.update_stats(self._stats)

    def update_stats(self, stats: TaskStats) -> None:
        self._stats = stats
        self.update(
            f"Total {stats.total}  ·  [green]Completed {stats.completed}[/]"
            f"  ·  [yellow]Pending {stats.pending}[/]  ·  {stats.percentage}% done"
        )

    @property
    def stats(self) -> TaskStats:
        return self._stats
