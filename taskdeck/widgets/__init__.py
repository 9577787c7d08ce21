from .dialogs import ConfirmDialog
from .filter_modal import FilterModal, FilterRequest
from .task_form import TaskForm
from .task_list import TaskList, TaskListItem
from .task_stats import TaskStatsBar

__all__ = [
    "ConfirmDialog",
    "FilterModal",
    "FilterRequest",
    "TaskForm",
    "TaskList",
    "TaskListItem",
    "TaskStatsBar",
]
