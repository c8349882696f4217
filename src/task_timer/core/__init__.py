"""Core functionality for task timing."""

from task_timer.core.models import InvalidArgument, Task, TaskGroup, TaskLike, is_task
from task_timer.core.timer import TaskTimer

__all__ = ["InvalidArgument", "Task", "TaskGroup", "TaskLike", "TaskTimer", "is_task"]
