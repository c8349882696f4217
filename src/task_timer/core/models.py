"""Core data models for task timing."""

from typing import Any, Optional, Protocol, runtime_checkable

MAX_TASK_NAME_LENGTH = 100
MAX_GROUP_NAME_LENGTH = 50

ELLIPSIS = "..."

REQUIRED_TASK_METHODS = (
    "increment",
    "reset",
    "get_time_spent",
    "get_name",
    "get_id",
    "set_name",
    "delete",
    "is_flushable",
)


class InvalidArgument(ValueError):
    """Raised when an operation receives a value of the wrong type or shape."""

    pass


@runtime_checkable
class TaskLike(Protocol):
    """Capabilities a task must offer to be grouped or activated."""

    def increment(self) -> "TaskLike": ...

    def reset(self) -> "TaskLike": ...

    def get_time_spent(self) -> int: ...

    def get_name(self) -> str: ...

    def get_id(self) -> str: ...

    def set_name(self, new_name: str) -> "TaskLike": ...

    def delete(self) -> None: ...

    def is_flushable(self) -> bool: ...


def is_task(obj: Any) -> bool:
    """Check that obj offers every task capability as a callable.

    Args:
        obj: Object to check

    Returns:
        True if all required task methods are present and callable
    """
    if obj is None:
        return False
    return all(callable(getattr(obj, name, None)) for name in REQUIRED_TASK_METHODS)


def truncate_name(name: Any, limit: int, caller: str = "set_name") -> str:
    """Validate a label and cap it at limit characters.

    Names longer than limit are cut to limit - 3 characters and get "..."
    appended, so the result is exactly limit characters long.

    Args:
        name: Proposed name
        limit: Maximum length of the stored name
        caller: Operation name used in the error message

    Returns:
        Name that fits within limit

    Raises:
        InvalidArgument: If name is not a string
    """
    if not isinstance(name, str):
        raise InvalidArgument(
            f"{caller}: type mismatch. newName should be of type str, "
            f"{type(name).__name__} given."
        )
    if len(name) > limit:
        return name[: limit - len(ELLIPSIS)] + ELLIPSIS
    return name


def _checked_id(unique_id: Any, kind: str) -> str:
    if not isinstance(unique_id, str):
        raise InvalidArgument(
            f"{kind}: unique id should be of type str, {type(unique_id).__name__} given."
        )
    return unique_id


class Task:
    """Named counter of whole seconds spent on a piece of work.

    A task is created by TaskTimer.create_task(). Calling delete() only marks
    the task; the registry removes it from its index and from every group on
    its next tick.
    """

    def __init__(self, unique_id: str, name: str = ""):
        """Initialize task.

        Args:
            unique_id: Identifier assigned by the registry
            name: Initial label (capped like set_name)

        Raises:
            InvalidArgument: If unique_id or name is not a string
        """
        self._id = _checked_id(unique_id, "Task")
        self._name = truncate_name(name, MAX_TASK_NAME_LENGTH, "Task")
        self._time_spent = 0
        self._flushable = False

    def increment(self) -> "Task":
        """Add one second to the time spent on this task."""
        self._time_spent += 1
        return self

    def reset(self) -> "Task":
        """Set the time spent back to zero."""
        self._time_spent = 0
        return self

    def get_time_spent(self) -> int:
        """Return the time spent on this task, in seconds."""
        return self._time_spent

    def get_name(self) -> str:
        return self._name

    def get_id(self) -> str:
        return self._id

    def set_name(self, new_name: str) -> "Task":
        """Update the label of this task.

        Args:
            new_name: New label; longer than 100 characters gets truncated

        Returns:
            This task

        Raises:
            InvalidArgument: If new_name is not a string
        """
        self._name = truncate_name(new_name, MAX_TASK_NAME_LENGTH)
        return self

    def delete(self) -> None:
        """Mark the task for removal on the next sweep."""
        self._flushable = True

    def is_flushable(self) -> bool:
        """Return True once delete() has been called."""
        return self._flushable

    def __repr__(self) -> str:
        return (
            f"Task(id={self._id!r}, name={self._name!r}, "
            f"time_spent={self._time_spent}, flushable={self._flushable})"
        )


class TaskGroup:
    """Collection of tasks whose time spent is reported as one total.

    Membership is by identity: the same task object is held at most once.
    Removing a task from a group never deletes the task itself.
    """

    def __init__(self, unique_id: str, name: str = ""):
        """Initialize task group.

        Args:
            unique_id: Identifier assigned by the registry
            name: Initial label (capped like set_name)

        Raises:
            InvalidArgument: If unique_id or name is not a string
        """
        self._id = _checked_id(unique_id, "TaskGroup")
        self._name = truncate_name(name, MAX_GROUP_NAME_LENGTH, "TaskGroup")
        self._tasks: list[TaskLike] = []
        self._flushable = False

    def _index_of(self, task: Any) -> Optional[int]:
        for i, member in enumerate(self._tasks):
            if member is task:
                return i
        return None

    def has_task(self, task: Any) -> bool:
        """Check whether this exact task object is a member."""
        return self._index_of(task) is not None

    def add_task(self, task: TaskLike) -> "TaskGroup":
        """Add a task to this group.

        Adding a task that is already a member does nothing.

        Args:
            task: Task to add

        Returns:
            This group

        Raises:
            InvalidArgument: If task lacks the task capabilities
        """
        if not is_task(task):
            raise InvalidArgument("add_task: task does not have a valid Task interface.")
        if not self.has_task(task):
            self._tasks.append(task)
        return self

    def remove_task(self, task: Any) -> "TaskGroup":
        """Remove a task from this group if it is a member."""
        index = self._index_of(task)
        if index is not None:
            del self._tasks[index]
        return self

    def get_tasks(self) -> list[TaskLike]:
        """Return a copy of the current members."""
        return list(self._tasks)

    def get_time_spent(self) -> int:
        """Return the combined time spent on all members, in seconds."""
        return sum(task.get_time_spent() for task in self._tasks)

    def get_name(self) -> str:
        return self._name

    def get_id(self) -> str:
        return self._id

    def set_name(self, new_name: str) -> "TaskGroup":
        """Update the label of this group.

        Args:
            new_name: New label; longer than 50 characters gets truncated

        Returns:
            This group

        Raises:
            InvalidArgument: If new_name is not a string
        """
        self._name = truncate_name(new_name, MAX_GROUP_NAME_LENGTH)
        return self

    def flush_deleted_tasks(self) -> "TaskGroup":
        """Drop every member that has been marked for deletion."""
        # Collect first, then remove: never mutate the list being iterated.
        to_remove = [task for task in self._tasks if task.is_flushable()]
        for task in to_remove:
            self.remove_task(task)
        return self

    def delete(self) -> None:
        """Mark the group for removal on the next sweep. Members are untouched."""
        self._flushable = True

    def is_flushable(self) -> bool:
        return self._flushable

    def __len__(self) -> int:
        return len(self._tasks)

    def __repr__(self) -> str:
        return (
            f"TaskGroup(id={self._id!r}, name={self._name!r}, "
            f"tasks={len(self._tasks)}, flushable={self._flushable})"
        )
