"""Task registry and tick engine."""

import logging
import threading
import weakref
from typing import Any, Callable, Optional, Protocol

from task_timer.core.models import InvalidArgument, Task, TaskGroup, TaskLike, is_task
from task_timer.core.scheduler import RepeatingTimer

logger = logging.getLogger(__name__)

DEFAULT_TICK_INTERVAL = 1.0


class TickHandle(Protocol):
    """Scheduled tick source owned by the registry."""

    def start(self) -> None: ...

    def cancel(self) -> None: ...


SchedulerFactory = Callable[[float, Callable[[], None]], TickHandle]


class _StrongRef:
    """Reference-shaped holder for objects that cannot be weakly referenced."""

    __slots__ = ("_obj",)

    def __init__(self, obj: Any):
        self._obj = obj

    def __call__(self) -> Any:
        return self._obj


class TaskTimer:
    """Registry of tasks and groups that credits time to the active task.

    Deletion is two-phase. Task.delete() and TaskGroup.delete() only mark an
    entity; tick() sweeps marked entities out of every index before crediting
    a second to the active task. The active task is held through a weak
    reference where its type allows one, so it never keeps a dropped task
    alive.
    """

    def __init__(
        self,
        tick_interval: float = DEFAULT_TICK_INTERVAL,
        scheduler_factory: Optional[SchedulerFactory] = None,
    ):
        """Initialize task timer.

        Args:
            tick_interval: Seconds between ticks once the timer is started
            scheduler_factory: Builds the tick source from (interval, callback).
                Defaults to RepeatingTimer.

        Raises:
            InvalidArgument: If tick_interval is not positive
        """
        if tick_interval <= 0:
            raise InvalidArgument(f"tick_interval must be positive, got {tick_interval}")
        self.tick_interval = tick_interval
        self._scheduler_factory: SchedulerFactory = scheduler_factory or RepeatingTimer
        self._tasks: dict[str, Task] = {}
        self._groups: dict[str, TaskGroup] = {}
        self._task_seq = 0
        self._group_seq = 0
        self._active_ref: Optional[Callable[[], Any]] = None
        self._handle: Optional[TickHandle] = None
        self._generation = 0
        self._running = False
        self._lock = threading.RLock()

    # Entity creation and lookup

    def create_task(self) -> Task:
        """Create a new nameless task and index it.

        Returns:
            New task with id "task_<n>"
        """
        with self._lock:
            self._task_seq += 1
            task_id = f"task_{self._task_seq}"
            task = Task(task_id)
            self._tasks[task_id] = task
        logger.debug(f"Created task {task_id}")
        return task

    def create_group(self) -> TaskGroup:
        """Create a new nameless, empty task group and index it.

        Returns:
            New group with id "group_<n>"
        """
        with self._lock:
            self._group_seq += 1
            group_id = f"group_{self._group_seq}"
            group = TaskGroup(group_id)
            self._groups[group_id] = group
        logger.debug(f"Created group {group_id}")
        return group

    def get_task_by_id(self, task_id: str) -> Optional[Task]:
        """Look up an indexed task.

        Args:
            task_id: Task identifier

        Returns:
            Task, or None if unknown or already swept

        Raises:
            InvalidArgument: If task_id is not a string
        """
        if not isinstance(task_id, str):
            raise InvalidArgument(
                "get_task_by_id: type mismatch. taskId should be of type str, "
                f"{type(task_id).__name__} given."
            )
        with self._lock:
            return self._tasks.get(task_id)

    def get_group_by_id(self, group_id: str) -> Optional[TaskGroup]:
        """Look up an indexed group.

        Raises:
            InvalidArgument: If group_id is not a string
        """
        if not isinstance(group_id, str):
            raise InvalidArgument(
                "get_group_by_id: type mismatch. groupId should be of type str, "
                f"{type(group_id).__name__} given."
            )
        with self._lock:
            return self._groups.get(group_id)

    def list_tasks(self) -> list[Task]:
        """Return indexed tasks in creation order."""
        with self._lock:
            return list(self._tasks.values())

    def list_groups(self) -> list[TaskGroup]:
        """Return indexed groups in creation order."""
        with self._lock:
            return list(self._groups.values())

    # Active task

    def activate_task(self, task: TaskLike) -> None:
        """Make task the one credited on each tick.

        Replaces any previously active task. The task does not have to be
        indexed by this registry. It is held weakly when its type allows it,
        otherwise directly until a tick finds it marked for deletion.

        Raises:
            InvalidArgument: If task lacks the task capabilities
        """
        if not is_task(task):
            raise InvalidArgument("activate_task: task does not have a valid Task interface")
        ref: Callable[[], Any]
        try:
            ref = weakref.ref(task)
        except TypeError:
            ref = _StrongRef(task)
        with self._lock:
            self._active_ref = ref
        logger.debug(f"Activated task {task.get_id()}")

    def get_active_task(self) -> Optional[TaskLike]:
        """Return the active task, or None."""
        with self._lock:
            return self._active_ref() if self._active_ref is not None else None

    def get_total_time_spent(self) -> int:
        """Return the combined time of every indexed task, in seconds.

        Tasks marked for deletion still count until they are swept.
        """
        with self._lock:
            return sum(task.get_time_spent() for task in self._tasks.values())

    # Tick

    def tick(self) -> None:
        """Run one sweep-and-increment iteration.

        Order matters: marked tasks are swept and the active task cleared
        before anything is incremented.
        """
        with self._lock:
            self._flush_deleted_tasks()
            self._flush_deleted_groups()

            active = self.get_active_task()
            if active is None:
                self._active_ref = None
            elif is_task(active) and active.is_flushable():
                logger.debug(f"Deactivated deleted task {active.get_id()}")
                self._active_ref = None
                active = None

            if active is not None:
                active.increment()

    def _flush_deleted_tasks(self) -> None:
        flushable = [task_id for task_id, task in self._tasks.items() if task.is_flushable()]
        for task_id in flushable:
            del self._tasks[task_id]
        if flushable:
            logger.debug(f"Swept tasks: {', '.join(flushable)}")

        # Every group, including ones about to be swept themselves
        for group in self._groups.values():
            group.flush_deleted_tasks()

    def _flush_deleted_groups(self) -> None:
        flushable = [
            group_id for group_id, group in self._groups.items() if group.is_flushable()
        ]
        for group_id in flushable:
            del self._groups[group_id]
        if flushable:
            logger.debug(f"Swept groups: {', '.join(flushable)}")

    # Timer control

    def start_timer(self) -> None:
        """Start ticking every tick_interval seconds.

        The new tick source is built before any earlier one is cancelled, so
        at most one is ever live. If building or starting it fails, the timer
        is left paused and the error propagates.
        """
        with self._lock:
            generation = self._generation + 1
            handle = self._scheduler_factory(
                self.tick_interval, lambda: self._scheduled_tick(generation)
            )
            self._cancel_handle()
            self._generation = generation
            self._handle = handle
            try:
                handle.start()
            except Exception:
                self._cancel_handle()
                self._running = False
                raise
            self._running = True
        logger.info(f"Timer started (interval: {self.tick_interval}s)")

    def resume_timer(self) -> None:
        """Alias for start_timer()."""
        self.start_timer()

    def pause_timer(self) -> None:
        """Stop ticking. Does nothing if already paused."""
        with self._lock:
            if not self._running and self._handle is None:
                return
            self._cancel_handle()
            self._running = False
        logger.info("Timer paused")

    def is_running(self) -> bool:
        """Check if the tick source is currently installed."""
        return self._running

    def _cancel_handle(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        # Invalidate callbacks from the cancelled source that are already in flight
        self._generation += 1

    def _scheduled_tick(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self.tick()
