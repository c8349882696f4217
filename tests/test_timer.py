"""Tests for the task registry and tick engine."""

import gc

import pytest

from task_timer.core.models import InvalidArgument, Task
from task_timer.core.timer import TaskTimer

from conftest import FakeScheduler


class SlotTask:
    """Task-like object whose class does not allow weak references."""

    __slots__ = ("_time", "_deleted")

    def __init__(self) -> None:
        self._time = 0
        self._deleted = False

    def increment(self) -> "SlotTask":
        self._time += 1
        return self

    def reset(self) -> "SlotTask":
        self._time = 0
        return self

    def get_time_spent(self) -> int:
        return self._time

    def get_name(self) -> str:
        return "slotted"

    def get_id(self) -> str:
        return "slotted"

    def set_name(self, name: str) -> "SlotTask":
        return self

    def delete(self) -> None:
        self._deleted = True

    def is_flushable(self) -> bool:
        return self._deleted


class TestCreation:
    """Test task and group creation."""

    def test_create_task_ids(self, timer: TaskTimer) -> None:
        """Sequential tasks get task_1..task_N."""
        ids = [timer.create_task().get_id() for _ in range(4)]

        assert ids == ["task_1", "task_2", "task_3", "task_4"]

    def test_new_task_is_nameless_and_indexed(self, timer: TaskTimer) -> None:
        task = timer.create_task()

        assert task.get_name() == ""
        assert task.get_time_spent() == 0
        assert timer.get_task_by_id(task.get_id()) is task

    def test_ids_never_reused_after_sweep(self, timer: TaskTimer) -> None:
        """Deleted and swept tasks do not free their id."""
        first = timer.create_task()
        timer.create_task()
        first.delete()
        timer.tick()

        assert timer.create_task().get_id() == "task_3"

    def test_create_group_ids(self, timer: TaskTimer) -> None:
        g1 = timer.create_group()
        g2 = timer.create_group()

        assert (g1.get_id(), g2.get_id()) == ("group_1", "group_2")
        assert g1.get_name() == ""
        assert timer.get_group_by_id("group_2") is g2

    def test_task_and_group_counters_independent(self, timer: TaskTimer) -> None:
        timer.create_task()
        timer.create_task()

        assert timer.create_group().get_id() == "group_1"

    def test_list_tasks_in_creation_order(self, timer: TaskTimer) -> None:
        tasks = [timer.create_task() for _ in range(3)]

        assert timer.list_tasks() == tasks

    def test_list_returns_copy(self, timer: TaskTimer) -> None:
        timer.create_task()
        timer.create_group()

        timer.list_tasks().clear()
        timer.list_groups().clear()

        assert len(timer.list_tasks()) == 1
        assert len(timer.list_groups()) == 1


class TestLookup:
    """Test id lookups."""

    def test_unknown_id_returns_none(self, timer: TaskTimer) -> None:
        assert timer.get_task_by_id("task_99") is None
        assert timer.get_group_by_id("group_99") is None

    def test_non_string_id_rejected(self, timer: TaskTimer) -> None:
        with pytest.raises(InvalidArgument, match="type mismatch"):
            timer.get_task_by_id(1)  # type: ignore[arg-type]
        with pytest.raises(InvalidArgument):
            timer.get_group_by_id(None)  # type: ignore[arg-type]

    def test_deleted_task_found_until_swept(self, timer: TaskTimer) -> None:
        """Lookup keeps working between delete() and the next tick."""
        task = timer.create_task()
        task.delete()

        assert timer.get_task_by_id("task_1") is task

        timer.tick()

        assert timer.get_task_by_id("task_1") is None


class TestActivation:
    """Test the active task pointer."""

    def test_activate_rejects_non_task(self, timer: TaskTimer) -> None:
        with pytest.raises(InvalidArgument, match="valid Task interface"):
            timer.activate_task("task_1")  # type: ignore[arg-type]

    def test_activate_replaces_previous(self, timer: TaskTimer) -> None:
        t1, t2 = timer.create_task(), timer.create_task()

        timer.activate_task(t1)
        timer.activate_task(t2)

        assert timer.get_active_task() is t2

    def test_no_active_task_initially(self, timer: TaskTimer) -> None:
        assert timer.get_active_task() is None

    def test_activate_unregistered_task(self, timer: TaskTimer) -> None:
        """Tasks not created by this registry may still be timed."""
        external = Task("external")
        timer.activate_task(external)

        timer.tick()

        assert external.get_time_spent() == 1
        assert timer.get_total_time_spent() == 0

    def test_active_reference_is_weak(self, timer: TaskTimer) -> None:
        """The registry does not keep a dropped external task alive."""
        timer.activate_task(Task("external"))
        gc.collect()

        assert timer.get_active_task() is None
        timer.tick()

    def test_activate_task_without_weakref_support(self, timer: TaskTimer) -> None:
        """Slotted task-like objects are held until a tick clears them."""
        task = SlotTask()

        timer.activate_task(task)
        timer.tick()
        timer.tick()

        assert timer.get_active_task() is task
        assert task.get_time_spent() == 2

        task.delete()
        timer.tick()

        assert timer.get_active_task() is None
        assert task.get_time_spent() == 2


class TestTick:
    """Test the sweep-and-increment protocol."""

    def test_tick_increments_only_active(self, timer: TaskTimer) -> None:
        t1, t2 = timer.create_task(), timer.create_task()
        timer.activate_task(t1)

        timer.tick()
        timer.tick()

        assert t1.get_time_spent() == 2
        assert t2.get_time_spent() == 0

    def test_tick_without_active_task(self, timer: TaskTimer) -> None:
        task = timer.create_task()

        timer.tick()

        assert task.get_time_spent() == 0

    def test_deleted_active_task_not_incremented(self, timer: TaskTimer) -> None:
        """Deleting the active task clears it on the next tick without a final increment."""
        task = timer.create_task()
        timer.activate_task(task)
        timer.tick()

        task.delete()
        timer.tick()

        assert timer.get_active_task() is None
        assert task.get_time_spent() == 1

        timer.tick()
        assert task.get_time_spent() == 1

    def test_deleted_external_active_task_cleared(self, timer: TaskTimer) -> None:
        external = Task("external")
        timer.activate_task(external)
        external.delete()

        timer.tick()

        assert timer.get_active_task() is None
        assert external.get_time_spent() == 0

    def test_total_counts_deleted_until_swept(self, timer: TaskTimer) -> None:
        t1, t2 = timer.create_task(), timer.create_task()
        timer.activate_task(t1)
        timer.tick()
        timer.activate_task(t2)
        timer.tick()

        t1.delete()

        assert timer.get_total_time_spent() == 2

        timer.tick()

        assert timer.get_total_time_spent() == 2
        assert t2.get_time_spent() == 2

    def test_sweep_removes_task_from_groups(self, timer: TaskTimer) -> None:
        task, other = timer.create_task(), timer.create_task()
        group = timer.create_group().add_task(task).add_task(other)

        task.delete()

        assert group.has_task(task)

        timer.tick()

        assert group.get_tasks() == [other]

    def test_sweep_flushes_members_of_deleted_group(self, timer: TaskTimer) -> None:
        """A group swept this tick still has its deleted members removed first."""
        task = timer.create_task()
        group = timer.create_group().add_task(task)

        task.delete()
        group.delete()
        timer.tick()

        assert timer.get_group_by_id("group_1") is None
        assert not group.has_task(task)

    def test_group_delete_keeps_tasks(self, timer: TaskTimer) -> None:
        task = timer.create_task()
        group = timer.create_group().add_task(task)

        group.delete()
        timer.tick()

        assert timer.get_group_by_id(group.get_id()) is None
        assert timer.get_task_by_id(task.get_id()) is task

    def test_sweep_many_deleted_tasks(self, timer: TaskTimer) -> None:
        tasks = [timer.create_task() for _ in range(6)]
        for task in tasks[::2]:
            task.delete()

        timer.tick()

        assert timer.list_tasks() == tasks[1::2]

    def test_time_unchanged_when_not_active(self, timer: TaskTimer) -> None:
        """Switching away freezes the previous task's time."""
        t1, t2 = timer.create_task(), timer.create_task()
        timer.activate_task(t1)
        timer.tick()
        timer.activate_task(t2)

        for _ in range(3):
            timer.tick()

        assert t1.get_time_spent() == 1
        assert t2.get_time_spent() == 3

    def test_end_to_end_scenario(self, timer: TaskTimer) -> None:
        """Two tasks, switching, then deleting the first."""
        t1, t2 = timer.create_task(), timer.create_task()
        assert (t1.get_id(), t2.get_id()) == ("task_1", "task_2")

        timer.activate_task(t1)
        timer.tick()
        assert (t1.get_time_spent(), t2.get_time_spent()) == (1, 0)
        assert timer.get_total_time_spent() == 1

        timer.activate_task(t2)
        timer.tick()
        assert (t1.get_time_spent(), t2.get_time_spent()) == (1, 1)
        assert timer.get_total_time_spent() == 2

        t1.delete()
        timer.tick()
        assert timer.get_task_by_id("task_1") is None
        # Only task_2 is counted; it was credited again by this tick
        assert t2.get_time_spent() == 2
        assert timer.get_total_time_spent() == t2.get_time_spent()


class TestTimerControl:
    """Test starting and pausing the tick source."""

    def test_initially_paused(self, timer: TaskTimer, scheduler: FakeScheduler) -> None:
        assert timer.is_running() is False
        assert scheduler.handles == []

    def test_start_installs_tick(self, timer: TaskTimer, scheduler: FakeScheduler) -> None:
        timer.start_timer()

        assert timer.is_running() is True
        assert len(scheduler.live) == 1
        assert scheduler.live[0].interval == 1.0

    def test_restart_cancels_previous(self, timer: TaskTimer, scheduler: FakeScheduler) -> None:
        """Starting twice leaves exactly one live tick source."""
        timer.start_timer()
        timer.resume_timer()

        assert len(scheduler.handles) == 2
        assert scheduler.handles[0].cancelled
        assert scheduler.live == [scheduler.handles[1]]

    def test_pause(self, timer: TaskTimer, scheduler: FakeScheduler) -> None:
        timer.start_timer()
        timer.pause_timer()

        assert timer.is_running() is False
        assert scheduler.live == []

    def test_pause_when_paused(self, timer: TaskTimer, scheduler: FakeScheduler) -> None:
        timer.pause_timer()

        assert timer.is_running() is False
        assert scheduler.handles == []

    def test_scheduled_tick_runs_protocol(self, timer: TaskTimer, scheduler: FakeScheduler) -> None:
        task = timer.create_task()
        timer.activate_task(task)
        timer.start_timer()

        scheduler.live[0].fire()

        assert task.get_time_spent() == 1

    def test_stale_tick_ignored(self, timer: TaskTimer, scheduler: FakeScheduler) -> None:
        """A callback from a replaced tick source has no effect."""
        task = timer.create_task()
        timer.activate_task(task)
        timer.start_timer()
        stale = scheduler.handles[0]
        timer.start_timer()

        stale.fire()
        assert task.get_time_spent() == 0

        scheduler.handles[1].fire()
        assert task.get_time_spent() == 1

    def test_tick_after_pause_ignored(self, timer: TaskTimer, scheduler: FakeScheduler) -> None:
        task = timer.create_task()
        timer.activate_task(task)
        timer.start_timer()
        handle = scheduler.handles[0]
        timer.pause_timer()

        handle.fire()

        assert task.get_time_spent() == 0

    def test_custom_interval(self, scheduler: FakeScheduler) -> None:
        timer = TaskTimer(tick_interval=0.25, scheduler_factory=scheduler)
        timer.start_timer()

        assert scheduler.handles[0].interval == 0.25

    @pytest.mark.parametrize("interval", [0, -1.0])
    def test_non_positive_interval_rejected(self, interval: float) -> None:
        with pytest.raises(InvalidArgument, match="tick_interval must be positive"):
            TaskTimer(tick_interval=interval)

    def test_failed_restart_keeps_previous_source(self) -> None:
        """A tick source that cannot be built leaves the running one in place."""
        timer = TaskTimer(tick_interval=0.5)
        timer.start_timer()
        try:
            timer.tick_interval = 0
            with pytest.raises(ValueError):
                timer.start_timer()

            assert timer.is_running() is True
            assert timer._handle is not None
        finally:
            timer.pause_timer()

        assert timer.is_running() is False
        assert timer._handle is None

    def test_failed_start_leaves_timer_paused(self, scheduler: FakeScheduler) -> None:
        def broken_factory(interval, callback):
            handle = scheduler(interval, callback)

            def refuse() -> None:
                raise RuntimeError("cannot start")

            handle.start = refuse
            return handle

        timer = TaskTimer(scheduler_factory=scheduler)
        timer.start_timer()
        timer._scheduler_factory = broken_factory

        with pytest.raises(RuntimeError, match="cannot start"):
            timer.start_timer()

        assert timer.is_running() is False
        assert scheduler.live == []
        assert scheduler.handles[0].cancelled
