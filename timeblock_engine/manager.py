"""
Block Manager - Orchestration layer between the host and the engine.

Owns the id generator, event bus, window registry and block store, and is the
single writer of the store. Every committed mutation publishes
BLOCKS_CHANGED right away.

Responsibilities:
- Schedule and reschedule tasks (compute + commit)
- Manual block placement, moves and deletion
- Completion marking with task-completion cascade
- Bulk rescheduling and conflict resolution
- Free-slot queries for a day
"""

import logging
from collections.abc import Callable, Iterable
from datetime import date, datetime, timedelta

from .batch import BatchCoordinator, BatchReport, ConflictReport
from .block_store import BlockStore
from .completion import CompletionTracker
from .conflicts import Conflict, ConflictDetector
from .events import EventBus, Topic
from .ids import UuidIdGenerator
from .models import (
    MANUAL_WINDOW_ID,
    Task,
    TaskScheduleResult,
    TimeBlock,
    TimeWindow,
    js_weekday,
)
from .scheduler import Scheduler, find_gaps
from .windows import TimeWindowRegistry, ValidationResult

logger = logging.getLogger(__name__)


class BlockManager:
    def __init__(
        self,
        windows: Iterable[TimeWindow] | None = None,
        id_generator: Callable[[], str] | None = None,
        events: EventBus | None = None,
        scheduler: Scheduler | None = None,
        keep_partial: bool | None = None,
        derive_urgency: bool | None = None,
    ):
        self.ids = id_generator or UuidIdGenerator()
        self.events = events or EventBus()
        self.registry = TimeWindowRegistry(windows)
        self.store = BlockStore()
        self.scheduler = scheduler or Scheduler(self.ids)
        self.detector = ConflictDetector()
        self.completion = CompletionTracker(self.store, self.events)
        self.batch = BatchCoordinator(
            self.scheduler,
            self.registry,
            self.store,
            self.detector,
            self.events,
            keep_partial=keep_partial,
            derive_urgency=derive_urgency,
        )

    # ------------------------------------------------------------------
    # Windows
    # ------------------------------------------------------------------

    def set_time_windows(self, windows: Iterable[TimeWindow]) -> ValidationResult:
        result = self.registry.set_time_windows(windows)
        if result.valid:
            window_ids = [w.id for w in self.registry.get_time_windows()]
            self.events.publish(Topic.WINDOWS_CHANGED, window_ids=window_ids)
        return result

    def get_time_windows(self) -> tuple[TimeWindow, ...]:
        return self.registry.get_time_windows()

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def schedule_task(self, task: Task, now: datetime | None = None) -> TaskScheduleResult:
        """
        Schedule a task and commit its blocks.

        Partial allocations are committed too. Existing blocks of the task
        are left alone; use reschedule_task to replace them.
        """
        if now is None:
            now = datetime.now()

        result = self.scheduler.schedule_task(task, self.registry, self.store.all(), now)
        if not result.time_blocks:
            return result

        success, message = self.store.add(result.time_blocks)
        if not success:
            logger.error(f"Could not commit blocks for task {task.id}: {message}")
            return TaskScheduleResult(
                success=False,
                message=message,
                overdue=result.overdue,
                unscheduled_minutes=task.estimated_duration or 0,
            )

        self.events.publish(Topic.BLOCKS_CHANGED, task_ids=[task.id])
        return result

    def reschedule_task(self, task: Task, now: datetime | None = None) -> TaskScheduleResult:
        """Drop a task's blocks and schedule it from scratch."""
        removed = self.store.remove_for_task(task.id)
        result = self.schedule_task(task, now)
        if removed and not result.time_blocks:
            self.events.publish(Topic.BLOCKS_CHANGED, task_ids=[task.id])
        return result

    def reschedule_all(self, tasks: Iterable[Task], now: datetime | None = None) -> BatchReport:
        return self.batch.reschedule_all(tasks, now or datetime.now())

    def resolve_conflicts(
        self, tasks: Iterable[Task], now: datetime | None = None
    ) -> ConflictReport:
        return self.batch.resolve_conflicts(tasks, now or datetime.now())

    # ------------------------------------------------------------------
    # Manual edits
    # ------------------------------------------------------------------

    def create_block(self, task: Task, start: datetime, end: datetime) -> TimeBlock | None:
        """
        Place a block by hand.

        Returns:
            The new block, or None if start >= end or it overlaps another
            block of the same task
        """
        if start >= end:
            return None

        block = TimeBlock(
            id=self.ids(),
            task_id=task.id,
            start=start,
            end=end,
            time_window_id=MANUAL_WINDOW_ID,
            is_completed=False,
            time_defense=task.time_defense,
        )
        success, message = self.store.add([block])
        if not success:
            logger.info(f"Manual block for task {task.id} rejected: {message}")
            return None

        self.events.publish(Topic.BLOCKS_CHANGED, task_ids=[task.id])
        return block

    def update_block(self, block_id: str, start: datetime, end: datetime) -> bool:
        block = self.store.get(block_id)
        if not self.store.update(block_id, start, end):
            return False
        self.events.publish(Topic.BLOCKS_CHANGED, task_ids=[block.task_id])
        return True

    def delete_block(self, block_id: str) -> bool:
        block = self.store.get(block_id)
        if not self.store.remove(block_id):
            return False
        self.events.publish(Topic.BLOCKS_CHANGED, task_ids=[block.task_id])
        return True

    def remove_blocks_for_task(self, task_id: str) -> int:
        removed = self.store.remove_for_task(task_id)
        if removed:
            self.events.publish(Topic.BLOCKS_CHANGED, task_ids=[task_id])
        return removed

    def mark_block_completed(self, block_id: str) -> bool:
        return self.completion.mark_block_completed(block_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_scheduled_blocks(self) -> list[TimeBlock]:
        return self.store.all()

    def get_blocks_for_task(self, task_id: str) -> list[TimeBlock]:
        return self.store.get_for_task(task_id)

    def get_blocks_in_range(self, start: datetime, end: datetime) -> list[TimeBlock]:
        return self.store.get_in_range(start, end)

    def has_scheduled_blocks(self, task_id: str) -> bool:
        return bool(self.store.get_for_task(task_id))

    def has_conflicts(self, task: Task | str) -> bool:
        return self.detector.has_conflicts(task, self.store.all())

    def find_conflicts(self) -> list[Conflict]:
        return self.detector.find_conflict_pairs(self.store.all())

    def get_available_time_slots(
        self, day: date, duration_minutes: int = 1
    ) -> list[tuple[datetime, datetime, str]]:
        """
        Get free slots on a day, across all windows.

        Args:
            day: The calendar day
            duration_minutes: Minimum slot length

        Returns:
            (start, end, window_id) tuples in window priority order
        """
        midnight = datetime.combine(day, datetime.min.time())
        existing = self.store.get_in_range(midnight, midnight + timedelta(days=1))

        slots = []
        for resolved in self.registry.resolve_for_weekday(js_weekday(midnight)):
            for r in resolved.ranges:
                range_start = midnight + timedelta(minutes=r.start_minutes)
                range_end = midnight + timedelta(minutes=r.end_minutes)
                for gap_start, gap_end in find_gaps(range_start, range_end, existing):
                    if (gap_end - gap_start).total_seconds() / 60 >= duration_minutes:
                        slots.append((gap_start, gap_end, resolved.window_id))
        return slots
