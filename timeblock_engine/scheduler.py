"""
Scheduler - Allocate a task's duration into concrete time blocks.

The core scheduling engine. Given a task, the active time windows, the blocks
already on the calendar and the current time, it walks the calendar day by day
from now until the task's due date and fills free gaps inside the task's
eligible windows.

Scheduling order within a day:
1. Windows by ascending priority, each window's gaps chronologically
2. always-busy tasks: all gaps of the day chronologically, ignoring priority

Constraints:
- A block never overlaps an existing block (except always-free blocks, which
  always-busy tasks may take over)
- always-free tasks keep clear of gaps touching an always-busy block
- No chunk is longer than the task's split_up_block

The scheduler is a pure computation: it never mutates the blocks it is given
and never commits anything. Callers remove a task's old blocks before
scheduling it again; it does not deduplicate on its own.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta

from . import config
from .ids import UuidIdGenerator
from .models import (
    Task,
    TaskScheduleResult,
    TimeBlock,
    TimeDefense,
    js_weekday,
    overlaps_range,
)
from .windows import TimeWindowRegistry

logger = logging.getLogger(__name__)


def day_start(moment: datetime) -> datetime:
    """Midnight at the start of moment's calendar day (tzinfo kept)."""
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def find_gaps(
    start: datetime, end: datetime, blocks: Iterable[TimeBlock]
) -> list[tuple[datetime, datetime]]:
    """
    Find free sub-intervals of [start, end) not covered by any block.

    Blocks touching the interval are sorted by start; the gaps are the
    complements before the first, between consecutive, and after the last
    block. A block may start inside, end inside, or span the interval.
    """
    touching = sorted(
        (b for b in blocks if overlaps_range(b.start, b.end, start, end)),
        key=lambda b: b.start,
    )

    gaps = []
    cursor = start
    for block in touching:
        if block.start > cursor:
            gaps.append((cursor, min(block.start, end)))
        cursor = max(cursor, block.end)
        if cursor >= end:
            break

    if cursor < end:
        gaps.append((cursor, end))

    return gaps


def _touches_any(start: datetime, end: datetime, blocks: list[TimeBlock]) -> bool:
    """True if any block lies inside, overlaps, or is adjacent to [start, end]."""
    return any(b.start <= end and b.end >= start for b in blocks)


class Scheduler:
    """
    Computes time blocks for one task at a time.

    Args:
        id_generator: Callable returning a fresh block id per call
        min_gap_minutes: Gaps shorter than this are skipped
        horizon_days: Maximum number of calendar days walked per task
    """

    def __init__(
        self,
        id_generator: Callable[[], str] | None = None,
        min_gap_minutes: int | None = None,
        horizon_days: int | None = None,
    ):
        self.id_generator = id_generator or UuidIdGenerator()
        self.min_gap_minutes = max(
            1, config.MIN_GAP_MINUTES if min_gap_minutes is None else min_gap_minutes
        )
        self.horizon_days = config.SCAN_HORIZON_DAYS if horizon_days is None else horizon_days

    def schedule_task(
        self,
        task: Task,
        windows: TimeWindowRegistry,
        existing_blocks: Iterable[TimeBlock],
        now: datetime,
    ) -> TaskScheduleResult:
        """
        Schedule a task into free time before its due date.

        Args:
            task: The task to schedule
            windows: Registry of recurring availability windows
            existing_blocks: Blocks already on the calendar (any task)
            now: Current time; nothing is placed before it

        Returns:
            TaskScheduleResult. Partial allocations still carry their blocks.
        """
        if not task.due_date:
            return TaskScheduleResult(
                success=False,
                message="Task must have a due date",
                unscheduled_minutes=max(0, task.estimated_duration or 0),
            )

        if not task.estimated_duration or task.estimated_duration <= 0:
            return TaskScheduleResult(
                success=False,
                message="Task must have a valid estimated duration",
                unscheduled_minutes=max(0, task.estimated_duration or 0),
            )

        total = task.estimated_duration

        # Restrict to allowed windows, if the task names any
        candidate_ids = None
        if task.allowed_time_windows:
            allowed = set(task.allowed_time_windows)
            candidate_ids = [w.id for w in windows.get_time_windows() if w.id in allowed]
            if not candidate_ids:
                return TaskScheduleResult(
                    success=False,
                    message="No matching time windows found for task",
                    unscheduled_minutes=total,
                )

        # Define the scan interval
        overdue = False
        if now >= task.due_date:
            overdue = True
            if day_start(now) != day_start(task.due_date):
                logger.debug(f"Task {task.id} is overdue, nothing reachable")
                return TaskScheduleResult(
                    success=False,
                    message="Task is already overdue",
                    overdue=True,
                    unscheduled_minutes=total,
                )
            # Same-day squeeze: whatever is left of the due date itself
            scan_start = now
            scan_end = day_start(now) + timedelta(days=1)
        else:
            scan_start = max(now, task.created_at) if task.created_at else now
            scan_end = task.due_date

        blocks, remaining = self._allocate(
            task, windows, candidate_ids, list(existing_blocks), scan_start, scan_end
        )

        if remaining == 0:
            if overdue:
                message = f"Task is overdue; squeezed into {len(blocks)} time block(s) on its due date"
            else:
                message = f"Task scheduled into {len(blocks)} time block(s)"
            result = TaskScheduleResult(
                success=True,
                message=message,
                time_blocks=blocks,
                overdue=overdue,
                unscheduled_minutes=0,
            )
        else:
            if blocks:
                message = f"Only {total - remaining} of {total} minutes could be scheduled"
            else:
                message = "No available time slots found within task deadline"
            result = TaskScheduleResult(
                success=False,
                message=message,
                time_blocks=blocks,
                overdue=overdue or task.due_date < now,
                unscheduled_minutes=remaining,
            )

        logger.debug(
            f"Task {task.id}: {result.message} "
            f"({len(blocks)} block(s), {result.unscheduled_minutes} min unscheduled)"
        )
        return result

    def _allocate(
        self,
        task: Task,
        windows: TimeWindowRegistry,
        candidate_ids: list[str] | None,
        existing: list[TimeBlock],
        scan_start: datetime,
        scan_end: datetime,
    ) -> tuple[list[TimeBlock], int]:
        """Walk the scan interval day by day and fill gaps. Returns (blocks, remaining)."""
        defense = task.time_defense
        chronological = defense == TimeDefense.ALWAYS_BUSY

        if defense == TimeDefense.ALWAYS_BUSY:
            # always-free blocks do not defend their time against always-busy tasks
            occupied = [b for b in existing if b.time_defense != TimeDefense.ALWAYS_FREE]
        else:
            occupied = list(existing)

        busy_blocks = []
        if defense == TimeDefense.ALWAYS_FREE:
            busy_blocks = [
                b
                for b in existing
                if b.time_defense == TimeDefense.ALWAYS_BUSY and b.task_id != task.id
            ]

        chunk_cap = task.split_up_block if task.split_up_block and task.split_up_block > 0 else None
        remaining = task.estimated_duration
        emitted: list[TimeBlock] = []

        day = day_start(scan_start)
        last_day = day_start(scan_end)
        days_walked = 0

        while day <= last_day and remaining > 0 and days_walked < self.horizon_days:
            slots = self._day_slots(day, windows, candidate_ids, scan_start, scan_end)
            if chronological:
                slots.sort(key=lambda s: s[0])

            for slot_start, slot_end, window_id in slots:
                for gap_start, gap_end in find_gaps(slot_start, slot_end, occupied + emitted):
                    if busy_blocks and _touches_any(gap_start, gap_end, busy_blocks):
                        continue

                    cursor = gap_start
                    while remaining > 0:
                        available = int((gap_end - cursor).total_seconds() // 60)
                        if available < self.min_gap_minutes:
                            break
                        chunk = min(remaining, available, chunk_cap or remaining)
                        block_end = cursor + timedelta(minutes=chunk)
                        emitted.append(
                            TimeBlock(
                                id=self.id_generator(),
                                task_id=task.id,
                                start=cursor,
                                end=block_end,
                                time_window_id=window_id,
                                is_completed=False,
                                time_defense=defense,
                            )
                        )
                        remaining -= chunk
                        cursor = block_end

                    if remaining == 0:
                        break
                if remaining == 0:
                    break

            day += timedelta(days=1)
            days_walked += 1

        if remaining > 0 and days_walked >= self.horizon_days and day <= last_day:
            logger.warning(
                f"Task {task.id}: stopped after {self.horizon_days} days, "
                f"due date {scan_end.isoformat()} is further out"
            )

        return emitted, remaining

    @staticmethod
    def _day_slots(
        day: datetime,
        windows: TimeWindowRegistry,
        candidate_ids: list[str] | None,
        scan_start: datetime,
        scan_end: datetime,
    ) -> list[tuple[datetime, datetime, str]]:
        """Window ranges of one day clipped to the scan interval, in priority order."""
        slots = []
        for resolved in windows.resolve_for_weekday(js_weekday(day), candidate_ids):
            for r in resolved.ranges:
                start = max(day + timedelta(minutes=r.start_minutes), scan_start)
                end = min(day + timedelta(minutes=r.end_minutes), scan_end)
                if start < end:
                    slots.append((start, end, resolved.window_id))
        return slots
