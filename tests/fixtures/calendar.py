"""
Calendar builders pinned to the reference week of Monday 2026-10-19.
"""

from datetime import datetime, timedelta

from timeblock_engine.models import DaySchedule, Task, TimeBlock, TimeRange, TimeWindow

MONDAY = datetime(2026, 10, 19)


def at(day_offset: int, hour: int, minute: int = 0) -> datetime:
    """A moment in the reference week: at(0, 9) is Monday 09:00."""
    return MONDAY + timedelta(days=day_offset, hours=hour, minutes=minute)


def make_window(
    window_id: str = "work",
    days=(1, 2, 3, 4, 5),
    ranges=(("09:00", "17:00"),),
    priority: int = 1,
) -> TimeWindow:
    """Window with the same ranges on each listed weekday (0 = Sunday)."""
    return TimeWindow(
        id=window_id,
        name=window_id.title(),
        priority=priority,
        schedule=tuple(
            DaySchedule(day=d, ranges=tuple(TimeRange(s, e) for s, e in ranges)) for d in days
        ),
    )


def make_block(block_id, task_id, start, end, window_id="work", **kwargs) -> TimeBlock:
    return TimeBlock(
        id=block_id,
        task_id=task_id,
        start=start,
        end=end,
        time_window_id=window_id,
        **kwargs,
    )


def make_task(task_id="A", duration=120, due=None, **kwargs) -> Task:
    return Task(
        id=task_id,
        estimated_duration=duration,
        due_date=due if due is not None else at(2, 17),
        **kwargs,
    )
