"""
Models - Value objects shared by every component of the engine.

Objects:
- Task (read-only input, owned by the task source)
- TimeWindow / DaySchedule / TimeRange (recurring availability)
- TimeBlock (a concrete scheduled interval bound to one task)
- TaskScheduleResult (outcome of a scheduling attempt)

TimeBlock and TimeWindow are frozen: components hand them around as
snapshots, and the only way to change a block is through BlockStore.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

MANUAL_WINDOW_ID = "manual"

# 0 = Sunday ... 6 = Saturday
WEEKDAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")

MINUTES_PER_DAY = 24 * 60


class TimeDefense(StrEnum):
    ALWAYS_BUSY = "always-busy"
    ALWAYS_FREE = "always-free"


class ConflictBehavior(StrEnum):
    RESCHEDULE = "reschedule"
    KEEP = "keep"
    PROMPT = "prompt"


def parse_hhmm(value: str) -> int:
    """
    Parse an "HH:MM" wall-clock string into minutes since midnight.

    "24:00" is accepted as the end of the day.

    Raises:
        ValueError if the string is not a valid time of day.
    """
    if not isinstance(value, str) or value.count(":") != 1:
        raise ValueError(f"Invalid time '{value}' (use HH:MM)")

    hours_str, minutes_str = value.split(":")
    if len(minutes_str) != 2 or not hours_str.isdigit() or not minutes_str.isdigit():
        raise ValueError(f"Invalid time '{value}' (use HH:MM)")

    hours, minutes = int(hours_str), int(minutes_str)
    if hours == 24 and minutes == 0:
        return MINUTES_PER_DAY
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid time '{value}' (use HH:MM)")
    return hours * 60 + minutes


def js_weekday(moment: datetime) -> int:
    """Weekday with Sunday as 0, the numbering window schedules use."""
    return (moment.weekday() + 1) % 7


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, rounded to the nearest minute."""
    return round((end - start).total_seconds() / 60)


def overlaps_range(start: datetime, end: datetime, range_start: datetime, range_end: datetime) -> bool:
    """
    Three-clause overlap test between an interval and a range.

    True if the interval starts inside the range, ends inside it, or spans it.
    """
    return (
        (range_start <= start < range_end)
        or (range_start < end <= range_end)
        or (start <= range_start and end >= range_end)
    )


@dataclass(frozen=True)
class TimeRange:
    start: str
    end: str

    @property
    def start_minutes(self) -> int:
        return parse_hhmm(self.start)

    @property
    def end_minutes(self) -> int:
        return parse_hhmm(self.end)

    def to_dict(self) -> dict:
        return {"start": self.start, "end": self.end}


@dataclass(frozen=True)
class DaySchedule:
    day: int
    ranges: tuple[TimeRange, ...] = ()

    def to_dict(self) -> dict:
        return {"day": self.day, "ranges": [r.to_dict() for r in self.ranges]}


@dataclass(frozen=True)
class TimeWindow:
    """A named, recurring, weekday-scoped span of wall-clock hours."""

    id: str
    name: str
    priority: int = 10
    color: str = ""
    schedule: tuple[DaySchedule, ...] = ()

    def schedule_for(self, day: int) -> DaySchedule | None:
        for entry in self.schedule:
            if entry.day == day:
                return entry
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "priority": self.priority,
            "schedule": [entry.to_dict() for entry in self.schedule],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TimeWindow":
        """
        Build a window from its configuration mapping.

        Only the shape is checked here; TimeWindowRegistry validates content.

        Raises:
            ValueError if the mapping is structurally malformed.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Time window must be a mapping, got {type(data).__name__}")

        schedule = []
        for entry in data.get("schedule") or []:
            if not isinstance(entry, dict) or "day" not in entry:
                raise ValueError(f"Window '{data.get('id')}': schedule entry needs a 'day'")
            ranges = []
            for r in entry.get("ranges") or []:
                if not isinstance(r, dict) or "start" not in r or "end" not in r:
                    raise ValueError(
                        f"Window '{data.get('id')}': range needs 'start' and 'end'"
                    )
                for key in ("start", "end"):
                    if not isinstance(r[key], str):
                        # YAML 1.1 reads unquoted 17:00 as the integer 1020
                        raise ValueError(
                            f"Window '{data.get('id')}': range {key} {r[key]!r} is not a string; "
                            f"quote HH:MM values, e.g. \"09:00\""
                        )
                ranges.append(TimeRange(start=r["start"], end=r["end"]))
            schedule.append(DaySchedule(day=entry["day"], ranges=tuple(ranges)))

        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", data.get("id", ""))),
            priority=data.get("priority", 10),
            color=str(data.get("color", "")),
            schedule=tuple(schedule),
        )


@dataclass
class Task:
    """
    The fields of a task the engine reads.

    The engine never mutates or persists a Task.
    """

    id: str
    title: str = ""
    estimated_duration: int | None = None
    due_date: datetime | None = None
    priority: int = 3
    split_up_block: int | None = None
    time_defense: TimeDefense | None = None
    allowed_time_windows: list[str] = field(default_factory=list)
    auto_schedule: bool = True
    completed: bool = False
    urgency: float | None = None
    created_at: datetime | None = None
    conflict_behavior: ConflictBehavior | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        """Build a task from a plain mapping (YAML/JSON task lists)."""
        if not isinstance(data, dict) or not data.get("id"):
            raise ValueError("Task entry must be a mapping with an 'id'")

        def _dt(value):
            if value is None or isinstance(value, datetime):
                return value
            return datetime.fromisoformat(str(value))

        defense = data.get("time_defense")
        behavior = data.get("conflict_behavior")
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", "")),
            estimated_duration=data.get("estimated_duration"),
            due_date=_dt(data.get("due_date")),
            priority=int(data.get("priority", 3)),
            split_up_block=data.get("split_up_block"),
            time_defense=TimeDefense(defense) if defense else None,
            allowed_time_windows=list(data.get("allowed_time_windows") or []),
            auto_schedule=bool(data.get("auto_schedule", True)),
            completed=bool(data.get("completed", False)),
            urgency=data.get("urgency"),
            created_at=_dt(data.get("created_at")),
            conflict_behavior=ConflictBehavior(behavior) if behavior else None,
        )


@dataclass(frozen=True)
class TimeBlock:
    id: str
    task_id: str
    start: datetime
    end: datetime
    time_window_id: str
    is_completed: bool = False
    time_defense: TimeDefense | None = None

    @property
    def duration(self) -> int:
        """Block duration in minutes."""
        return minutes_between(self.start, self.end)

    @property
    def is_manual(self) -> bool:
        return self.time_window_id == MANUAL_WINDOW_ID

    def overlaps(self, other: "TimeBlock") -> bool:
        return self.start < other.end and self.end > other.start

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "duration": self.duration,
            "time_window_id": self.time_window_id,
            "is_completed": self.is_completed,
            "time_defense": self.time_defense.value if self.time_defense else None,
        }


@dataclass
class TaskScheduleResult:
    success: bool
    message: str
    time_blocks: list[TimeBlock] = field(default_factory=list)
    overdue: bool = False
    unscheduled_minutes: int = 0

    @property
    def scheduled_minutes(self) -> int:
        return sum(b.duration for b in self.time_blocks)

    @property
    def partial(self) -> bool:
        """Some, but not all, of the duration was placed."""
        return not self.success and bool(self.time_blocks)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "message": self.message,
            "time_blocks": [b.to_dict() for b in self.time_blocks],
            "overdue": self.overdue,
            "unscheduled_minutes": self.unscheduled_minutes,
        }
