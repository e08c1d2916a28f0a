"""
Time-Block Scheduling Engine

Turns abstract tasks (duration, due date, priority, constraints) into
concrete, non-overlapping calendar allocations inside recurring
availability windows.

Objects:
- Task (read-only input from the task source)
- TimeWindow (recurring weekday availability)
- TimeBlock (a scheduled interval bound to one task)

Invariants:
- Blocks of the same task never overlap
- Scheduling never overlaps another task's block, except where time
  defense allows it
- Window sets are validated before they replace the active set
- Only the BlockStore mutates blocks; everyone else gets snapshots
"""

from .batch import BatchCoordinator, BatchReport, ConflictReport
from .block_store import BlockStore
from .completion import CompletionTracker
from .conflicts import Conflict, ConflictDetector
from .events import EventBus, Topic
from .ids import CounterIdGenerator, UuidIdGenerator
from .manager import BlockManager
from .models import (
    MANUAL_WINDOW_ID,
    ConflictBehavior,
    DaySchedule,
    Task,
    TaskScheduleResult,
    TimeBlock,
    TimeDefense,
    TimeRange,
    TimeWindow,
)
from .scheduler import Scheduler, find_gaps
from .windows import ResolvedWindow, TimeWindowRegistry, ValidationResult

__all__ = [
    "BatchCoordinator",
    "BatchReport",
    "BlockManager",
    "BlockStore",
    "CompletionTracker",
    "Conflict",
    "ConflictBehavior",
    "ConflictDetector",
    "ConflictReport",
    "CounterIdGenerator",
    "DaySchedule",
    "EventBus",
    "MANUAL_WINDOW_ID",
    "ResolvedWindow",
    "Scheduler",
    "Task",
    "TaskScheduleResult",
    "TimeBlock",
    "TimeDefense",
    "TimeRange",
    "TimeWindow",
    "TimeWindowRegistry",
    "Topic",
    "UuidIdGenerator",
    "ValidationResult",
    "find_gaps",
]
