"""
Batch Coordinator - Reschedule-all and conflict resolution over many tasks.

Both operations run as one synchronous pass:
1. Pick the affected tasks
2. Order them by priority (1 first), then urgency (highest first), stable
3. Schedule each in turn, committing its blocks before the next one runs,
   so later tasks see earlier allocations
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import datetime

from . import config
from .block_store import BlockStore
from .conflicts import ConflictDetector
from .events import EventBus, Topic
from .models import ConflictBehavior, Task, TaskScheduleResult
from .observability import OperationContext
from .scheduler import Scheduler
from .urgency import calculate_task_urgency, is_task_schedulable
from .windows import TimeWindowRegistry

logger = logging.getLogger(__name__)


@dataclass
class BatchReport:
    total_tasks: int
    scheduled: int
    partial: int
    failed: int
    skipped: list[str] = field(default_factory=list)
    results: dict[str, TaskScheduleResult] = field(default_factory=dict)
    operation_id: str | None = None

    @property
    def summary(self) -> str:
        return (
            f"Rescheduled tasks: {self.scheduled} successful, "
            f"{self.partial} partial, {self.failed} failed"
        )


@dataclass
class ConflictReport:
    conflicting: list[str] = field(default_factory=list)
    rescheduled: list[str] = field(default_factory=list)
    prompted: list[str] = field(default_factory=list)
    kept: list[str] = field(default_factory=list)
    resolved: int = 0
    results: dict[str, TaskScheduleResult] = field(default_factory=dict)
    operation_id: str | None = None

    @property
    def summary(self) -> str:
        if not self.conflicting:
            return "No scheduling conflicts found"
        return f"Resolved {self.resolved} of {len(self.conflicting)} conflicts"


class BatchCoordinator:
    """
    Drives the Scheduler over many tasks and commits into the BlockStore.

    Prompted tasks are only reported; the caller follows up on them.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        registry: TimeWindowRegistry,
        store: BlockStore,
        detector: ConflictDetector,
        events: EventBus,
        keep_partial: bool | None = None,
        derive_urgency: bool | None = None,
    ):
        self.scheduler = scheduler
        self.registry = registry
        self.store = store
        self.detector = detector
        self.events = events
        self.keep_partial = config.KEEP_PARTIAL_BLOCKS if keep_partial is None else keep_partial
        self.derive_urgency = (
            config.DERIVE_MISSING_URGENCY if derive_urgency is None else derive_urgency
        )

    def order_tasks(self, tasks: Iterable[Task], now: datetime) -> list[Task]:
        """Sort by priority ascending, then urgency descending; ties keep input order."""

        def urgency_of(task: Task) -> float:
            if task.urgency is not None:
                return task.urgency
            if self.derive_urgency:
                return calculate_task_urgency(task, now)
            return 0

        return sorted(tasks, key=lambda t: (t.priority, -urgency_of(t)))

    def reschedule_all(self, tasks: Iterable[Task], now: datetime) -> BatchReport:
        """
        Clear and reschedule every open, auto-scheduled task.

        Tasks that cannot be auto-scheduled (completed, auto_schedule off, or
        missing a due date or duration) are skipped and keep their blocks.

        Returns:
            BatchReport with per-task results and success/partial/failure counts
        """
        with OperationContext("reschedule_all") as ctx:
            eligible = []
            skipped = []
            for task in tasks:
                if not is_task_schedulable(task):
                    skipped.append(task.id)
                else:
                    eligible.append(task)

            for task in eligible:
                self.store.remove_for_task(task.id)

            report = BatchReport(
                total_tasks=len(eligible),
                scheduled=0,
                partial=0,
                failed=0,
                skipped=skipped,
                operation_id=ctx.operation_id,
            )

            for task in self.order_tasks(eligible, now):
                result = self._schedule_and_commit(task, now)
                report.results[task.id] = result
                if result.success:
                    report.scheduled += 1
                elif result.time_blocks:
                    report.partial += 1
                else:
                    report.failed += 1

            if eligible:
                self.events.publish(Topic.BLOCKS_CHANGED, task_ids=[t.id for t in eligible])

            logger.info(
                report.summary,
                extra={"task_count": report.total_tasks, "skipped": len(skipped)},
            )
            return report

    def resolve_conflicts(self, tasks: Iterable[Task], now: datetime) -> ConflictReport:
        """
        Handle every task whose blocks overlap another task's blocks.

        Per task conflict_behavior:
        - reschedule (or unset): remove its blocks and schedule it again
        - prompt: leave it, list it for the caller to ask the user
        - keep: leave it untouched

        Returns:
            ConflictReport
        """
        with OperationContext("resolve_conflicts") as ctx:
            conflicting_ids = self.detector.find_all_conflicts(self.store.all())
            candidates = self.order_tasks(
                [t for t in tasks if t.id in conflicting_ids], now
            )

            report = ConflictReport(
                conflicting=[t.id for t in candidates],
                operation_id=ctx.operation_id,
            )

            for task in candidates:
                behavior = task.conflict_behavior or ConflictBehavior.RESCHEDULE

                if behavior == ConflictBehavior.RESCHEDULE:
                    self.store.remove_for_task(task.id)
                    result = self._schedule_and_commit(task, now)
                    report.results[task.id] = result
                    report.rescheduled.append(task.id)
                    if result.success or result.time_blocks:
                        report.resolved += 1
                elif behavior == ConflictBehavior.PROMPT:
                    report.prompted.append(task.id)
                    report.resolved += 1
                else:
                    report.kept.append(task.id)

            if report.rescheduled:
                self.events.publish(Topic.BLOCKS_CHANGED, task_ids=list(report.rescheduled))

            logger.info(
                report.summary,
                extra={
                    "rescheduled": len(report.rescheduled),
                    "prompted": len(report.prompted),
                    "kept": len(report.kept),
                },
            )
            return report

    def _schedule_and_commit(self, task: Task, now: datetime) -> TaskScheduleResult:
        result = self.scheduler.schedule_task(task, self.registry, self.store.all(), now)

        if not result.time_blocks:
            return result

        if not (result.success or self.keep_partial):
            # Reported blocks must match the store
            return replace(
                result,
                message=f"{result.message}; partial blocks discarded",
                time_blocks=[],
                unscheduled_minutes=task.estimated_duration,
            )

        success, message = self.store.add(result.time_blocks)
        if not success:
            logger.error(f"Could not commit blocks for task {task.id}: {message}")
            return TaskScheduleResult(
                success=False,
                message=message,
                overdue=result.overdue,
                unscheduled_minutes=task.estimated_duration or 0,
            )
        return result
