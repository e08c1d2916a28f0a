"""
Conflict Detector - Cross-task overlap testing over block snapshots.

Blocks of the same task never count as a conflict with each other; a conflict
is always between two different tasks.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from .models import Task, TimeBlock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Conflict:
    block_a_id: str
    block_b_id: str
    task_a_id: str
    task_b_id: str
    overlap_start: datetime
    overlap_end: datetime

    @property
    def overlap_minutes(self) -> int:
        return round((self.overlap_end - self.overlap_start).total_seconds() / 60)


class ConflictDetector:
    @staticmethod
    def overlaps(a: TimeBlock, b: TimeBlock) -> bool:
        """Half-open interval intersection."""
        return a.start < b.end and a.end > b.start

    def has_conflicts(self, task: Task | str, all_blocks: Iterable[TimeBlock]) -> bool:
        """True if any block of the task overlaps a block of another task."""
        task_id = task if isinstance(task, str) else task.id
        all_blocks = list(all_blocks)

        own = [b for b in all_blocks if b.task_id == task_id]
        if not own:
            return False
        others = [b for b in all_blocks if b.task_id != task_id]

        for block in own:
            for other in others:
                if self.overlaps(block, other):
                    return True
        return False

    def find_conflict_pairs(self, all_blocks: Iterable[TimeBlock]) -> list[Conflict]:
        """
        Detect every overlapping pair of blocks from different tasks.

        Returns:
            Conflicts ordered by overlap start
        """
        blocks = sorted(all_blocks, key=lambda b: b.start)
        conflicts = []

        for i, a in enumerate(blocks):
            for b in blocks[i + 1 :]:
                # Sorted by start: nothing later can overlap a
                if b.start >= a.end:
                    break
                if a.task_id == b.task_id:
                    continue
                if self.overlaps(a, b):
                    conflicts.append(
                        Conflict(
                            block_a_id=a.id,
                            block_b_id=b.id,
                            task_a_id=a.task_id,
                            task_b_id=b.task_id,
                            overlap_start=max(a.start, b.start),
                            overlap_end=min(a.end, b.end),
                        )
                    )

        conflicts.sort(key=lambda c: c.overlap_start)
        return conflicts

    def find_all_conflicts(self, all_blocks: Iterable[TimeBlock]) -> set[str]:
        """Ids of tasks with at least one cross-task overlap."""
        task_ids = set()
        for conflict in self.find_conflict_pairs(all_blocks):
            task_ids.add(conflict.task_a_id)
            task_ids.add(conflict.task_b_id)
        if task_ids:
            logger.debug(f"{len(task_ids)} task(s) involved in conflicts")
        return task_ids
