"""
Block Store - Canonical in-memory collection of allocated time blocks.

Enforces invariants:
- Block ids are unique
- Blocks of the same task never overlap when added
- end > start for every stored block

The store is the only owner of the collection. Blocks are frozen values, and
every query builds a fresh list, so callers can never alias internal state.
"""

import logging
from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime

from .models import TimeBlock, overlaps_range

logger = logging.getLogger(__name__)


class BlockStore:
    """
    Holds time blocks keyed by id, in insertion order.

    Responsibilities:
    - Add and remove blocks
    - Query by task and by date range
    - Mark completion and shift blocks in time
    """

    def __init__(self, blocks: Iterable[TimeBlock] | None = None):
        self._blocks: dict[str, TimeBlock] = {}
        if blocks:
            success, message = self.add(blocks)
            if not success:
                raise ValueError(message)

    def add(self, blocks: Iterable[TimeBlock]) -> tuple[bool, str]:
        """
        Add blocks to the store.

        All or nothing: if any block is invalid, none is added.

        Validates:
        - end after start
        - id not already present (in the store or the batch)
        - no overlap with another block of the same task

        Returns:
            (success, message)
        """
        blocks = list(blocks)
        pending: dict[str, TimeBlock] = {}

        for block in blocks:
            if block.end <= block.start:
                return False, f"Block {block.id}: end must be after start"

            if block.id in self._blocks or block.id in pending:
                return False, f"Block {block.id} already exists"

            same_task = [b for b in self._blocks.values() if b.task_id == block.task_id]
            same_task.extend(b for b in pending.values() if b.task_id == block.task_id)
            for other in same_task:
                if block.overlaps(other):
                    return (
                        False,
                        f"Block {block.id} overlaps block {other.id} of task {block.task_id}",
                    )

            pending[block.id] = block

        self._blocks.update(pending)
        if pending:
            logger.debug(f"Added {len(pending)} block(s)")
        return True, f"Added {len(pending)} block(s)"

    def get(self, block_id: str) -> TimeBlock | None:
        return self._blocks.get(block_id)

    def all(self) -> list[TimeBlock]:
        return list(self._blocks.values())

    def get_for_task(self, task_id: str) -> list[TimeBlock]:
        return sorted(
            (b for b in self._blocks.values() if b.task_id == task_id),
            key=lambda b: b.start,
        )

    def get_in_range(self, start: datetime, end: datetime) -> list[TimeBlock]:
        """
        Get blocks touching a date range.

        A block is selected if it starts in [start, end), ends in (start, end],
        or spans the whole range.
        """
        return sorted(
            (b for b in self._blocks.values() if overlaps_range(b.start, b.end, start, end)),
            key=lambda b: b.start,
        )

    def mark_completed(self, block_id: str) -> bool:
        """Mark a block completed. False if the block is unknown."""
        block = self._blocks.get(block_id)
        if block is None:
            return False
        if not block.is_completed:
            self._blocks[block_id] = replace(block, is_completed=True)
        return True

    def update(self, block_id: str, new_start: datetime, new_end: datetime) -> bool:
        """
        Move or resize a block.

        Conflicts are not re-checked: manual repositioning may overlap other
        blocks on purpose.

        Returns:
            False if the block is unknown or new_start >= new_end
        """
        block = self._blocks.get(block_id)
        if block is None:
            return False
        if new_start >= new_end:
            return False

        self._blocks[block_id] = replace(block, start=new_start, end=new_end)
        return True

    def remove(self, block_id: str) -> bool:
        return self._blocks.pop(block_id, None) is not None

    def remove_for_task(self, task_id: str) -> int:
        """Remove every block of a task. Returns the number removed."""
        doomed = [bid for bid, b in self._blocks.items() if b.task_id == task_id]
        for block_id in doomed:
            del self._blocks[block_id]
        if doomed:
            logger.debug(f"Removed {len(doomed)} block(s) of task {task_id}")
        return len(doomed)

    def clear(self) -> int:
        count = len(self._blocks)
        self._blocks.clear()
        return count

    def __len__(self) -> int:
        return len(self._blocks)

    def __contains__(self, block_id: object) -> bool:
        return block_id in self._blocks
