"""
Completion Tracker - Propagate block completion to task completion.

When the last open block of a task is marked completed, the tracker publishes
a single TASK_COMPLETED event; the host decides what to do with the task.
The cascade is one-directional: completing a task elsewhere does not
complete its blocks.
"""

import logging

from .block_store import BlockStore
from .events import EventBus, Topic

logger = logging.getLogger(__name__)


class CompletionTracker:
    def __init__(self, store: BlockStore, events: EventBus):
        self.store = store
        self.events = events

    def mark_block_completed(self, block_id: str) -> bool:
        """
        Mark a block completed and signal task completion when it was the last.

        Marking an already completed block again succeeds but signals nothing.

        Returns:
            False if the block is unknown
        """
        block = self.store.get(block_id)
        if block is None:
            return False

        if block.is_completed:
            return True

        if not self.store.mark_completed(block_id):
            return False

        self.events.publish(Topic.BLOCKS_CHANGED, task_ids=[block.task_id])

        task_blocks = self.store.get_for_task(block.task_id)
        if task_blocks and all(b.is_completed for b in task_blocks):
            logger.info(f"All {len(task_blocks)} block(s) of task {block.task_id} completed")
            self.events.publish(Topic.TASK_COMPLETED, task_id=block.task_id)

        return True

    def is_task_fully_completed(self, task_id: str) -> bool:
        blocks = self.store.get_for_task(task_id)
        return bool(blocks) and all(b.is_completed for b in blocks)
