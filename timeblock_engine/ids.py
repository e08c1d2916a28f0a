"""
Block id generators.

The orchestration layer owns one generator and hands it to the Scheduler,
so ids never leak between engine instances or test cases.
"""

import itertools
import uuid


class CounterIdGenerator:
    """Monotonic ids: block-1, block-2, ..."""

    def __init__(self, prefix: str = "block", start: int = 1):
        self.prefix = prefix
        self._counter = itertools.count(start)

    def __call__(self) -> str:
        return f"{self.prefix}-{next(self._counter)}"


class UuidIdGenerator:
    """Random ids in the form block_<12 hex chars>."""

    def __init__(self, prefix: str = "block"):
        self.prefix = prefix

    def __call__(self) -> str:
        return f"{self.prefix}_{uuid.uuid4().hex[:12]}"
