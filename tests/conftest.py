"""
Test configuration — ensures repo root is in sys.path + shared engine fixtures.

This allows tests to import timeblock_engine and tests.fixtures without an
installed package.
"""

import sys
from pathlib import Path

import pytest

# Add repo root to sys.path so tests can import timeblock_engine.*, tests.fixtures
REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from tests.fixtures import make_window  # noqa: E402
from timeblock_engine.block_store import BlockStore  # noqa: E402
from timeblock_engine.events import EventBus  # noqa: E402
from timeblock_engine.ids import CounterIdGenerator  # noqa: E402
from timeblock_engine.manager import BlockManager  # noqa: E402
from timeblock_engine.scheduler import Scheduler  # noqa: E402
from timeblock_engine.windows import TimeWindowRegistry  # noqa: E402


@pytest.fixture
def work_window():
    """Work: Mon-Fri 09:00-17:00, priority 1."""
    return make_window()


@pytest.fixture
def registry(work_window):
    return TimeWindowRegistry([work_window])


@pytest.fixture
def scheduler():
    return Scheduler(CounterIdGenerator(), min_gap_minutes=1, horizon_days=366)


@pytest.fixture
def store():
    return BlockStore()


@pytest.fixture
def events():
    return EventBus()


@pytest.fixture
def manager(work_window, events):
    """BlockManager with the Work window, counter ids and a visible event bus."""
    return BlockManager(
        windows=[work_window],
        id_generator=CounterIdGenerator(),
        events=events,
        keep_partial=True,
        derive_urgency=False,
    )
