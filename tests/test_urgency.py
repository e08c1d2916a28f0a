"""Tests for urgency scoring and schedulability."""

from tests.fixtures import at, make_task
from timeblock_engine.urgency import calculate_task_urgency, is_task_schedulable


class TestCalculateTaskUrgency:
    def test_no_due_date(self):
        task = make_task()
        task.due_date = None
        assert calculate_task_urgency(task, at(0, 9)) == 0

    def test_overdue_is_max(self):
        assert calculate_task_urgency(make_task(due=at(0, 8)), at(0, 9)) == 100

    def test_sooner_is_more_urgent(self):
        now = at(0, 9)
        soon = calculate_task_urgency(make_task(due=at(0, 17)), now)
        later = calculate_task_urgency(make_task(due=at(5, 17)), now)
        assert soon > later

    def test_priority_raises_urgency(self):
        now = at(0, 9)
        high = calculate_task_urgency(make_task(due=at(3, 17), priority=1), now)
        low = calculate_task_urgency(make_task(due=at(3, 17), priority=4), now)
        assert high > low

    def test_bounded(self):
        now = at(0, 9)
        tight = make_task(duration=600, due=at(0, 10), priority=1, split_up_block=30)
        distant = make_task(duration=15, due=at(200, 9), priority=5)

        assert calculate_task_urgency(tight, now) == 100
        assert calculate_task_urgency(distant, now) == 0


class TestIsTaskSchedulable:
    def test_open_task(self):
        assert is_task_schedulable(make_task()) is True

    def test_requires_duration(self):
        assert is_task_schedulable(make_task(duration=None)) is False
        assert is_task_schedulable(make_task(duration=0)) is False

    def test_requires_due_date(self):
        task = make_task()
        task.due_date = None
        assert is_task_schedulable(task) is False

    def test_completed_or_opted_out(self):
        assert is_task_schedulable(make_task(completed=True)) is False
        assert is_task_schedulable(make_task(auto_schedule=False)) is False
