"""
Tests for bulk rescheduling and conflict resolution.

Runs through BlockManager so blocks are committed the way a host sees them.
"""

from datetime import datetime

from tests.fixtures import at, make_task, make_window
from timeblock_engine.batch import BatchCoordinator
from timeblock_engine.events import Topic
from timeblock_engine.ids import CounterIdGenerator
from timeblock_engine.manager import BlockManager
from timeblock_engine.models import ConflictBehavior, Task


def spans_for(manager, task_id):
    return [(b.start, b.end) for b in manager.get_blocks_for_task(task_id)]


class TestOrdering:
    def test_priority_then_urgency_then_input_order(self, manager):
        tasks = [
            make_task("low", priority=4),
            make_task("calm", priority=2, urgency=10),
            make_task("tie", priority=2, urgency=10),
            make_task("hot", priority=2, urgency=90),
            make_task("top", priority=1),
        ]
        ordered = manager.batch.order_tasks(tasks, at(0, 9))

        assert [t.id for t in ordered] == ["top", "hot", "calm", "tie", "low"]

    def test_derived_urgency_for_missing_values(self, work_window):
        coordinator = BlockManager(
            windows=[work_window], id_generator=CounterIdGenerator(), derive_urgency=True
        ).batch
        later = make_task("later", due=at(6, 17))
        sooner = make_task("sooner", due=at(0, 12))

        ordered = coordinator.order_tasks([later, sooner], at(0, 9))

        assert [t.id for t in ordered] == ["sooner", "later"]

    def test_coordinator_is_shared_by_manager(self, manager):
        assert isinstance(manager.batch, BatchCoordinator)
        assert manager.batch.store is manager.store


class TestRescheduleAll:
    def test_higher_priority_gets_earlier_time(self, manager):
        tasks = [
            make_task("B", duration=120, due=at(0, 17), priority=3),
            make_task("A", duration=120, due=at(0, 17), priority=1),
        ]
        report = manager.reschedule_all(tasks, at(0, 9))

        assert report.total_tasks == 2
        assert report.scheduled == 2
        assert report.failed == 0
        assert spans_for(manager, "A") == [(at(0, 9), at(0, 11))]
        assert spans_for(manager, "B") == [(at(0, 11), at(0, 13))]
        assert report.summary == "Rescheduled tasks: 2 successful, 0 partial, 0 failed"

    def test_replaces_existing_blocks(self, manager):
        task = make_task("A", duration=60)
        manager.create_block(task, at(1, 9), at(1, 10))

        manager.reschedule_all([task], at(0, 9))

        assert spans_for(manager, "A") == [(at(0, 9), at(0, 10))]

    def test_skips_completed_and_manual_tasks(self, manager):
        done = make_task("done", duration=60, completed=True)
        manual = make_task("manual", duration=60, auto_schedule=False)
        manager.create_block(done, at(0, 9), at(0, 10))
        manager.create_block(manual, at(0, 10), at(0, 11))

        report = manager.reschedule_all([done, manual, make_task("A", duration=60)], at(0, 9))

        assert report.skipped == ["done", "manual"]
        assert report.total_tasks == 1
        assert spans_for(manager, "done") == [(at(0, 9), at(0, 10))]
        assert spans_for(manager, "manual") == [(at(0, 10), at(0, 11))]
        # Skipped blocks still occupy their time
        assert spans_for(manager, "A") == [(at(0, 11), at(0, 12))]

    def test_unschedulable_tasks_keep_manual_blocks(self, manager):
        no_fields = Task(id="N", estimated_duration=None, due_date=None)
        no_due = make_task("D", duration=60)
        no_due.due_date = None
        kept = manager.create_block(no_fields, at(0, 9), at(0, 10))
        manager.create_block(no_due, at(0, 10), at(0, 11))

        report = manager.reschedule_all([no_fields, no_due], at(0, 8))

        assert report.skipped == ["N", "D"]
        assert report.total_tasks == 0
        assert manager.get_blocks_for_task("N") == [kept]
        assert spans_for(manager, "D") == [(at(0, 10), at(0, 11))]

    def test_counts_partial_and_failed(self, manager):
        tasks = [
            make_task("big", duration=600, due=at(0, 17)),
            make_task("none", duration=60, due=at(0, 17)),
        ]
        report = manager.reschedule_all(tasks, at(0, 9))

        assert report.partial == 1
        assert report.failed == 1
        assert report.results["big"].unscheduled_minutes == 120
        assert spans_for(manager, "big") == [(at(0, 9), at(0, 17))]
        assert manager.get_blocks_for_task("none") == []

    def test_partial_blocks_dropped_when_disabled(self, work_window):
        manager = BlockManager(
            windows=[work_window], id_generator=CounterIdGenerator(), keep_partial=False
        )
        report = manager.reschedule_all([make_task("big", duration=600, due=at(0, 17))], at(0, 9))

        result = report.results["big"]
        assert result.time_blocks == []
        assert result.unscheduled_minutes == 600
        assert "partial blocks discarded" in result.message
        assert report.partial == 0
        assert report.failed == 1
        assert manager.get_scheduled_blocks() == []

    def test_single_change_event_per_batch(self, manager, events):
        changed = []
        events.subscribe(Topic.BLOCKS_CHANGED, lambda task_ids: changed.append(task_ids))

        manager.reschedule_all(
            [make_task("A", duration=60), make_task("B", duration=60)], at(0, 9)
        )

        assert changed == [["A", "B"]]

    def test_report_carries_operation_id(self, manager):
        report = manager.reschedule_all([make_task("A", duration=60)], at(0, 9))
        assert report.operation_id.startswith("op-")

    def test_empty_batch(self, manager, events):
        changed = []
        events.subscribe(Topic.BLOCKS_CHANGED, lambda task_ids: changed.append(task_ids))

        report = manager.reschedule_all([], at(0, 9))

        assert report.total_tasks == 0
        assert changed == []


class TestResolveConflicts:
    def setup_overlap(self, manager, behavior=None):
        keeper = make_task("X", duration=120, conflict_behavior=ConflictBehavior.KEEP)
        mover = make_task("A", duration=120, due=at(0, 17), conflict_behavior=behavior)
        manager.create_block(keeper, at(0, 9), at(0, 11))
        manager.create_block(mover, at(0, 10), at(0, 12))
        return [keeper, mover]

    def test_reschedules_and_keeps(self, manager):
        tasks = self.setup_overlap(manager)

        report = manager.resolve_conflicts(tasks, at(0, 9))

        assert report.conflicting == ["X", "A"]
        assert report.kept == ["X"]
        assert report.rescheduled == ["A"]
        assert report.resolved == 1
        assert report.summary == "Resolved 1 of 2 conflicts"
        assert spans_for(manager, "X") == [(at(0, 9), at(0, 11))]
        assert spans_for(manager, "A") == [(at(0, 11), at(0, 13))]
        assert manager.find_conflicts() == []

    def test_prompt_leaves_blocks(self, manager):
        tasks = self.setup_overlap(manager, ConflictBehavior.PROMPT)

        report = manager.resolve_conflicts(tasks, at(0, 9))

        assert report.prompted == ["A"]
        assert report.rescheduled == []
        assert report.resolved == 1
        assert spans_for(manager, "A") == [(at(0, 10), at(0, 12))]
        assert manager.has_conflicts("A") is True

    def test_ignores_tasks_not_passed(self, manager):
        tasks = self.setup_overlap(manager)

        report = manager.resolve_conflicts(tasks[1:], at(0, 9))

        assert report.conflicting == ["A"]

    def test_no_conflicts(self, manager):
        manager.schedule_task(make_task("A", duration=60), at(0, 9))

        report = manager.resolve_conflicts([make_task("A", duration=60)], at(0, 9))

        assert report.conflicting == []
        assert report.summary == "No scheduling conflicts found"

    def test_unresolvable_reschedule_not_counted(self, manager):
        keeper = make_task("X", conflict_behavior=ConflictBehavior.KEEP)
        mover = make_task("A", duration=60, due=at(0, 17))
        manager.create_block(keeper, at(0, 9), at(0, 17))
        manager.create_block(mover, at(0, 9), at(0, 10))

        report = manager.resolve_conflicts([keeper, mover], at(0, 9))

        assert report.rescheduled == ["A"]
        assert report.resolved == 0
        assert report.results["A"].success is False


class TestMultipleWindows:
    def test_batch_fills_by_window_priority(self):
        manager = BlockManager(
            windows=[
                make_window("work", priority=1),
                make_window("evening", ranges=(("18:00", "20:00"),), priority=2),
            ],
            id_generator=CounterIdGenerator(),
            keep_partial=True,
        )
        tasks = [make_task(f"T{i}", duration=240, due=at(0, 23)) for i in range(3)]

        report = manager.reschedule_all(tasks, datetime(2026, 10, 19, 9))

        assert report.scheduled == 2
        assert report.partial == 1
        assert [b.time_window_id for b in manager.get_blocks_for_task("T2")] == ["evening"]
