"""
Tests for ConflictDetector.
"""

import pytest

from tests.fixtures import at, make_block, make_task
from timeblock_engine.conflicts import ConflictDetector


@pytest.fixture
def detector():
    return ConflictDetector()


class TestOverlaps:
    def test_touching_blocks_do_not_overlap(self):
        a = make_block("a", "A", at(0, 9), at(0, 10))
        b = make_block("b", "B", at(0, 10), at(0, 11))
        assert ConflictDetector.overlaps(a, b) is False

    def test_partial_overlap(self):
        a = make_block("a", "A", at(0, 9), at(0, 10, 30))
        b = make_block("b", "B", at(0, 10), at(0, 11))
        assert ConflictDetector.overlaps(a, b) is True
        assert ConflictDetector.overlaps(b, a) is True


class TestHasConflicts:
    def test_cross_task_overlap(self, detector):
        blocks = [
            make_block("a", "A", at(0, 9), at(0, 11)),
            make_block("b", "B", at(0, 10), at(0, 12)),
        ]
        assert detector.has_conflicts("A", blocks) is True
        assert detector.has_conflicts(make_task("B"), blocks) is True

    def test_same_task_overlap_ignored(self, detector):
        blocks = [
            make_block("a1", "A", at(0, 9), at(0, 11)),
            make_block("a2", "A", at(0, 10), at(0, 12)),
        ]
        assert detector.has_conflicts("A", blocks) is False

    def test_task_without_blocks(self, detector):
        blocks = [make_block("b", "B", at(0, 9), at(0, 10))]
        assert detector.has_conflicts("A", blocks) is False

    def test_adjacent_is_not_conflict(self, detector):
        blocks = [
            make_block("a", "A", at(0, 9), at(0, 10)),
            make_block("b", "B", at(0, 10), at(0, 11)),
        ]
        assert detector.has_conflicts("A", blocks) is False


class TestFindConflicts:
    def test_pairs_with_overlap_window(self, detector):
        blocks = [
            make_block("b", "B", at(0, 10), at(0, 12)),
            make_block("a", "A", at(0, 9), at(0, 11)),
            make_block("c", "C", at(0, 14), at(0, 15)),
        ]
        conflicts = detector.find_conflict_pairs(blocks)

        assert len(conflicts) == 1
        conflict = conflicts[0]
        assert {conflict.task_a_id, conflict.task_b_id} == {"A", "B"}
        assert conflict.overlap_start == at(0, 10)
        assert conflict.overlap_end == at(0, 11)
        assert conflict.overlap_minutes == 60

    def test_long_block_overlapping_several(self, detector):
        blocks = [
            make_block("x", "X", at(0, 9), at(0, 17)),
            make_block("a", "A", at(0, 10), at(0, 11)),
            make_block("b", "B", at(0, 13), at(0, 14)),
        ]
        conflicts = detector.find_conflict_pairs(blocks)

        assert [(c.block_a_id, c.block_b_id) for c in conflicts] == [("x", "a"), ("x", "b")]

    def test_all_conflicting_task_ids(self, detector):
        blocks = [
            make_block("a", "A", at(0, 9), at(0, 11)),
            make_block("b", "B", at(0, 10), at(0, 12)),
            make_block("c", "C", at(1, 9), at(1, 10)),
            make_block("a2", "A", at(1, 9, 30), at(1, 10, 30)),
        ]
        assert detector.find_all_conflicts(blocks) == {"A", "B", "C"}

    def test_empty(self, detector):
        assert detector.find_conflict_pairs([]) == []
        assert detector.find_all_conflicts([]) == set()
