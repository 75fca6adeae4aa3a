"""Unit tests for per-unit status tracking."""

# pylint: disable=missing-class-docstring,missing-function-docstring

import pytest

from slr_extract.progress import ProgressTracker, UnitStatus


@pytest.fixture
def tracker():
    t = ProgressTracker()
    t.register("a", "batch-1", size=10)
    t.register("b", "batch-2", size=4)
    return t


class TestTransitions:

    def test_starts_queued(self, tracker):
        assert tracker.status("a") == UnitStatus.QUEUED

    def test_happy_path(self, tracker):
        tracker.mark("a", UnitStatus.PROCESSING)
        tracker.mark("a", UnitStatus.COMPLETED)
        assert tracker.status("a") == UnitStatus.COMPLETED

    def test_error_path(self, tracker):
        tracker.mark("a", UnitStatus.PROCESSING)
        tracker.mark("a", UnitStatus.ERROR)
        assert tracker.status("a") == UnitStatus.ERROR

    @pytest.mark.parametrize("path", [
        [UnitStatus.COMPLETED],
        [UnitStatus.PROCESSING, UnitStatus.QUEUED],
        [UnitStatus.PROCESSING, UnitStatus.COMPLETED, UnitStatus.QUEUED],
        [UnitStatus.PROCESSING, UnitStatus.COMPLETED, UnitStatus.PROCESSING],
        [UnitStatus.PROCESSING, UnitStatus.ERROR, UnitStatus.COMPLETED],
    ])
    def test_no_regression(self, tracker, path):
        with pytest.raises(ValueError):
            for status in path:
                tracker.mark("a", status)


class TestCounters:

    def test_weighted_by_size(self, tracker):
        assert (tracker.completed, tracker.total) == (0, 14)
        tracker.mark("a", UnitStatus.PROCESSING)
        tracker.mark("a", UnitStatus.COMPLETED)
        assert (tracker.completed, tracker.total) == (10, 14)

    def test_errors_not_counted_as_completed(self, tracker):
        tracker.mark("b", UnitStatus.PROCESSING)
        tracker.mark("b", UnitStatus.ERROR)
        assert tracker.completed == 0

    def test_items_in_queue_order(self, tracker):
        assert tracker.items() == [("a", "batch-1", UnitStatus.QUEUED), ("b", "batch-2", UnitStatus.QUEUED)]

    def test_remove(self, tracker):
        tracker.remove("a")
        assert tracker.total == 4
        assert [unit_id for unit_id, _, _ in tracker.items()] == ["b"]

    def test_cannot_remove_processing(self, tracker):
        tracker.mark("a", UnitStatus.PROCESSING)
        with pytest.raises(ValueError):
            tracker.remove("a")

    def test_clear(self, tracker):
        tracker.clear()
        assert tracker.items() == []
        assert tracker.total == 0
