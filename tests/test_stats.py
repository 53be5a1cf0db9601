"""Tests for result classification and aggregation."""

from functools import reduce

import pytest

from testdispatch.core.models import ResultKind, Stats
from testdispatch.core.stats import aggregate, classify


@pytest.fixture
def records():
    """One run's worth of mixed records."""
    return [
        {"kind": "pass", "message": "ok", "file": "a.py", "line": 1},
        {"kind": "fail", "message": "expected 1", "file": "a.py", "line": 2},
        {"kind": "exception", "message": "boom", "file": "b.py", "line": 9, "trace": "..."},
        {"kind": "pass", "message": "ok", "file": "b.py", "line": 4},
        {"message": "no kind"},
    ]


class TestClassify:
    """Tests for classify."""

    @pytest.mark.parametrize(
        "kind,expected",
        [
            ("pass", ResultKind.PASS),
            ("fail", ResultKind.FAIL),
            ("exception", ResultKind.EXCEPTION),
        ],
    )
    def test_counted_kinds(self, kind, expected):
        assert classify({"kind": kind}) is expected

    @pytest.mark.parametrize("record", [{}, {"kind": None}, {"kind": ""}, {"kind": "skip"}, {"kind": "error"}])
    def test_uncounted(self, record):
        """Test that missing, falsy and unknown kinds are not countable."""
        assert classify(record) is None


class TestAggregate:
    """Tests for aggregate."""

    def test_counts(self, records):
        stats = aggregate(records)

        assert stats.asserts == 3
        assert len(stats.passes) == 2
        assert len(stats.fails) == 1
        assert len(stats.exceptions) == 1
        assert len(stats.errors) == 2

    def test_buckets_are_stripped(self, records):
        """Test that file and kind are removed from bucketed records."""
        stats = aggregate(records)

        assert stats.fails == [{"message": "expected 1", "line": 2}]
        assert stats.exceptions == [{"message": "boom", "line": 9, "trace": "..."}]
        for record in stats.passes:
            assert "file" not in record
            assert "kind" not in record

    def test_errors_keep_original_records(self, records):
        """Test that errors hold every fail and exception verbatim."""
        stats = aggregate(records)

        assert stats.errors == [records[1], records[2]]
        assert stats.errors[0]["file"] == "a.py"
        assert stats.errors[1]["kind"] == "exception"

    def test_input_not_mutated(self, records):
        original = [dict(r) for r in records]
        aggregate(records)
        assert records == original

    def test_asserts_equals_passes_plus_fails(self, records):
        stats = aggregate(records)
        assert stats.asserts == len(stats.passes) + len(stats.fails)

    def test_single_record(self):
        """Test that a bare record is treated as a one-element sequence."""
        stats = aggregate({"kind": "fail", "message": "x", "file": "f.py"})

        assert stats.asserts == 1
        assert stats.fails == [{"message": "x"}]
        assert len(stats.errors) == 1

    def test_empty(self):
        assert aggregate([]) == Stats()

    def test_grouped_equals_flat(self, records):
        """Test that grouping the same records yields the same stats."""
        grouped = [records[:2], records[2:3], records[3:]]
        assert aggregate(grouped) == aggregate(records)

    def test_fold_over_groups_equals_flat(self, records):
        """Test that folding aggregate over any partition matches the flat result."""
        groups = [records[:1], records[1:4], records[4:]]
        folded = reduce(lambda stats, group: aggregate(group, stats), groups, Stats())
        assert folded == aggregate(records)

    def test_continuing_does_not_mutate_previous(self, records):
        first = aggregate(records[:2])
        second = aggregate(records[2:], first)

        assert first.asserts == 2
        assert second.asserts == 3
        assert len(first.errors) == 1

    def test_duplicated_across_errors_and_buckets(self):
        """Test that a failure is counted in both its bucket and errors."""
        stats = aggregate([{"kind": "fail", "message": "x"}])
        assert stats.fails == [{"message": "x"}]
        assert stats.errors == [{"kind": "fail", "message": "x"}]
