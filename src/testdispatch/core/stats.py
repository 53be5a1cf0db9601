"""Result classification and aggregation."""

from collections.abc import Mapping
from typing import Any, Iterable, Optional, Union

from testdispatch.core.models import ResultKind, ResultRecord, Stats

# Keys dropped from records before they are bucketed
STRIPPED_KEYS = ("file", "kind")

COUNTED_KINDS = {ResultKind.PASS, ResultKind.FAIL, ResultKind.EXCEPTION}

Results = Union[ResultRecord, Iterable[Any]]


def classify(record: Mapping) -> Optional[ResultKind]:
    """Map a raw record to its kind.

    Returns None for records without a kind and for kinds that are
    never counted (anything other than pass, fail and exception).
    """
    value = record.get("kind")
    if not value:
        return None
    try:
        kind = ResultKind(value)
    except ValueError:
        return None
    return kind if kind in COUNTED_KINDS else None


def _groups(results: Results) -> list[list[Mapping]]:
    """Normalize a record, a flat sequence or a sequence of sequences."""
    if isinstance(results, Mapping):
        return [[results]]

    groups = []
    for item in results:
        if isinstance(item, Mapping):
            groups.append([item])
        else:
            groups.append(list(item))
    return groups


def aggregate(results: Results, stats: Optional[Stats] = None) -> Stats:
    """Fold result records into pass/fail/exception/error statistics.

    Args:
        results: A single record, a flat sequence of records, or a
            sequence of per-run record sequences.
        stats: Statistics to continue from. Left untouched; the returned
            value is a new object.

    Returns:
        Stats accumulated over every group in ``results``.
    """
    acc = stats.copy() if stats is not None else Stats()

    for group in _groups(results):
        for record in group:
            kind = classify(record)
            if kind is None:
                continue

            if kind in (ResultKind.FAIL, ResultKind.EXCEPTION):
                acc.errors.append(record)

            stripped = {k: v for k, v in record.items() if k not in STRIPPED_KEYS}

            if kind in (ResultKind.PASS, ResultKind.FAIL):
                acc.asserts += 1

            getattr(acc, kind.plural).append(stripped)

    return acc
