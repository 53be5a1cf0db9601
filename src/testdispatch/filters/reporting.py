"""Filters that only analyze results."""

from typing import Any

from testdispatch.core.models import ResultRecord
from testdispatch.core.pipeline import Filter
from testdispatch.core.stats import aggregate


class SummaryFilter(Filter):
    """Reports the aggregate statistics of the run."""

    name = "summary"

    def analyze(self, results: list[ResultRecord], options: dict[str, Any]) -> dict:
        return aggregate(results).to_dict()


class ProfilerFilter(Filter):
    """Reports time spent per case, slowest first.

    Uses the ``duration_ms`` field of each record; records without one
    count as zero. ``top`` limits the number of cases reported.
    """

    name = "profiler"

    def analyze(self, results: list[ResultRecord], options: dict[str, Any]) -> dict:
        totals: dict[str, int] = {}
        for record in results:
            case = record.get("case")
            if not case:
                continue
            totals[case] = totals.get(case, 0) + int(record.get("duration_ms") or 0)

        ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
        top = options.get("top")
        if top is not None:
            ranked = ranked[: int(top)]

        return {
            "total_ms": sum(totals.values()),
            "cases": [{"case": case, "duration_ms": ms} for case, ms in ranked],
        }
