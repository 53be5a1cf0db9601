"""Filters that reorder, trim or multiply the test set."""

import random
from typing import Any

from testdispatch.core.group import TestSet
from testdispatch.core.pipeline import Filter


def _int_option(options: dict[str, Any], key: str, default: Any, minimum: int) -> int:
    value = options.get(key, default)
    if value is None:
        raise ValueError(f"Option '{key}' is required")
    if isinstance(value, bool):
        raise ValueError(f"Option '{key}' must be an integer, got {value!r}")
    if not isinstance(value, int):
        try:
            value = int(value)
        except (TypeError, ValueError):
            raise ValueError(f"Option '{key}' must be an integer, got {value!r}") from None
    if value < minimum:
        raise ValueError(f"Option '{key}' must be at least {minimum}")
    return value


class ReverseFilter(Filter):
    """Runs the cases in reverse order."""

    name = "reverse"

    def apply(self, tests: TestSet, options: dict[str, Any]) -> TestSet:
        return TestSet(reversed(tests))


class LimitFilter(Filter):
    """Keeps only the first ``count`` cases."""

    name = "limit"

    def apply(self, tests: TestSet, options: dict[str, Any]) -> TestSet:
        count = _int_option(options, "count", None, 0)
        return tests[:count]


class RepeatFilter(Filter):
    """Runs the whole set ``times`` times in a row."""

    name = "repeat"

    def apply(self, tests: TestSet, options: dict[str, Any]) -> TestSet:
        times = _int_option(options, "times", 2, 1)
        return TestSet(list(tests) * times)


class ShuffleFilter(Filter):
    """Randomizes case order; pass ``seed`` for a reproducible order."""

    name = "shuffle"

    def apply(self, tests: TestSet, options: dict[str, Any]) -> TestSet:
        cases = list(tests)
        random.Random(options.get("seed")).shuffle(cases)
        return TestSet(cases)
