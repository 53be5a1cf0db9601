"""Filters that select cases by identifier."""

from fnmatch import fnmatchcase
from typing import Any

from testdispatch.core.group import TestSet
from testdispatch.core.pipeline import Filter


def _patterns(options: dict[str, Any], key: str) -> list[str]:
    value = options.get(key) or []
    if isinstance(value, str):
        return [value]
    return [str(pattern) for pattern in value]


class MatchFilter(Filter):
    """Keeps cases whose dotted identifier matches glob patterns.

    ``include`` keeps only matching cases (everything when empty) and
    ``exclude`` then drops matching cases.
    """

    name = "match"

    def apply(self, tests: TestSet, options: dict[str, Any]) -> TestSet:
        include = _patterns(options, "include")
        exclude = _patterns(options, "exclude")

        def selected(identifier: str) -> bool:
            if include and not any(fnmatchcase(identifier, p) for p in include):
                return False
            return not any(fnmatchcase(identifier, p) for p in exclude)

        return TestSet(case for case in tests if selected(str(case.identifier)))
