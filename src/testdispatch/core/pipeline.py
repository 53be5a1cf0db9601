"""Two-phase filter pipeline.

Filters run in declared order twice: once to transform the test set
before execution, once to analyze the raw results afterwards. Each
filter's analysis sees the original results, not another filter's
output.
"""

import copy
from abc import ABC
from dataclasses import dataclass
from typing import Any, ClassVar, Iterable

from testdispatch.core.errors import FilterAnalyzeError, FilterApplyError
from testdispatch.core.group import TestSet
from testdispatch.core.models import ResultRecord
from testdispatch.core.options import FilterSpec
from testdispatch.logging import get_logger

logger = get_logger(__name__)


class Filter(ABC):
    """Pluggable transform of tests before a run and of results after it.

    Subclasses override either phase; the defaults leave tests untouched
    and report no analysis. Options are always dicts, possibly empty.
    """

    name: ClassVar[str] = ""

    def apply(self, tests: TestSet, options: dict[str, Any]) -> TestSet:
        return tests

    def analyze(self, results: list[ResultRecord], options: dict[str, Any]) -> Any:
        return None


@dataclass
class PipelineEntry:
    """A filter paired with the spec configuring it."""

    filter: Filter
    spec: FilterSpec

    @property
    def name(self) -> str:
        return self.spec.name


class FilterPipeline:
    """Runs tests through an ordered list of filters."""

    def __init__(self, entries: Iterable[PipelineEntry] = ()):
        self.entries = list(entries)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def names(self) -> list[str]:
        return [entry.name for entry in self.entries]

    def apply(self, tests: TestSet) -> TestSet:
        """Thread the test set through every filter's apply step.

        Raises:
            FilterApplyError: If any filter fails; later filters are skipped
        """
        for entry in self.entries:
            logger.debug(f"Applying filter '{entry.name}' to {len(tests)} cases")
            try:
                transformed = entry.filter.apply(tests, dict(entry.spec.apply))
            except FilterApplyError:
                raise
            except Exception as e:
                raise FilterApplyError(entry.name, f"{type(e).__name__}: {e}") from e

            if transformed is None:
                raise FilterApplyError(entry.name, "apply returned no tests")
            if not isinstance(transformed, TestSet):
                try:
                    transformed = TestSet(transformed)
                except TypeError as e:
                    raise FilterApplyError(entry.name, str(e)) from e
            tests = transformed

        return tests

    def execute(self, tests: TestSet, executor) -> list[ResultRecord]:
        """Run the final test set exactly once."""
        logger.debug(f"Executing {len(tests)} cases")
        return tests.run(executor)

    def analyze(self, results: list[ResultRecord]) -> dict[str, Any]:
        """Collect one analysis per filter, keyed by filter name.

        A failing filter contributes a FilterAnalyzeError instead of an
        analysis value.
        """
        analyses: dict[str, Any] = {}

        for entry in self.entries:
            # Every filter gets its own copy of the original records
            records = copy.deepcopy(results)
            try:
                analyses[entry.name] = entry.filter.analyze(records, dict(entry.spec.analyze))
            except Exception as e:
                error = FilterAnalyzeError(entry.name, f"{type(e).__name__}: {e}")
                logger.warning(str(error))
                analyses[entry.name] = error

        return analyses

    def run(self, tests: TestSet, executor) -> tuple[list[ResultRecord], dict[str, Any]]:
        """Apply, execute and analyze, strictly in that order."""
        tests = self.apply(tests)
        results = self.execute(tests, executor)
        return results, self.analyze(results)
