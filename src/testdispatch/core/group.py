"""Runnable test tree: cases, groups and flattened test sets."""

import traceback
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING, Iterable, Optional, Union

from testdispatch.core.models import ResultKind, ResultRecord, TestIdentifier, make_record
from testdispatch.logging import get_logger

if TYPE_CHECKING:
    from testdispatch.core.executor import CaseExecutor

logger = get_logger(__name__)


class RunnableTest(ABC):
    """A node of the executable test tree."""

    identifier: Optional[TestIdentifier]

    @abstractmethod
    def cases(self) -> list["Case"]:
        """Flatten into leaf cases, depth-first in declaration order."""


class Case(RunnableTest):
    """A single leaf unit of test execution."""

    def __init__(
        self,
        identifier: Union[TestIdentifier, str],
        target: Optional[str] = None,
    ):
        """Initialize a case.

        Args:
            identifier: Fully-qualified case identifier
            target: Executor-specific address of the case (e.g. a pytest
                node id). Defaults to the dotted identifier.
        """
        self.identifier = TestIdentifier.parse(identifier)
        self.target = target or str(self.identifier)

    def cases(self) -> list["Case"]:
        return [self]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Case):
            return NotImplemented
        return self.identifier == other.identifier and self.target == other.target

    def __hash__(self) -> int:
        return hash((self.identifier, self.target))

    def __repr__(self) -> str:
        return f"Case({str(self.identifier)!r})"


class Group(RunnableTest):
    """A composite of cases and nested groups, owning its children."""

    def __init__(
        self,
        items: Iterable[RunnableTest] = (),
        identifier: Union[TestIdentifier, str, None] = None,
    ):
        self.items: list[RunnableTest] = list(items)
        self.identifier = TestIdentifier.parse(identifier) if identifier else None

    def cases(self) -> list[Case]:
        flattened: list[Case] = []
        for item in self.items:
            flattened.extend(item.cases())
        return flattened

    def tests(self) -> "TestSet":
        """Get the flattened test set to hand to the filter pipeline."""
        return TestSet(self.cases())

    def __repr__(self) -> str:
        name = str(self.identifier) if self.identifier else "<root>"
        return f"Group({name!r}, items={len(self.items)})"


class TestSet(Sequence):
    """Immutable ordered sequence of cases that filters transform."""

    def __init__(self, cases: Iterable[Case] = ()):
        self._cases: tuple[Case, ...] = tuple(cases)
        for case in self._cases:
            if not isinstance(case, Case):
                raise TypeError(f"TestSet only holds cases, got {type(case).__name__}")

    def __getitem__(self, index):
        if isinstance(index, slice):
            return TestSet(self._cases[index])
        return self._cases[index]

    def __len__(self) -> int:
        return len(self._cases)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, TestSet):
            return self._cases == other._cases
        return NotImplemented

    def __repr__(self) -> str:
        return f"TestSet({[str(c.identifier) for c in self._cases]!r})"

    @property
    def identifiers(self) -> list[str]:
        return [str(case.identifier) for case in self._cases]

    def run(self, executor: "CaseExecutor") -> list[ResultRecord]:
        """Execute every case once, in order, and concatenate the records.

        An exception escaping the executor is recorded as an exception
        result for that case and the run carries on.
        """
        results: list[ResultRecord] = []

        for case in self._cases:
            logger.debug(f"Running case {case.identifier}")
            try:
                records = executor.execute(case)
            except Exception as e:
                logger.debug(f"Executor raised for {case.identifier}: {e}")
                records = [
                    make_record(
                        ResultKind.EXCEPTION,
                        message=f"{type(e).__name__}: {e}",
                        case=str(case.identifier),
                        trace=traceback.format_exc(),
                    )
                ]
            results.extend(records)

        return results
