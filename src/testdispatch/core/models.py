"""Data models for test identifiers, result records and statistics."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union


ResultRecord = dict[str, Any]


class ResultKind(str, Enum):
    """Kind of a result record.

    Cases only emit PASS, FAIL and EXCEPTION. ERROR names the aggregate
    bucket holding every failure and exception.
    """

    PASS = "pass"
    FAIL = "fail"
    EXCEPTION = "exception"
    ERROR = "error"

    @property
    def plural(self) -> str:
        """Name of the Stats bucket for this kind."""
        if self is ResultKind.PASS:
            return "passes"
        return f"{self.value}s"


def make_record(
    kind: Union[ResultKind, str],
    message: str = "",
    file: Optional[str] = None,
    line: Optional[int] = None,
    **extra: Any,
) -> ResultRecord:
    """Build a result record as emitted by a case executor."""
    record = {
        "kind": kind.value if isinstance(kind, ResultKind) else kind,
        "message": message,
        "file": file,
        "line": line,
    }
    record.update(extra)
    return record


@dataclass(frozen=True)
class TestIdentifier:
    """Fully-qualified identifier of a case or a group."""

    segments: tuple[str, ...]

    SEPARATOR = "."

    def __post_init__(self):
        if not self.segments:
            raise ValueError("Identifier must have at least one segment")
        if any(not segment for segment in self.segments):
            raise ValueError(f"Identifier has an empty segment: {self.segments!r}")

    @classmethod
    def parse(cls, value: Union[str, "TestIdentifier"]) -> "TestIdentifier":
        """Parse a dotted identifier such as ``lib.tests.cases.FooTest``."""
        if isinstance(value, TestIdentifier):
            return value
        value = value.strip()
        if not value:
            raise ValueError("Identifier cannot be empty")
        return cls(tuple(value.split(cls.SEPARATOR)))

    @property
    def library(self) -> str:
        return self.segments[0]

    @property
    def name(self) -> str:
        return self.segments[-1]

    @property
    def parent(self) -> Optional["TestIdentifier"]:
        if len(self.segments) == 1:
            return None
        return TestIdentifier(self.segments[:-1])

    def child(self, name: str) -> "TestIdentifier":
        return TestIdentifier(self.segments + (name,))

    def startswith(self, prefix: "TestIdentifier") -> bool:
        """Check whether this identifier lives under ``prefix`` (or is it)."""
        return self.segments[: len(prefix.segments)] == prefix.segments

    def __len__(self) -> int:
        return len(self.segments)

    def __str__(self) -> str:
        return self.SEPARATOR.join(self.segments)


@dataclass
class Stats:
    """Aggregate statistics of a result sequence."""

    asserts: int = 0
    passes: list[ResultRecord] = field(default_factory=list)
    fails: list[ResultRecord] = field(default_factory=list)
    exceptions: list[ResultRecord] = field(default_factory=list)
    errors: list[ResultRecord] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True when nothing failed or raised."""
        return not self.errors

    def copy(self) -> "Stats":
        return Stats(
            asserts=self.asserts,
            passes=list(self.passes),
            fails=list(self.fails),
            exceptions=list(self.exceptions),
            errors=list(self.errors),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "asserts": self.asserts,
            "passes": list(self.passes),
            "fails": list(self.fails),
            "exceptions": list(self.exceptions),
            "errors": list(self.errors),
        }
