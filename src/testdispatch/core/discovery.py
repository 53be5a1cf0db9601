"""Test discovery services.

Discovery maps a test root to the flat list of fully-qualified case
identifiers. Its listing feeds the menu builder and group expansion.
"""

import subprocess
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Union

from testdispatch.core.models import TestIdentifier
from testdispatch.logging import get_logger

logger = get_logger(__name__)

# pytest exit codes for a clean collection and for an empty one
COLLECT_OK = (0, 5)

# Characters of collection output kept in an error
ERROR_TAIL = 1000


@dataclass
class DiscoveredTest:
    """Represents a discovered test case."""

    identifier: TestIdentifier
    target: str

    @property
    def name(self) -> str:
        return str(self.identifier)


@dataclass
class DiscoveryResult:
    """Result of test discovery."""

    tests: list[DiscoveredTest] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        """Check if discovery was successful."""
        return self.error is None

    @property
    def total_count(self) -> int:
        return len(self.tests)


class Discovery(ABC):
    """Lists the cases available to run."""

    @abstractmethod
    def discover(self) -> DiscoveryResult:
        """Discover all tests."""

    def identifiers(self) -> list[str]:
        return [t.name for t in self.discover().tests]

    def find(self, identifier: Union[TestIdentifier, str]) -> Optional[DiscoveredTest]:
        """Find the case with exactly this identifier."""
        name = str(identifier)
        for test in self.discover().tests:
            if test.name == name:
                return test
        return None

    def locate(self, prefix: Union[TestIdentifier, str]) -> list[DiscoveredTest]:
        """Get every case under ``prefix``, in discovery order."""
        prefix = TestIdentifier.parse(prefix)
        return [t for t in self.discover().tests if t.identifier.startswith(prefix)]


class StaticDiscovery(Discovery):
    """Discovery over a fixed list of identifiers."""

    def __init__(self, identifiers: Iterable[Union[TestIdentifier, str]]):
        self._tests = []
        for identifier in identifiers:
            identifier = TestIdentifier.parse(identifier)
            self._tests.append(DiscoveredTest(identifier=identifier, target=str(identifier)))

    def discover(self) -> DiscoveryResult:
        return DiscoveryResult(tests=list(self._tests))


def node_id_to_identifier(node_id: str) -> TestIdentifier:
    """Convert a pytest node id into a dotted test identifier.

    ``tests/unit/test_a.py::TestA::test_b`` becomes
    ``tests.unit.test_a.TestA.test_b``.
    """
    parts = node_id.split("::")
    path = Path(parts[0])
    segments = [p for p in path.with_suffix("").parts if p not in ("", ".")]
    segments.extend(p for p in parts[1:] if p)
    return TestIdentifier(tuple(segments))


class PytestDiscovery(Discovery):
    """Discovers tests using pytest's collection."""

    def __init__(self, path: str, base_dir: Path, timeout_seconds: int = 60):
        """Initialize discovery.

        Args:
            path: Test directory, relative to base_dir
            base_dir: Project root that pytest runs in
            timeout_seconds: Maximum time allowed for collection
        """
        self.path = path
        self.base_dir = base_dir
        self.timeout_seconds = timeout_seconds
        self._cache: Optional[DiscoveryResult] = None

    def discover(self) -> DiscoveryResult:
        if self._cache is None:
            self._cache = self._collect()
            if not self._cache.success:
                logger.warning(f"Discovery failed: {self._cache.error}")
        return self._cache

    def _collect(self) -> DiscoveryResult:
        try:
            # -q lists one node id per line
            result = subprocess.run(
                [sys.executable, "-m", "pytest", "--collect-only", "-q", self.path],
                capture_output=True,
                text=True,
                cwd=self.base_dir,
                timeout=self.timeout_seconds,
            )
        except subprocess.TimeoutExpired:
            return DiscoveryResult(error="Test discovery timed out")
        except FileNotFoundError as e:
            return DiscoveryResult(error=f"Cannot start pytest: {e}")
        except Exception as e:
            return DiscoveryResult(error=str(e))

        if result.returncode not in COLLECT_OK:
            output = (result.stderr or result.stdout).strip()
            return DiscoveryResult(
                error=f"Test collection failed with exit code {result.returncode}: {output[-ERROR_TAIL:]}"
            )

        return DiscoveryResult(tests=self.parse_output(result.stdout))

    @staticmethod
    def parse_output(stdout: str) -> list[DiscoveredTest]:
        """Parse ``pytest --collect-only -q`` output into discovered tests."""
        tests = []
        for line in stdout.strip().split("\n"):
            line = line.strip()
            if not line or line.startswith("=") or "::" not in line:
                continue

            try:
                identifier = node_id_to_identifier(line)
            except ValueError:
                continue
            tests.append(DiscoveredTest(identifier=identifier, target=line))

        return tests
