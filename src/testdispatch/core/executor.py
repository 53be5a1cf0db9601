"""Case execution services.

A case executor turns one constructed case into its sequence of result
records. The dispatcher only depends on the CaseExecutor interface; the
command executor below runs each case as a shell command.
"""

import os
import shlex
import subprocess
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from testdispatch.core.group import Case
from testdispatch.core.models import ResultKind, ResultRecord, make_record
from testdispatch.logging import get_logger

logger = get_logger(__name__)

# Characters of output kept in a failure message
MESSAGE_TAIL = 2000


@dataclass
class RawTestOutput:
    """Raw output from test command execution."""

    stdout: str
    stderr: str
    exit_code: int
    duration_ms: int
    command: str


class CaseExecutor(ABC):
    """Produces the result records of a single case."""

    @abstractmethod
    def execute(self, case: Case) -> list[ResultRecord]:
        """Run the case and return the records it emitted, in order."""


class CommandExecutor(CaseExecutor):
    """Executes each case as a shell command and records its outcome."""

    def __init__(
        self,
        command: str,
        working_directory: Path,
        timeout_seconds: int = 300,
        environment: Optional[dict[str, str]] = None,
    ):
        """Initialize command executor.

        Args:
            command: Command template; ``{target}`` is replaced by the case
                target, shell-quoted (e.g. "pytest -q {target}")
            working_directory: Directory to run command in
            timeout_seconds: Maximum time to allow per case
            environment: Additional environment variables to set
        """
        self.command = command
        self.working_directory = working_directory
        self.timeout_seconds = timeout_seconds
        self.environment = environment or {}

    def build_command(self, case: Case) -> str:
        return self.command.format(target=shlex.quote(case.target))

    def run_command(self, command: str) -> RawTestOutput:
        """Run a command and capture its output.

        Timeouts and launch errors are folded into the returned output
        with exit code -1.
        """
        env = {**os.environ, **self.environment}
        start_time = time.time()

        try:
            result = subprocess.run(
                command,
                shell=True,
                capture_output=True,
                text=True,
                cwd=self.working_directory,
                timeout=self.timeout_seconds,
                env=env,
            )
            duration_ms = int((time.time() - start_time) * 1000)

            return RawTestOutput(
                stdout=result.stdout,
                stderr=result.stderr,
                exit_code=result.returncode,
                duration_ms=duration_ms,
                command=command,
            )

        except subprocess.TimeoutExpired:
            return RawTestOutput(
                stdout="",
                stderr=f"Test execution timed out after {self.timeout_seconds} seconds",
                exit_code=-1,
                duration_ms=self.timeout_seconds * 1000,
                command=command,
            )

        except Exception as e:
            duration_ms = int((time.time() - start_time) * 1000)

            return RawTestOutput(
                stdout="",
                stderr=f"Error executing test command: {str(e)}",
                exit_code=-1,
                duration_ms=duration_ms,
                command=command,
            )

    def execute(self, case: Case) -> list[ResultRecord]:
        command = self.build_command(case)
        logger.debug(f"Executing: {command}")
        output = self.run_command(command)

        if output.exit_code == 0:
            kind = ResultKind.PASS
            message = ""
        elif output.exit_code == -1:
            kind = ResultKind.EXCEPTION
            message = output.stderr
        else:
            kind = ResultKind.FAIL
            message = self._tail(output.stdout + output.stderr)

        return [
            make_record(
                kind,
                message=message,
                file=case.target.split("::")[0],
                case=str(case.identifier),
                exit_code=output.exit_code,
                duration_ms=output.duration_ms,
            )
        ]

    @staticmethod
    def _tail(text: str) -> str:
        text = text.strip()
        if len(text) > MESSAGE_TAIL:
            return "... (truncated)\n" + text[-MESSAGE_TAIL:]
        return text
