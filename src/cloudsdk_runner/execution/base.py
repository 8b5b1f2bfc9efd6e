"""Execution engine base types, interfaces and errors."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cloudsdk_runner.execution.streams import AsyncStreamHandler


class CommandExecutionError(RuntimeError):
    """Base class for failures while running an external command."""


class ProcessStartError(CommandExecutionError):
    """Raised when the operating system cannot launch the process."""


class ProcessCancelledError(CommandExecutionError):
    """Raised after a running process was killed because its wait was cancelled."""


class CommandTimeoutError(ProcessCancelledError):
    """Raised after a running process was killed because it exceeded its timeout."""


class CommandExitError(CommandExecutionError):
    """Raised when a process terminates with a non-zero exit code.

    Attributes:
        exit_code: Exit code reported by the process.
        stderr: Captured standard error, when it was available.
    """

    def __init__(self, exit_code: int, stderr: str | None = None) -> None:
        super().__init__(f"Process exited with non-zero exit code: {exit_code}")
        self.exit_code = exit_code
        self.stderr = stderr


class ResultInterruptedError(CommandExecutionError):
    """Raised when waiting for the captured output of a process is interrupted."""


class StreamInterruptedError(CommandExecutionError):
    """Raised by a stream result handle that was interrupted before completion."""


class CommandExecutor(ABC):
    """Abstract base class for process launchers.

    One executor instance services exactly one process launch.
    """

    @abstractmethod
    def run(
        self,
        command: Sequence[str],
        working_directory: Path | None,
        environment: Mapping[str, str] | None,
        stdout: AsyncStreamHandler,
        stderr: AsyncStreamHandler,
        *,
        cancel: threading.Event | None = None,
    ) -> int:
        """Run a command, draining its output streams, and return its exit code.

        Args:
            command: Program and arguments; must not be empty.
            working_directory: Directory to run in, or None to inherit.
            environment: Variables merged over the inherited environment, or None.
            stdout: Handler that consumes the process standard output.
            stderr: Handler that consumes the process standard error.
            cancel: Optional event that kills the process when set.

        Returns:
            Exit code reported by the process.

        Raises:
            ProcessStartError: If the process could not be launched.
            ProcessCancelledError: If the wait was cancelled.
        """


class CommandExecutorFactory:
    """Creates a fresh executor for every process launch."""

    def __init__(self, timeout_s: float | None = None) -> None:
        self._timeout_s = timeout_s

    def new_executor(self) -> CommandExecutor:
        """Return a new executor instance."""

        from cloudsdk_runner.execution.local_exec import ProcessExecutor

        return ProcessExecutor(timeout_s=self._timeout_s)
