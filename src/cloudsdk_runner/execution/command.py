"""Command runners that turn process exit codes into results or errors."""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator, Mapping, Sequence
from contextlib import nullcontext
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import ContextManager

from cloudsdk_runner.execution.base import (
    CommandExecutionError,
    CommandExecutorFactory,
    CommandExitError,
    ResultInterruptedError,
    StreamInterruptedError,
)
from cloudsdk_runner.execution.streams import (
    DEFAULT_ENCODING,
    AsyncLineHandler,
    AsyncStreamHandler,
    AsyncStreamSaver,
    LoggingLineListener,
    ProcessOutputLineListener,
)
from cloudsdk_runner.util.logging import STDERR_LOGGER, STDOUT_LOGGER, get_logger
from cloudsdk_runner.util.observability import ObservabilityManager

DEFAULT_DRAIN_TIMEOUT_S = 5.0


@dataclass(frozen=True)
class Command:
    """Immutable, non-empty sequence of command line tokens."""

    tokens: tuple[str, ...]

    def __post_init__(self) -> None:
        if isinstance(self.tokens, (str, bytes)):
            raise ValueError("Command must be a sequence of arguments, not a single string.")
        tokens = tuple(self.tokens)
        if not tokens:
            raise ValueError("Command must contain at least one argument.")
        if not all(isinstance(token, str) for token in tokens):
            raise ValueError("Command tokens must be strings.")
        object.__setattr__(self, "tokens", tokens)

    @classmethod
    def of(cls, *tokens: str) -> Command:
        return cls(tokens)

    @property
    def program(self) -> str:
        return self.tokens[0]

    def __iter__(self) -> Iterator[str]:
        return iter(self.tokens)

    def __len__(self) -> int:
        return len(self.tokens)

    def __str__(self) -> str:
        return " ".join(self.tokens)


@dataclass(frozen=True)
class ExecutionContext:
    """Working directory and environment overlay for a single launch.

    Attributes:
        working_directory: Directory to run in; None inherits the caller's.
        environment: Variables added to or overriding the inherited environment.
    """

    working_directory: Path | None = None
    environment: Mapping[str, str] | None = None

    def __post_init__(self) -> None:
        if self.environment is not None:
            object.__setattr__(self, "environment", MappingProxyType(dict(self.environment)))


def _as_command(command: Command | Sequence[str]) -> Command:
    if isinstance(command, Command):
        return command
    return Command(tuple(command))


class _ManagedCommand:
    """Shared launch logic for runners and callers."""

    def __init__(
        self,
        command: Command | Sequence[str],
        context: ExecutionContext | None,
        executor_factory: CommandExecutorFactory | None,
        observability: ObservabilityManager | None,
    ) -> None:
        self.command = _as_command(command)
        self.context = context or ExecutionContext()
        self._executor_factory = executor_factory or CommandExecutorFactory()
        self._observability = observability
        self._logger = get_logger(self.__class__.__name__)

    def _launch(
        self,
        stdout: AsyncStreamHandler,
        stderr: AsyncStreamHandler,
        cancel: threading.Event | None,
    ) -> int:
        executor = self._executor_factory.new_executor()
        self._logger.info("Running command: %s", self.command)
        self._record("command.started", {"command": list(self.command)}, "commands.started")
        with self._track_duration():
            exit_code = executor.run(
                self.command.tokens,
                self.context.working_directory,
                self.context.environment,
                stdout,
                stderr,
                cancel=cancel,
            )
        if exit_code != 0:
            self._record(
                "command.failed",
                {"command": list(self.command), "exit_code": exit_code},
                "commands.failed",
                level="ERROR",
            )
        else:
            self._record("command.finished", {"command": list(self.command), "exit_code": 0})
        return exit_code

    def _record(
        self,
        event_type: str,
        payload: dict[str, object],
        counter: str | None = None,
        *,
        level: str = "INFO",
    ) -> None:
        if self._observability is None:
            return
        self._observability.log_event(event_type, payload, level=level)
        if counter is not None:
            self._observability.metrics.increment(counter)

    def _track_duration(self) -> ContextManager[None]:
        if self._observability is None:
            return nullcontext()
        return self._observability.track_duration("command.duration")


class CommandRunner(_ManagedCommand):
    """Run a command and stream its output to line listeners."""

    def __init__(
        self,
        command: Command | Sequence[str],
        context: ExecutionContext | None = None,
        *,
        executor_factory: CommandExecutorFactory | None = None,
        stdout_listeners: Iterable[ProcessOutputLineListener] | None = None,
        stderr_listeners: Iterable[ProcessOutputLineListener] | None = None,
        encoding: str = DEFAULT_ENCODING,
        drain_timeout_s: float | None = DEFAULT_DRAIN_TIMEOUT_S,
        observability: ObservabilityManager | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            command: Program and arguments to run.
            context: Optional working directory and environment overlay.
            executor_factory: Creates one executor per launch.
            stdout_listeners: Receive stdout lines; defaults to logging them.
            stderr_listeners: Receive stderr lines; defaults to logging them.
            encoding: Text encoding of the process output.
            drain_timeout_s: How long to wait for remaining output once the
                process has exited. Output held open by a process the command
                started in the background is abandoned after this. None waits
                for end-of-stream.
            observability: Optional event and metrics sink.
        """

        super().__init__(command, context, executor_factory, observability)
        self._drain_timeout_s = drain_timeout_s
        self._stdout_listeners = (
            list(stdout_listeners)
            if stdout_listeners is not None
            else [LoggingLineListener(STDOUT_LOGGER)]
        )
        self._stderr_listeners = (
            list(stderr_listeners)
            if stderr_listeners is not None
            else [LoggingLineListener(STDERR_LOGGER)]
        )
        self._encoding = encoding

    def execute(self, cancel: threading.Event | None = None) -> None:
        """Run the command to completion.

        Raises:
            CommandExitError: If the process exits with a non-zero code.
            ProcessStartError: If the process could not be launched.
            ProcessCancelledError: If ``cancel`` was set while the process ran.
        """

        stdout = AsyncLineHandler(self._stdout_listeners, self._encoding)
        stderr = AsyncLineHandler(self._stderr_listeners, self._encoding)
        exit_code = self._launch(stdout, stderr, cancel)
        # Deliver every line before reporting the outcome.
        for name, handler in (("stdout", stdout), ("stderr", stderr)):
            if not handler.join(self._drain_timeout_s):
                self._logger.debug(
                    "Stopped waiting for %s of %s after %ss; the stream is still open.",
                    name,
                    self.command,
                    self._drain_timeout_s,
                )
        if exit_code != 0:
            raise CommandExitError(exit_code)


class CommandCaller(_ManagedCommand):
    """Run a command and return its standard output."""

    def __init__(
        self,
        command: Command | Sequence[str],
        context: ExecutionContext | None = None,
        *,
        executor_factory: CommandExecutorFactory | None = None,
        encoding: str = DEFAULT_ENCODING,
        result_timeout_s: float | None = None,
        observability: ObservabilityManager | None = None,
    ) -> None:
        """Initialize the caller.

        Args:
            command: Program and arguments to run.
            context: Optional working directory and environment overlay.
            executor_factory: Creates one executor per launch.
            encoding: Text encoding of the process output.
            result_timeout_s: Optional bound on waiting for captured output.
            observability: Optional event and metrics sink.
        """

        super().__init__(command, context, executor_factory, observability)
        self._encoding = encoding
        self._result_timeout_s = result_timeout_s

    def call(self, cancel: threading.Event | None = None) -> str:
        """Run the command and return everything it wrote to stdout.

        Raises:
            CommandExitError: If the process exits with a non-zero code.
            ResultInterruptedError: If waiting for the captured stdout was interrupted.
            ProcessStartError: If the process could not be launched.
            ProcessCancelledError: If ``cancel`` was set while the process ran.
        """

        stdout = AsyncStreamSaver(self._encoding)
        stderr = AsyncStreamSaver(self._encoding)
        exit_code = self._launch(stdout, stderr, cancel)

        if exit_code != 0:
            stderr_text: str | None = None
            try:
                stderr_text = stderr.result.get(self._result_timeout_s)
            except CommandExecutionError as exc:
                self._logger.debug("Captured stderr unavailable: %s", exc)
            else:
                # stderr is only surfaced when the command fails.
                self._logger.error(stderr_text)
            raise CommandExitError(exit_code, stderr_text)

        try:
            return stdout.result.get(self._result_timeout_s)
        except StreamInterruptedError as exc:
            raise ResultInterruptedError("Interrupted obtaining result.") from exc
