"""Process execution package."""

from cloudsdk_runner.execution.base import (
    CommandExecutionError,
    CommandExecutor,
    CommandExecutorFactory,
    CommandExitError,
    CommandTimeoutError,
    ProcessCancelledError,
    ProcessStartError,
    ResultInterruptedError,
    StreamInterruptedError,
)
from cloudsdk_runner.execution.command import (
    DEFAULT_DRAIN_TIMEOUT_S,
    Command,
    CommandCaller,
    CommandRunner,
    ExecutionContext,
)
from cloudsdk_runner.execution.local_exec import ProcessExecutor, ProcessFactory
from cloudsdk_runner.execution.streams import (
    AsyncLineHandler,
    AsyncStreamHandler,
    AsyncStreamSaver,
    LoggingLineListener,
    ProcessOutputLineListener,
    StreamResult,
)

__all__ = [
    "DEFAULT_DRAIN_TIMEOUT_S",
    "AsyncLineHandler",
    "AsyncStreamHandler",
    "AsyncStreamSaver",
    "Command",
    "CommandCaller",
    "CommandExecutionError",
    "CommandExecutor",
    "CommandExecutorFactory",
    "CommandExitError",
    "CommandRunner",
    "CommandTimeoutError",
    "ExecutionContext",
    "LoggingLineListener",
    "ProcessCancelledError",
    "ProcessExecutor",
    "ProcessFactory",
    "ProcessOutputLineListener",
    "ProcessStartError",
    "ResultInterruptedError",
    "StreamInterruptedError",
    "StreamResult",
]
