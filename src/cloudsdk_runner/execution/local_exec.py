"""Local process executor implementation."""

from __future__ import annotations

import os
import subprocess
import threading
import time
from collections.abc import Mapping, Sequence
from pathlib import Path

from cloudsdk_runner.execution.base import (
    CommandExecutor,
    CommandTimeoutError,
    ProcessCancelledError,
    ProcessStartError,
)
from cloudsdk_runner.execution.streams import AsyncStreamHandler
from cloudsdk_runner.util.logging import get_logger

DEFAULT_POLL_INTERVAL_S = 0.1


class ProcessFactory:
    """Creates operating system processes with piped output streams."""

    def start(
        self,
        command: Sequence[str],
        working_directory: Path | None,
        environment: dict[str, str] | None,
    ) -> subprocess.Popen[bytes]:
        """Launch ``command`` without a shell.

        Raises:
            OSError: If the process cannot be created.
        """

        return subprocess.Popen(
            list(command),
            cwd=str(working_directory) if working_directory is not None else None,
            env=environment,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )


class ProcessExecutor(CommandExecutor):
    """Execute a command on the local host."""

    def __init__(
        self,
        process_factory: ProcessFactory | None = None,
        *,
        timeout_s: float | None = None,
        poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
    ) -> None:
        """Initialize the executor.

        Args:
            process_factory: Creates the process; defaults to subprocess.Popen.
            timeout_s: Optional limit after which the process is killed.
            poll_interval_s: How often the wait checks for cancellation.
        """

        self._process_factory = process_factory or ProcessFactory()
        self._timeout_s = timeout_s
        self._poll_interval_s = poll_interval_s
        self._logger = get_logger(self.__class__.__name__)

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
        if not command:
            raise ValueError("Command must contain at least one argument.")

        merged_env: dict[str, str] | None = None
        if environment is not None:
            merged_env = os.environ.copy()
            merged_env.update(environment)

        try:
            process = self._process_factory.start(command, working_directory, merged_env)
        except OSError as exc:
            raise ProcessStartError(f"Unable to start process '{command[0]}': {exc}") from exc

        if process.stdout is None or process.stderr is None:
            self._destroy(process)
            raise ProcessStartError("Process output streams are not piped.")

        self._logger.debug("Started process %s: %s", process.pid, list(command))
        # Both drains must be consuming before the wait below starts.
        try:
            stdout.handle_stream(process.stdout)
            stderr.handle_stream(process.stderr)
        except BaseException:
            self._destroy(process)
            raise

        exit_code = self._wait(process, cancel)
        self._logger.debug("Process %s exited with code %s.", process.pid, exit_code)
        return exit_code

    def _wait(self, process: subprocess.Popen[bytes], cancel: threading.Event | None) -> int:
        deadline = None
        if self._timeout_s is not None:
            deadline = time.monotonic() + self._timeout_s
        try:
            while True:
                try:
                    return process.wait(timeout=self._poll_interval_s)
                except subprocess.TimeoutExpired:
                    pass
                if cancel is not None and cancel.is_set():
                    self._destroy(process)
                    raise ProcessCancelledError("Process cancelled.")
                if deadline is not None and time.monotonic() >= deadline:
                    self._destroy(process)
                    raise CommandTimeoutError(
                        f"Process exceeded timeout of {self._timeout_s}s and was killed."
                    )
        except KeyboardInterrupt:
            self._destroy(process)
            raise

    def _destroy(self, process: subprocess.Popen[bytes]) -> None:
        self._logger.warning("Killing process %s.", process.pid)
        process.kill()
        process.wait()
