"""Asynchronous consumers for process output streams.

Each handler drains a stream on its own daemon thread so that a child process
never blocks on a full pipe while the parent waits for it to exit.
"""

from __future__ import annotations

import io
import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import IO, Protocol

from cloudsdk_runner.execution.base import CommandExecutionError, StreamInterruptedError
from cloudsdk_runner.util.logging import get_logger

DEFAULT_ENCODING = "utf-8"


class ProcessOutputLineListener(Protocol):
    """Receives process output one line at a time."""

    def on_output_line(self, line: str) -> None:
        ...


class LoggingLineListener:
    """Forwards output lines to a logger."""

    def __init__(self, logger_name: str, level: int = logging.INFO) -> None:
        self._logger = get_logger(logger_name)
        self._level = level

    def on_output_line(self, line: str) -> None:
        self._logger.log(self._level, line)


class StreamResult:
    """Handle to the text captured from a stream.

    The handle completes once the stream reaches end-of-stream. Waiters can be
    released early with ``interrupt``; they then raise StreamInterruptedError.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._completed = threading.Event()
        self._value: str | None = None
        self._error: BaseException | None = None
        self._interrupted = False

    def done(self) -> bool:
        """Return True once the result is available, failed or interrupted."""

        return self._completed.is_set()

    def get(self, timeout: float | None = None) -> str:
        """Block until the stream has been fully consumed and return its text.

        Args:
            timeout: Optional maximum number of seconds to wait.

        Raises:
            StreamInterruptedError: If the handle was interrupted or the wait timed out.
            CommandExecutionError: If reading the stream failed.
        """

        finished = self._completed.wait(timeout)
        with self._lock:
            if self._interrupted:
                raise StreamInterruptedError("Interrupted while waiting for stream output.")
            if not finished:
                raise StreamInterruptedError(
                    f"Timed out after {timeout}s waiting for stream output."
                )
            if self._error is not None:
                raise CommandExecutionError("Unable to read process output.") from self._error
            return self._value or ""

    def interrupt(self) -> None:
        """Release current and future waiters without a result."""

        with self._lock:
            if self._completed.is_set():
                return
            self._interrupted = True
            self._completed.set()

    def set_result(self, value: str) -> None:
        with self._lock:
            if self._completed.is_set():
                return
            self._value = value
            self._completed.set()

    def set_exception(self, error: BaseException) -> None:
        with self._lock:
            if self._completed.is_set():
                return
            self._error = error
            self._completed.set()


class AsyncStreamHandler(ABC):
    """Consumes a stream on a dedicated thread. Instances are single-use."""

    def __init__(self, encoding: str = DEFAULT_ENCODING) -> None:
        self._encoding = encoding
        self._thread: threading.Thread | None = None
        self._logger = get_logger(self.__class__.__name__)

    def handle_stream(self, stream: IO[bytes]) -> None:
        """Start draining ``stream`` in the background and return immediately."""

        if self._thread is not None:
            raise RuntimeError("Stream handlers cannot be reused.")
        self._thread = threading.Thread(
            target=self._drain,
            args=(stream,),
            name=f"{self.__class__.__name__}-drain",
            daemon=True,
        )
        self._thread.start()

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the stream to be drained.

        Returns:
            True if the drain finished, False if it is still running or never started.
        """

        if self._thread is None:
            return False
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def _drain(self, stream: IO[bytes]) -> None:
        try:
            self._consume(stream)
        except Exception as exc:
            self._on_error(exc)
        finally:
            stream.close()

    @abstractmethod
    def _consume(self, stream: IO[bytes]) -> None:
        """Read ``stream`` until end-of-stream."""

    def _on_error(self, error: Exception) -> None:
        self._logger.error("Failed reading process output: %s", error)


class AsyncLineHandler(AsyncStreamHandler):
    """Passes each decoded line of a stream to a set of listeners."""

    def __init__(
        self,
        listeners: Iterable[ProcessOutputLineListener],
        encoding: str = DEFAULT_ENCODING,
    ) -> None:
        super().__init__(encoding)
        self._listeners = list(listeners)

    def _consume(self, stream: IO[bytes]) -> None:
        reader = io.TextIOWrapper(stream, encoding=self._encoding, errors="replace")
        for raw_line in reader:
            line = raw_line.rstrip("\r\n")
            for listener in self._listeners:
                try:
                    listener.on_output_line(line)
                except Exception:
                    # The stream must keep draining or the child blocks on a full pipe.
                    self._logger.exception("Output line listener %r failed.", listener)


class AsyncStreamSaver(AsyncStreamHandler):
    """Accumulates a whole stream into a string exposed through ``result``."""

    def __init__(self, encoding: str = DEFAULT_ENCODING) -> None:
        super().__init__(encoding)
        self.result = StreamResult()

    def _consume(self, stream: IO[bytes]) -> None:
        data = stream.read()
        self.result.set_result(data.decode(self._encoding, errors="replace"))

    def _on_error(self, error: Exception) -> None:
        super()._on_error(error)
        self.result.set_exception(error)
