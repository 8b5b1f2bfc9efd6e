from __future__ import annotations

import io
import os
import subprocess
import sys
import threading
from pathlib import Path
from typing import Any

import pytest

from cloudsdk_runner.execution.base import (
    CommandExitError,
    CommandTimeoutError,
    ProcessCancelledError,
    ProcessStartError,
)
from cloudsdk_runner.execution.local_exec import ProcessExecutor, ProcessFactory
from cloudsdk_runner.execution.streams import AsyncStreamSaver

PYTHON = sys.executable


class FakeProcess:
    pid = 4242

    def __init__(self, exit_code: int = 0, interrupt_wait: bool = False) -> None:
        self.stdout = io.BytesIO(b"")
        self.stderr = io.BytesIO(b"")
        self.exit_code = exit_code
        self.interrupt_wait = interrupt_wait
        self.killed = False

    def wait(self, timeout: float | None = None) -> int:
        if self.killed:
            return -9
        if self.interrupt_wait:
            raise KeyboardInterrupt
        return self.exit_code

    def kill(self) -> None:
        self.killed = True


class FakeProcessFactory(ProcessFactory):
    def __init__(self, process: FakeProcess) -> None:
        self.process = process
        self.calls: list[dict[str, Any]] = []

    def start(self, command: Any, working_directory: Any, environment: Any) -> Any:
        self.calls.append(
            {"command": list(command), "cwd": working_directory, "env": environment}
        )
        return self.process


class RecordingProcessFactory(ProcessFactory):
    def __init__(self) -> None:
        self.process: subprocess.Popen[bytes] | None = None

    def start(self, command: Any, working_directory: Any, environment: Any) -> Any:
        self.process = super().start(command, working_directory, environment)
        return self.process


def _run(executor: ProcessExecutor, command: list[str], **kwargs: Any) -> tuple[int, str, str]:
    stdout = AsyncStreamSaver()
    stderr = AsyncStreamSaver()
    exit_code = executor.run(
        command,
        kwargs.pop("cwd", None),
        kwargs.pop("env", None),
        stdout,
        stderr,
        **kwargs,
    )
    return exit_code, stdout.result.get(timeout=30), stderr.result.get(timeout=30)


def test_process_executor_returns_exit_code() -> None:
    exit_code, _, _ = _run(ProcessExecutor(), [PYTHON, "-c", "import sys; sys.exit(3)"])

    assert exit_code == 3


def test_process_executor_drains_output_larger_than_pipe_buffer() -> None:
    script = (
        "import sys; sys.stdout.write('o' * 1000000); sys.stdout.flush(); "
        "sys.stderr.write('e' * 1000000)"
    )

    exit_code, stdout, stderr = _run(ProcessExecutor(), [PYTHON, "-c", script])

    assert exit_code == 0
    assert stdout == "o" * 1000000
    assert stderr == "e" * 1000000


def test_process_executor_overlays_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INHERITED_VARIABLE", "kept")
    script = "import os; print(os.environ['INHERITED_VARIABLE'], os.environ['OVERLAY_VARIABLE'])"

    _, stdout, _ = _run(
        ProcessExecutor(), [PYTHON, "-c", script], env={"OVERLAY_VARIABLE": "added"}
    )

    assert stdout.split() == ["kept", "added"]


def test_process_executor_uses_working_directory(tmp_path: Path) -> None:
    _, stdout, _ = _run(
        ProcessExecutor(), [PYTHON, "-c", "import os; print(os.getcwd())"], cwd=tmp_path
    )

    assert Path(stdout.strip()).resolve() == tmp_path.resolve()


def test_process_executor_merges_environment_without_replacing_it() -> None:
    factory = FakeProcessFactory(FakeProcess())

    ProcessExecutor(factory).run(
        ["gcloud", "info"], Path("/tmp"), {"EXTRA_ENV": "yes"}, AsyncStreamSaver(), AsyncStreamSaver()
    )

    call = factory.calls[0]
    assert call["command"] == ["gcloud", "info"]
    assert call["cwd"] == Path("/tmp")
    assert call["env"]["EXTRA_ENV"] == "yes"
    assert os.environ.items() <= call["env"].items()


def test_process_executor_inherits_environment_without_overlay() -> None:
    factory = FakeProcessFactory(FakeProcess())

    ProcessExecutor(factory).run(
        ["gcloud"], None, None, AsyncStreamSaver(), AsyncStreamSaver()
    )

    assert factory.calls[0]["env"] is None
    assert factory.calls[0]["cwd"] is None


def test_missing_executable_raises_start_error(tmp_path: Path) -> None:
    with pytest.raises(ProcessStartError) as excinfo:
        _run(ProcessExecutor(), [str(tmp_path / "no-such-binary")])

    assert not isinstance(excinfo.value, CommandExitError)
    assert isinstance(excinfo.value.__cause__, OSError)


def test_empty_command_is_rejected() -> None:
    with pytest.raises(ValueError):
        ProcessExecutor().run([], None, None, AsyncStreamSaver(), AsyncStreamSaver())


def test_cancel_kills_process_before_raising() -> None:
    factory = RecordingProcessFactory()
    cancel = threading.Event()
    timer = threading.Timer(0.3, cancel.set)
    timer.start()

    try:
        with pytest.raises(ProcessCancelledError, match="Process cancelled"):
            _run(
                ProcessExecutor(factory, poll_interval_s=0.05),
                [PYTHON, "-c", "import time; time.sleep(60)"],
                cancel=cancel,
            )
    finally:
        timer.cancel()

    assert factory.process is not None
    assert factory.process.poll() is not None


def test_timeout_kills_process() -> None:
    factory = RecordingProcessFactory()

    with pytest.raises(CommandTimeoutError):
        _run(
            ProcessExecutor(factory, timeout_s=0.3, poll_interval_s=0.05),
            [PYTHON, "-c", "import time; time.sleep(60)"],
        )

    assert factory.process is not None
    assert factory.process.poll() is not None


def test_keyboard_interrupt_kills_process_and_propagates() -> None:
    process = FakeProcess(interrupt_wait=True)

    with pytest.raises(KeyboardInterrupt):
        ProcessExecutor(FakeProcessFactory(process)).run(
            ["gcloud"], None, None, AsyncStreamSaver(), AsyncStreamSaver()
        )

    assert process.killed is True


def test_reused_stream_handler_kills_started_process() -> None:
    factory = RecordingProcessFactory()
    used_saver = AsyncStreamSaver()
    used_saver.handle_stream(io.BytesIO(b""))

    with pytest.raises(RuntimeError):
        ProcessExecutor(factory).run(
            [PYTHON, "-c", "import time; time.sleep(30)"],
            None,
            None,
            used_saver,
            AsyncStreamSaver(),
        )

    assert factory.process is not None
    assert factory.process.poll() is not None
