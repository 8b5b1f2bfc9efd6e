from __future__ import annotations

import os
from pathlib import Path, PurePosixPath, PureWindowsPath

import pytest

from cloudsdk_runner.install import (
    SdkInstaller,
    UnixInstallScriptProvider,
    WindowsInstallScriptProvider,
    default_install_script_provider,
)
from fakes import FakeExecutor, FakeExecutorFactory


@pytest.mark.parametrize("provider_cls", [UnixInstallScriptProvider, WindowsInstallScriptProvider])
def test_script_command_line_requires_absolute_root(provider_cls: type) -> None:
    with pytest.raises(ValueError, match="non-absolute SDK path"):
        provider_cls({}).get_script_command_line(PurePosixPath("relative/path"))


def test_unix_script_command_line() -> None:
    command_line = UnixInstallScriptProvider({}).get_script_command_line(
        PurePosixPath("/path/to/sdk")
    )

    assert command_line == ["/path/to/sdk/install.sh"]


def test_windows_script_command_line() -> None:
    command_line = WindowsInstallScriptProvider({}).get_script_command_line(
        PureWindowsPath("C:\\path\\to\\sdk")
    )

    assert command_line == ["cmd.exe", "/c", "C:\\path\\to\\sdk\\install.bat"]


def test_environment_variables_picked_up() -> None:
    environment = WindowsInstallScriptProvider(
        {"http_proxy": "test-proxy:8080"}
    ).get_script_environment()

    assert environment == {
        "CLOUDSDK_CORE_DISABLE_PROMPTS": "1",
        "http_proxy": "test-proxy:8080",
    }


def test_default_provider_matches_platform() -> None:
    expected = WindowsInstallScriptProvider if os.name == "nt" else UnixInstallScriptProvider

    assert isinstance(default_install_script_provider(), expected)


def test_installer_runs_script_in_sdk_root(tmp_path: Path) -> None:
    executor = FakeExecutor()
    installer = SdkInstaller(
        UnixInstallScriptProvider({"https_proxy": "proxy:3128"}),
        FakeExecutorFactory(executor),
    )

    installer.install(tmp_path, listeners=[])

    call = executor.calls[0]
    assert list(call["command"]) == [str(tmp_path / "install.sh")]
    assert call["working_directory"] == tmp_path
    assert dict(call["environment"]) == {
        "CLOUDSDK_CORE_DISABLE_PROMPTS": "1",
        "https_proxy": "proxy:3128",
    }
