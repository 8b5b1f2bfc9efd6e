"""Running the Cloud SDK install script of a downloaded SDK."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from pathlib import Path, PurePath, PureWindowsPath

from cloudsdk_runner.execution import (
    CommandExecutorFactory,
    CommandRunner,
    ExecutionContext,
    ProcessOutputLineListener,
)
from cloudsdk_runner.util.logging import get_logger


class InstallScriptProvider(ABC):
    """Describes how to invoke the install script on one platform."""

    def __init__(self, additional_environment: Mapping[str, str] | None = None) -> None:
        self._additional_environment = dict(additional_environment or {})

    def get_script_command_line(self, sdk_root: PurePath) -> list[str]:
        """Return the command line that runs the install script under ``sdk_root``.

        Raises:
            ValueError: If ``sdk_root`` is not absolute.
        """

        if not sdk_root.is_absolute():
            raise ValueError("non-absolute SDK path")
        return self._command_line(sdk_root)

    def get_script_environment(self) -> dict[str, str]:
        """Return the environment overlay for the install script."""

        return {"CLOUDSDK_CORE_DISABLE_PROMPTS": "1", **self._additional_environment}

    @abstractmethod
    def _command_line(self, sdk_root: PurePath) -> list[str]:
        ...


class UnixInstallScriptProvider(InstallScriptProvider):
    def _command_line(self, sdk_root: PurePath) -> list[str]:
        return [str(sdk_root / "install.sh")]


class WindowsInstallScriptProvider(InstallScriptProvider):
    def _command_line(self, sdk_root: PurePath) -> list[str]:
        return ["cmd.exe", "/c", str(PureWindowsPath(sdk_root) / "install.bat")]


def default_install_script_provider(
    additional_environment: Mapping[str, str] | None = None,
) -> InstallScriptProvider:
    """Return the provider for the current platform."""

    if os.name == "nt":
        return WindowsInstallScriptProvider(additional_environment)
    return UnixInstallScriptProvider(additional_environment)


class SdkInstaller:
    """Runs the install script bundled with an extracted Cloud SDK."""

    def __init__(
        self,
        provider: InstallScriptProvider | None = None,
        executor_factory: CommandExecutorFactory | None = None,
    ) -> None:
        self._provider = provider or default_install_script_provider()
        self._executor_factory = executor_factory or CommandExecutorFactory()
        self._logger = get_logger(self.__class__.__name__)

    def install(
        self,
        sdk_root: Path,
        listeners: Iterable[ProcessOutputLineListener] | None = None,
    ) -> None:
        """Run the install script inside ``sdk_root``.

        Raises:
            ValueError: If ``sdk_root`` is not absolute.
            CommandExitError: If the install script fails.
        """

        command = self._provider.get_script_command_line(sdk_root)
        self._logger.info("Installing Cloud SDK in %s", sdk_root)
        listener_list = list(listeners) if listeners is not None else None
        CommandRunner(
            command,
            ExecutionContext(
                working_directory=sdk_root,
                environment=self._provider.get_script_environment(),
            ),
            executor_factory=self._executor_factory,
            stdout_listeners=listener_list,
            stderr_listeners=listener_list,
        ).execute()
