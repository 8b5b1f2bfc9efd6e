"""Access to a local Cloud SDK installation and its gcloud command."""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path

from cloudsdk_runner.appyaml import read_runtime
from cloudsdk_runner.config import SdkConfig, build_resolver_chain
from cloudsdk_runner.execution import (
    DEFAULT_DRAIN_TIMEOUT_S,
    CommandCaller,
    CommandExecutorFactory,
    CommandRunner,
    ExecutionContext,
    ProcessOutputLineListener,
)
from cloudsdk_runner.resolvers import ResolverChain, SdkNotFoundError, default_resolver_chain
from cloudsdk_runner.semver import SemanticVersion
from cloudsdk_runner.util.logging import get_logger
from cloudsdk_runner.util.observability import ObservabilityManager

MINIMUM_VERSION = SemanticVersion.parse("171.0.0")
JAVA_APPENGINE_SDK_PATH = Path("platform/google_appengine/google/appengine/tools/java/lib")
JAVA_TOOLS_JAR = "appengine-tools-api.jar"
DEFAULT_GCLOUD_ENVIRONMENT: dict[str, str] = {"CLOUDSDK_CORE_DISABLE_PROMPTS": "1"}


class SdkOutOfDateError(RuntimeError):
    """Raised when the installed Cloud SDK is missing a version or is too old."""

    def __init__(self, minimum: SemanticVersion = MINIMUM_VERSION) -> None:
        super().__init__(f"Cloud SDK versions below {minimum} are not supported by this library.")
        self.minimum = minimum


class CloudSdk:
    """A located Cloud SDK installation."""

    def __init__(
        self,
        sdk_path: Path | None = None,
        *,
        resolvers: ResolverChain | None = None,
        environment: Mapping[str, str] | None = None,
        executor_factory: CommandExecutorFactory | None = None,
        result_timeout_s: float | None = None,
        drain_timeout_s: float | None = DEFAULT_DRAIN_TIMEOUT_S,
        observability: ObservabilityManager | None = None,
        is_windows: bool | None = None,
    ) -> None:
        """Initialize the SDK handle.

        Args:
            sdk_path: Pinned SDK root. When omitted the resolver chain is consulted.
            resolvers: Resolver chain; defaults to the built-in strategies.
            environment: Variables overlaid on every gcloud invocation.
            executor_factory: Creates one executor per gcloud launch.
            result_timeout_s: Optional bound on waiting for captured output.
            drain_timeout_s: Bound on waiting for streamed output after gcloud exits.
            observability: Optional event and metrics sink.
            is_windows: Overrides platform detection for executable names.

        Raises:
            SdkNotFoundError: If no resolver produces an SDK location.
        """

        if sdk_path is None:
            chain = resolvers if resolvers is not None else default_resolver_chain()
            sdk_path = chain.resolve()
            if sdk_path is None:
                raise SdkNotFoundError(
                    "Cloud SDK not found. Set CLOUDSDK_HOME, put gcloud on PATH "
                    "or configure sdk_path."
                )
        self._sdk_path = sdk_path
        self._environment = {**DEFAULT_GCLOUD_ENVIRONMENT, **(environment or {})}
        self._executor_factory = executor_factory or CommandExecutorFactory()
        self._result_timeout_s = result_timeout_s
        self._drain_timeout_s = drain_timeout_s
        self._observability = observability
        self._is_windows = os.name == "nt" if is_windows is None else is_windows
        self._logger = get_logger(self.__class__.__name__)

    @classmethod
    def from_config(
        cls,
        config: SdkConfig,
        *,
        observability: ObservabilityManager | None = None,
    ) -> CloudSdk:
        """Create an SDK handle from loaded configuration."""

        return cls(
            resolvers=build_resolver_chain(config),
            environment=config.environment,
            executor_factory=CommandExecutorFactory(timeout_s=config.timeout_s),
            result_timeout_s=config.result_timeout_s,
            drain_timeout_s=config.drain_timeout_s,
            observability=observability,
        )

    @property
    def sdk_path(self) -> Path:
        return self._sdk_path

    @property
    def gcloud_path(self) -> Path:
        name = "gcloud.cmd" if self._is_windows else "gcloud"
        return self._sdk_path / "bin" / name

    @property
    def environment(self) -> dict[str, str]:
        return dict(self._environment)

    @property
    def java_appengine_sdk_path(self) -> Path:
        return self._sdk_path / JAVA_APPENGINE_SDK_PATH

    @property
    def windows_python_path(self) -> Path:
        return Path(os.environ.get("CLOUDSDK_PYTHON", "python"))

    def get_jar_path(self, jar_name: str) -> Path:
        """Return the path of a jar shipped with the App Engine Java components."""

        return self.java_appengine_sdk_path / jar_name

    def get_version(self) -> SemanticVersion:
        """Read the SDK version from its VERSION file.

        Raises:
            SdkOutOfDateError: If the file is missing or does not hold a valid version.
        """

        version_file = self._sdk_path / "VERSION"
        try:
            return SemanticVersion.parse(version_file.read_text(encoding="utf-8").strip())
        except (OSError, ValueError) as exc:
            self._logger.debug("Unable to read Cloud SDK version from %s: %s", version_file, exc)
            raise SdkOutOfDateError() from exc

    def validate(self) -> None:
        """Check that the SDK is installed and recent enough.

        Raises:
            SdkNotFoundError: If the SDK directory or gcloud executable is missing.
            SdkOutOfDateError: If the version is unknown or below MINIMUM_VERSION.
        """

        if not self._sdk_path.is_dir():
            raise SdkNotFoundError(
                f"Cloud SDK path {self._sdk_path} does not exist or is not a directory."
            )
        if not self.gcloud_path.is_file():
            raise SdkNotFoundError(f"gcloud executable not found at {self.gcloud_path}.")
        if self.get_version() < MINIMUM_VERSION:
            raise SdkOutOfDateError()

    def validate_app_engine_java_components(self) -> None:
        """Check that the App Engine Java components are installed.

        Raises:
            SdkNotFoundError: If the Java tools jar is missing.
        """

        if not self.get_jar_path(JAVA_TOOLS_JAR).is_file():
            raise SdkNotFoundError(
                "App Engine Java components not installed. Run "
                "'gcloud components install app-engine-java'."
            )

    def app_runtime(self, app_yaml: Path) -> str | None:
        """Return the runtime declared by an app.yaml file."""

        return read_runtime(app_yaml)

    def runner(
        self,
        args: Sequence[str],
        *,
        working_directory: Path | None = None,
        stdout_listeners: Iterable[ProcessOutputLineListener] | None = None,
        stderr_listeners: Iterable[ProcessOutputLineListener] | None = None,
    ) -> CommandRunner:
        """Build a runner for ``gcloud <args>`` that streams its output."""

        return CommandRunner(
            self._gcloud_command(args),
            self._context(working_directory),
            executor_factory=self._executor_factory,
            stdout_listeners=stdout_listeners,
            stderr_listeners=stderr_listeners,
            drain_timeout_s=self._drain_timeout_s,
            observability=self._observability,
        )

    def caller(self, args: Sequence[str], *, working_directory: Path | None = None) -> CommandCaller:
        """Build a caller for ``gcloud <args>`` that returns its stdout."""

        return CommandCaller(
            self._gcloud_command(args),
            self._context(working_directory),
            executor_factory=self._executor_factory,
            result_timeout_s=self._result_timeout_s,
            observability=self._observability,
        )

    def _gcloud_command(self, args: Sequence[str]) -> list[str]:
        return [str(self.gcloud_path), *args]

    def _context(self, working_directory: Path | None) -> ExecutionContext:
        return ExecutionContext(working_directory=working_directory, environment=self._environment)
