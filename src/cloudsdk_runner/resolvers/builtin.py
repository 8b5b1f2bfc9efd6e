"""Built-in Cloud SDK resolvers."""

from __future__ import annotations

import os
import shutil
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path

from cloudsdk_runner.resolvers.base import ResolverChain, SdkResolver
from cloudsdk_runner.util.logging import get_logger

SDK_HOME_VARIABLES: tuple[str, ...] = ("CLOUDSDK_HOME", "GOOGLE_CLOUD_SDK_HOME")
GCLOUD_EXECUTABLE = "gcloud"

_logger = get_logger(__name__)


class FixedPathResolver(SdkResolver):
    """Always answers with a configured path."""

    def __init__(self, path: Path, rank: int = 0) -> None:
        self._path = path
        self._rank = rank

    @property
    def rank(self) -> int:
        return self._rank

    def get_sdk_path(self) -> Path | None:
        return self._path


class EnvironmentResolver(SdkResolver):
    """Reads the SDK root from well-known environment variables."""

    def __init__(
        self,
        environ: Mapping[str, str] | None = None,
        variables: Iterable[str] = SDK_HOME_VARIABLES,
        rank: int = 10,
    ) -> None:
        self._environ = environ if environ is not None else os.environ
        self._variables = tuple(variables)
        self._rank = rank

    @property
    def rank(self) -> int:
        return self._rank

    def get_sdk_path(self) -> Path | None:
        for variable in self._variables:
            value = self._environ.get(variable, "").strip()
            if value:
                _logger.debug("Cloud SDK location taken from %s.", variable)
                return Path(value)
        return None


class PathResolver(SdkResolver):
    """Finds the gcloud executable on PATH and returns the root above ``bin``."""

    def __init__(
        self,
        which: Callable[[str], str | None] = shutil.which,
        rank: int = 100,
    ) -> None:
        self._which = which
        self._rank = rank

    @property
    def rank(self) -> int:
        return self._rank

    def get_sdk_path(self) -> Path | None:
        location = self._which(GCLOUD_EXECUTABLE)
        if not location:
            return None
        executable = Path(location).resolve()
        if executable.parent.name != "bin":
            _logger.debug("Ignoring gcloud outside a bin directory: %s", executable)
            return None
        return executable.parent.parent


class WellKnownLocationsResolver(SdkResolver):
    """Checks configured and conventional install directories."""

    def __init__(
        self,
        search_paths: Iterable[Path] = (),
        environ: Mapping[str, str] | None = None,
        rank: int = 1000,
    ) -> None:
        self._search_paths = tuple(search_paths)
        self._environ = environ if environ is not None else os.environ
        self._rank = rank

    @property
    def rank(self) -> int:
        return self._rank

    def candidates(self) -> list[Path]:
        """Return the directories checked, in order."""

        candidates = list(self._search_paths)
        home = self._environ.get("HOME") or self._environ.get("USERPROFILE")
        if home:
            candidates.append(Path(home) / "google-cloud-sdk")
        candidates.extend(
            [
                Path("/usr/lib/google-cloud-sdk"),
                Path("/usr/local/share/google-cloud-sdk"),
                Path("/opt/google-cloud-sdk"),
            ]
        )
        local_app_data = self._environ.get("LOCALAPPDATA")
        if local_app_data:
            candidates.append(Path(local_app_data) / "Google" / "Cloud SDK" / "google-cloud-sdk")
        return candidates

    def get_sdk_path(self) -> Path | None:
        for candidate in self.candidates():
            if candidate.is_dir():
                return candidate
        return None


def default_resolvers(
    search_paths: Iterable[Path] = (),
    environ: Mapping[str, str] | None = None,
) -> list[SdkResolver]:
    """Return the standard resolver strategies."""

    return [
        EnvironmentResolver(environ),
        PathResolver(),
        WellKnownLocationsResolver(search_paths, environ),
    ]


def default_resolver_chain(
    sdk_path: Path | None = None,
    search_paths: Iterable[Path] = (),
    environ: Mapping[str, str] | None = None,
) -> ResolverChain:
    """Build the process-wide resolver chain.

    Args:
        sdk_path: Optional pinned SDK root that takes precedence over lookups.
        search_paths: Extra install directories to check.
        environ: Environment to read; defaults to ``os.environ``.
    """

    resolvers = default_resolvers(search_paths, environ)
    if sdk_path is not None:
        resolvers.insert(0, FixedPathResolver(sdk_path))
    return ResolverChain(resolvers)
