"""Configuration models and loaders for cloudsdk-runner."""

from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from cloudsdk_runner.execution import DEFAULT_DRAIN_TIMEOUT_S
from cloudsdk_runner.resolvers import ResolverChain, default_resolver_chain

CONFIG_FILE_NAMES: tuple[str, ...] = ("cloudsdk_runner.yaml", "cloudsdk_runner.yml", "pyproject.toml")


@dataclass(frozen=True)
class SdkConfig:
    """Settings shared by every Cloud SDK invocation.

    Attributes:
        sdk_path: Pinned SDK root; skips the resolver lookup when set.
        environment: Variables overlaid on the inherited environment.
        search_paths: Extra install directories checked during lookup.
        timeout_s: Optional limit after which a running process is killed.
        result_timeout_s: Optional limit on waiting for captured output.
        drain_timeout_s: Limit on waiting for output once a streamed process exits.
        log_level: Logging level name.
        process_output_level: Level for output lines of launched processes.
    """

    sdk_path: Path | None = None
    environment: dict[str, str] = field(default_factory=dict)
    search_paths: list[Path] = field(default_factory=list)
    timeout_s: float | None = None
    result_timeout_s: float | None = None
    drain_timeout_s: float = DEFAULT_DRAIN_TIMEOUT_S
    log_level: str = "INFO"
    process_output_level: str | None = None


def load_config(path: Path | None = None) -> SdkConfig:
    """Load configuration from disk.

    Args:
        path: Optional path to a configuration file or directory.

    Returns:
        Parsed SdkConfig with defaults applied when no config exists.
    """

    config_path = _resolve_config_path(path)
    if config_path is None:
        return SdkConfig()

    if config_path.suffix in {".yaml", ".yml"}:
        raw_data = _load_yaml(config_path)
    elif config_path.suffix == ".toml":
        raw_data = _load_toml(config_path)
    else:
        raise ValueError(f"Unsupported config file type: {config_path}")

    return _parse_sdk_config(raw_data, base_path=config_path.parent)


def config_to_dict(config: SdkConfig) -> dict[str, Any]:
    """Serialize an SdkConfig into a JSON-compatible dictionary."""

    return {
        "sdk_path": str(config.sdk_path) if config.sdk_path is not None else None,
        "environment": dict(config.environment),
        "search_paths": [str(path) for path in config.search_paths],
        "timeout_s": config.timeout_s,
        "result_timeout_s": config.result_timeout_s,
        "drain_timeout_s": config.drain_timeout_s,
        "log_level": config.log_level,
        "process_output_level": config.process_output_level,
    }


def update_sdk_path(config: SdkConfig, sdk_path: Path) -> SdkConfig:
    """Return a config copy with a pinned SDK root."""

    return replace(config, sdk_path=sdk_path)


def build_resolver_chain(config: SdkConfig) -> ResolverChain:
    """Assemble the resolver chain described by ``config``."""

    return default_resolver_chain(sdk_path=config.sdk_path, search_paths=config.search_paths)


def _resolve_config_path(path: Path | None) -> Path | None:
    if path is None:
        candidate_paths = [Path(name) for name in CONFIG_FILE_NAMES]
    elif path.is_dir():
        candidate_paths = [path / name for name in CONFIG_FILE_NAMES]
    else:
        candidate_paths = [path]

    for candidate in candidate_paths:
        if candidate.exists():
            return candidate
    return None


def _load_toml(path: Path) -> dict[str, Any]:
    with path.open("rb") as handle:
        data = tomllib.load(handle)
    if path.name == "pyproject.toml":
        tool_config = data.get("tool", {}).get("cloudsdk_runner", {})
        if not isinstance(tool_config, dict):
            raise ValueError("tool.cloudsdk_runner must be a mapping.")
        return tool_config
    return data


def _load_yaml(path: Path) -> dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        data = yaml.safe_load(text)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("YAML configuration must be a mapping.")
    return data


def _parse_sdk_config(raw_data: dict[str, Any], base_path: Path) -> SdkConfig:
    environment = raw_data.get("environment", {})
    if not isinstance(environment, dict):
        raise ValueError("environment must be a mapping of variable names to values.")
    search_paths = raw_data.get("search_paths", [])
    if not isinstance(search_paths, list):
        raise ValueError("search_paths must be a list of directories.")

    sdk_path = _optional_str(raw_data.get("sdk_path"))
    return SdkConfig(
        sdk_path=_resolve_path(sdk_path, base_path) if sdk_path else None,
        environment={str(key): str(value) for key, value in environment.items()},
        search_paths=[_resolve_path(str(entry), base_path) for entry in search_paths],
        timeout_s=_optional_float(raw_data.get("timeout_s")),
        result_timeout_s=_optional_float(raw_data.get("result_timeout_s")),
        drain_timeout_s=float(raw_data.get("drain_timeout_s", DEFAULT_DRAIN_TIMEOUT_S)),
        log_level=str(raw_data.get("log_level", "INFO")),
        process_output_level=_optional_str(raw_data.get("process_output_level")),
    )


def _resolve_path(value: str, base_path: Path) -> Path:
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = (base_path / path).resolve()
    return path


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _optional_float(value: Any) -> float | None:
    if value is None:
        return None
    return float(value)
