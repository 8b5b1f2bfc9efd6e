"""Inspection of App Engine ``app.yaml`` descriptors."""

from __future__ import annotations

from pathlib import Path

import yaml


class AppYamlError(RuntimeError):
    """Raised when an app.yaml file cannot be read or parsed."""


def read_runtime(path: Path) -> str | None:
    """Return the ``runtime`` declared in an app.yaml file.

    Args:
        path: Path to the app.yaml file.

    Returns:
        The runtime string, or None when the file does not declare one.

    Raises:
        AppYamlError: If the file cannot be read or is not a YAML mapping.
    """

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise AppYamlError(f"Unable to parse {path}: {exc}") from exc
    if data is None:
        return None
    if not isinstance(data, dict):
        raise AppYamlError(f"{path} must contain a YAML mapping.")
    runtime = data.get("runtime")
    return str(runtime) if runtime is not None else None
