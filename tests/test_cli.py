from __future__ import annotations

import json
import os
import stat
from pathlib import Path

import pytest
from typer.testing import CliRunner

from cloudsdk_runner.cli.main import app
from cloudsdk_runner.resolvers import SdkNotFoundError


def _write_config(tmp_path: Path, sdk_path: Path) -> Path:
    config_path = tmp_path / "cloudsdk_runner.yaml"
    config_path.write_text(json.dumps({"sdk_path": str(sdk_path)}), encoding="utf-8")
    return config_path


def _install_gcloud(sdk_root: Path, body: str) -> None:
    gcloud = sdk_root / "bin" / "gcloud"
    gcloud.parent.mkdir(parents=True)
    gcloud.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
    gcloud.chmod(gcloud.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    (sdk_root / "VERSION").write_text("250.0.0", encoding="utf-8")


def test_cli_locate_prints_configured_sdk(tmp_path: Path) -> None:
    sdk_root = tmp_path / "google-cloud-sdk"
    config_path = _write_config(tmp_path, sdk_root)

    result = CliRunner().invoke(app, ["--config", str(config_path), "locate"])

    assert result.exit_code == 0
    assert result.output.strip() == str(sdk_root)


def test_cli_locate_reports_missing_sdk(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_from_config(*args: object, **kwargs: object) -> None:
        raise SdkNotFoundError("Cloud SDK not found.")

    monkeypatch.setattr("cloudsdk_runner.cli.main.CloudSdk.from_config", fake_from_config)

    result = CliRunner().invoke(app, ["locate"])

    assert result.exit_code == 1
    assert "Error: Cloud SDK not found." in result.output


def test_cli_version(tmp_path: Path) -> None:
    sdk_root = tmp_path / "sdk"
    sdk_root.mkdir()
    (sdk_root / "VERSION").write_text("300.0.0\n", encoding="utf-8")

    result = CliRunner().invoke(app, ["-c", str(_write_config(tmp_path, sdk_root)), "version"])

    assert result.exit_code == 0
    assert result.output.strip() == "300.0.0"


def test_cli_version_out_of_date(tmp_path: Path) -> None:
    sdk_root = tmp_path / "sdk"
    sdk_root.mkdir()

    result = CliRunner().invoke(app, ["-c", str(_write_config(tmp_path, sdk_root)), "version"])

    assert result.exit_code == 1
    assert "are not supported by this library" in result.output


def test_cli_runtime(tmp_path: Path) -> None:
    app_yaml = tmp_path / "app.yaml"
    app_yaml.write_text("runtime: java\n", encoding="utf-8")
    empty_yaml = tmp_path / "empty.yaml"
    empty_yaml.write_text("env: flex\n", encoding="utf-8")
    runner = CliRunner()

    assert runner.invoke(app, ["runtime", str(app_yaml)]).output.strip() == "java"
    assert runner.invoke(app, ["runtime", str(empty_yaml)]).output.strip() == "non-determined"


def test_cli_install_runs_installer(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[Path] = []

    def fake_install(self: object, sdk_root: Path, listeners: object = None) -> None:
        calls.append(sdk_root)

    monkeypatch.setattr("cloudsdk_runner.cli.main.SdkInstaller.install", fake_install)

    result = CliRunner().invoke(app, ["install", str(tmp_path)])

    assert result.exit_code == 0
    assert calls == [tmp_path.resolve()]


@pytest.mark.skipif(os.name == "nt", reason="uses a POSIX shell script as gcloud")
def test_cli_gcloud_capture_prints_stdout(tmp_path: Path) -> None:
    sdk_root = tmp_path / "sdk"
    _install_gcloud(sdk_root, 'echo "args: $@"')

    result = CliRunner().invoke(
        app,
        ["-c", str(_write_config(tmp_path, sdk_root)), "gcloud", "--capture", "config", "list"],
    )

    assert result.exit_code == 0
    assert result.output == "args: config list\n"


@pytest.mark.skipif(os.name == "nt", reason="uses a POSIX shell script as gcloud")
def test_cli_gcloud_reports_exit_code(tmp_path: Path) -> None:
    sdk_root = tmp_path / "sdk"
    _install_gcloud(sdk_root, "exit 3")

    result = CliRunner().invoke(
        app, ["-c", str(_write_config(tmp_path, sdk_root)), "gcloud", "app", "deploy"]
    )

    assert result.exit_code == 1
    assert "Error: Process exited with non-zero exit code: 3" in result.output
