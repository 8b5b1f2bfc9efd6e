"""CLI entrypoints for cloudsdk-runner."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from cloudsdk_runner.appyaml import AppYamlError, read_runtime
from cloudsdk_runner.config import SdkConfig, load_config
from cloudsdk_runner.execution import CommandExecutionError, CommandExecutorFactory
from cloudsdk_runner.install import SdkInstaller
from cloudsdk_runner.resolvers import SdkNotFoundError
from cloudsdk_runner.sdk import CloudSdk, SdkOutOfDateError
from cloudsdk_runner.util.logging import configure_logging

app = typer.Typer(help="Run Cloud SDK commands with captured output.")

_EXPECTED_ERRORS = (
    AppYamlError,
    CommandExecutionError,
    SdkNotFoundError,
    SdkOutOfDateError,
    ValueError,
)


def _fail(exc: Exception) -> typer.Exit:
    typer.echo(f"Error: {exc}")
    return typer.Exit(code=1)


def _config(ctx: typer.Context) -> SdkConfig:
    return ctx.obj if isinstance(ctx.obj, SdkConfig) else SdkConfig()


def _sdk(ctx: typer.Context) -> CloudSdk:
    return CloudSdk.from_config(_config(ctx))


@app.callback()
def main(
    ctx: typer.Context,
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (e.g., DEBUG, INFO, WARNING).",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file or directory.",
    ),
) -> None:
    """Configure CLI-level options."""

    try:
        config = load_config(config_path)
    except ValueError as exc:
        raise _fail(exc) from exc
    configure_logging(
        log_level or config.log_level,
        process_output_level=config.process_output_level,
    )
    ctx.obj = config


@app.command()
def locate(ctx: typer.Context) -> None:
    """Print the Cloud SDK installation directory."""

    try:
        sdk = _sdk(ctx)
    except SdkNotFoundError as exc:
        raise _fail(exc) from exc
    typer.echo(str(sdk.sdk_path))


@app.command()
def version(ctx: typer.Context) -> None:
    """Print the installed Cloud SDK version."""

    try:
        sdk_version = _sdk(ctx).get_version()
    except _EXPECTED_ERRORS as exc:
        raise _fail(exc) from exc
    typer.echo(str(sdk_version))


@app.command()
def validate(ctx: typer.Context) -> None:
    """Check that the Cloud SDK is installed and supported."""

    try:
        sdk = _sdk(ctx)
        sdk.validate()
    except _EXPECTED_ERRORS as exc:
        raise _fail(exc) from exc
    typer.echo(f"Cloud SDK at {sdk.sdk_path} is valid.")


@app.command(
    "gcloud",
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)
def gcloud_command(
    ctx: typer.Context,
    capture: bool = typer.Option(
        False,
        "--capture",
        help="Capture stdout and print it once the command succeeds.",
    ),
    cwd: Optional[Path] = typer.Option(
        None,
        "--cwd",
        help="Working directory for gcloud.",
    ),
) -> None:
    """Run gcloud with the remaining arguments."""

    args = list(ctx.args)
    try:
        sdk = _sdk(ctx)
        if capture:
            typer.echo(sdk.caller(args, working_directory=cwd).call(), nl=False)
        else:
            sdk.runner(args, working_directory=cwd).execute()
    except _EXPECTED_ERRORS as exc:
        raise _fail(exc) from exc


@app.command()
def runtime(app_yaml: Path = typer.Argument(..., help="Path to app.yaml.")) -> None:
    """Print the runtime declared in an app.yaml file."""

    try:
        declared = read_runtime(app_yaml)
    except AppYamlError as exc:
        raise _fail(exc) from exc
    typer.echo(declared or "non-determined")


@app.command()
def install(
    ctx: typer.Context,
    sdk_root: Path = typer.Argument(..., help="Directory of an extracted Cloud SDK."),
) -> None:
    """Run the install script of an extracted Cloud SDK."""

    factory = CommandExecutorFactory(timeout_s=_config(ctx).timeout_s)
    try:
        SdkInstaller(executor_factory=factory).install(sdk_root.resolve())
    except _EXPECTED_ERRORS as exc:
        raise _fail(exc) from exc
    typer.echo(f"Installed Cloud SDK in {sdk_root}")
