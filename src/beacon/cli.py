"""Typer CLI entrypoints for beacon."""

from __future__ import annotations

import json

import typer

from beacon.config import (
    ProjectConfigError,
    initialize_project_config,
    load_settings,
    project_config_exists,
    resolve_project_config_root,
)
from beacon.kernel.debug_log import read_entries
from beacon.kernel.runtime import Runtime
from beacon.ui.render import (
    render_channel_table,
    render_doctor_text,
    render_log_table,
    render_notice,
)

app = typer.Typer(
    no_args_is_help=True,
    help="beacon: in-process observer and signal registry",
)


def _require_project_config() -> None:
    if project_config_exists():
        return
    typer.echo(
        render_notice(
            "error",
            "missing project config directory: {0}. Run `beacon init` first.".format(
                resolve_project_config_root()
            ),
        ),
        err=True,
    )
    raise typer.Exit(code=2)


@app.command("init")
def init_cmd(
    force: bool = typer.Option(
        False,
        "--force",
        help="Recreate .beacon_config (deletes the existing directory first)",
    ),
) -> None:
    try:
        config_root = initialize_project_config(force=force)
    except ProjectConfigError as exc:
        typer.echo(render_notice("error", str(exc)), err=True)
        raise typer.Exit(code=2)

    typer.echo(render_notice("success", "Initialized project config at: {0}".format(config_root)))


@app.command("doctor")
def doctor_cmd(
    verbose: bool = typer.Option(False, "--verbose", help="Include every declared channel"),
    output_format: str = typer.Option("json", "--format", help="Output format: json|text"),
) -> None:
    normalized_format = output_format.strip().lower()
    if normalized_format not in {"json", "text"}:
        typer.echo(render_notice("error", "Unsupported format: {0}".format(output_format)), err=True)
        raise typer.Exit(code=2)

    _require_project_config()
    runtime = Runtime(load_settings(), inspect_only=True)
    try:
        report = runtime.doctor(verbose=verbose)
        if normalized_format == "json":
            typer.echo(json.dumps(report, ensure_ascii=True, indent=2))
            return
        typer.echo(render_doctor_text(report))
    finally:
        runtime.close()


@app.command("channels")
def channels_cmd() -> None:
    _require_project_config()
    runtime = Runtime(load_settings(), inspect_only=True)
    try:
        channels = runtime.describe_channels()
        if not channels:
            typer.echo(render_notice("info", "No channels declared."))
            return
        typer.echo(render_channel_table(info.as_dict() for info in channels))
    finally:
        runtime.close()


@app.command("logs")
def logs_cmd(
    limit: int = typer.Option(20, "--limit", min=1, help="Number of newest entries to show"),
) -> None:
    _require_project_config()
    settings = load_settings()
    rows = read_entries(settings.logs_dir, limit=limit)
    if not rows:
        typer.echo(render_notice("info", "Debug log is empty."))
        return
    typer.echo(render_log_table(rows))


if __name__ == "__main__":
    app()
