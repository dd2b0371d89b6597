from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path

import typer
from rich.logging import RichHandler

from . import __version__
from .configuration import load_filter_criteria
from .errors import InputValidationError, StmError
from .eventfilter import FilterCriteria
from .exit_codes import ExitCode
from .orchestration import (
    ExecutionOutcome,
    HealthReport,
    collect_health_report,
    handle_domain_error,
    run_decode,
    run_filter,
)
from .reporting import render_result_codes

APP_NAME = "stmkit"
_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

app = typer.Typer(
    name=APP_NAME,
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def configure_logging(*, quiet: bool = False) -> None:
    """Install the Rich log handler once; later calls only move the level."""

    level = logging.WARNING if quiet else logging.INFO
    root = logging.getLogger()

    if getattr(configure_logging, "_configured", False):
        root.setLevel(level)
        for handler in root.handlers:
            handler.setLevel(level)
        configure_logging._level = level
        return

    handler = RichHandler(
        rich_tracebacks=True,
        show_path=False,
        markup=False,
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT))

    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    configure_logging._configured = True
    configure_logging._level = level


def _is_quiet_mode() -> bool:
    """Return True when `--quiet` lowered logging to warnings."""

    return getattr(configure_logging, "_level", logging.INFO) == logging.WARNING


def _parse_named_data(entries: list[str], option: str) -> dict[str, list[str] | None]:
    """Turn ``Field=Value`` / ``Field`` options into one named-data mapping."""

    mapping: dict[str, list[str] | None] = {}
    for entry in entries:
        name, separator, value = entry.partition("=")
        name = name.strip()
        if not name:
            raise InputValidationError(
                message=f"{option} entry {entry!r} has no field name.",
                remediation=f"Use {option} Field=Value, or {option} Field to test for presence.",
            )
        if not separator:
            mapping.setdefault(name, None)
            continue
        values = mapping.get(name) or []
        values.append(value)
        mapping[name] = values
    return mapping


def _fail(outcome: ExecutionOutcome) -> None:
    """Echo a failed outcome to stderr and exit with its code."""

    if outcome.message:
        typer.echo(f"Error: {outcome.message}", err=True)
    if outcome.remediation:
        typer.echo(f"Remediation: {outcome.remediation}", err=True)
    raise typer.Exit(code=int(outcome.exit_code))


def _render_health_report(report: HealthReport) -> None:
    """Print one line per health check, then the overall verdict."""

    typer.echo("stmkit environment diagnostics")
    typer.echo(f"Python runtime     : {report.python_version}")
    typer.echo(f"Platform           : {report.platform_name}")
    if report.table_details is not None:
        details = report.table_details
        typer.echo(
            f"Result code tables : {details.task_scheduler_count} Task Scheduler / "
            f"{details.common_count} common"
        )

    typer.echo("")
    for check in report.checks:
        typer.echo(f"[{check.status}] {check.name} - {check.detail}")
        if check.remediation:
            typer.echo(f"    Remediation: {check.remediation}")

    typer.echo("")
    typer.echo(f"Overall status: {report.overall_status}")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    quiet: bool = typer.Option(
        False,
        "--quiet",
        help="Reduce log output to warnings and errors.",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show the stmkit version and exit.",
    ),
    health: bool = typer.Option(
        False,
        "--health",
        help="Run offline diagnostics to verify environment readiness.",
    ),
) -> None:
    """Result code and event filter tooling for Windows scheduled tasks."""

    configure_logging(quiet=quiet)

    if version:
        typer.echo(__version__)
        raise typer.Exit(code=int(ExitCode.SUCCESS))

    if health:
        report = collect_health_report()
        _render_health_report(report)
        raise typer.Exit(code=int(ExitCode.SUCCESS))

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=int(ExitCode.SUCCESS))


@app.command("decode")
def decode(
    codes: list[str] = typer.Argument(
        None,
        help="Result codes as decimal or 0x-prefixed hexadecimal values.",
        show_default=False,
    ),
    from_file: Path = typer.Option(
        None,
        "--from-file",
        "-f",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        help="Read additional codes from a text file (one or more per line, # comments).",
    ),
    table: list[Path] = typer.Option(
        [],
        "--table",
        "-t",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        help="Additional result code YAML tables to merge (pass multiple times).",
    ),
    wide: bool = typer.Option(
        False,
        "--wide",
        help="List every known meaning of each code.",
    ),
) -> None:
    """Explain task last-run results, HRESULTs and Win32 error codes."""

    quiet_mode = _is_quiet_mode()
    outcome = run_decode(
        codes or [],
        code_file=from_file,
        table_paths=table,
        quiet=quiet_mode,
        wide=wide,
    )
    if outcome.exit_code != ExitCode.SUCCESS:
        _fail(outcome)

    if outcome.message and not quiet_mode:
        typer.echo(outcome.message)
        typer.echo("")
    if outcome.report is not None:
        typer.echo(render_result_codes(outcome.report))

    raise typer.Exit(code=int(outcome.exit_code))


@app.command("xpath")
def xpath(
    event_id: list[int] = typer.Option([], "--id", "-i", help="Event id to include."),
    exclude_id: list[int] = typer.Option([], "--exclude-id", "-x", help="Event id to exclude."),
    start_time: str = typer.Option(
        None, "--start-time", help="Only events created at or after this ISO 8601 time."
    ),
    end_time: str = typer.Option(
        None, "--end-time", help="Only events created at or before this ISO 8601 time."
    ),
    data: list[str] = typer.Option([], "--data", "-d", help="Exact EventData value to match."),
    provider: list[str] = typer.Option([], "--provider", "-p", help="Event provider name."),
    level: list[str] = typer.Option(
        [], "--level", "-l", help="Level: Critical, Error, Warning, Informational, Verbose."
    ),
    keyword: list[str] = typer.Option(
        [], "--keyword", "-k", help="Keyword mask (decimal/0x) or standard keyword name."
    ),
    user_id: list[str] = typer.Option(
        [], "--user-id", "-u", help="User SID or DOMAIN\\user account name."
    ),
    named_data: list[str] = typer.Option(
        [], "--named-data", help="Named EventData match as Field=Value, or Field for presence."
    ),
    named_data_exclude: list[str] = typer.Option(
        [], "--named-data-exclude", help="Named EventData exclusion as Field=Value or Field."
    ),
    criteria: Path = typer.Option(
        None,
        "--criteria",
        "-c",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        help="YAML criteria profile; command-line options override its fields.",
    ),
) -> None:
    """Build a Windows Event Log XPath filter from selection criteria."""

    overrides: dict[str, object] = {
        "id": event_id,
        "exclude_id": exclude_id,
        "start_time": start_time,
        "end_time": end_time,
        "data": data,
        "provider_name": provider,
        "level": level,
        "keywords": keyword,
        "user_id": user_id,
    }
    try:
        overrides["named_data"] = _parse_named_data(named_data, "--named-data")
        overrides["named_data_exclude"] = _parse_named_data(
            named_data_exclude, "--named-data-exclude"
        )
        supplied = {name: value for name, value in overrides.items() if value}
        if criteria is not None:
            selection = replace(load_filter_criteria(criteria), **supplied)
        else:
            selection = FilterCriteria(**supplied)
    except StmError as exc:
        _fail(handle_domain_error(exc))

    outcome = run_filter(selection)
    if outcome.exit_code != ExitCode.SUCCESS:
        _fail(outcome)

    if outcome.output:
        typer.echo(outcome.output)
    elif outcome.message and not _is_quiet_mode():
        typer.echo(outcome.message, err=True)

    raise typer.Exit(code=int(outcome.exit_code))


def entrypoint() -> None:
    """Console-script entry point."""

    app()


__all__ = ["app", "entrypoint", "configure_logging", "ExitCode"]
