"""Main CLI (Typer).

The commands are thin: they load files through the adapters, call the core
services and render with Rich. Errors from the codec become a red message and
exit code 1.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console

from fmdump.adapters.dump_file import load_dump_file, save_dump_file
from fmdump.adapters.json_exporter import export_dump_json, load_dump_json, load_settlement_reports_json
from fmdump.adapters.logging_setup import configure_logging
from fmdump.cli import doctor
from fmdump.cli.ui_components import build_reports_table, build_summary_table, build_warnings_table, print_banner
from fmdump.core.config import AppSettings
from fmdump.core.domain.models import FiscalDump, parse_iso_datetime
from fmdump.core.errors import FiscalDumpError
from fmdump.core.services.settlement_reports import ImportMode, filter_reports, import_reports

app = typer.Typer(
    no_args_is_help=True,
    help="Decode, inspect and rebuild fiscal-memory dumps (2 MiB images).",
)
app.add_typer(doctor.app, name="doctor")

_console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log adapter activity (INFO)."),
) -> None:
    settings = AppSettings()
    configure_logging("INFO" if verbose else settings.log_level)


def load_or_exit(path: Path, *, settings: AppSettings | None = None) -> FiscalDump:
    settings = settings or AppSettings()
    try:
        return load_dump_file(path, check_future_dates=settings.check_future_dates)
    except (FiscalDumpError, OSError) as exc:
        _console.print(f"[red]Cannot read {path}:[/red] {exc}")
        raise typer.Exit(code=1) from exc


def save_or_exit(path: Path, dump: FiscalDump) -> None:
    try:
        save_dump_file(path, dump)
    except OSError as exc:
        _console.print(f"[red]Cannot write {path}:[/red] {exc}")
        raise typer.Exit(code=1) from exc


def _parse_bound(value: str | None, name: str) -> datetime | None:
    if value is None:
        return None
    parsed = parse_iso_datetime(value)
    if parsed is None:
        raise typer.BadParameter(f"{name} must be an ISO-8601 date, got {value!r}")
    return parsed


@app.command()
def info(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Fiscal memory image."),
    banner: bool = typer.Option(True, "--banner/--no-banner"),
) -> None:
    """Show a summary of the dump."""

    dump = load_or_exit(path)
    if banner:
        print_banner(_console)
    _console.print(build_summary_table(dump))


@app.command()
def warnings(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Fiscal memory image."),
) -> None:
    """List checksum mismatches and future-dated records."""

    dump = load_or_exit(path)
    if not dump.warnings:
        _console.print("[green]No warnings.[/green]")
        return
    _console.print(build_warnings_table(dump.warnings))


@app.command()
def reports(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Fiscal memory image."),
    number: int | None = typer.Option(None, "--number", "-n", help="Exact Z number."),
    date_from: str | None = typer.Option(None, "--from", help="Earliest date (ISO-8601, UTC)."),
    date_to: str | None = typer.Option(None, "--to", help="Latest date (ISO-8601, UTC)."),
    limit: int = typer.Option(50, "--limit", min=0, help="Rows to show (0 = all)."),
) -> None:
    """List settlement (Z) reports."""

    low = _parse_bound(date_from, "--from")
    high = _parse_bound(date_to, "--to")
    dump = load_or_exit(path)
    rows = filter_reports(dump.settlement_reports, number=number, date_from=low, date_to=high)
    shown = rows if limit == 0 else rows[:limit]
    _console.print(build_reports_table(shown))
    if len(shown) < len(rows):
        _console.print(f"[dim]{len(rows) - len(shown)} more rows not shown (use --limit 0).[/dim]")


@app.command(name="export-json")
def export_json(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Fiscal memory image."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Destination JSON file."),
) -> None:
    """Decode an image into editable JSON."""

    settings = AppSettings()
    dump = load_or_exit(path, settings=settings)
    target = output or settings.output_dir / f"{path.stem}.json"
    try:
        export_dump_json(dump=dump, output_path=target, indent=settings.json_indent)
    except OSError as exc:
        _console.print(f"[red]Cannot write {target}:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    _console.print(f"[green]JSON written:[/green] {target}")


@app.command()
def build(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON produced by export-json."),
    output: Path = typer.Option(..., "--output", "-o", help="Destination image."),
) -> None:
    """Rebuild a 2 MiB image from JSON."""

    try:
        dump = load_dump_json(source)
    except (ValidationError, ValueError, OSError) as exc:
        _console.print(f"[red]Invalid dump JSON {source}:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    save_or_exit(output, dump)
    _console.print(f"[green]Image written:[/green] {output}")


@app.command()
def rewrite(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Fiscal memory image."),
    output: Path = typer.Option(..., "--output", "-o", help="Destination image."),
) -> None:
    """Re-encode an image, refreshing checksums and derived counters."""

    dump = load_or_exit(path)
    save_or_exit(output, dump)
    _console.print(f"[green]Image written:[/green] {output}")


@app.command(name="import-reports")
def import_reports_command(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Fiscal memory image."),
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON with settlement reports."),
    output: Path = typer.Option(..., "--output", "-o", help="Destination image."),
    mode: ImportMode = typer.Option(ImportMode.ADD, "--mode", case_sensitive=False),
) -> None:
    """Add or replace settlement reports from JSON and write a new image."""

    dump = load_or_exit(path)
    try:
        incoming = load_settlement_reports_json(source)
        merged = import_reports(dump.settlement_reports, incoming, mode)
    except (ValidationError, ValueError, OSError) as exc:
        _console.print(f"[red]Cannot import {source}:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    save_or_exit(output, dump.model_copy(update={"settlement_reports": merged}))
    _console.print(f"[green]{len(merged)} settlement reports written to[/green] {output}")


def run() -> None:
    app()
