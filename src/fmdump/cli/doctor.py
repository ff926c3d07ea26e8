"""Doctor command: integrity diagnostics for a dump file."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from fmdump.core.domain.models import FiscalDump, WarningKind
from fmdump.core.errors import FiscalDumpError
from fmdump.core.layout import FILE_SIZE
from fmdump.core.services.date_resolver import ChangeCounterResolver
from fmdump.core.services.fiscal_memory import decode_fiscal_memory, encode_fiscal_memory

app = typer.Typer(no_args_is_help=True, help="Integrity diagnostics for fiscal-memory dumps.")

_console = Console()


def _check_reencode(dump: FiscalDump) -> tuple[bool, str]:
    """encode(decode(encode(d))) must equal encode(d) byte for byte."""

    first = encode_fiscal_memory(dump)
    second = encode_fiscal_memory(decode_fiscal_memory(first, check_future_dates=False))
    if first == second:
        return True, "byte-identical"
    diff = next(i for i, (a, b) in enumerate(zip(first, second)) if a != b)
    return False, f"first difference at 0x{diff:06X}"


def _check_counters(dump: FiscalDump) -> tuple[bool, str]:
    resolver = ChangeCounterResolver(dump)
    stale = 0
    for report in dump.settlement_reports:
        counters = resolver.counters_for(report)
        stored = (report.fm_number_changes, report.tax_id_changes, report.vat_rate_changes, report.ram_resets)
        expected = (
            counters.fm_number_changes,
            counters.tax_id_changes,
            counters.vat_rate_changes,
            counters.ram_resets,
        )
        if stored != expected:
            stale += 1
    if stale:
        return False, f"{stale} report(s) will get new change counters on rewrite"
    return True, "consistent"


@app.command()
def run(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Fiscal memory image."),
) -> None:
    """Run integrity checks and report what a rewrite would change."""

    try:
        data = path.read_bytes()
    except OSError as exc:
        _console.print(f"[red]Cannot read {path}:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    table = Table(title="FMDUMP Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    size_ok = len(data) == FILE_SIZE
    table.add_row("Image size", "OK" if size_ok else "WARN", f"{len(data)} bytes (expected {FILE_SIZE})")

    try:
        dump = decode_fiscal_memory(data)
    except FiscalDumpError as exc:
        table.add_row("Decode", "FAIL", str(exc))
        _console.print(table)
        raise typer.Exit(code=1) from exc
    table.add_row("Decode", "OK", f"{len(dump.settlement_reports)} settlement reports")

    mismatches = [w for w in dump.warnings if w.kind is WarningKind.CHECKSUM_MISMATCH]
    future = [w for w in dump.warnings if w.kind is WarningKind.FUTURE_DATE]
    table.add_row(
        "Checksums",
        "OK" if not mismatches else "FAIL",
        "all records verify" if not mismatches else f"{len(mismatches)} mismatching record(s)",
    )
    table.add_row(
        "Dates",
        "OK" if not future else "WARN",
        "no future timestamps" if not future else f"{len(future)} future-dated record(s)",
    )

    ok_counters, detail_counters = _check_counters(dump)
    table.add_row("Change counters", "OK" if ok_counters else "WARN", detail_counters)

    ok_reencode, detail_reencode = _check_reencode(dump)
    table.add_row("Re-encode", "OK" if ok_reencode else "FAIL", detail_reencode)

    _console.print(table)

    if mismatches:
        _console.print(
            "\n[yellow]Note:[/yellow] `fmdump rewrite` recomputes every checksum; "
            "review `fmdump warnings` before rewriting."
        )
