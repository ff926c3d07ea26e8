"""Rich UI components for the CLI.

Tables and panels shared by several commands, kept apart from the command
logic.
"""

from __future__ import annotations

from typing import Sequence

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from fmdump.core.domain.models import DecodeWarning, FiscalDateTime, FiscalDump, SettlementReport, WarningKind


def print_banner(console: Console) -> None:
    title = Text("FMDUMP", style="bold cyan")
    subtitle = Text("Fiscal memory dumps • decode • edit • rebuild", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def format_timestamp(value: FiscalDateTime | None) -> str:
    if value is None:
        return "—"
    iso = value.isoformat()
    if iso is None:
        return (
            f"{value.year:04d}-{value.month:02d}-{value.day:02d} "
            f"{value.hour:02d}:{value.minute:02d}:{value.second:02d} (invalid)"
        )
    return iso


def build_summary_table(dump: FiscalDump) -> Table:
    """Record counts and identity fields of a dump."""

    table = Table(title="Fiscal memory")
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")

    if dump.serial is not None:
        table.add_row("Serial number", dump.serial.serial_number or "—")
        table.add_row("Serial date", format_timestamp(dump.serial.date_time))
    else:
        table.add_row("Serial number", "[dim]not written[/dim]")
    start = dump.fiscal_mode_start.date_time if dump.fiscal_mode_start else None
    table.add_row("Fiscal mode start", format_timestamp(start))
    if dump.fm_numbers:
        table.add_row("FM number (latest)", dump.fm_numbers[-1].fm_number)
    if dump.tax_ids:
        table.add_row("Tax id (latest)", dump.tax_ids[-1].tax_number)

    table.add_row("FM number records", str(len(dump.fm_numbers)))
    table.add_row("Tax id records", str(len(dump.tax_ids)))
    table.add_row("VAT rate changes", str(len(dump.vat_rate_changes)))
    table.add_row("RAM resets", str(len(dump.ram_resets)))
    table.add_row("Settlement reports", str(len(dump.settlement_reports)))
    table.add_row("Journal open / close", f"{len(dump.journal_opens)} / {len(dump.journal_closes)}")
    table.add_row("Hardware id", dump.hardware_id.hex(" "))

    warn_style = "yellow" if dump.warnings else "green"
    table.add_row("Warnings", f"[{warn_style}]{len(dump.warnings)}[/{warn_style}]")
    return table


def build_warnings_table(warnings: Sequence[DecodeWarning]) -> Table:
    table = Table(title=f"Decode warnings ({len(warnings)})")
    table.add_column("Kind", style="yellow", no_wrap=True)
    table.add_column("Record", style="cyan")
    table.add_column("Slot", justify="right")
    table.add_column("Offset", style="magenta", no_wrap=True)
    table.add_column("Message", style="white")
    for item in warnings:
        kind_style = "red" if item.kind is WarningKind.CHECKSUM_MISMATCH else "yellow"
        table.add_row(
            f"[{kind_style}]{item.kind.value}[/{kind_style}]",
            item.record_kind.value,
            str(item.index),
            f"0x{item.byte_offset:06X}",
            item.message,
        )
    return table


def build_reports_table(rows: Sequence[tuple[int, SettlementReport]]) -> Table:
    table = Table(title="Settlement reports")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Z", justify="right", style="cyan")
    table.add_column("Date (UTC)", style="white", no_wrap=True)
    table.add_column("Last doc", justify="right")
    table.add_column("Fiscal", justify="right")
    table.add_column("Void", justify="right")
    table.add_column("FM/Tax/VAT/RAM", justify="center", style="dim")
    table.add_column("Sum A", justify="right", style="green")
    for position, report in rows:
        table.add_row(
            str(position),
            str(report.number),
            format_timestamp(report.date_time),
            str(report.last_document),
            str(report.fiscal_count),
            str(report.void_count),
            f"{report.fm_number_changes}/{report.tax_id_changes}/{report.vat_rate_changes}/{report.ram_resets}",
            str(report.sum.a),
        )
    return table
