"""Operations on the settlement-report list.

These mirror what an operator does when curating a dump before re-encoding:
add blank reports, delete one or a numbered range, filter by number/date and
import reports from another source. Sequence numbers are kept contiguous
(1..n) after every structural change. Inputs are never mutated.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Sequence

from fmdump.core.domain.models import MAX_SETTLEMENT_REPORTS, SettlementReport


class ImportMode(str, Enum):
    ADD = "add"
    OVERWRITE = "overwrite"


def create_empty_report(number: int) -> SettlementReport:
    """A report with every counter and total at zero and no timestamp."""

    return SettlementReport(number=number)


def renumber_reports(reports: Iterable[SettlementReport]) -> list[SettlementReport]:
    return [report.model_copy(update={"number": idx}) for idx, report in enumerate(reports, start=1)]


def append_empty_report(reports: Sequence[SettlementReport]) -> list[SettlementReport]:
    _ensure_capacity(len(reports) + 1)
    return [*reports, create_empty_report(len(reports) + 1)]


def delete_report(reports: Sequence[SettlementReport], index: int) -> list[SettlementReport]:
    if not 0 <= index < len(reports):
        raise IndexError(f"No settlement report at position {index}")
    return renumber_reports(r for i, r in enumerate(reports) if i != index)


def delete_report_range(reports: Sequence[SettlementReport], start: int, end: int) -> list[SettlementReport]:
    """Delete reports numbered within [start, end]; bounds may come in either order."""

    low, high = sorted((start, end))
    return renumber_reports(r for r in reports if r.number < low or r.number > high)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def filter_reports(
    reports: Sequence[SettlementReport],
    *,
    number: int | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> list[tuple[int, SettlementReport]]:
    """Return `(position, report)` pairs matching every given criterion.

    With a date bound, reports without a resolvable timestamp are excluded.
    Naive bounds are taken as UTC.
    """

    low = _as_utc(date_from) if date_from is not None else None
    high = _as_utc(date_to) if date_to is not None else None

    matches: list[tuple[int, SettlementReport]] = []
    for index, report in enumerate(reports):
        if number is not None and report.number != number:
            continue
        if low is not None or high is not None:
            instant = report.date_time.to_datetime() if report.date_time is not None else None
            if instant is None:
                continue
            if low is not None and instant < low:
                continue
            if high is not None and instant > high:
                continue
        matches.append((index, report))
    return matches


def import_reports(
    existing: Sequence[SettlementReport],
    incoming: Sequence[SettlementReport],
    mode: ImportMode = ImportMode.ADD,
) -> list[SettlementReport]:
    """Merge imported reports into the current list and renumber the result."""

    combined = list(incoming) if mode is ImportMode.OVERWRITE else [*existing, *incoming]
    _ensure_capacity(len(combined))
    return renumber_reports(combined)


def _ensure_capacity(count: int) -> None:
    if count > MAX_SETTLEMENT_REPORTS:
        raise ValueError(
            f"A fiscal memory holds at most {MAX_SETTLEMENT_REPORTS} settlement reports, got {count}"
        )
