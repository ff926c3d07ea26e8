"""Derived change counters of settlement reports.

Each settlement report stores how many FM-number, tax-id, VAT-rate and
RAM-reset records had happened by the time it was closed. Those values are
never authored by hand: they are recomputed from the ancillary lists and the
report's own timestamp every time the image is encoded.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from fmdump.core.domain.models import FiscalDateTime, FiscalDump, SettlementReport


class DateResolver:
    """Counts how many records of one ancillary list precede a timestamp.

    Rules, for a target timestamp T:
    - the answer is the 1-based list position of the latest record (in list
      order) whose timestamp resolves and is <= T;
    - when T is absent/unresolvable or no record qualifies, every record is
      assumed to apply: `last_index + 1` (1 for an empty list).
    """

    def __init__(self, timestamps: Sequence[FiscalDateTime | None]) -> None:
        self._fallback = max(len(timestamps) - 1, 0) + 1
        self._dated: list[tuple[int, datetime]] = []
        for index, stamp in enumerate(timestamps):
            instant = stamp.to_datetime() if stamp is not None else None
            if instant is not None:
                self._dated.append((index, instant))

    @classmethod
    def for_records(cls, records: Sequence[object]) -> "DateResolver":
        return cls([getattr(record, "date_time", None) for record in records])

    def __call__(self, target: FiscalDateTime | None) -> int:
        instant = target.to_datetime() if target is not None else None
        if instant is None:
            return self._fallback
        eligible = [index for index, when in self._dated if when <= instant]
        if not eligible:
            return self._fallback
        return eligible[-1] + 1


@dataclass(frozen=True)
class ChangeCounters:
    fm_number_changes: int
    tax_id_changes: int
    vat_rate_changes: int
    ram_resets: int


class ChangeCounterResolver:
    """Resolves the four derived counters of any report against one dump."""

    def __init__(self, dump: FiscalDump) -> None:
        self._fm_numbers = DateResolver.for_records(dump.fm_numbers)
        self._tax_ids = DateResolver.for_records(dump.tax_ids)
        self._vat_rates = DateResolver.for_records(dump.vat_rate_changes)
        self._ram_resets = DateResolver.for_records(dump.ram_resets)

    def counters_for(self, report: SettlementReport) -> ChangeCounters:
        target = report.date_time
        return ChangeCounters(
            fm_number_changes=self._fm_numbers(target),
            tax_id_changes=self._tax_ids(target),
            vat_rate_changes=self._vat_rates(target),
            ram_resets=self._ram_resets(target),
        )

    def apply(self, report: SettlementReport) -> SettlementReport:
        """Return a copy of `report` with its derived counters recomputed."""

        counters = self.counters_for(report)
        return report.model_copy(
            update={
                "fm_number_changes": counters.fm_number_changes,
                "tax_id_changes": counters.tax_id_changes,
                "vat_rate_changes": counters.vat_rate_changes,
                "ram_resets": counters.ram_resets,
            }
        )


def resolve_change_counters(dump: FiscalDump, report: SettlementReport) -> ChangeCounters:
    return ChangeCounterResolver(dump).counters_for(report)
