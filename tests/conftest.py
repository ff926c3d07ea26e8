from __future__ import annotations

from datetime import datetime, timezone

import pytest

from fmdump.core.domain.models import (
    FiscalDateTime,
    FiscalDump,
    FiscalModeStart,
    FMNumberRecord,
    JournalClose,
    JournalOpen,
    RamResetRecord,
    SerialRecord,
    SettlementReport,
    TaxIdRecord,
    VatAmounts,
    VatRateChange,
    VatRateSet,
)
from fmdump.core.layout import FILE_SIZE
from fmdump.core.services.date_resolver import ChangeCounterResolver

FROZEN_NOW = datetime(2025, 1, 1, tzinfo=timezone.utc)


def stamp(year: int, month: int, day: int, hour: int = 0, minute: int = 0, second: int = 0, tick: int = 0):
    return FiscalDateTime(year=year, month=month, day=day, hour=hour, minute=minute, second=second, tick=tick)


def make_report(number: int, when: FiscalDateTime | None, base: int = 0) -> SettlementReport:
    return SettlementReport(
        number=number,
        date_time=when,
        last_document=1000 + number,
        last_fiscal_document=900 + number,
        last_void_document=number,
        fiscal_count=10 + number,
        void_count=number % 3,
        obligation=VatAmounts(a=base + 1, b=base + 2, h=base + 8),
        obligation_void=VatAmounts(c=base + 3),
        sum=VatAmounts(a=123_456 + base, d=2**40 + base),
        sum_void=VatAmounts(e=5),
        cumulative=VatAmounts(a=2**63 + base, g=7),
        cumulative_void=VatAmounts(h=0xFFFF_FFFF_FFFF_FFFF),
    )


def build_sample_dump() -> FiscalDump:
    dump = FiscalDump(
        serial=SerialRecord(serial_number="ДП00012345", date_time=stamp(2019, 12, 30, 9, 15)),
        fiscal_mode_start=FiscalModeStart(date_time=stamp(2020, 1, 1, 8, 0, 0, 50)),
        fm_numbers=[
            FMNumberRecord(fm_number="3000123456", date_time=stamp(2020, 1, 1)),
            FMNumberRecord(fm_number="3000654321", date_time=stamp(2022, 3, 1)),
        ],
        tax_ids=[TaxIdRecord(tax_type=1, tax_number="123456789012", date_time=stamp(2020, 1, 1))],
        vat_rate_changes=[
            VatRateChange(
                rates=VatRateSet(a=2000, b=700, c=0),
                cumulative_rates=VatRateSet(a=1, b=1),
                date_time=stamp(2020, 1, 1),
                next_settlement_number=1,
                vat_excluded=0,
                decimal_point=2,
            ),
            VatRateChange(
                rates=VatRateSet(a=2000, b=1400),
                date_time=stamp(2021, 7, 1),
                next_settlement_number=3,
                decimal_point=2,
            ),
        ],
        ram_resets=[RamResetRecord(date_time=stamp(2021, 2, 2, 12), next_settlement_number=2, flag=1)],
        settlement_reports=[
            make_report(1, stamp(2020, 6, 1, 21, 30)),
            make_report(2, stamp(2021, 6, 1, 21, 30), base=100),
            make_report(3, stamp(2022, 6, 1, 21, 30, 59, 99), base=200),
        ],
        journal_opens=[JournalOpen(date_time=stamp(2020, 1, 1, 8), last_record=0, last_settlement=0)],
        journal_closes=[
            JournalClose(date_time=stamp(2022, 6, 2), last_record=5120, last_settlement=3, lost_or_corrupted=0)
        ],
    )
    resolver = ChangeCounterResolver(dump)
    reports = [resolver.apply(report) for report in dump.settlement_reports]
    return dump.model_copy(update={"settlement_reports": reports})


@pytest.fixture
def now() -> datetime:
    return FROZEN_NOW


@pytest.fixture
def sample_dump() -> FiscalDump:
    return build_sample_dump()


@pytest.fixture
def erased_image() -> bytes:
    return bytes([0xFF]) * FILE_SIZE
