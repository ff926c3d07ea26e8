"""Static layout of the 2 MiB fiscal-memory image.

The image is a strict concatenation of fixed-size regions. There is exactly
one supported layout, so the table is built once at import time and checked
against the image size.
"""

from __future__ import annotations

from dataclasses import dataclass

from fmdump.core.domain.models import (
    HARDWARE_ID_SIZE,
    MAX_FM_NUMBERS,
    MAX_JOURNAL_RECORDS,
    MAX_RAM_RESETS,
    MAX_SETTLEMENT_REPORTS,
    MAX_TAX_IDS,
    MAX_VAT_RATE_CHANGES,
    RecordKind,
)

FILE_SIZE = 0x200000
CHECKSUM_SEED = 0xA5
ERASED_BYTE = 0xFF

TEST_SPACE_SIZE = 24 * 16
SERIAL_RECORD_SIZE = 24
FISCAL_MODE_START_SIZE = 16
FM_NUMBER_RECORD_SIZE = 24
TAX_ID_RECORD_SIZE = 32
VAT_RATE_RECORD_SIZE = 48
RAM_RESET_RECORD_SIZE = 16
SETTLEMENT_REPORT_SIZE = 432
JOURNAL_RECORD_SIZE = 24
NOT_USED_SIZE = 148168


@dataclass(frozen=True)
class Region:
    """A contiguous span of the image.

    `kind` is None for opaque spans (test space, padding, hardware id) that
    hold no checksummed records.
    """

    name: str
    offset: int
    record_size: int
    count: int = 1
    kind: RecordKind | None = None

    @property
    def size(self) -> int:
        return self.record_size * self.count

    @property
    def end(self) -> int:
        return self.offset + self.size

    def record_offset(self, index: int) -> int:
        if not 0 <= index < self.count:
            raise IndexError(f"{self.name}: slot {index} outside 0..{self.count - 1}")
        return self.offset + index * self.record_size


_REGION_SPECS: tuple[tuple[str, int, int, RecordKind | None], ...] = (
    ("test_space", TEST_SPACE_SIZE, 1, None),
    ("serial", SERIAL_RECORD_SIZE, 1, RecordKind.SERIAL),
    ("fiscal_mode_start", FISCAL_MODE_START_SIZE, 1, RecordKind.FISCAL_MODE_START),
    ("fm_numbers", FM_NUMBER_RECORD_SIZE, MAX_FM_NUMBERS, RecordKind.FM_NUMBER),
    ("tax_ids", TAX_ID_RECORD_SIZE, MAX_TAX_IDS, RecordKind.TAX_ID),
    ("vat_rate_changes", VAT_RATE_RECORD_SIZE, MAX_VAT_RATE_CHANGES, RecordKind.VAT_RATE_CHANGE),
    ("ram_resets", RAM_RESET_RECORD_SIZE, MAX_RAM_RESETS, RecordKind.RAM_RESET),
    ("settlement_reports", SETTLEMENT_REPORT_SIZE, MAX_SETTLEMENT_REPORTS, RecordKind.SETTLEMENT_REPORT),
    ("journal_opens", JOURNAL_RECORD_SIZE, MAX_JOURNAL_RECORDS, RecordKind.JOURNAL_OPEN),
    ("journal_closes", JOURNAL_RECORD_SIZE, MAX_JOURNAL_RECORDS, RecordKind.JOURNAL_CLOSE),
    ("not_used", NOT_USED_SIZE, 1, None),
    ("hardware_id", HARDWARE_ID_SIZE, 1, None),
)


def _build_regions() -> tuple[Region, ...]:
    regions: list[Region] = []
    offset = 0
    for name, record_size, count, kind in _REGION_SPECS:
        region = Region(name=name, offset=offset, record_size=record_size, count=count, kind=kind)
        regions.append(region)
        offset = region.end
    if offset != FILE_SIZE:
        raise RuntimeError(f"Region table covers 0x{offset:X} bytes, expected 0x{FILE_SIZE:X}")
    return tuple(regions)


REGIONS: tuple[Region, ...] = _build_regions()
REGIONS_BY_NAME: dict[str, Region] = {r.name: r for r in REGIONS}
RECORD_REGIONS: dict[RecordKind, Region] = {r.kind: r for r in REGIONS if r.kind is not None}

HARDWARE_ID_REGION = REGIONS_BY_NAME["hardware_id"]


def region_for(kind: RecordKind) -> Region:
    return RECORD_REGIONS[kind]
