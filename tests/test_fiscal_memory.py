from __future__ import annotations

import pytest
from conftest import make_report, stamp
from pydantic import ValidationError

from fmdump.core.codec.records import encode_fm_number
from fmdump.core.domain.models import (
    MAX_FM_NUMBERS,
    MAX_JOURNAL_RECORDS,
    MAX_RAM_RESETS,
    MAX_SETTLEMENT_REPORTS,
    MAX_TAX_IDS,
    MAX_VAT_RATE_CHANGES,
    FiscalDump,
    FMNumberRecord,
    JournalClose,
    JournalOpen,
    RamResetRecord,
    RecordKind,
    TaxIdRecord,
    VatRateChange,
    WarningKind,
)
from fmdump.core.errors import FiscalDumpError, InputTooSmallError, InvalidInputTypeError
from fmdump.core.layout import FILE_SIZE, HARDWARE_ID_REGION, REGIONS, region_for
from fmdump.core.services.fiscal_memory import decode, decode_fiscal_memory, encode, encode_fiscal_memory

COMPARED = {"warnings", "hardware_id"}


def test_rejects_short_input():
    with pytest.raises(InputTooSmallError) as info:
        decode_fiscal_memory(b"\xff" * (FILE_SIZE - 1))
    assert info.value.actual == FILE_SIZE - 1
    assert isinstance(info.value, ValueError)
    assert isinstance(info.value, FiscalDumpError)


@pytest.mark.parametrize("value", ["\xff" * FILE_SIZE, [0xFF] * 16, None, 42])
def test_rejects_non_buffer_input(value):
    with pytest.raises(InvalidInputTypeError):
        decode_fiscal_memory(value)


def test_accepts_any_bytes_like_buffer(erased_image):
    assert decode_fiscal_memory(bytearray(erased_image)).settlement_reports == []
    assert decode_fiscal_memory(memoryview(erased_image)).serial is None


def test_longer_input_is_accepted(erased_image):
    dump = decode_fiscal_memory(erased_image + b"\x00" * 10)
    assert dump.hardware_id == b"\xff" * 16


def test_erased_image_decodes_to_empty_dump(erased_image, now):
    dump = decode_fiscal_memory(erased_image, now=now)
    assert dump.serial is None
    assert dump.fiscal_mode_start is None
    assert dump.fm_numbers == []
    assert dump.settlement_reports == []
    assert dump.journal_closes == []
    assert dump.warnings == []


def test_empty_dump_encodes_to_erased_image(erased_image):
    data = encode_fiscal_memory(FiscalDump())
    assert len(data) == FILE_SIZE
    assert data == erased_image


def test_round_trip_preserves_every_field(sample_dump, now):
    decoded = decode_fiscal_memory(encode_fiscal_memory(sample_dump), now=now)
    assert decoded.warnings == []
    assert decoded.model_dump(exclude=COMPARED) == sample_dump.model_dump(exclude=COMPARED)


def test_re_encode_is_idempotent(sample_dump, now):
    first = encode(sample_dump)
    assert encode(decode(first, now=now)) == first


def test_derived_counters_are_recomputed(sample_dump, now):
    tampered = [
        report.model_copy(update={"fm_number_changes": 99, "ram_resets": 50})
        for report in sample_dump.settlement_reports
    ]
    dump = sample_dump.model_copy(update={"settlement_reports": tampered})
    decoded = decode_fiscal_memory(encode_fiscal_memory(dump), now=now)
    assert [r.fm_number_changes for r in decoded.settlement_reports] == [1, 1, 2]
    assert [r.tax_id_changes for r in decoded.settlement_reports] == [1, 1, 1]
    assert [r.vat_rate_changes for r in decoded.settlement_reports] == [1, 1, 2]
    assert [r.ram_resets for r in decoded.settlement_reports] == [1, 1, 1]


def test_field_edits_are_validated_before_encoding(sample_dump, now):
    report = sample_dump.settlement_reports[1]
    report.date_time = "2021-06-02T08:00:00Z"
    assert report.date_time == stamp(2021, 6, 2, 8)

    with pytest.raises(ValidationError):
        report.number = 70_000
    with pytest.raises(ValidationError):
        report.sum.a = -1
    with pytest.raises(ValidationError):
        sample_dump.fm_numbers = [FMNumberRecord()] * (MAX_FM_NUMBERS + 1)
    assert report.number == 2

    decoded = decode_fiscal_memory(encode_fiscal_memory(sample_dump), now=now)
    assert decoded.settlement_reports[1].date_time == stamp(2021, 6, 2, 8)
    assert decoded.settlement_reports[1].number == 2


def test_unset_slots_stay_erased(sample_dump):
    data = encode_fiscal_memory(sample_dump)
    fm_region = region_for(RecordKind.FM_NUMBER)
    for index in range(len(sample_dump.fm_numbers), fm_region.count):
        start = fm_region.record_offset(index)
        assert data[start : start + fm_region.record_size] == b"\xff" * fm_region.record_size
    for name in ("test_space", "not_used"):
        region = next(r for r in REGIONS if r.name == name)
        assert data[region.offset : region.end] == b"\xff" * region.size


def test_hardware_id_is_decoded_but_never_written(erased_image, sample_dump):
    image = bytearray(erased_image)
    image[HARDWARE_ID_REGION.offset :] = bytes(range(16))
    dump = decode_fiscal_memory(image)
    assert dump.hardware_id == bytes(range(16))

    data = encode_fiscal_memory(dump.model_copy(update={"hardware_id": bytes(16)}))
    assert data[HARDWARE_ID_REGION.offset :] == b"\xff" * 16


def test_corrupted_checksum_yields_one_warning(sample_dump, now):
    image = bytearray(encode_fiscal_memory(sample_dump))
    region = region_for(RecordKind.SETTLEMENT_REPORT)
    offset = region.record_offset(1)
    image[offset + region.record_size - 1] ^= 0xFF

    dump = decode_fiscal_memory(image, now=now)
    assert len(dump.warnings) == 1
    warning = dump.warnings[0]
    assert warning.kind is WarningKind.CHECKSUM_MISMATCH
    assert warning.record_kind is RecordKind.SETTLEMENT_REPORT
    assert warning.index == 1
    assert warning.byte_offset == offset
    assert f"0x{offset:x}" in warning.message
    assert dump.settlement_reports[1] == decode_fiscal_memory(encode_fiscal_memory(sample_dump)).settlement_reports[1]


def test_empty_slot_with_stray_checksum_byte_is_not_reported(erased_image, now):
    image = bytearray(erased_image)
    region = region_for(RecordKind.RAM_RESET)
    image[region.record_offset(5) + region.record_size - 1] = 0x00
    dump = decode_fiscal_memory(image, now=now)
    assert dump.ram_resets == []
    assert dump.warnings == []


def test_future_dates_are_reported_in_region_order(now):
    dump = FiscalDump(
        fm_numbers=[FMNumberRecord(fm_number="1", date_time=stamp(2030, 1, 1))],
        settlement_reports=[make_report(1, stamp(2024, 12, 31)), make_report(2, stamp(2031, 1, 1))],
    )
    image = bytearray(encode_fiscal_memory(dump))
    region = region_for(RecordKind.FM_NUMBER)
    image[region.record_offset(0) + region.record_size - 1] ^= 0x01

    warnings = decode_fiscal_memory(image, now=now).warnings
    assert [(w.kind, w.record_kind, w.index) for w in warnings] == [
        (WarningKind.CHECKSUM_MISMATCH, RecordKind.FM_NUMBER, 0),
        (WarningKind.FUTURE_DATE, RecordKind.FM_NUMBER, 0),
        (WarningKind.FUTURE_DATE, RecordKind.SETTLEMENT_REPORT, 1),
    ]
    assert "2031-01-01T00:00:00.000Z" in warnings[-1].message


def test_future_date_check_can_be_disabled(now):
    dump = FiscalDump(settlement_reports=[make_report(1, stamp(2031, 1, 1))])
    image = encode_fiscal_memory(dump)
    assert decode_fiscal_memory(image, now=now, check_future_dates=False).warnings == []


def test_sparse_slots_are_compacted_on_decode(erased_image):
    image = bytearray(erased_image)
    region = region_for(RecordKind.FM_NUMBER)
    encode_fm_number(image, region.record_offset(3), FMNumberRecord(fm_number="77", date_time=stamp(2020, 1, 1)))
    dump = decode_fiscal_memory(image)
    assert [r.fm_number for r in dump.fm_numbers] == ["77"]
    assert dump.warnings == []

    data = encode_fiscal_memory(dump)
    assert data[region.record_offset(0) : region.record_offset(0) + 2] == b"77"


def test_maximum_capacity_dump(now):
    base = stamp(2010, 1, 1)
    dump = FiscalDump(
        fm_numbers=[FMNumberRecord(fm_number=str(i), date_time=base) for i in range(MAX_FM_NUMBERS)],
        tax_ids=[TaxIdRecord(tax_number=str(i), date_time=base) for i in range(MAX_TAX_IDS)],
        vat_rate_changes=[VatRateChange(date_time=base) for _ in range(MAX_VAT_RATE_CHANGES)],
        ram_resets=[RamResetRecord(date_time=base, next_settlement_number=i) for i in range(MAX_RAM_RESETS)],
        settlement_reports=[
            make_report(i + 1, stamp(2011 + i // 400, 1 + i % 12, 1)) for i in range(MAX_SETTLEMENT_REPORTS)
        ],
        journal_opens=[JournalOpen(date_time=base, last_record=i) for i in range(MAX_JOURNAL_RECORDS)],
        journal_closes=[JournalClose(date_time=base, last_record=i) for i in range(MAX_JOURNAL_RECORDS)],
    )
    data = encode_fiscal_memory(dump)
    assert len(data) == FILE_SIZE

    decoded = decode_fiscal_memory(data, now=now)
    assert decoded.warnings == []
    assert len(decoded.settlement_reports) == MAX_SETTLEMENT_REPORTS
    assert decoded.settlement_reports[-1].number == MAX_SETTLEMENT_REPORTS
    assert decoded.settlement_reports[-1].cumulative_void.h == 0xFFFF_FFFF_FFFF_FFFF
    assert decoded.settlement_reports[0].ram_resets == MAX_RAM_RESETS
    assert len(decoded.ram_resets) == MAX_RAM_RESETS
    assert [r.last_record for r in decoded.journal_closes] == list(range(MAX_JOURNAL_RECORDS))
