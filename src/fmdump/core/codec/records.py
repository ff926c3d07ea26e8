"""Per-record decoders and encoders.

Every encoder writes all fields of its record (reserved bytes as zero), then
the trailing checksum. Decoders assume the slot is not empty; the caller
checks the sentinel first.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Callable

from pydantic import BaseModel

from fmdump.core.codec.checksum import apply_checksum
from fmdump.core.codec.primitives import read_datetime, read_text, read_uint, write_datetime, write_text, write_uint
from fmdump.core.domain.models import (
    SETTLEMENT_TOTAL_FAMILIES,
    VAT_BUCKETS,
    FiscalModeStart,
    FMNumberRecord,
    JournalClose,
    JournalOpen,
    RamResetRecord,
    RecordKind,
    SerialRecord,
    SettlementReport,
    TaxIdRecord,
    VatAmounts,
    VatRateChange,
    VatRateSet,
)
from fmdump.core.layout import (
    FISCAL_MODE_START_SIZE,
    FM_NUMBER_RECORD_SIZE,
    JOURNAL_RECORD_SIZE,
    RAM_RESET_RECORD_SIZE,
    SERIAL_RECORD_SIZE,
    SETTLEMENT_REPORT_SIZE,
    TAX_ID_RECORD_SIZE,
    VAT_RATE_RECORD_SIZE,
)

NUMBER_TEXT_SIZE = 10
TAX_NUMBER_SIZE = 12

_VAT_RATES = struct.Struct("<16H")
_VAT_TRAILER = struct.Struct("<H2B3x")
_RAM_RESET_TRAILER = struct.Struct("<HB4x")
# change counters, 2 reserved, last document/fiscal/void, fiscal/void counts
_SETTLEMENT_COUNTERS = struct.Struct("<4B2x3I2H")
_SETTLEMENT_TOTALS = struct.Struct("<48Q")
_SETTLEMENT_RESERVED = 15
_JOURNAL_OPEN_TRAILER = struct.Struct("<IH9x")
_JOURNAL_CLOSE_TRAILER = struct.Struct("<IHB8x")


def _zero(buffer: bytearray, start: int, end: int) -> None:
    buffer[start:end] = bytes(end - start)


# --- serial / FM number -----------------------------------------------------


def decode_serial(buffer: bytes, offset: int) -> SerialRecord:
    return SerialRecord(
        serial_number=read_text(buffer, offset, NUMBER_TEXT_SIZE),
        date_time=read_datetime(buffer, offset + 10),
    )


def encode_serial(buffer: bytearray, offset: int, record: SerialRecord) -> None:
    write_text(buffer, offset, NUMBER_TEXT_SIZE, record.serial_number)
    write_datetime(buffer, offset + 10, record.date_time)
    _zero(buffer, offset + 18, offset + 23)
    apply_checksum(buffer, offset, SERIAL_RECORD_SIZE)


def decode_fm_number(buffer: bytes, offset: int) -> FMNumberRecord:
    return FMNumberRecord(
        fm_number=read_text(buffer, offset, NUMBER_TEXT_SIZE),
        date_time=read_datetime(buffer, offset + 10),
    )


def encode_fm_number(buffer: bytearray, offset: int, record: FMNumberRecord) -> None:
    write_text(buffer, offset, NUMBER_TEXT_SIZE, record.fm_number)
    write_datetime(buffer, offset + 10, record.date_time)
    _zero(buffer, offset + 18, offset + 23)
    apply_checksum(buffer, offset, FM_NUMBER_RECORD_SIZE)


# --- fiscal mode start ------------------------------------------------------


def decode_fiscal_mode_start(buffer: bytes, offset: int) -> FiscalModeStart:
    return FiscalModeStart(date_time=read_datetime(buffer, offset))


def encode_fiscal_mode_start(buffer: bytearray, offset: int, record: FiscalModeStart) -> None:
    write_datetime(buffer, offset, record.date_time)
    _zero(buffer, offset + 8, offset + 15)
    apply_checksum(buffer, offset, FISCAL_MODE_START_SIZE)


# --- tax id -----------------------------------------------------------------


def decode_tax_id(buffer: bytes, offset: int) -> TaxIdRecord:
    return TaxIdRecord(
        tax_type=read_uint(buffer, offset, 1),
        tax_number=read_text(buffer, offset + 1, TAX_NUMBER_SIZE),
        date_time=read_datetime(buffer, offset + 14),
    )


def encode_tax_id(buffer: bytearray, offset: int, record: TaxIdRecord) -> None:
    write_uint(buffer, offset, 1, record.tax_type)
    write_text(buffer, offset + 1, TAX_NUMBER_SIZE, record.tax_number)
    _zero(buffer, offset + 13, offset + 14)
    write_datetime(buffer, offset + 14, record.date_time)
    _zero(buffer, offset + 22, offset + 31)
    apply_checksum(buffer, offset, TAX_ID_RECORD_SIZE)


# --- VAT rate change --------------------------------------------------------


def _rate_set(values: tuple[int, ...]) -> VatRateSet:
    return VatRateSet(**dict(zip(VAT_BUCKETS, values)))


def _rate_values(rates: VatRateSet) -> list[int]:
    return [getattr(rates, bucket) for bucket in VAT_BUCKETS]


def decode_vat_rate_change(buffer: bytes, offset: int) -> VatRateChange:
    values = _VAT_RATES.unpack_from(buffer, offset)
    next_number, vat_excluded, decimal_point = _VAT_TRAILER.unpack_from(buffer, offset + 40)
    return VatRateChange(
        rates=_rate_set(values[:8]),
        cumulative_rates=_rate_set(values[8:]),
        date_time=read_datetime(buffer, offset + 32),
        next_settlement_number=next_number,
        vat_excluded=vat_excluded,
        decimal_point=decimal_point,
    )


def encode_vat_rate_change(buffer: bytearray, offset: int, record: VatRateChange) -> None:
    values = _rate_values(record.rates) + _rate_values(record.cumulative_rates)
    _VAT_RATES.pack_into(buffer, offset, *values)
    write_datetime(buffer, offset + 32, record.date_time)
    _VAT_TRAILER.pack_into(
        buffer,
        offset + 40,
        record.next_settlement_number,
        record.vat_excluded,
        record.decimal_point,
    )
    apply_checksum(buffer, offset, VAT_RATE_RECORD_SIZE)


# --- RAM reset --------------------------------------------------------------


def decode_ram_reset(buffer: bytes, offset: int) -> RamResetRecord:
    next_number, flag = _RAM_RESET_TRAILER.unpack_from(buffer, offset + 8)
    return RamResetRecord(
        date_time=read_datetime(buffer, offset),
        next_settlement_number=next_number,
        flag=flag,
    )


def encode_ram_reset(buffer: bytearray, offset: int, record: RamResetRecord) -> None:
    write_datetime(buffer, offset, record.date_time)
    _RAM_RESET_TRAILER.pack_into(buffer, offset + 8, record.next_settlement_number, record.flag)
    apply_checksum(buffer, offset, RAM_RESET_RECORD_SIZE)


# --- settlement ("Z") report ------------------------------------------------


def decode_settlement_report(buffer: bytes, offset: int) -> SettlementReport:
    (
        fm_changes,
        tax_changes,
        vat_changes,
        ram_resets,
        last_document,
        last_fiscal,
        last_void,
        fiscal_count,
        void_count,
    ) = _SETTLEMENT_COUNTERS.unpack_from(buffer, offset + 10)
    totals = _SETTLEMENT_TOTALS.unpack_from(buffer, offset + 32)
    families = {
        family: VatAmounts(**dict(zip(VAT_BUCKETS, totals[i * 8 : (i + 1) * 8])))
        for i, family in enumerate(SETTLEMENT_TOTAL_FAMILIES)
    }
    return SettlementReport(
        number=read_uint(buffer, offset, 2),
        date_time=read_datetime(buffer, offset + 2),
        fm_number_changes=fm_changes,
        tax_id_changes=tax_changes,
        vat_rate_changes=vat_changes,
        ram_resets=ram_resets,
        last_document=last_document,
        last_fiscal_document=last_fiscal,
        last_void_document=last_void,
        fiscal_count=fiscal_count,
        void_count=void_count,
        **families,
    )


def encode_settlement_report(buffer: bytearray, offset: int, record: SettlementReport) -> None:
    """Write a report exactly as given.

    Callers that need the derived change counters refreshed go through
    `fmdump.core.services.date_resolver` first.
    """

    write_uint(buffer, offset, 2, record.number)
    write_datetime(buffer, offset + 2, record.date_time)
    _SETTLEMENT_COUNTERS.pack_into(
        buffer,
        offset + 10,
        record.fm_number_changes,
        record.tax_id_changes,
        record.vat_rate_changes,
        record.ram_resets,
        record.last_document,
        record.last_fiscal_document,
        record.last_void_document,
        record.fiscal_count,
        record.void_count,
    )
    totals: list[int] = []
    for family in SETTLEMENT_TOTAL_FAMILIES:
        amounts: VatAmounts = getattr(record, family)
        totals.extend(getattr(amounts, bucket) for bucket in VAT_BUCKETS)
    _SETTLEMENT_TOTALS.pack_into(buffer, offset + 32, *totals)
    reserved = offset + 32 + _SETTLEMENT_TOTALS.size
    _zero(buffer, reserved, reserved + _SETTLEMENT_RESERVED)
    apply_checksum(buffer, offset, SETTLEMENT_REPORT_SIZE)


# --- electronic journal -----------------------------------------------------


def decode_journal_open(buffer: bytes, offset: int) -> JournalOpen:
    last_record, last_settlement = _JOURNAL_OPEN_TRAILER.unpack_from(buffer, offset + 8)
    return JournalOpen(
        date_time=read_datetime(buffer, offset),
        last_record=last_record,
        last_settlement=last_settlement,
    )


def encode_journal_open(buffer: bytearray, offset: int, record: JournalOpen) -> None:
    write_datetime(buffer, offset, record.date_time)
    _JOURNAL_OPEN_TRAILER.pack_into(buffer, offset + 8, record.last_record, record.last_settlement)
    apply_checksum(buffer, offset, JOURNAL_RECORD_SIZE)


def decode_journal_close(buffer: bytes, offset: int) -> JournalClose:
    last_record, last_settlement, lost = _JOURNAL_CLOSE_TRAILER.unpack_from(buffer, offset + 8)
    return JournalClose(
        date_time=read_datetime(buffer, offset),
        last_record=last_record,
        last_settlement=last_settlement,
        lost_or_corrupted=lost,
    )


def encode_journal_close(buffer: bytearray, offset: int, record: JournalClose) -> None:
    write_datetime(buffer, offset, record.date_time)
    _JOURNAL_CLOSE_TRAILER.pack_into(
        buffer,
        offset + 8,
        record.last_record,
        record.last_settlement,
        record.lost_or_corrupted,
    )
    apply_checksum(buffer, offset, JOURNAL_RECORD_SIZE)


# --- registry ---------------------------------------------------------------


@dataclass(frozen=True)
class RecordCodec:
    """Decode/encode pair for one record kind."""

    decode: Callable[[bytes, int], BaseModel]
    encode: Callable[[bytearray, int, BaseModel], None]


RECORD_CODECS: dict[RecordKind, RecordCodec] = {
    RecordKind.SERIAL: RecordCodec(decode_serial, encode_serial),
    RecordKind.FISCAL_MODE_START: RecordCodec(decode_fiscal_mode_start, encode_fiscal_mode_start),
    RecordKind.FM_NUMBER: RecordCodec(decode_fm_number, encode_fm_number),
    RecordKind.TAX_ID: RecordCodec(decode_tax_id, encode_tax_id),
    RecordKind.VAT_RATE_CHANGE: RecordCodec(decode_vat_rate_change, encode_vat_rate_change),
    RecordKind.RAM_RESET: RecordCodec(decode_ram_reset, encode_ram_reset),
    RecordKind.SETTLEMENT_REPORT: RecordCodec(decode_settlement_report, encode_settlement_report),
    RecordKind.JOURNAL_OPEN: RecordCodec(decode_journal_open, encode_journal_open),
    RecordKind.JOURNAL_CLOSE: RecordCodec(decode_journal_close, encode_journal_close),
}
