"""Fiscal-memory orchestration: image bytes <-> `FiscalDump`.

Both directions walk the region table once, start to end. The functions are
pure: no I/O, no logging, no shared state. Decode anomalies are returned as
`DecodeWarning` entries on the dump and left to the caller to surface.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fmdump.core.codec.checksum import is_record_empty, verify_checksum
from fmdump.core.codec.records import RECORD_CODECS
from fmdump.core.domain.models import DecodeWarning, FiscalDump, RecordKind, SettlementReport, WarningKind
from fmdump.core.errors import InputTooSmallError, InvalidInputTypeError
from fmdump.core.layout import ERASED_BYTE, FILE_SIZE, HARDWARE_ID_REGION, RECORD_REGIONS, Region
from fmdump.core.services.date_resolver import ChangeCounterResolver

# Dump attribute holding each record kind. Single-slot regions map to an
# optional attribute, the rest to a list.
DUMP_FIELDS: dict[RecordKind, str] = {
    RecordKind.SERIAL: "serial",
    RecordKind.FISCAL_MODE_START: "fiscal_mode_start",
    RecordKind.FM_NUMBER: "fm_numbers",
    RecordKind.TAX_ID: "tax_ids",
    RecordKind.VAT_RATE_CHANGE: "vat_rate_changes",
    RecordKind.RAM_RESET: "ram_resets",
    RecordKind.SETTLEMENT_REPORT: "settlement_reports",
    RecordKind.JOURNAL_OPEN: "journal_opens",
    RecordKind.JOURNAL_CLOSE: "journal_closes",
}


def _as_buffer(data: Any) -> bytes:
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise InvalidInputTypeError(data)
    buffer = bytes(data)
    if len(buffer) < FILE_SIZE:
        raise InputTooSmallError(actual=len(buffer), required=FILE_SIZE)
    return buffer


class _WarningCollector:
    def __init__(self, *, now: datetime | None, check_future_dates: bool) -> None:
        self.items: list[DecodeWarning] = []
        self._now = now or datetime.now(timezone.utc)
        self._check_future_dates = check_future_dates

    def check(self, buffer: bytes, region: Region, index: int, record: Any) -> None:
        offset = region.record_offset(index)
        kind = region.kind
        if not verify_checksum(buffer, offset, region.record_size):
            self.items.append(
                DecodeWarning(
                    kind=WarningKind.CHECKSUM_MISMATCH,
                    record_kind=kind,
                    index=index,
                    byte_offset=offset,
                    message=f"Checksum mismatch in {kind.value}[{index}] at 0x{offset:x}",
                )
            )
        if not self._check_future_dates:
            return
        stamp = getattr(record, "date_time", None)
        instant = stamp.to_datetime() if stamp is not None else None
        if instant is not None and instant > self._now:
            self.items.append(
                DecodeWarning(
                    kind=WarningKind.FUTURE_DATE,
                    record_kind=kind,
                    index=index,
                    byte_offset=offset,
                    message=f"Future date in {kind.value}[{index}] at 0x{offset:x}: {stamp.isoformat()}",
                )
            )


def decode_fiscal_memory(
    data: bytes | bytearray | memoryview,
    *,
    now: datetime | None = None,
    check_future_dates: bool = True,
) -> FiscalDump:
    """Decode a full fiscal-memory image.

    Raises `InvalidInputTypeError` for non-buffer input and
    `InputTooSmallError` for buffers shorter than 2 MiB. Checksum mismatches
    and future timestamps never fail the decode; they end up in
    `FiscalDump.warnings` in region order, then slot order.
    """

    buffer = _as_buffer(data)
    collector = _WarningCollector(now=now, check_future_dates=check_future_dates)
    values: dict[str, Any] = {}

    for kind, region in RECORD_REGIONS.items():
        codec = RECORD_CODECS[kind]
        decoded = []
        for index in range(region.count):
            offset = region.record_offset(index)
            if is_record_empty(buffer, offset, region.record_size):
                continue
            record = codec.decode(buffer, offset)
            decoded.append(record)
            collector.check(buffer, region, index, record)

        field = DUMP_FIELDS[kind]
        if region.count == 1:
            values[field] = decoded[0] if decoded else None
        else:
            values[field] = decoded

    values["hardware_id"] = buffer[HARDWARE_ID_REGION.offset : HARDWARE_ID_REGION.end]
    values["warnings"] = collector.items
    return FiscalDump(**values)


def encode_fiscal_memory(dump: FiscalDump) -> bytes:
    """Encode a dump into a fresh 2 MiB image.

    Unset records and the opaque regions (test space, padding, hardware id)
    stay erased (0xFF). The derived change counters of every settlement report
    are recomputed; the values carried by the model are ignored.
    """

    buffer = bytearray([ERASED_BYTE]) * FILE_SIZE
    resolver = ChangeCounterResolver(dump)

    for kind, region in RECORD_REGIONS.items():
        codec = RECORD_CODECS[kind]
        value = getattr(dump, DUMP_FIELDS[kind])
        if region.count == 1:
            records = [] if value is None else [value]
        else:
            records = list(value)[: region.count]

        for index, record in enumerate(records):
            if record is None:
                continue
            if isinstance(record, SettlementReport):
                record = resolver.apply(record)
            codec.encode(buffer, region.record_offset(index), record)

    return bytes(buffer)


def decode(data: bytes | bytearray | memoryview, **kwargs: Any) -> FiscalDump:
    return decode_fiscal_memory(data, **kwargs)


def encode(dump: FiscalDump) -> bytes:
    return encode_fiscal_memory(dump)
