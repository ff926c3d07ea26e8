"""Primitive field codecs.

All integers are unsigned little-endian. Text uses the Windows-1251 code page
and is stored NUL-padded in a fixed span.
"""

from __future__ import annotations

import struct

from fmdump.core.domain.models import FiscalDateTime

TEXT_ENCODING = "cp1251"

_DATETIME = struct.Struct("<H6B")
_ABSENT_DATETIME = (0xFFFF, 0xFF, 0xFF, 0xFF, 0xFF, 0xFF, 0xFF)

_UINT_FORMATS = {1: "<B", 2: "<H", 4: "<I", 8: "<Q"}


def read_uint(buffer: bytes, offset: int, size: int) -> int:
    return struct.unpack_from(_UINT_FORMATS[size], buffer, offset)[0]


def write_uint(buffer: bytearray, offset: int, size: int, value: int) -> None:
    struct.pack_into(_UINT_FORMATS[size], buffer, offset, value)


def read_text(buffer: bytes, offset: int, length: int) -> str:
    raw = bytes(buffer[offset : offset + length])
    return raw.decode(TEXT_ENCODING, errors="replace").rstrip("\x00")


def write_text(buffer: bytearray, offset: int, length: int, value: str | None) -> None:
    """Zero-fill the span and copy as much of the encoded text as fits."""

    buffer[offset : offset + length] = bytes(length)
    if not value:
        return
    encoded = value.encode(TEXT_ENCODING, errors="replace")[:length]
    buffer[offset : offset + len(encoded)] = encoded


def read_datetime(buffer: bytes, offset: int) -> FiscalDateTime | None:
    fields = _DATETIME.unpack_from(buffer, offset)
    if fields == _ABSENT_DATETIME:
        return None
    year, month, day, hour, minute, second, tick = fields
    return FiscalDateTime(
        year=year,
        month=month,
        day=day,
        hour=hour,
        minute=minute,
        second=second,
        tick=tick,
    )


def write_datetime(buffer: bytearray, offset: int, value: FiscalDateTime | None) -> None:
    """Write a packed timestamp; an absent one leaves the span untouched."""

    if value is None:
        return
    _DATETIME.pack_into(
        buffer,
        offset,
        value.year,
        value.month,
        value.day,
        value.hour,
        value.minute,
        value.second,
        value.tick,
    )
