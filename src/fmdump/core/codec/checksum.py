"""Checksum/sentinel protocol shared by every record kind.

The last byte of each record is its checksum. A record whose other bytes are
all 0xFF has never been written (erased flash) and is never checksummed.
"""

from __future__ import annotations

from fmdump.core.layout import CHECKSUM_SEED, ERASED_BYTE


def is_record_empty(buffer: bytes, start: int, length: int) -> bool:
    body = buffer[start : start + length - 1]
    return body.count(ERASED_BYTE) == len(body)


def compute_checksum(buffer: bytes, start: int, length: int) -> int:
    crc = CHECKSUM_SEED
    for value in buffer[start : start + length - 1]:
        crc ^= value
    return crc & 0xFF


def verify_checksum(buffer: bytes, start: int, length: int) -> bool:
    if is_record_empty(buffer, start, length):
        return True
    return buffer[start + length - 1] == compute_checksum(buffer, start, length)


def apply_checksum(buffer: bytearray, start: int, length: int) -> None:
    if is_record_empty(buffer, start, length):
        return
    buffer[start + length - 1] = compute_checksum(buffer, start, length)
