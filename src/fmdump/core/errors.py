"""Errors raised by the fiscal-memory codec.

Only `decode` can fail. Checksum and date anomalies are not errors: they are
returned as `DecodeWarning` values attached to the decoded dump.
"""

from __future__ import annotations


class FiscalDumpError(Exception):
    """Base class for every codec failure."""


class InputTooSmallError(FiscalDumpError, ValueError):
    """The buffer is shorter than a full fiscal-memory image."""

    def __init__(self, actual: int, required: int) -> None:
        self.actual = actual
        self.required = required
        super().__init__(
            f"File too small to be a valid fiscal memory dump: "
            f"{actual} bytes, need {required} (0x{required:X})"
        )


class InvalidInputTypeError(FiscalDumpError, TypeError):
    """The input is not a raw byte buffer."""

    def __init__(self, value: object) -> None:
        self.received_type = type(value).__name__
        super().__init__(f"Input must be a bytes-like buffer, got {self.received_type}")
