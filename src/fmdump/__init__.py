"""fmdump: codec and tooling for fiscal-memory dumps of DP-family cash registers.

`decode` turns a 2 MiB image into a `FiscalDump`; `encode` turns a dump back
into an image the device accepts.
"""

from fmdump.core.domain.models import DecodeWarning, FiscalDump
from fmdump.core.errors import FiscalDumpError, InputTooSmallError, InvalidInputTypeError
from fmdump.core.services.fiscal_memory import decode, encode

__version__ = "0.1.0"

__all__ = [
    "DecodeWarning",
    "FiscalDump",
    "FiscalDumpError",
    "InputTooSmallError",
    "InvalidInputTypeError",
    "decode",
    "encode",
]
