"""Load and save fiscal-memory image files."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from fmdump.adapters.logging_setup import get_logger
from fmdump.core.domain.models import FiscalDump
from fmdump.core.services.fiscal_memory import decode_fiscal_memory, encode_fiscal_memory

logger = get_logger(__name__)


def load_dump_file(
    path: Path,
    *,
    now: datetime | None = None,
    check_future_dates: bool = True,
) -> FiscalDump:
    """Read the whole image and decode it.

    Decode warnings are logged here (one line each) and kept on the dump.
    """

    data = path.read_bytes()
    logger.info("Loaded %s (%d bytes)", path, len(data))
    dump = decode_fiscal_memory(data, now=now, check_future_dates=check_future_dates)
    for warning in dump.warnings:
        logger.warning(warning.message)
    return dump


def save_dump_file(path: Path, dump: FiscalDump) -> Path:
    """Encode `dump` and write the 2 MiB image to `path`."""

    data = encode_fiscal_memory(dump)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    logger.info("Wrote %s (%d bytes)", path, len(data))
    return path
