"""Exportación/importación JSON del agregado.

JSON is the editing format: a dump exported here can be changed by hand or by
other tools and rebuilt into an image with `fmdump build`.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import TypeAdapter

from fmdump.adapters.logging_setup import get_logger
from fmdump.core.domain.models import FiscalDump, SettlementReport

logger = get_logger(__name__)

_REPORTS_ADAPTER = TypeAdapter(list[SettlementReport])


def dump_to_json(dump: FiscalDump, *, indent: int = 2) -> str:
    payload = dump.model_dump(mode="json")
    return json.dumps(payload, ensure_ascii=False, indent=indent, sort_keys=True) + "\n"


def export_dump_json(*, dump: FiscalDump, output_path: Path, indent: int = 2) -> Path:
    """Write `dump` as stable UTF-8 JSON."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(dump_to_json(dump, indent=indent), encoding="utf-8")
    logger.info("Exported JSON to %s", output_path)
    return output_path


def load_dump_json(path: Path) -> FiscalDump:
    data = json.loads(path.read_text(encoding="utf-8"))
    return FiscalDump.model_validate(data)


def load_settlement_reports_json(path: Path) -> list[SettlementReport]:
    """Load reports to import.

    Accepts a bare JSON list of reports or any object carrying a
    `settlement_reports` list (e.g. a full exported dump).
    """

    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("settlement_reports", [])
    reports = _REPORTS_ADAPTER.validate_python(data)
    logger.info("Loaded %d settlement reports from %s", len(reports), path)
    return reports
