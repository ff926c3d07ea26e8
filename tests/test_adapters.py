from __future__ import annotations

import json

import pytest

from fmdump.adapters.dump_file import load_dump_file, save_dump_file
from fmdump.adapters.json_exporter import export_dump_json, load_dump_json, load_settlement_reports_json
from fmdump.core.config import AppSettings
from fmdump.core.errors import InputTooSmallError
from fmdump.core.layout import FILE_SIZE


def test_save_then_load_file(tmp_path, sample_dump, now):
    target = save_dump_file(tmp_path / "nested" / "fm.bin", sample_dump)
    assert target.stat().st_size == FILE_SIZE

    loaded = load_dump_file(target, now=now)
    assert loaded.settlement_reports == sample_dump.settlement_reports
    assert loaded.warnings == []


def test_load_short_file_raises(tmp_path):
    path = tmp_path / "short.bin"
    path.write_bytes(b"\xff" * 100)
    with pytest.raises(InputTooSmallError):
        load_dump_file(path)


def test_json_round_trip(tmp_path, sample_dump):
    path = export_dump_json(dump=sample_dump, output_path=tmp_path / "dump.json")
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["hardware_id"] == "ff" * 16
    assert payload["serial"]["serial_number"] == "ДП00012345"
    assert payload["settlement_reports"][2]["cumulative"]["a"] == 2**63 + 200

    assert load_dump_json(path) == sample_dump


def test_reports_json_accepts_list_or_dump(tmp_path, sample_dump):
    dump_path = export_dump_json(dump=sample_dump, output_path=tmp_path / "dump.json")
    assert load_settlement_reports_json(dump_path) == sample_dump.settlement_reports

    list_path = tmp_path / "reports.json"
    list_path.write_text(
        json.dumps([{"number": 1, "date_time": "2023-01-01T20:00:00Z", "sum": {"a": 5}}]),
        encoding="utf-8",
    )
    (report,) = load_settlement_reports_json(list_path)
    assert report.sum.a == 5
    assert report.date_time.year == 2023


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("FMDUMP_CHECK_FUTURE_DATES", "false")
    monkeypatch.setenv("FMDUMP_JSON_INDENT", "4")
    monkeypatch.setenv("FMDUMP_LOG_LEVEL", "info")
    settings = AppSettings()
    assert settings.check_future_dates is False
    assert settings.json_indent == 4
    assert settings.log_level == "INFO"


def test_settings_reject_unknown_log_level(monkeypatch):
    monkeypatch.setenv("FMDUMP_LOG_LEVEL", "chatty")
    with pytest.raises(ValueError):
        AppSettings()
