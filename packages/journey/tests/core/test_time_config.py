from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest

from weigh8_journey.core import json
from weigh8_journey.core.config import Settings
from weigh8_journey.core.time import format_local, parse_timestamp


def test_parse_timestamp_variants() -> None:
    z = parse_timestamp("2026-03-02T06:00:00.000Z")
    assert z == datetime(2026, 3, 2, 6, 0, tzinfo=timezone.utc)
    off = parse_timestamp("2026-03-02T08:00:00+02:00")
    assert off == z
    naive = parse_timestamp(datetime(2026, 3, 2, 6, 0))
    assert naive == z
    assert parse_timestamp("2026-03-02") == datetime(2026, 3, 2, tzinfo=timezone.utc)
    assert parse_timestamp(date(2026, 3, 2)) == datetime(2026, 3, 2, tzinfo=timezone.utc)
    assert parse_timestamp("") is None
    assert parse_timestamp(None) is None
    with pytest.raises(ValueError):
        parse_timestamp("yesterday-ish")


def test_format_local_uses_south_african_time() -> None:
    ts = datetime(2026, 3, 2, 6, 0, tzinfo=timezone.utc)
    assert format_local(ts) == "2026-03-02 08:00"
    assert format_local(None) == "N/A"
    assert format_local(ts + timedelta(hours=16)) == "2026-03-03 00:00"


def test_settings_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WEIGH8_POLL_INTERVAL_S", "30")
    monkeypatch.setenv("WEIGH8_LIONS_SITE_ID", "7")
    s = Settings()
    assert s.poll_interval_s == 30.0
    assert s.lions_site_id == 7
    assert s.site_name(1) == "Lions Park"
    assert s.site_name(99) == "Site 99"


def test_json_helpers(tmp_path: Path) -> None:
    out = tmp_path / "snap.json"
    out.write_text('{"b": 1, "a": [2]}', encoding="utf-8")
    assert json.read_json(out) == {"a": [2], "b": 1}

    ts = datetime(2026, 3, 2, tzinfo=timezone.utc)
    assert json.stable_json_dumps({"b": ts, "a": 1}, indent=None) == (
        '{"a":1,"b":"2026-03-02 00:00:00+00:00"}'
    )
