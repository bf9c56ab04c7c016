import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from histograph.adapters.source.json_source import (
    JsonEventSource,
    JsonPositionSource,
    parse_timestamp,
)
from histograph.domain.errors import EventSourceError
from histograph.domain.models import EventType


def _write(tmp_path: Path, name: str, payload) -> Path:
    p = tmp_path / name
    p.write_text(json.dumps(payload), encoding="utf-8")
    return p


def test_loads_camel_and_snake_case_events(tmp_path: Path):
    p = _write(
        tmp_path,
        "events.json",
        {
            "events": [
                {"id": "a", "type": "commit", "timestamp": "2024-01-01T00:00:00Z", "branch": "main"},
                {
                    "id": "m",
                    "type": "merge",
                    "date": 1704153600000,
                    "parentHashes": ["a", "b"],
                    "filesChanged": 3,
                },
                {"id": "b", "type": "commit", "parent_ids": ["a"], "author": "ann"},
                {"id": "v1", "type": "tag", "targetCommit": "m"},
            ]
        },
    )
    events = JsonEventSource(p).load_events()
    by_id = {e.id: e for e in events}

    assert by_id["a"].timestamp == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert by_id["m"].type == EventType.MERGE
    assert by_id["m"].parent_ids == ("a", "b")
    assert by_id["m"].files_changed == 3
    assert by_id["m"].timestamp == datetime(2024, 1, 2, tzinfo=timezone.utc)
    assert by_id["b"].parent_ids == ("a",)
    assert by_id["b"].timestamp is None
    assert by_id["v1"].target_commit == "m"


def test_naive_iso_timestamps_are_utc():
    assert parse_timestamp("2024-01-01T10:00:00") == datetime(2024, 1, 1, 10, tzinfo=timezone.utc)
    assert parse_timestamp(None) is None


def test_bad_timestamp_raises():
    with pytest.raises(EventSourceError):
        parse_timestamp("yesterday")


def test_unknown_event_type_raises(tmp_path: Path):
    p = _write(tmp_path, "events.json", [{"id": "a", "type": "push"}])
    with pytest.raises(EventSourceError) as excinfo:
        JsonEventSource(p).load_events()
    assert "unknown event type" in str(excinfo.value).lower()


def test_invalid_json_and_missing_file(tmp_path: Path):
    p = tmp_path / "broken.json"
    p.write_text("{not json", encoding="utf-8")
    with pytest.raises(EventSourceError):
        JsonEventSource(p).load_events()
    with pytest.raises(EventSourceError):
        JsonEventSource(tmp_path / "missing.json").load_events()


def test_positions_as_list_or_mapping(tmp_path: Path):
    as_list = _write(
        tmp_path,
        "pos_list.json",
        [{"eventId": "a", "x": 1, "y": 2, "branch": "main", "importance": 3}],
    )
    as_map = _write(tmp_path, "pos_map.json", {"a": {"x": 1, "y": 2}})

    listed = JsonPositionSource(as_list).load_positions()
    mapped = JsonPositionSource(as_map).load_positions()

    assert listed["a"].x == 1.0 and listed["a"].y == 2.0
    assert listed["a"].importance == 3.0
    assert mapped["a"].event_id == "a"
    assert mapped["a"].branch == ""


def test_position_without_coordinates_raises(tmp_path: Path):
    p = _write(tmp_path, "pos.json", [{"eventId": "a", "x": 1}])
    with pytest.raises(EventSourceError):
        JsonPositionSource(p).load_positions()
