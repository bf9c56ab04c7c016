# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from ...domain.errors import EventSourceError
from ...domain.models import Event, EventType, Position
from ...ports.event_source import EventSourcePort
from ...ports.positions import PositionSourcePort

logger = logging.getLogger(__name__)


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise EventSourceError(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise EventSourceError(f"Invalid JSON in {path}: {e}") from e


def _pick(record: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """First present key wins; accepts camelCase and snake_case spellings."""
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return default


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    ISO-8601 strings or epoch milliseconds -> aware datetime (UTC if no offset).
    """
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise EventSourceError(f"Invalid timestamp: {value!r}")
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise EventSourceError(f"Invalid timestamp: {value!r}") from e
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    raise EventSourceError(f"Invalid timestamp: {value!r}")


def event_from_dict(record: Dict[str, Any]) -> Event:
    if not isinstance(record, dict):
        raise EventSourceError(f"Event must be an object, got {type(record).__name__}")
    event_id = _pick(record, "id", "hash")
    if event_id is None:
        raise EventSourceError(f"Event without id: {record!r}")
    try:
        event_type = EventType(_pick(record, "type", default="commit"))
    except ValueError as e:
        raise EventSourceError(f"Unknown event type for {event_id}: {e}") from e

    def _int(*keys: str) -> Optional[int]:
        value = _pick(record, *keys)
        return int(value) if value is not None else None

    return Event(
        id=str(event_id),
        type=event_type,
        timestamp=parse_timestamp(_pick(record, "timestamp", "date")),
        title=str(_pick(record, "title", default="")),
        branch=str(_pick(record, "branch", default="")),
        branches=tuple(_pick(record, "branches", default=())),
        parent_ids=tuple(
            str(p) for p in _pick(record, "parentIds", "parent_ids", "parentHashes", default=())
        ),
        author=str(_pick(record, "author", default="")),
        files_changed=_int("filesChanged", "files_changed"),
        insertions=_int("insertions", "linesAdded"),
        deletions=_int("deletions", "linesRemoved"),
        target_commit=_pick(record, "targetCommit", "target_commit"),
    )


class JsonEventSource(EventSourcePort):
    """
    Events from a JSON file: either an array of event objects or
    {"events": [...]}.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def load_events(self) -> List[Event]:
        payload = _read_json(self._path)
        if isinstance(payload, dict):
            payload = payload.get("events", [])
        if not isinstance(payload, list):
            raise EventSourceError(f"{self._path}: expected a list of events")
        events = [event_from_dict(rec) for rec in payload]
        logger.debug("JsonEventSource: loaded %d events from %s", len(events), self._path)
        return events


class JsonPositionSource(PositionSourcePort):
    """
    Positions from a JSON file: an array of objects carrying an event id, or
    an object keyed by event id.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def load_positions(self) -> Dict[str, Position]:
        payload = _read_json(self._path)
        if isinstance(payload, dict):
            records = [dict(value, eventId=key) for key, value in payload.items()]
        elif isinstance(payload, list):
            records = payload
        else:
            raise EventSourceError(f"{self._path}: expected positions as list or object")

        positions: Dict[str, Position] = {}
        for rec in records:
            event_id = _pick(rec, "eventId", "event_id", "id")
            if event_id is None:
                raise EventSourceError(f"Position without event id: {rec!r}")
            try:
                position = Position(
                    event_id=str(event_id),
                    x=float(rec["x"]),
                    y=float(rec["y"]),
                    branch=str(_pick(rec, "branch", default="")),
                    importance=float(_pick(rec, "importance", default=1.0)),
                )
            except (KeyError, TypeError, ValueError) as e:
                raise EventSourceError(f"Bad position for {event_id}: {e}") from e
            positions[position.event_id] = position
        return positions
