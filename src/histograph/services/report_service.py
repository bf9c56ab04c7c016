# Licensed under the Apache License, Version 2.0 (the "License");
# ...
from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..domain.models import (
    BranchAnalysisResult,
    ConnectionLine,
    Event,
    MergeAnalysisResult,
    Relationship,
)
from ..domain.paths import to_svg_path

FORMATS = ("json", "ndjson", "csv")


def _ts(event: Optional[Event]) -> Optional[str]:
    if event is None or event.timestamp is None:
        return None
    return event.timestamp.isoformat()


def relationship_to_dict(rel: Relationship) -> Dict[str, Any]:
    meta = rel.metadata
    return {
        "id": rel.id,
        "source": rel.source_id,
        "target": rel.target_id,
        "type": rel.type.value,
        "visual_style": meta.visual_style.value if meta and meta.visual_style else None,
        "color": meta.color if meta else None,
        "opacity": meta.opacity if meta else None,
        "description": meta.description if meta else "",
    }


def merge_to_dict(result: MergeAnalysisResult) -> Dict[str, Any]:
    return {
        "merge": result.merge_event.id,
        "timestamp": _ts(result.merge_event),
        "sources": [e.id for e in result.source_events],
        "target_branch": result.target_branch,
        "branch_lifetime": result.branch_lifetime,
        "complexity": result.complexity.value,
    }


def branch_to_dict(result: BranchAnalysisResult) -> Dict[str, Any]:
    return {
        "branch": result.branch_name,
        "creation_event": result.creation_event.id,
        "creation_point": result.creation_point.id if result.creation_point else None,
        "first_commit": result.first_commit.id if result.first_commit else None,
        "merge_event": result.merge_event.id if result.merge_event else None,
        "lifespan": result.lifespan,
        "commit_count": result.commit_count,
        "authors": list(result.authors),
        "is_active": result.is_active,
    }


def connection_to_dict(conn: ConnectionLine) -> Dict[str, Any]:
    return {
        "id": conn.id,
        "relationship": conn.relationship.id,
        "type": conn.relationship.type.value,
        "source": conn.relationship.source_id,
        "target": conn.relationship.target_id,
        "path": [{"command": cmd.command, "args": list(cmd.args)} for cmd in conn.path],
        "svg": to_svg_path(conn.path),
        "color": conn.style.color,
        "width": conn.style.width,
        "opacity": conn.style.opacity,
        "dash_array": list(conn.style.dash_array) if conn.style.dash_array else None,
    }


# Stable CSV schemas for downstream tooling; nested values are dropped or joined.
_CSV_FIELDS = {
    "relationships": [
        "id", "source", "target", "type", "visual_style", "color", "opacity", "description",
    ],
    "merges": ["merge", "timestamp", "sources", "target_branch", "branch_lifetime", "complexity"],
    "branches": [
        "branch", "creation_event", "creation_point", "first_commit", "merge_event",
        "lifespan", "commit_count", "authors", "is_active",
    ],
    "connections": [
        "id", "relationship", "type", "source", "target", "svg",
        "color", "width", "opacity", "dash_array",
    ],
}


class ReportService:
    """
    Writes analysis results as JSON / NDJSON / CSV.

    Notes:
      - JSON (default): one array of records.
      - NDJSON: one record per line.
      - CSV: flat rows with a fixed column order per record kind; list values
        are joined with ';'.
    """

    def write_relationships(self, relationships: Iterable[Relationship], out: Path, fmt: str = "json") -> Path:
        return self._write("relationships", [relationship_to_dict(r) for r in relationships], out, fmt)

    def write_merges(self, results: Iterable[MergeAnalysisResult], out: Path, fmt: str = "json") -> Path:
        return self._write("merges", [merge_to_dict(r) for r in results], out, fmt)

    def write_branches(self, results: Iterable[BranchAnalysisResult], out: Path, fmt: str = "json") -> Path:
        return self._write("branches", [branch_to_dict(r) for r in results], out, fmt)

    def write_connections(self, connections: Iterable[ConnectionLine], out: Path, fmt: str = "json") -> Path:
        return self._write("connections", [connection_to_dict(c) for c in connections], out, fmt)

    def _write(self, kind: str, records: List[Dict[str, Any]], out: Path, fmt: str) -> Path:
        """
        Raises:
            ValueError: if an unsupported format is requested.
        """
        fmt = (fmt or "json").lower()
        if fmt not in FORMATS:
            raise ValueError(f"Unsupported format: {fmt}")

        out = Path(out)
        out.parent.mkdir(parents=True, exist_ok=True)

        if fmt == "json":
            out.write_text(json.dumps(records, ensure_ascii=False, indent=2), encoding="utf-8")
            return out

        if fmt == "ndjson":
            text = "\n".join(json.dumps(rec, ensure_ascii=False) for rec in records)
            out.write_text(text + ("\n" if text else ""), encoding="utf-8")
            return out

        fieldnames: Sequence[str] = _CSV_FIELDS[kind]
        with open(out, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction="ignore")
            writer.writeheader()
            for rec in records:
                writer.writerow(
                    {
                        key: ";".join(str(v) for v in value) if isinstance(value, list) else value
                        for key, value in rec.items()
                    }
                )
        return out
