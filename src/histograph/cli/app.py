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

import json
import logging
from pathlib import Path
from typing import List, Optional

import typer

from ..adapters.source.json_source import JsonEventSource, JsonPositionSource
from ..config import ALL_RELATIONSHIP_TYPES, ConnectionMappingConfig, MergeAnalysisConfig
from ..domain.errors import EventSourceError
from ..domain.models import Event, RelationshipType
from ..services import (
    BranchAnalyzer,
    ConnectionMapper,
    RelationshipAnalyzer,
    ReportService,
    TimelineService,
)
from ..services.report_service import FORMATS

from ..logging_config import setup_logging

setup_logging()

app = typer.Typer(help="Histograph CLI - relationship graph and connection lines for version history")

RELATIONSHIP_TYPES: set[str] = {t.value for t in RelationshipType}

logger = logging.getLogger(__name__)


def _parse_types(types: Optional[str]) -> frozenset:
    """
    Parse and validate --types into a set of RelationshipType.
    Raises Typer BadParameter if an unknown type is provided.
    """
    if not types:
        return ALL_RELATIONSHIP_TYPES
    parts = {p.strip().lower() for p in types.split(",") if p.strip()}
    unknown = parts - RELATIONSHIP_TYPES
    if unknown:
        raise typer.BadParameter(
            f"Unknown relationship type(s): {', '.join(sorted(unknown))}. "
            f"Valid options: {', '.join(sorted(RELATIONSHIP_TYPES))}"
        )
    return frozenset(RelationshipType(p) for p in parts)


def _check_fmt(fmt: str) -> str:
    fmt = fmt.lower()
    if fmt not in FORMATS:
        raise typer.BadParameter(
            f"Unsupported format: {fmt}. Valid options: {', '.join(FORMATS)}"
        )
    return fmt


def _target(out: Optional[Path], kind: str, fmt: str) -> Path:
    # - no --out  -> ./<kind>.<fmt>
    # - --out DIR -> DIR/<kind>.<fmt>
    # - --out FILE -> FILE
    if out is None:
        return Path(f"{kind}.{fmt}")
    out = Path(out)
    if out.exists() and out.is_dir():
        return out / f"{kind}.{fmt}"
    return out


def _load_events(path: Path) -> List[Event]:
    try:
        return JsonEventSource(path).load_events()
    except EventSourceError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)


def _set_verbose(verbose: bool) -> None:
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Verbose logging enabled")


def _events_option():
    return typer.Option(
        ...,
        "--events",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
        help="JSON file with the events to analyse",
    )


def _out_option():
    return typer.Option(
        None,
        "--out",
        "--output",
        help="Write to this path. A directory gets '<kind>.<fmt>' inside it; omitted -> './<kind>.<fmt>'.",
        resolve_path=True,
    )


def _fmt_option():
    return typer.Option("json", "--fmt", help="Output format: json, ndjson or csv.", case_sensitive=False)


def _verbose_option():
    return typer.Option(False, "--verbose", help="Enable verbose logging")


@app.command()
def relationships(
    events: Path = _events_option(),
    out: Optional[Path] = _out_option(),
    fmt: str = _fmt_option(),
    with_branches: bool = typer.Option(
        False, "--with-branches", help="Also infer branch-creation relationships."
    ),
    no_hints: bool = typer.Option(False, "--no-hints", help="Omit color/style hints."),
    verbose: bool = _verbose_option(),
):
    """
    Infer relationships (parent-child, merge, tag, optionally branch) and write them out.
    """
    _set_verbose(verbose)
    fmt = _check_fmt(fmt)
    loaded = _load_events(events)

    service = TimelineService(
        RelationshipAnalyzer(MergeAnalysisConfig(generate_visual_hints=not no_hints)),
        ConnectionMapper(),
        BranchAnalyzer() if with_branches else None,
    )
    found = service.relationships(loaded)
    written = ReportService().write_relationships(found, _target(out, "relationships", fmt), fmt=fmt)
    typer.echo(f"Wrote {len(found)} relationships ({fmt}) to {written}")


@app.command()
def merges(
    events: Path = _events_option(),
    out: Optional[Path] = _out_option(),
    fmt: str = _fmt_option(),
    no_octopus: bool = typer.Option(False, "--no-octopus", help="Skip merges with more than two parents."),
    verbose: bool = _verbose_option(),
):
    """
    Analyse merge events: sources, target branch, lifetime and complexity.
    """
    _set_verbose(verbose)
    fmt = _check_fmt(fmt)
    analyzer = RelationshipAnalyzer(MergeAnalysisConfig(include_octopus_merges=not no_octopus))
    results = analyzer.analyze_merge_commits(_load_events(events))
    written = ReportService().write_merges(results, _target(out, "merges", fmt), fmt=fmt)
    typer.echo(f"Wrote {len(results)} merges ({fmt}) to {written}")


@app.command()
def branches(
    events: Path = _events_option(),
    out: Optional[Path] = _out_option(),
    fmt: str = _fmt_option(),
    verbose: bool = _verbose_option(),
):
    """
    Analyse branch lifecycles (creation point, first commit, merge, lifespan).
    """
    _set_verbose(verbose)
    fmt = _check_fmt(fmt)
    results = BranchAnalyzer().analyze_branch_lifecycles(_load_events(events))
    written = ReportService().write_branches(results, _target(out, "branches", fmt), fmt=fmt)
    typer.echo(f"Wrote {len(results)} branches ({fmt}) to {written}")


@app.command()
def descendants(
    events: Path = _events_option(),
    event_id: str = typer.Option(..., "--id", help="Event to start from"),
    depth: Optional[int] = typer.Option(None, "--depth", min=0, help="Maximum generations to follow (default 5)"),
):
    """
    Print descendants of an event, one id per line.
    """
    found = RelationshipAnalyzer().find_descendants(_load_events(events), event_id, depth)
    for event in found:
        typer.echo(event.id)


@app.command()
def stats(events: Path = _events_option()):
    """
    Print merge/orphan statistics as JSON.
    """
    loaded = _load_events(events)
    payload = {
        "events": RelationshipAnalyzer().analysis_statistics(loaded),
        "branches": BranchAnalyzer().branch_statistics(loaded),
    }
    typer.echo(json.dumps(payload, indent=2))


@app.command()
def connections(
    events: Path = _events_option(),
    positions: Path = typer.Option(
        ...,
        "--positions",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
        help="JSON file with layout positions per event id",
    ),
    out: Optional[Path] = _out_option(),
    fmt: str = _fmt_option(),
    types: Optional[str] = typer.Option(
        None, "--types", help="Comma-separated relationship types to render (default: all)"
    ),
    curve_intensity: float = typer.Option(0.3, "--curve-intensity", help="0-1, how bowed curves are"),
    no_grouping: bool = typer.Option(False, "--no-grouping", help="Keep every connection between the same events."),
    no_adaptive: bool = typer.Option(False, "--no-adaptive", help="Disable density-based opacity."),
    with_branches: bool = typer.Option(False, "--with-branches", help="Include branch relationships."),
    verbose: bool = _verbose_option(),
):
    """
    Map relationships onto positions and write styled connection lines.
    """
    _set_verbose(verbose)
    fmt = _check_fmt(fmt)
    enabled = _parse_types(types)
    loaded = _load_events(events)
    try:
        layout = JsonPositionSource(positions).load_positions()
    except EventSourceError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    mapper = ConnectionMapper(
        ConnectionMappingConfig(
            enabled_relationship_types=enabled,
            curve_intensity=curve_intensity,
            group_similar_connections=not no_grouping,
            adaptive_opacity=not no_adaptive,
        )
    )
    service = TimelineService(
        RelationshipAnalyzer(), mapper, BranchAnalyzer() if with_branches else None
    )
    lines = service.connections(loaded, layout)
    written = ReportService().write_connections(lines, _target(out, "connections", fmt), fmt=fmt)
    typer.echo(f"Wrote {len(lines)} connections ({fmt}) to {written}")
    typer.echo(json.dumps(mapper.connection_statistics(lines), indent=2))
