import json
from pathlib import Path

from typer.testing import CliRunner
from histograph.cli.app import app

runner = CliRunner()


def _write_inputs(tmp_path: Path) -> tuple[Path, Path]:
    events = [
        {"id": "A", "type": "commit", "timestamp": "2024-01-01T00:00:00Z", "branch": "main"},
        {"id": "B", "type": "commit", "timestamp": "2024-01-02T00:00:00Z", "branch": "main", "parentIds": ["A"]},
        {"id": "M", "type": "merge", "timestamp": "2024-01-04T00:00:00Z", "branch": "main", "parentIds": ["B", "A"]},
    ]
    positions = [
        {"eventId": "A", "x": 0, "y": 0},
        {"eventId": "B", "x": 1, "y": 0},
        {"eventId": "M", "x": 2, "y": 1},
    ]
    ev = tmp_path / "events.json"
    pos = tmp_path / "positions.json"
    ev.write_text(json.dumps(events), encoding="utf-8")
    pos.write_text(json.dumps(positions), encoding="utf-8")
    return ev, pos


def test_relationships_then_connections(tmp_path: Path):
    ev, pos = _write_inputs(tmp_path)

    rels_out = tmp_path / "rels.json"
    r = runner.invoke(app, ["relationships", "--events", str(ev), "--out", str(rels_out)])
    assert r.exit_code == 0, r.output
    assert len(json.loads(rels_out.read_text(encoding="utf-8"))) == 5

    conns_out = tmp_path / "conns.json"
    r = runner.invoke(
        app,
        ["connections", "--events", str(ev), "--positions", str(pos), "--out", str(conns_out)],
    )
    assert r.exit_code == 0, r.output
    conns = json.loads(conns_out.read_text(encoding="utf-8"))
    assert len(conns) == 3
    assert "curved_connections" in r.output


def test_output_directory_gets_default_name(tmp_path: Path):
    ev, _ = _write_inputs(tmp_path)
    out_dir = tmp_path / "reports"
    out_dir.mkdir()
    r = runner.invoke(app, ["merges", "--events", str(ev), "--fmt", "csv", "--out", str(out_dir)])
    assert r.exit_code == 0, r.output
    target = out_dir / "merges.csv"
    assert target.exists() and target.stat().st_size > 0


def test_descendants_and_stats(tmp_path: Path):
    ev, _ = _write_inputs(tmp_path)
    r = runner.invoke(app, ["descendants", "--events", str(ev), "--id", "A"])
    assert r.exit_code == 0, r.output
    assert r.output.split() == ["B", "M"]

    r = runner.invoke(app, ["stats", "--events", str(ev)])
    assert r.exit_code == 0, r.output
    payload = json.loads(r.output)
    assert payload["events"]["simple_merges"] == 1
    assert payload["events"]["orphan_events"] == 1


def test_branches_with_verbose(tmp_path: Path):
    ev, _ = _write_inputs(tmp_path)
    r = runner.invoke(
        app, ["branches", "--events", str(ev), "--out", str(tmp_path / "b.json"), "--verbose"]
    )
    assert r.exit_code == 0, r.output
    assert json.loads((tmp_path / "b.json").read_text(encoding="utf-8")) == []
