# tests/cli/test_cli_validation.py
from pathlib import Path

from typer.testing import CliRunner
from histograph.cli.app import app

runner = CliRunner()


def _files(tmp_path: Path) -> tuple[Path, Path]:
    ev = tmp_path / "events.json"
    ev.write_text('[{"id": "a", "type": "commit"}]', encoding="utf-8")
    pos = tmp_path / "positions.json"
    pos.write_text('{"a": {"x": 0, "y": 0}}', encoding="utf-8")
    return ev, pos


def test_unknown_relationship_type_fails_cleanly(tmp_path: Path):
    ev, pos = _files(tmp_path)
    r = runner.invoke(
        app,
        ["connections", "--events", str(ev), "--positions", str(pos), "--types", "parent-child,wormhole"],
    )
    assert r.exit_code != 0
    assert "Unknown relationship type(s)" in r.output


def test_unsupported_format_fails_cleanly(tmp_path: Path):
    ev, _ = _files(tmp_path)
    r = runner.invoke(app, ["relationships", "--events", str(ev), "--fmt", "xml"])
    assert r.exit_code != 0
    assert "Unsupported format" in r.output


def test_bad_event_file_exits_non_zero(tmp_path: Path):
    ev = tmp_path / "events.json"
    ev.write_text('[{"id": "a", "type": "push"}]', encoding="utf-8")
    r = runner.invoke(app, ["stats", "--events", str(ev)])
    assert r.exit_code == 1
