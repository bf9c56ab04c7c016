from pathlib import Path

import pytest

tomllib = pytest.importorskip("tomllib")

ROOT = Path(__file__).resolve().parents[2]


def test_project_metadata_points_at_shipped_files():
    with open(ROOT / "pyproject.toml", "rb") as f:
        project = tomllib.load(f)["project"]
    assert project["scripts"]["histograph"] == "histograph.cli.app:app"
    readme = project.get("readme")
    if readme is not None:
        assert readme == "README.md"
        assert (ROOT / readme).exists()
