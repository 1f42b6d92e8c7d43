"""Tests for CLI inspect, mermaid, paths and path commands."""

from __future__ import annotations

import json

import pytest

typer = pytest.importorskip("typer")

from typer.testing import CliRunner  # noqa: E402

from funcflow.cli import create_app  # noqa: E402

runner_cli = CliRunner()


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)


def _invoke(*args):
    return runner_cli.invoke(create_app(), list(args))


class TestInspectCommand:
    def test_table(self):
        result = _invoke("inspect")
        assert result.exit_code == 0
        assert "Pipeline | 5 functions | 6 links" in result.output
        assert "Execution order: f1 -> f2 -> f4 -> f5 -> f3 -> output" in result.output
        assert "Final output: 45 (computed)" in result.output

    def test_json(self):
        result = _invoke("inspect", "--json")
        data = json.loads(result.output)["data"]
        assert data["final_output"] == 45
        assert data["order"] == {"1": 2, "2": 4, "4": 5, "5": 3, "3": -1}
        assert [n["id"] for n in data["nodes"]] == [1, 2, 3, 4, 5]
        assert data["nodes"][0] == {"id": 1, "equation": "x^2", "error": None, "prev": 0, "next": 2}


class TestMermaidCommand:
    def test_prints_flowchart(self):
        result = _invoke("mermaid")
        assert result.exit_code == 0
        assert result.output.startswith("flowchart LR")
        assert "f5 --> f3" in result.output

    def test_bad_direction(self):
        result = _invoke("mermaid", "--direction", "XY")
        assert result.exit_code == 1
        assert "Invalid direction" in result.output


class TestPathsCommand:
    def test_json(self):
        result = _invoke("paths", "--json")
        assert result.exit_code == 0
        data = json.loads(result.output)["data"]
        assert len(data) == 6
        assert data[0]["source"] == "initial"
        assert data[0]["kind"] == "line"
        assert data[0]["d"] == "M 250 80 L 378 80"

    def test_table(self):
        result = _invoke("paths")
        assert "quadratic" in result.output


class TestPathCommand:
    def test_horizontal(self):
        result = _invoke("path", "0", "0", "100", "0")
        assert result.output.strip() == "M 0 0 Q 50 50, 100 0"

    def test_cubic(self):
        result = _invoke("path", "0", "0", "200", "100")
        assert result.output.strip() == "M 0 0 C 100 0, 100 100, 200 100"

    def test_terminal(self):
        result = _invoke("path", "0", "0", "200", "100", "--terminal")
        assert result.output.strip() == "M 0 0 L 200 100"
