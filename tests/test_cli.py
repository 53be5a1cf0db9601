"""Tests for the command-line interface."""

import json
from unittest.mock import patch

import click
import pytest
from click.testing import CliRunner

from testdispatch.cli import main, parse_filter
from testdispatch.config import create_example_config
from testdispatch.core.discovery import DiscoveredTest, DiscoveryResult, node_id_to_identifier


NODE_IDS = [
    "tests/test_calc.py::test_add",
    "tests/test_calc.py::test_div",
]


def fake_discovery(self):
    return DiscoveryResult(
        tests=[
            DiscoveredTest(identifier=node_id_to_identifier(node_id), target=node_id)
            for node_id in NODE_IDS
        ]
    )


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def project(tmp_path):
    """A project directory with a config whose command echoes the target."""
    config_path = tmp_path / "testdispatch.json"
    create_example_config(config_path)
    data = json.loads(config_path.read_text())
    data["execution"]["command"] = "echo {target}"
    config_path.write_text(json.dumps(data))
    return config_path


class TestParseFilter:
    """Tests for parse_filter."""

    def test_name_only(self):
        spec = parse_filter("reverse")
        assert spec.name == "reverse"
        assert spec.apply == {}

    def test_options_are_json_decoded(self):
        spec = parse_filter("limit:count=2,label=fast")
        assert spec.apply == {"count": 2, "label": "fast"}

    def test_bad_pair(self):
        with pytest.raises(click.BadParameter):
            parse_filter("limit:count")

    def test_empty_name(self):
        with pytest.raises(click.BadParameter):
            parse_filter(":count=1")


class TestInit:
    """Tests for the init command."""

    def test_creates_config(self, runner, tmp_path):
        output = tmp_path / "testdispatch.json"
        result = runner.invoke(main, ["init", "--output", str(output)])

        assert result.exit_code == 0
        assert output.exists()

    def test_refuses_overwrite(self, runner, project):
        result = runner.invoke(main, ["init", "--output", str(project)])
        assert result.exit_code == 1

    def test_force_overwrite(self, runner, project):
        result = runner.invoke(main, ["init", "--output", str(project), "--force"])
        assert result.exit_code == 0


@patch("testdispatch.core.discovery.PytestDiscovery.discover", fake_discovery)
class TestRun:
    """Tests for the run command."""

    def test_nothing_to_run(self, runner, project):
        result = runner.invoke(main, ["--config", str(project), "run"])

        assert result.exit_code == 0
        assert "Nothing to run" in result.output

    def test_run_group_json(self, runner, project):
        result = runner.invoke(
            main,
            ["--config", str(project), "run", "--group", "tests", "--filter", "reverse", "--json"],
        )

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["title"] == "tests"
        assert [r["case"] for r in data["results"]] == ["tests.test_calc.test_div", "tests.test_calc.test_add"]
        assert list(data["filters"]) == ["summary", "profiler", "reverse"]
        assert data["filters"]["summary"]["asserts"] == 2

    def test_run_case_summary(self, runner, project):
        result = runner.invoke(main, ["--config", str(project), "run", "--case", "tests.test_calc.test_add"])

        assert result.exit_code == 0
        assert "All tests passed" in result.output

    def test_unknown_case(self, runner, project):
        result = runner.invoke(main, ["--config", str(project), "run", "--case", "tests.missing"])

        assert result.exit_code == 2
        assert "Unknown test case" in result.output

    def test_unknown_filter(self, runner, project):
        result = runner.invoke(main, ["--config", str(project), "run", "--group", "tests", "--filter", "nope"])
        assert result.exit_code == 2

    def test_failures_exit_nonzero(self, runner, project):
        data = json.loads(project.read_text())
        data["execution"]["command"] = "false {target}"
        project.write_text(json.dumps(data))

        result = runner.invoke(main, ["--config", str(project), "run", "--group", "tests"])

        assert result.exit_code == 1
        assert "Some tests failed" in result.output

    def test_missing_config(self, runner, tmp_path):
        result = runner.invoke(main, ["--config", str(tmp_path / "none.json"), "run"])
        assert result.exit_code == 1


@patch("testdispatch.core.discovery.PytestDiscovery.discover", fake_discovery)
class TestMenu:
    """Tests for the menu command."""

    def test_text_menu(self, runner, project):
        result = runner.invoke(main, ["--config", str(project), "menu"])

        assert result.exit_code == 0
        assert "-group tests" in result.output
        assert "-case tests.test_calc.test_add" in result.output

    def test_html_menu(self, runner, project):
        result = runner.invoke(main, ["--config", str(project), "menu", "--format", "html"])

        assert result.exit_code == 0
        assert '<a href="?case=tests.test_calc.test_div">test_div</a>' in result.output
