"""Unit tests for the click CLI."""

import json

import pytest
from click.testing import CliRunner

from see_the_code.cli import cli
from see_the_code.config import CONFIG_ENV_VAR
from see_the_code.models import CodeMap, SourceLocation
from see_the_code.storage import save_code_map


@pytest.fixture()
def runner(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    return CliRunner()


@pytest.fixture()
def in_workspace(component_workspace, monkeypatch):
    monkeypatch.chdir(component_workspace)
    return component_workspace


class TestGenerateCommand:
    """Test the generate command."""

    def test_writes_default_output(self, runner, in_workspace):
        result = runner.invoke(cli, ["generate"])

        assert result.exit_code == 0, result.output
        data = json.loads((in_workspace / "code-map.json").read_text())
        assert data[".btn"] == {"file": "src/components/Button.tsx", "line": 5}
        assert "Selectors found" in result.output

    def test_dry_run_prints_json(self, runner, in_workspace):
        result = runner.invoke(cli, ["generate", "--dry-run", "-q"])

        assert result.exit_code == 0, result.output
        assert ".modal" in json.loads(result.output)
        assert not (in_workspace / "code-map.json").exists()

    def test_input_and_output_options(self, runner, in_workspace):
        result = runner.invoke(
            cli, ["generate", "-i", "src/layout", "-o", "public/map.json", "-q"]
        )

        assert result.exit_code == 0, result.output
        data = json.loads((in_workspace / "public" / "map.json").read_text())
        assert {entry["file"] for entry in data.values()} == {"src/layout/Header.tsx"}

    def test_enrichment_flags(self, runner, in_workspace):
        result = runner.invoke(
            cli, ["generate", "--dry-run", "-q", "--hash", "--inner-text"]
        )

        data = json.loads(result.output)
        assert len(data[".title"]["hash"]) == 16
        assert data[".title"]["innerText"] == "See the code"

    def test_parse_errors_are_reported_not_fatal(self, runner, in_workspace, write_file):
        write_file("src/Broken.tsx", "export const B = () => <div>;\n")

        result = runner.invoke(cli, ["generate"])

        assert result.exit_code == 0
        assert "src/Broken.tsx" in result.output

    def test_workers_option(self, runner, in_workspace):
        result = runner.invoke(cli, ["generate", "--workers", "2", "-q"])
        assert result.exit_code == 0, result.output
        assert (in_workspace / "code-map.json").exists()

    def test_config_file_is_used(self, runner, in_workspace):
        (in_workspace / ".see-the-code.json").write_text(
            json.dumps({"input": ["./src/layout"], "output": "./from-config.json"})
        )

        result = runner.invoke(cli, ["generate", "-q"])

        assert result.exit_code == 0, result.output
        assert (in_workspace / "from-config.json").exists()

    def test_invalid_explicit_config(self, runner, in_workspace):
        (in_workspace / "bad.json").write_text("{broken")

        result = runner.invoke(cli, ["generate", "--config", "bad.json"])

        assert result.exit_code == 1
        assert "Cannot load config file" in result.output

    def test_log_file_option(self, runner, in_workspace):
        result = runner.invoke(
            cli, ["generate", "-q", "--log-file", "logs/gen.log", "--log-format", "json"]
        )

        assert result.exit_code == 0, result.output
        entries = [
            json.loads(line)
            for line in (in_workspace / "logs" / "gen.log").read_text().splitlines()
        ]
        messages = [entry["message"] for entry in entries]
        assert "Discovering files..." in messages
        assert entries[0]["logger"].startswith("see_the_code")

    def test_quiet_and_verbose_conflict(self, runner, in_workspace):
        result = runner.invoke(cli, ["generate", "-q", "-v"])
        assert result.exit_code == 1
        assert "mutually exclusive" in result.output


class TestValidateCommand:
    """Test the validate command and its alias."""

    @pytest.fixture()
    def code_map_file(self, in_workspace):
        save_code_map(
            CodeMap({".btn": SourceLocation("src/components/Button.tsx", 5)}),
            in_workspace / "code-map.json",
        )
        return in_workspace / "code-map.json"

    def test_valid(self, runner, code_map_file):
        result = runner.invoke(cli, ["validate"])
        assert result.exit_code == 0, result.output
        assert "Code map is valid" in result.output

    def test_test_alias(self, runner, code_map_file):
        result = runner.invoke(cli, ["test", str(code_map_file)])
        assert result.exit_code == 0, result.output

    def test_broken_record(self, runner, in_workspace):
        save_code_map(
            CodeMap({".gone": SourceLocation("src/Gone.tsx", 1)}),
            in_workspace / "broken.json",
        )

        result = runner.invoke(cli, ["validate", "broken.json"])

        assert result.exit_code == 1
        assert "non-existent file: src/Gone.tsx" in result.output

    def test_missing_file(self, runner, in_workspace):
        result = runner.invoke(cli, ["validate", "nope.json"])
        assert result.exit_code == 1
        assert "Code map file not found" in result.output

    def test_workspace_option(self, runner, in_workspace):
        save_code_map(
            CodeMap({".btn": SourceLocation("components/Button.tsx", 5)}),
            in_workspace / "map.json",
        )
        result = runner.invoke(cli, ["validate", "map.json", "-w", "src"])
        assert result.exit_code == 0, result.output

    def test_json_output(self, runner, code_map_file):
        result = runner.invoke(cli, ["validate", "--json"])
        data = json.loads(result.output)
        assert data["valid"] is True
        assert data["totalSelectors"] == 1


class TestAnnotateCommand:
    """Test the annotate command."""

    @pytest.fixture()
    def page(self, in_workspace, write_file):
        return write_file(
            "page.html",
            '<html><body><div class="card"><button class="btn">Go</button></div></body></html>',
        )

    def test_annotates_html_file(self, runner, in_workspace, page):
        save_code_map(
            CodeMap({".card": SourceLocation("src/components/Card.jsx", 3)}),
            in_workspace / "code-map.json",
        )

        result = runner.invoke(cli, ["annotate", "page.html", "-o", "out.html"])

        assert result.exit_code == 0, result.output
        annotated = (in_workspace / "out.html").read_text()
        assert "see-the-code-badge" in annotated
        assert "src/components/Card.jsx:3" in annotated
        assert "1 element(s) annotated" in result.output

    def test_code_map_option_and_stdout(self, runner, in_workspace, page):
        save_code_map(
            CodeMap({"button": SourceLocation("src/components/Button.tsx", 5)}),
            in_workspace / "maps" / "ui.json",
        )

        result = runner.invoke(
            cli, ["annotate", "page.html", "--code-map", "maps/ui.json", "-q"]
        )

        assert result.exit_code == 0, result.output
        assert "src/components/Button.tsx:5" in result.output

    def test_missing_code_map(self, runner, in_workspace, page):
        result = runner.invoke(cli, ["annotate", "page.html", "--code-map", "none.json"])
        assert result.exit_code == 1
        assert "Code map not loaded" in result.output

    def test_missing_source(self, runner, in_workspace):
        result = runner.invoke(cli, ["annotate", "missing.html"])
        assert result.exit_code == 1
        assert "Cannot read missing.html" in result.output

    def test_url_without_playwright(self, runner, in_workspace, monkeypatch):
        monkeypatch.setattr("see_the_code.runtime.browser.PLAYWRIGHT_AVAILABLE", False)

        result = runner.invoke(cli, ["annotate", "http://localhost:3000/"])

        assert result.exit_code == 1
        assert "Playwright is required" in result.output
