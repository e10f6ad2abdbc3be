"""Unit tests for the analyze CLI command."""

import json
from pathlib import Path

from click.testing import CliRunner

from wikidump.__main__ import cli
from wikidump.cli.analyze import analyze

WIKITEXT = """{{Infobox planet
|name=Baal
}}
[[Category:Planets]]
[[de:Baal (Planet)]]
'''Baal''' is home to the [[Blood Angels]].
{{planet-stub}}"""


class TestAnalyzeCLI:
    """Test analyze CLI command."""

    def test_analyze_prints_facts(self, tmp_path: Path) -> None:
        """Test the JSON facts for a wikitext file."""
        path = tmp_path / "baal.wiki"
        path.write_text(WIKITEXT, encoding="utf-8")

        result = CliRunner().invoke(analyze, [str(path), "--lang", "de", "--lang", "fr"])

        assert result.exit_code == 0
        facts = json.loads(result.output)
        assert facts["redirect"] is False
        assert facts["redirect_target"] is None
        assert facts["stub"] is True
        assert facts["disambiguation"] is False
        assert facts["categories"] == ["Planets"]
        assert facts["links"] == ["Blood Angels"]
        assert facts["infobox"] == "{{Infobox planet\n|name=Baal\n}}"
        assert facts["translated_titles"] == {"de": "Baal (Planet)", "fr": None}
        assert "Baal is home to the Blood Angels." in facts["plain_text"]

    def test_analyze_redirect(self, tmp_path: Path) -> None:
        """Test a redirect page without plain text."""
        path = tmp_path / "redirect.wiki"
        path.write_text("#REDIRECT [[Baal]]", encoding="utf-8")

        result = CliRunner().invoke(analyze, [str(path), "--no-text"])

        assert result.exit_code == 0
        facts = json.loads(result.output)
        assert facts["redirect"] is True
        assert facts["redirect_target"] == "Baal"
        assert facts["links"] == ["Baal"]
        assert "plain_text" not in facts
        assert "translated_titles" not in facts

    def test_analyze_missing_file(self, tmp_path: Path) -> None:
        """Test that a missing file is a usage error."""
        result = CliRunner().invoke(analyze, [str(tmp_path / "missing.wiki")])

        assert result.exit_code == 2


class TestMainGroup:
    """Test the top-level command group."""

    def test_group_lists_commands(self) -> None:
        """Test that both commands are registered."""
        result = CliRunner().invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "extract" in result.output
        assert "analyze" in result.output

    def test_version(self) -> None:
        """Test the version option."""
        result = CliRunner().invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "0.1.0" in result.output
