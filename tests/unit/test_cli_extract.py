"""Unit tests for the extract CLI command."""

import json
from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from wikidump.cli.extract import extract

WIKIDUMP_VARS = (
    "WIKIDUMP_URL",
    "WIKIDUMP_TOTAL_ENTITY_SIZE_LIMIT",
    "WIKIDUMP_MAX_DIGEST_LENGTH",
    "WIKIDUMP_LIMIT",
    "WIKIDUMP_READ_INTERVAL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    """Run each command without .env or WIKIDUMP_* settings."""
    for key in WIKIDUMP_VARS:
        monkeypatch.delenv(key, raising=False)
    with patch("wikidump.utils.config.load_dotenv"):
        yield


def read_documents(path: Path) -> list[dict]:
    """Parse a JSON Lines output file."""
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


class TestExtractCLI:
    """Test extract CLI command."""

    def test_extract_writes_jsonl(
        self, sample_export: str, write_dump: Callable[..., Path], tmp_path: Path
    ) -> None:
        """Test that every page becomes one JSON line."""
        dump = write_dump(sample_export, "dump.xml.bz2")
        output = tmp_path / "pages.jsonl"

        result = CliRunner().invoke(extract, [str(dump), "-o", str(output), "--no-progress"])

        assert result.exit_code == 0
        documents = read_documents(output)
        assert [document["id"] for document in documents] == ["1", "2", "3"]
        assert documents[0]["title"] == "Blood Angels"
        assert documents[0]["encoded_title"] == "Blood+Angels"
        assert documents[2]["timestamp"] is None
        assert "Pages Processed: 3" in result.output

    def test_extract_limit(
        self, sample_export: str, write_dump: Callable[..., Path], tmp_path: Path
    ) -> None:
        """Test that --limit stops after that many pages."""
        dump = write_dump(sample_export)
        output = tmp_path / "pages.jsonl"

        result = CliRunner().invoke(
            extract, [str(dump), "-o", str(output), "--limit", "1", "--no-progress"]
        )

        assert result.exit_code == 0
        assert len(read_documents(output)) == 1
        assert "Stopped At Page: 1" in result.output

    def test_extract_limit_from_environment(
        self,
        sample_export: str,
        write_dump: Callable[..., Path],
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test that WIKIDUMP_LIMIT applies when --limit is not given."""
        monkeypatch.setenv("WIKIDUMP_LIMIT", "2")
        dump = write_dump(sample_export)
        output = tmp_path / "pages.jsonl"

        result = CliRunner().invoke(extract, [str(dump), "-o", str(output), "--no-progress"])

        assert result.exit_code == 0
        assert len(read_documents(output)) == 2

    def test_extract_digest_length(
        self, sample_export: str, write_dump: Callable[..., Path], tmp_path: Path
    ) -> None:
        """Test that --max-digest-length shortens the digest."""
        dump = write_dump(sample_export)
        output = tmp_path / "pages.jsonl"

        result = CliRunner().invoke(
            extract,
            [str(dump), "-o", str(output), "--max-digest-length", "10", "--no-progress"],
        )

        assert result.exit_code == 0
        assert all(len(document["digest"]) <= 10 for document in read_documents(output))

    def test_extract_rejects_small_digest_length(self, write_dump: Callable[..., Path]) -> None:
        """Test that a digest length below 4 is a usage error."""
        dump = write_dump("<mediawiki/>")

        result = CliRunner().invoke(extract, [str(dump), "--max-digest-length", "3"])

        assert result.exit_code == 2

    def test_extract_size_limit_aborts(
        self, sample_export: str, write_dump: Callable[..., Path], tmp_path: Path
    ) -> None:
        """Test that exceeding the size guard aborts with an error."""
        dump = write_dump(sample_export)

        result = CliRunner().invoke(
            extract,
            [
                str(dump),
                "-o",
                str(tmp_path / "pages.jsonl"),
                "--total-entity-size-limit",
                "100",
                "--no-progress",
            ],
        )

        assert result.exit_code == 1
        assert "exceeds limit" in result.output

    def test_extract_missing_dump(self, tmp_path: Path) -> None:
        """Test that a missing dump aborts with an error."""
        result = CliRunner().invoke(
            extract,
            [str(tmp_path / "missing.xml"), "-o", str(tmp_path / "out.jsonl"), "--no-progress"],
        )

        assert result.exit_code == 1
        assert "Could not open dump" in result.output

    def test_extract_invalid_configuration(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that a bad environment value aborts before reading."""
        monkeypatch.setenv("WIKIDUMP_LIMIT", "many")

        result = CliRunner().invoke(extract, [str(tmp_path / "dump.xml")])

        assert result.exit_code == 1
        assert "Configuration error" in result.output

    def test_extract_small_digest_length_from_environment(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that WIKIDUMP_MAX_DIGEST_LENGTH below 4 aborts instead of failing every page."""
        monkeypatch.setenv("WIKIDUMP_MAX_DIGEST_LENGTH", "2")

        result = CliRunner().invoke(extract, [str(tmp_path / "dump.xml")])

        assert result.exit_code == 1
        assert "WIKIDUMP_MAX_DIGEST_LENGTH must be at least 4" in result.output

    def test_extract_defaults_to_configured_url(
        self,
        sample_export: str,
        write_dump: Callable[..., Path],
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test that WIKIDUMP_URL is used when no locator is given."""
        monkeypatch.setenv("WIKIDUMP_URL", str(write_dump(sample_export, "dump.xml.gz")))
        output = tmp_path / "pages.jsonl"

        result = CliRunner().invoke(extract, ["-o", str(output), "--no-progress"])

        assert result.exit_code == 0
        assert len(read_documents(output)) == 3

    def test_extract_help_shows_options(self) -> None:
        """Test that --help shows all expected options."""
        result = CliRunner().invoke(extract, ["--help"])

        assert result.exit_code == 0
        assert "--output" in result.output
        assert "--limit" in result.output
        assert "--max-digest-length" in result.output
        assert "--total-entity-size-limit" in result.output
        assert "--read-interval" in result.output
        assert "--no-progress" in result.output
