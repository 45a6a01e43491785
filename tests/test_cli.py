"""
Tests for the command-line interface.
"""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def records_file(temp_dir: Path, duplicate_records) -> Path:
    path = temp_dir / "records.json"
    path.write_text(
        json.dumps([record.to_public_dict() for record in duplicate_records]),
        encoding="utf-8",
    )
    return path


class TestCli:
    """Tests for CLI commands."""

    def test_deadline(self, runner: CliRunner):
        from scholarship_ingest.cli.main import app

        result = runner.invoke(app, ["deadline", "Rolling admissions", "--rules-only"])

        assert result.exit_code == 0
        assert '"deadline": "varies"' in result.output

    def test_dedup_rules(self, runner: CliRunner, records_file: Path):
        from scholarship_ingest.cli.main import app

        result = runner.invoke(app, ["dedup", str(records_file), "--method", "rules"])

        assert result.exit_code == 0
        assert '"deduplicatedCount": 2' in result.output

    def test_dedup_invalid_method(self, runner: CliRunner, records_file: Path):
        from scholarship_ingest.cli.main import app

        result = runner.invoke(app, ["dedup", str(records_file), "--method", "fuzzy"])

        assert result.exit_code == 2

    def test_dedup_missing_file(self, runner: CliRunner, temp_dir: Path):
        from scholarship_ingest.cli.main import app

        result = runner.invoke(app, ["dedup", str(temp_dir / "absent.json")])

        assert result.exit_code == 1

    def test_validate_reports_invalid(self, runner: CliRunner, temp_dir: Path):
        from scholarship_ingest.cli.main import app

        path = temp_dir / "bad.json"
        path.write_text(json.dumps({"id": "", "name": "Award", "degree": "Masters"}), encoding="utf-8")

        result = runner.invoke(app, ["validate", str(path)])

        assert result.exit_code == 1
        assert '"isValid": false' in result.output

    def test_funding_rules(self, runner: CliRunner, temp_dir: Path):
        from scholarship_ingest.cli.main import app

        path = temp_dir / "items.json"
        path.write_text(
            json.dumps([{"id": "x", "name": "Award", "eligibility": "Tuition waiver only"}]),
            encoding="utf-8",
        )

        result = runner.invoke(app, ["funding", str(path), "--rules-only"])

        assert result.exit_code == 0
        assert '"isFullyFunded": false' in result.output

    def test_batch_without_urls(self, runner: CliRunner):
        from scholarship_ingest.cli.main import app

        result = runner.invoke(app, ["batch"])

        assert result.exit_code == 1
