"""
Tests for Shared and LLM Modules.
=================================

Tests for:
- Configuration loading
- Schema models
- Utility helpers
- LLM response parsing and client construction
"""

from pathlib import Path

import pytest
from pydantic import ValidationError


# ─────────────────────────────────────────────────────────────────────────────
# Configuration Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestConfig:
    """Tests for configuration loading."""

    def test_config_file_exists(self, config_path: Path):
        """Test that the default settings file ships with the project."""
        assert config_path.exists()

    def test_default_settings(self):
        from scholarship_ingest.shared.config import get_settings

        settings = get_settings()

        assert settings.get_effective_threshold() == 0.7
        assert settings.get_effective_concurrency() == 3
        assert settings.normalization.eligibility_max_length == 220
        assert "rolling" in settings.deadline.varies_keywords

    def test_no_key_means_no_ai(self):
        from scholarship_ingest.shared.config import get_settings

        assert get_settings().ai_available is False

    def test_load_settings_from_yaml(self, temp_dir: Path):
        from scholarship_ingest.shared.config import load_settings

        config_file = temp_dir / "settings.yaml"
        config_file.write_text(
            "dedup:\n  threshold: 0.6\nbatch:\n  concurrency: 5\n  delay_seconds: 0\n",
            encoding="utf-8",
        )

        settings = load_settings(config_file)

        assert settings.dedup.threshold == 0.6
        assert settings.get_effective_concurrency() == 5
        assert settings.batch.delay_seconds == 0

    def test_missing_yaml_uses_defaults(self, temp_dir: Path):
        from scholarship_ingest.shared.config import load_settings

        settings = load_settings(temp_dir / "absent.yaml")

        assert settings.dedup.method == "hybrid"

    def test_env_overrides(self, monkeypatch, config_path: Path):
        from scholarship_ingest.shared.config import load_settings

        monkeypatch.setenv("DEDUP_THRESHOLD", "0.8")
        monkeypatch.setenv("GEMINI_MODEL", "gemini-2.5-flash")

        settings = load_settings(config_path)

        assert settings.get_effective_threshold() == 0.8
        assert settings.get_effective_model() == "gemini-2.5-flash"

    def test_eligibility_length_clamped(self, temp_dir: Path):
        from scholarship_ingest.shared.config import NormalizationConfig, load_settings

        assert NormalizationConfig(eligibility_max_length=500).eligibility_max_length == 220

        config_file = temp_dir / "settings.yaml"
        config_file.write_text("normalization:\n  eligibility_max_length: 400\n", encoding="utf-8")

        assert load_settings(config_file).normalization.eligibility_max_length == 220

    def test_console_writes_to_stderr(self):
        from scholarship_ingest.shared.logging import get_console

        assert get_console().stderr is True

    @pytest.mark.parametrize("field", ["threshold", "ambiguous_low", "likely_duplicate_band"])
    def test_dedup_config_bounds(self, field):
        from scholarship_ingest.shared.config import DedupConfig

        with pytest.raises(ValidationError):
            DedupConfig(**{field: 1.2})


# ─────────────────────────────────────────────────────────────────────────────
# Schema Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestSchemas:
    """Tests for schema models."""

    def test_raw_input_html(self):
        from scholarship_ingest.shared.schemas import RawInput

        raw = RawInput.model_validate({"url": "https://a.org", "rawHTML": "<p>x</p>"})

        assert raw.is_html

    @pytest.mark.parametrize(
        "data",
        [
            {"url": "https://a.org"},
            {"url": "https://a.org", "rawHTML": "<p/>", "freeText": "x"},
            {"rawHTML": "<p/>"},
        ],
    )
    def test_raw_input_rejects(self, data):
        from scholarship_ingest.shared.schemas import RawInput

        with pytest.raises(ValidationError):
            RawInput.model_validate(data)

    @pytest.mark.parametrize("deadline", ["2027-3-1", "soon", "Varies"])
    def test_record_deadline_pattern(self, deadline, record_factory):
        with pytest.raises(ValidationError):
            record_factory(deadline=deadline)

    def test_record_eligibility_bound(self, record_factory):
        with pytest.raises(ValidationError):
            record_factory(eligibility="x" * 221)

    def test_record_degree_closed_set(self, record_factory):
        with pytest.raises(ValidationError):
            record_factory(degree="Masters")

    def test_to_public_dict(self, record_factory):
        record = record_factory(is_fully_funded=True, deadline="varies")

        data = record.to_public_dict()

        assert data["isFullyFunded"] is True
        assert data["degree"] == "Any"
        assert data["deadline"] == "varies"
        assert "fitScore" not in data
        assert "is_fully_funded" not in data

    def test_scores_kept_when_set(self, record_factory):
        record = record_factory(matchScore=0.8)

        assert record.to_public_dict()["matchScore"] == 0.8

    def test_batch_summary_rate(self):
        from scholarship_ingest.shared.schemas import BatchSummary

        summary = BatchSummary(total=4, successful=3, failed=1)

        assert summary.success_rate == 0.75
        assert summary.model_dump(by_alias=True)["successRate"] == 0.75
        assert BatchSummary(total=0, successful=0, failed=0).success_rate == 0.0

    def test_extracted_text_bound(self):
        from scholarship_ingest.shared.schemas import ExtractedText

        with pytest.raises(ValidationError):
            ExtractedText(text="x" * 10_001)


# ─────────────────────────────────────────────────────────────────────────────
# Utility Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestUtils:
    """Tests for utility helpers."""

    def test_compute_hash(self):
        from scholarship_ingest.shared.utils import compute_hash

        assert compute_hash("hello world") == (
            "b94d27b9934d3e08a52e52d7da7dabfac484efe37a5380ee9088f7ace2efcde9"
        )

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("https://a.org/x", True),
            ("http://a.org", True),
            ("/relative", False),
            ("ftp://a.org", False),
            ("https://", False),
            ("https://a b/c", False),
            ("https://a.org:99999", False),
            ("https://münchen.de/stipendium", True),
            ("http://[::1]:8080/x", True),
            (None, False),
        ],
    )
    def test_is_absolute_http_url(self, value, expected):
        from scholarship_ingest.shared.utils import is_absolute_http_url

        assert is_absolute_http_url(value) is expected

    def test_extract_domain(self):
        from scholarship_ingest.shared.utils import extract_domain

        assert extract_domain("https://www.daad.de/en/scholarships") == "www.daad.de"
        assert extract_domain(None) is None

    def test_tokenize(self):
        from scholarship_ingest.shared.utils import tokenize

        assert tokenize("Global  LEADERS global") == {"global", "leaders"}
        assert tokenize(None) == set()

    def test_json_round_trip(self, temp_dir: Path, record_factory):
        from scholarship_ingest.shared.schemas import ScholarshipRecord
        from scholarship_ingest.shared.utils import dump_models, load_models_from_json, save_json

        path = temp_dir / "nested" / "records.json"
        save_json(path, dump_models([record_factory(country="Japan")]))

        loaded = load_models_from_json(path, ScholarshipRecord)

        assert loaded[0].country == "Japan"


# ─────────────────────────────────────────────────────────────────────────────
# LLM Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestParseJsonResponse:
    """Tests for parse_json_response."""

    def test_plain_object(self):
        from scholarship_ingest.llm.client import parse_json_response

        assert parse_json_response('{"deadline": "varies"}') == {"deadline": "varies"}

    def test_code_fence_and_prose(self):
        from scholarship_ingest.llm.client import parse_json_response

        text = 'Here you go:\n```json\n{"duplicate": true, "confidence": 0.9}\n```\nThanks.'

        assert parse_json_response(text) == {"duplicate": True, "confidence": 0.9}

    def test_list_expected(self):
        from scholarship_ingest.llm.client import parse_json_response

        assert parse_json_response("[1, 2]", expect=list) == [1, 2]

    @pytest.mark.parametrize("text", ["", None, "no json", '{"broken": ', "[1, 2]"])
    def test_invalid(self, text):
        from scholarship_ingest.llm.client import parse_json_response
        from scholarship_ingest.shared.errors import LLMResponseError

        with pytest.raises(LLMResponseError):
            parse_json_response(text)


class TestLLMClient:
    """Tests for client construction."""

    def test_no_key_gives_no_client(self):
        from scholarship_ingest.llm.client import create_llm_client

        assert create_llm_client() is None

    def test_gemini_requires_key(self):
        from scholarship_ingest.llm.client import GeminiClient

        with pytest.raises(ValueError):
            GeminiClient(api_key="")

    def test_generate_json_uses_generate(self, make_llm):
        llm = make_llm(default='```json\n{"ok": true}\n```')

        assert llm.generate_json("system", "user") == {"ok": True}
        assert llm.get_info()["provider"] == "scripted"
