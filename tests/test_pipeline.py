"""
Tests for Pipeline Module.
==========================

Tests for:
- BatchOrchestrator: chunking, isolation, ordering, pacing
- ScholarshipService: single-item entry points and wiring
"""

import threading
import time
from datetime import date
from unittest.mock import MagicMock

import pytest


def _ok(url: str, record_factory):
    from scholarship_ingest.shared.schemas import ScrapeResult

    return ScrapeResult(
        success=True,
        url=url,
        scholarship=record_factory(id=f"scholarship_{abs(hash(url)) % 10**12:012d}", link=url),
        strategy="fallback",
    )


# ─────────────────────────────────────────────────────────────────────────────
# Batch Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestChunked:
    """Tests for the chunked helper."""

    def test_chunks(self):
        from scholarship_ingest.pipeline.batch import chunked

        assert chunked(["a", "b", "c", "d", "e"], 2) == [["a", "b"], ["c", "d"], ["e"]]

    def test_empty(self):
        from scholarship_ingest.pipeline.batch import chunked

        assert chunked([], 3) == []


class TestBatchOrchestrator:
    """Tests for BatchOrchestrator."""

    def test_failure_is_isolated(self, record_factory):
        from scholarship_ingest.pipeline.batch import BatchOrchestrator
        from scholarship_ingest.shared.schemas import ScrapeResult

        def pipeline(url):
            if "broken" in url:
                return ScrapeResult(success=False, url=url, error="HTTP 404")
            return _ok(url, record_factory)

        urls = ["https://a.org/1", "https://broken.org/2", "https://c.org/3"]
        result = BatchOrchestrator(pipeline, concurrency=2, delay_seconds=0).run(urls)

        assert len(result.results) == 2
        assert len(result.errors) == 1
        assert result.errors[0].url == "https://broken.org/2"
        assert result.errors[0].error == "HTTP 404"
        assert result.summary.total == 3
        assert result.summary.successful == 2
        assert result.summary.failed == 1
        assert result.summary.success_rate == pytest.approx(2 / 3)

    def test_raised_exception_becomes_error(self, record_factory):
        from scholarship_ingest.pipeline.batch import BatchOrchestrator

        def pipeline(url):
            if url.endswith("2"):
                raise RuntimeError("parser exploded")
            return _ok(url, record_factory)

        urls = ["https://a.org/1", "https://a.org/2"]
        result = BatchOrchestrator(pipeline, concurrency=2, delay_seconds=0).run(urls)

        assert len(result.results) == 1
        assert result.errors[0].url == "https://a.org/2"
        assert "parser exploded" in result.errors[0].error

    def test_results_keep_input_order(self, record_factory):
        from scholarship_ingest.pipeline.batch import BatchOrchestrator

        def pipeline(url):
            # Earlier URLs finish last
            time.sleep(0.01 * (5 - int(url.rsplit("/", 1)[1])))
            return _ok(url, record_factory)

        urls = [f"https://a.org/{i}" for i in range(5)]
        result = BatchOrchestrator(pipeline, concurrency=5, delay_seconds=0).run(urls)

        assert [record.link for record in result.results] == urls

    def test_in_flight_bounded_by_concurrency(self, record_factory):
        from scholarship_ingest.pipeline.batch import BatchOrchestrator

        lock = threading.Lock()
        state = {"current": 0, "peak": 0}

        def pipeline(url):
            with lock:
                state["current"] += 1
                state["peak"] = max(state["peak"], state["current"])
            time.sleep(0.02)
            with lock:
                state["current"] -= 1
            return _ok(url, record_factory)

        urls = [f"https://a.org/{i}" for i in range(7)]
        BatchOrchestrator(pipeline, concurrency=3, delay_seconds=0).run(urls)

        assert 1 <= state["peak"] <= 3

    def test_sleeps_between_chunks_only(self, record_factory):
        from scholarship_ingest.pipeline.batch import BatchOrchestrator

        sleep = MagicMock()
        urls = [f"https://a.org/{i}" for i in range(5)]
        BatchOrchestrator(
            lambda url: _ok(url, record_factory), concurrency=2, delay_seconds=1.5, sleep=sleep
        ).run(urls)

        # 3 chunks, 2 pauses
        assert sleep.call_count == 2
        sleep.assert_called_with(1.5)

    def test_progress_reported_per_chunk(self, record_factory):
        from scholarship_ingest.pipeline.batch import BatchOrchestrator

        progress = []
        urls = [f"https://a.org/{i}" for i in range(5)]
        BatchOrchestrator(
            lambda url: _ok(url, record_factory), concurrency=2, delay_seconds=0
        ).run(urls, on_progress=lambda done, total: progress.append((done, total)))

        assert progress == [(2, 5), (4, 5), (5, 5)]

    def test_empty_batch(self):
        from scholarship_ingest.pipeline.batch import BatchOrchestrator

        result = BatchOrchestrator(MagicMock(), concurrency=2, delay_seconds=0).run([])

        assert result.results == []
        assert result.summary.total == 0
        assert result.summary.success_rate == 0.0

    @pytest.mark.parametrize("concurrency", [0, -1])
    def test_invalid_concurrency(self, concurrency):
        from scholarship_ingest.pipeline.batch import BatchOrchestrator

        with pytest.raises(ValueError):
            BatchOrchestrator(MagicMock(), concurrency=concurrency)

    def test_defaults_from_config(self):
        from scholarship_ingest.pipeline.batch import BatchOrchestrator

        orchestrator = BatchOrchestrator(MagicMock())

        assert orchestrator.concurrency == 3
        assert orchestrator.delay_seconds == 2.0


# ─────────────────────────────────────────────────────────────────────────────
# Service Tests
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def service(today: date):
    from scholarship_ingest.pipeline.service import ScholarshipService

    svc = ScholarshipService(llm=None, scraper=MagicMock(), today=today)
    yield svc
    svc.close()


class TestScholarshipService:
    """Tests for ScholarshipService."""

    def test_scrape_and_normalize(self, service, sample_html: str, sample_url: str):
        from datetime import datetime, timezone

        from scholarship_ingest.ingestion.scraper import ScrapedPage

        service.scraper.scrape.return_value = ScrapedPage(
            url=sample_url, html=sample_html, status_code=200, scraped_at=datetime.now(timezone.utc)
        )

        result = service.scrape_and_normalize(sample_url)

        assert result.success
        assert result.strategy == "fallback"
        assert result.scholarship.link == sample_url

    def test_scrape_failure(self, service, sample_url: str):
        from datetime import datetime, timezone

        from scholarship_ingest.ingestion.scraper import ScrapedPage

        service.scraper.scrape.return_value = ScrapedPage(
            url=sample_url,
            html="",
            status_code=None,
            scraped_at=datetime.now(timezone.utc),
            error="Read timed out",
        )

        result = service.scrape_and_normalize(sample_url)

        assert not result.success
        assert result.error == "Read timed out"
        assert result.scholarship is None

    def test_reingest_is_idempotent(self, service, sample_html: str, sample_url: str):
        first = service.normalize_html(sample_url, sample_html).scholarship
        second = service.normalize_html(sample_url, sample_html).scholarship

        assert first.id == second.id

    def test_ai_extraction(self, make_llm, sample_ai_payload: dict, sample_html: str, sample_url: str, today: date):
        from scholarship_ingest.pipeline.service import ScholarshipService

        service = ScholarshipService(
            llm=make_llm(default=sample_ai_payload), scraper=MagicMock(), today=today
        )
        result = service.normalize_html(sample_url, sample_html)

        assert result.success
        assert result.strategy == "ai"
        assert result.error is None
        assert result.scholarship.provider == "Global Foundation"

    def test_free_text(self, service):
        from scholarship_ingest.normalize.validators import generate_id

        text = "Arctic Research Fellowship, apply by 30 June 2027"
        result = service.normalize_free_text(text)

        assert result.success
        assert result.scholarship.id == generate_id(text)
        assert result.scholarship.link is None

    def test_normalize_raw(self, service, sample_html: str, sample_url: str):
        result = service.normalize_raw({"url": sample_url, "rawHTML": sample_html})

        assert result.success
        assert result.scholarship.source == "www.globalfoundation.org"

    def test_normalize_raw_rejects_both_payloads(self, service):
        result = service.normalize_raw({"url": "https://a.org", "rawHTML": "<p/>", "freeText": "x"})

        assert not result.success
        assert "exactly one" in result.error

    def test_parse_deadline(self, service):
        assert service.parse_deadline("Closes 15 January 2027").deadline == "2027-01-15"
        assert service.parse_deadline("Rolling admissions", rules_only=True).deadline == "varies"

    def test_deduplicate_accepts_dicts(self, service, duplicate_records):
        records = [record.to_public_dict() for record in duplicate_records]

        result = service.deduplicate(records, method="rules")

        assert result.deduplicated_count == 2

    def test_batch_uses_scrape(self, service, sample_html: str):
        from datetime import datetime, timezone

        from scholarship_ingest.ingestion.scraper import ScrapedPage

        def scrape(url):
            if "missing" in url:
                return ScrapedPage(
                    url=url, html="", status_code=404,
                    scraped_at=datetime.now(timezone.utc), error="HTTP 404",
                )
            return ScrapedPage(
                url=url, html=sample_html, status_code=200, scraped_at=datetime.now(timezone.utc)
            )

        service.scraper.scrape.side_effect = scrape
        urls = ["https://a.org/1", "https://a.org/missing", "https://b.org/2"]

        result = service.batch_scrape_and_normalize(urls, concurrency=2, delay_seconds=0)

        assert result.summary.successful == 2
        assert result.errors[0].url == "https://a.org/missing"

    def test_get_info(self, service):
        info = service.get_info()

        assert info["ai_enabled"] is False
        assert info["strategies"] == ["fallback"]
        assert info["dedup_threshold"] == 0.7


class TestCreateService:
    """Tests for create_service."""

    def test_rules_only(self):
        from scholarship_ingest.pipeline.service import create_service

        service = create_service(use_ai=False)

        assert not service.ai_enabled
        service.close()

    def test_no_api_key_means_rules(self):
        from scholarship_ingest.pipeline.service import create_service

        service = create_service()

        assert service.llm is None
        service.close()

    def test_explicit_llm(self, make_llm):
        from scholarship_ingest.pipeline.service import create_service

        service = create_service(llm=make_llm())

        assert service.ai_enabled
        assert service.normalizer.strategy_names == ["ai", "fallback"]
        service.close()
