"""
Service Module - Request/response facade over the pipeline.
===========================================================

ScholarshipService is the one object callers hold. It wires the scraper,
text extractor, normalizer, deadline parser, dedup engine and funding
classifier around a single, caller-owned LLM client (or none, in which
case every step runs on its rule-based path).

No method writes persistent state.
"""

from datetime import date, datetime, timezone
from typing import Any, Optional, Union

from pydantic import ValidationError

from scholarship_ingest.dedup.engine import DeduplicationEngine, validate_deduplication
from scholarship_ingest.ingestion.extractor import TextExtractor, fetch_and_extract
from scholarship_ingest.ingestion.scraper import Scraper
from scholarship_ingest.llm.client import LLMClient, create_llm_client
from scholarship_ingest.normalize.dates import DeadlineParser
from scholarship_ingest.normalize.funding import FundingClassifier
from scholarship_ingest.normalize.normalizer import ScholarshipNormalizer
from scholarship_ingest.normalize.validators import validate_record
from scholarship_ingest.pipeline.batch import BatchOrchestrator, ProgressCallback
from scholarship_ingest.shared.config import Settings, get_settings
from scholarship_ingest.shared.logging import get_logger
from scholarship_ingest.shared.schemas import (
    BatchResult,
    DeadlineResult,
    DedupMethod,
    DedupResult,
    DedupValidation,
    ExtractedText,
    FundingClassification,
    RawInput,
    ScholarshipRecord,
    ScrapeResult,
    ValidationReport,
)

logger = get_logger(__name__)


class ScholarshipService:
    """
    Scholarship ingestion service.

    Example:
        >>> service = create_service()
        >>> result = service.scrape_and_normalize("https://example.org/award")
        >>> if result.success:
        ...     print(result.scholarship.name)
    """

    def __init__(
        self,
        llm: Optional[LLMClient] = None,
        settings: Optional[Settings] = None,
        scraper: Optional[Scraper] = None,
        extractor: Optional[TextExtractor] = None,
        today: Optional[date] = None,
    ):
        """
        Initialize the service.

        Args:
            llm: Language-model client (None runs rules only)
            settings: Settings (default: get_settings())
            scraper: Page fetcher
            extractor: HTML text extractor
            today: Fixed reference date for deadline resolution
        """
        self.settings = settings or get_settings()
        self.llm = llm
        self.today = today

        self.scraper = scraper or Scraper(
            timeout=self.settings.scraping.timeout,
            max_retries=self.settings.scraping.max_retries,
            user_agent=self.settings.scraping.user_agent,
            retry_min_wait=self.settings.scraping.retry_min_wait,
            retry_max_wait=self.settings.scraping.retry_max_wait,
        )
        self.extractor = extractor or TextExtractor(
            max_chars=self.settings.scraping.max_text_chars,
            removed_selectors=self.settings.scraping.removed_selectors,
        )
        self.normalizer = ScholarshipNormalizer.from_llm(llm)
        self.deadline_parser = DeadlineParser(llm)
        self.dedup_engine = DeduplicationEngine(
            llm,
            config=self.settings.dedup,
            threshold=self.settings.get_effective_threshold(),
        )
        self.funding_classifier = FundingClassifier(llm)

        logger.debug(
            f"Service ready: strategies={self.normalizer.strategy_names}, "
            f"ai={'on' if llm is not None else 'off'}"
        )

    @property
    def ai_enabled(self) -> bool:
        return self.llm is not None

    # ─────────────────────────────────────────────────────────────────────────
    # Single-record operations
    # ─────────────────────────────────────────────────────────────────────────

    def _normalize_extracted(
        self,
        extracted: ExtractedText,
        origin_key: Optional[str] = None,
    ) -> ScrapeResult:
        result = self.normalizer.normalize(extracted, origin_key=origin_key, today=self.today)
        return ScrapeResult(
            success=True,
            url=extracted.url,
            scholarship=result.scholarship,
            strategy=result.strategy,
            error=result.error,
            scraped_at=extracted.fetched_at,
            normalized_at=result.normalized_at,
        )

    def scrape_and_normalize(self, url: str) -> ScrapeResult:
        """
        Fetch one page and normalize it.

        A fetch failure returns ``success=False`` with the error; AI failures
        are absorbed by the fallback strategy.
        """
        page = fetch_and_extract(url, self.scraper, self.extractor)
        if not page.success or page.extracted is None:
            return ScrapeResult(
                success=False,
                url=url,
                error=page.error,
                scraped_at=datetime.now(timezone.utc),
            )
        return self._normalize_extracted(page.extracted)

    def normalize_html(self, url: str, html: str) -> ScrapeResult:
        """Normalize an already-fetched page."""
        extracted = self.extractor.extract_html(html, url)
        return self._normalize_extracted(extracted)

    def normalize_free_text(self, text: str, origin_url: Optional[str] = None) -> ScrapeResult:
        """Normalize a free-text snippet; the text itself is the identity key without a URL."""
        extracted = self.extractor.extract_free_text(text, origin_url)
        return self._normalize_extracted(extracted, origin_key=origin_url or text)

    def normalize_raw(self, raw: Union[RawInput, dict[str, Any]]) -> ScrapeResult:
        """Normalize a RawInput (page HTML or free text)."""
        if isinstance(raw, dict):
            try:
                raw = RawInput.model_validate(raw)
            except ValidationError as e:
                return ScrapeResult(success=False, url=raw.get("url"), error=str(e))
        if raw.is_html:
            return self.normalize_html(raw.url, raw.raw_html)
        return self.normalize_free_text(raw.free_text, raw.url)

    # ─────────────────────────────────────────────────────────────────────────
    # Batch
    # ─────────────────────────────────────────────────────────────────────────

    def batch_scrape_and_normalize(
        self,
        urls: list[str],
        concurrency: Optional[int] = None,
        delay_seconds: Optional[float] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> BatchResult:
        """
        Scrape and normalize many URLs with bounded concurrency.

        Raises:
            ValueError: If concurrency is below 1
        """
        orchestrator = BatchOrchestrator(
            self.scrape_and_normalize,
            concurrency=concurrency if concurrency is not None else self.settings.get_effective_concurrency(),
            delay_seconds=delay_seconds if delay_seconds is not None else self.settings.batch.delay_seconds,
        )
        return orchestrator.run(urls, on_progress=on_progress)

    # ─────────────────────────────────────────────────────────────────────────
    # Deadlines, dedup, validation, funding
    # ─────────────────────────────────────────────────────────────────────────

    def parse_deadline(self, text: str, rules_only: bool = False) -> DeadlineResult:
        """Resolve a free-text deadline to an ISO date or "varies"."""
        if rules_only:
            return self.deadline_parser.parse_rule_based(text, self.today)
        return self.deadline_parser.parse(text, self.today)

    def deduplicate(
        self,
        records: list[Union[ScholarshipRecord, dict[str, Any]]],
        method: Union[str, DedupMethod] = DedupMethod.HYBRID,
        threshold: Optional[float] = None,
    ) -> DedupResult:
        """
        Deduplicate records.

        Raises:
            ValueError: If the method is not "ai", "rules" or "hybrid"
        """
        parsed = [
            record if isinstance(record, ScholarshipRecord) else ScholarshipRecord.model_validate(record)
            for record in records
        ]
        return self.dedup_engine.deduplicate(parsed, method=method, threshold=threshold)

    def validate_deduplication(self, original: list[Any], deduplicated: list[Any]) -> DedupValidation:
        return validate_deduplication(original, deduplicated)

    def validate(self, record: Any) -> ValidationReport:
        """Check a record against the record schema; never raises."""
        return validate_record(record, today=self.today)

    def classify_funding(
        self, record: Union[ScholarshipRecord, dict[str, Any]]
    ) -> FundingClassification:
        """Classify a record as fully funded or not."""
        return self.funding_classifier.classify(record)

    def get_info(self) -> dict[str, Any]:
        """Describe the active configuration."""
        return {
            "ai_enabled": self.ai_enabled,
            "llm": self.llm.get_info() if self.llm is not None else None,
            "strategies": self.normalizer.strategy_names,
            "dedup_method": self.settings.dedup.method,
            "dedup_threshold": self.dedup_engine.default_threshold,
            "batch_concurrency": self.settings.get_effective_concurrency(),
            "batch_delay_seconds": self.settings.batch.delay_seconds,
            "fetch_timeout": self.settings.scraping.timeout,
        }

    def close(self) -> None:
        self.scraper.close()


def create_service(
    settings: Optional[Settings] = None,
    llm: Optional[LLMClient] = None,
    use_ai: bool = True,
) -> ScholarshipService:
    """
    Build a service from settings.

    Args:
        settings: Settings (default: get_settings())
        llm: Explicit LLM client; built from settings when omitted
        use_ai: False forces rules-only operation

    Returns:
        ScholarshipService
    """
    settings = settings or get_settings()
    if llm is None and use_ai:
        llm = create_llm_client(settings)
    return ScholarshipService(llm=llm if use_ai else None, settings=settings)
