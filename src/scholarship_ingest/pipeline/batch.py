"""
Batch Module - Bounded-concurrency scrape → normalize over many URLs.
=====================================================================

URLs are split into sequential chunks of ``concurrency`` items. Each chunk
runs on a thread pool and must finish completely before the next one
starts; a fixed pause separates chunks to stay polite toward source hosts.

A failing URL never aborts the batch: it is recorded in ``errors`` with
the URL kept for retry. Results and errors keep the input order.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from scholarship_ingest.shared.config import get_settings
from scholarship_ingest.shared.logging import get_logger
from scholarship_ingest.shared.schemas import (
    BatchError,
    BatchResult,
    BatchSummary,
    ScholarshipRecord,
    ScrapeResult,
)

logger = get_logger(__name__)

ItemPipeline = Callable[[str], ScrapeResult]
ProgressCallback = Callable[[int, int], None]


def chunked(items: list[str], size: int) -> list[list[str]]:
    """Split a list into consecutive chunks of at most ``size`` items."""
    return [items[i : i + size] for i in range(0, len(items), size)]


class BatchOrchestrator:
    """
    Runs a single-item pipeline over many URLs.

    Example:
        >>> orchestrator = BatchOrchestrator(service.scrape_and_normalize, concurrency=3)
        >>> result = orchestrator.run(urls)
        >>> result.summary.success_rate
        0.5
    """

    def __init__(
        self,
        pipeline: ItemPipeline,
        concurrency: Optional[int] = None,
        delay_seconds: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the orchestrator.

        Args:
            pipeline: Single-URL scrape → normalize function
            concurrency: Pipelines in flight per chunk (default from config)
            delay_seconds: Pause between chunks (default from config)
            sleep: Sleep function, replaceable in tests

        Raises:
            ValueError: If concurrency is below 1
        """
        settings = get_settings()
        self.pipeline = pipeline
        self.concurrency = concurrency if concurrency is not None else settings.get_effective_concurrency()
        self.delay_seconds = (
            delay_seconds if delay_seconds is not None else settings.batch.delay_seconds
        )
        self._sleep = sleep

        if self.concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {self.concurrency}")

    def _run_one(self, url: str) -> ScrapeResult:
        try:
            return self.pipeline(url)
        except Exception as e:
            logger.error(f"Pipeline raised for {url}: {e}")
            return ScrapeResult(success=False, url=url, error=str(e) or e.__class__.__name__)

    def run(
        self,
        urls: list[str],
        on_progress: Optional[ProgressCallback] = None,
    ) -> BatchResult:
        """
        Process every URL.

        Args:
            urls: URLs to scrape and normalize
            on_progress: Called with (completed, total) after each chunk

        Returns:
            BatchResult with records, per-URL errors and a summary
        """
        total = len(urls)
        outcomes: list[ScrapeResult] = []
        chunks = chunked(list(urls), self.concurrency)

        logger.info(
            f"Batch of {total} URLs in {len(chunks)} chunk(s), concurrency={self.concurrency}"
        )

        for index, chunk in enumerate(chunks):
            with ThreadPoolExecutor(
                max_workers=len(chunk), thread_name_prefix="batch"
            ) as executor:
                futures = [executor.submit(self._run_one, url) for url in chunk]
                outcomes.extend(future.result() for future in futures)

            if on_progress is not None:
                on_progress(len(outcomes), total)

            if index < len(chunks) - 1 and self.delay_seconds > 0:
                self._sleep(self.delay_seconds)

        results: list[ScholarshipRecord] = []
        errors: list[BatchError] = []
        for url, outcome in zip(urls, outcomes):
            if outcome.success and outcome.scholarship is not None:
                results.append(outcome.scholarship)
            else:
                errors.append(BatchError(url=url, error=outcome.error or "Unknown error"))

        summary = BatchSummary(total=total, successful=len(results), failed=len(errors))
        logger.info(
            f"Batch complete: {summary.successful}/{summary.total} succeeded "
            f"({summary.success_rate:.0%})"
        )
        return BatchResult(results=results, errors=errors, summary=summary)
