"""
Scraper Module - Page fetching with timeouts and retries.
=========================================================

Fetches scholarship pages as raw HTML:
- Browser-like headers (many scholarship portals reject bare clients)
- Explicit per-request timeout
- Automatic retries with exponential backoff on connection errors,
  timeouts and retryable statuses (429, 5xx)
- Thread-safe statistics, since the batch orchestrator shares one scraper
  across worker threads

Nothing is cached or persisted; every call hits the network.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

import requests
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from scholarship_ingest.shared.config import get_settings
from scholarship_ingest.shared.errors import FetchError
from scholarship_ingest.shared.logging import get_logger

logger = get_logger(__name__)

RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


class _RetryableStatus(Exception):
    """Internal marker raised for statuses worth retrying."""

    def __init__(self, response: requests.Response):
        self.response = response
        super().__init__(f"HTTP {response.status_code}")


# ─────────────────────────────────────────────────────────────────────────────
# Data Classes
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class ScrapedPage:
    """Represents a fetched web page (or a failed fetch)."""

    url: str
    html: str
    status_code: int
    scraped_at: datetime
    error: Optional[str] = None

    @property
    def is_success(self) -> bool:
        """Check if the page was successfully fetched."""
        return self.error is None and 200 <= self.status_code < 300

    @property
    def content_length(self) -> int:
        """Get the content length in bytes."""
        return len(self.html.encode("utf-8"))

    def raise_for_error(self) -> None:
        """Raise FetchError if the fetch failed."""
        if not self.is_success:
            raise FetchError(
                self.url,
                self.error or f"HTTP {self.status_code}",
                status_code=self.status_code or None,
            )


@dataclass
class ScraperStats:
    """Statistics for a scraping session."""

    total_requests: int = 0
    successful: int = 0
    failed: int = 0
    retries: int = 0
    total_bytes: int = 0
    start_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def success_rate(self) -> float:
        """Share of requests that returned a 2xx page."""
        if self.total_requests == 0:
            return 1.0
        return self.successful / self.total_requests


# ─────────────────────────────────────────────────────────────────────────────
# Scraper Class
# ─────────────────────────────────────────────────────────────────────────────


class Scraper:
    """
    Web page fetcher with timeouts and retries.

    Example:
        >>> with Scraper() as scraper:
        ...     page = scraper.scrape("https://example.org/scholarship")
        ...     if page.is_success:
        ...         print(page.html[:100])
    """

    def __init__(
        self,
        timeout: Optional[int] = None,
        max_retries: Optional[int] = None,
        user_agent: Optional[str] = None,
        retry_min_wait: Optional[float] = None,
        retry_max_wait: Optional[float] = None,
    ):
        """
        Initialize the scraper.

        Args:
            timeout: Request timeout in seconds
            max_retries: Maximum attempts per URL
            user_agent: User agent string
            retry_min_wait: Minimum backoff between attempts (seconds)
            retry_max_wait: Maximum backoff between attempts (seconds)
        """
        scraping_config = get_settings().scraping

        self.timeout = timeout if timeout is not None else scraping_config.timeout
        self.max_retries = max_retries if max_retries is not None else scraping_config.max_retries
        self.user_agent = user_agent or scraping_config.user_agent
        self.retry_min_wait = (
            retry_min_wait if retry_min_wait is not None else scraping_config.retry_min_wait
        )
        self.retry_max_wait = (
            retry_max_wait if retry_max_wait is not None else scraping_config.retry_max_wait
        )

        self._session: Optional[requests.Session] = None
        self._session_lock = threading.Lock()
        self._stats_lock = threading.Lock()
        self.stats = ScraperStats()

        logger.debug(
            f"Scraper initialized: timeout={self.timeout}s, max_retries={self.max_retries}"
        )

    @property
    def session(self) -> requests.Session:
        """Get or create the requests session."""
        with self._session_lock:
            if self._session is None:
                self._session = requests.Session()
                self._session.headers.update(
                    {
                        "User-Agent": self.user_agent,
                        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                        "Accept-Language": "en-US,en;q=0.5",
                        "Accept-Encoding": "gzip, deflate",
                        "Connection": "keep-alive",
                        "Upgrade-Insecure-Requests": "1",
                    }
                )
            return self._session

    def _record(self, **deltas: int) -> None:
        with self._stats_lock:
            for name, delta in deltas.items():
                setattr(self.stats, name, getattr(self.stats, name) + delta)

    def _make_request(self, url: str) -> requests.Response:
        """Make an HTTP GET request with retries."""

        def _before_sleep(retry_state) -> None:  # type: ignore[no-untyped-def]
            self._record(retries=1)
            logger.warning(f"Retry {retry_state.attempt_number}/{self.max_retries} for {url}")

        @retry(
            retry=retry_if_exception_type(
                (requests.ConnectionError, requests.Timeout, _RetryableStatus)
            ),
            stop=stop_after_attempt(max(1, self.max_retries)),
            wait=wait_exponential(min=self.retry_min_wait, max=self.retry_max_wait),
            before_sleep=_before_sleep,
            reraise=True,
        )
        def _request_with_retry() -> requests.Response:
            response = self.session.get(url, timeout=self.timeout, allow_redirects=True)
            if response.status_code in RETRYABLE_STATUSES:
                raise _RetryableStatus(response)
            return response

        try:
            return _request_with_retry()
        except _RetryableStatus as e:
            # Out of attempts; hand back the last response as a plain failure
            return e.response

    def scrape(self, url: str) -> ScrapedPage:
        """
        Fetch a URL.

        Never raises for network problems: a failed fetch is returned as a
        ScrapedPage with ``error`` set and ``is_success`` False.

        Args:
            url: URL to fetch

        Returns:
            ScrapedPage with HTML content and metadata
        """
        self._record(total_requests=1)
        logger.info(f"Fetching: {url}")

        try:
            response = self._make_request(url)
        except requests.RequestException as e:
            logger.error(f"Failed to fetch {url}: {e}")
            self._record(failed=1)
            return ScrapedPage(
                url=url,
                html="",
                status_code=0,
                scraped_at=datetime.now(timezone.utc),
                error=str(e) or e.__class__.__name__,
            )

        page = ScrapedPage(
            url=url,
            html=response.text,
            status_code=response.status_code,
            scraped_at=datetime.now(timezone.utc),
        )

        if not page.is_success:
            page.error = f"HTTP {response.status_code}"
            logger.error(f"Failed to fetch {url}: {page.error}")
            self._record(failed=1)
        else:
            self._record(successful=1, total_bytes=page.content_length)

        return page

    def close(self) -> None:
        """Close the scraper session."""
        with self._session_lock:
            if self._session:
                self._session.close()
                self._session = None

    def __enter__(self) -> "Scraper":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        self.close()
