"""
Extractor Module - HTML to bounded plain text.
==============================================

Strips a scholarship page down to the text the normalizer needs:

    title → meta description → meta keywords → body text

Navigation, headers, footers, sidebars, scripts and styles are removed
before the body text is computed, and the result is hard-capped so the
downstream (possibly paid) AI call has a bounded payload.
"""

from datetime import datetime, timezone
from typing import Optional

from bs4 import BeautifulSoup

from scholarship_ingest.ingestion.cleaner import TextCleaner
from scholarship_ingest.ingestion.scraper import Scraper
from scholarship_ingest.shared.config import get_settings
from scholarship_ingest.shared.errors import FetchError
from scholarship_ingest.shared.logging import get_logger
from scholarship_ingest.shared.schemas import ExtractedText, PageExtraction
from scholarship_ingest.shared.utils import extract_domain

logger = get_logger(__name__)

MAX_TEXT_CHARS = 10_000


class TextExtractor:
    """
    Turns raw HTML (or free text) into an ExtractedText.

    Example:
        >>> extractor = TextExtractor()
        >>> extracted = extractor.extract_html(html, "https://example.org/award")
        >>> extracted.title
        'Global Leaders Award'
    """

    def __init__(
        self,
        max_chars: Optional[int] = None,
        removed_selectors: Optional[list[str]] = None,
        cleaner: Optional[TextCleaner] = None,
    ):
        scraping_config = get_settings().scraping

        # ExtractedText enforces the same ceiling
        self.max_chars = min(max_chars or scraping_config.max_text_chars, MAX_TEXT_CHARS)
        self.removed_selectors = removed_selectors or scraping_config.removed_selectors
        self.cleaner = cleaner or TextCleaner()

    def _create_soup(self, html: str) -> BeautifulSoup:
        """Create BeautifulSoup object from HTML."""
        return BeautifulSoup(html, "lxml")

    def _meta_content(self, soup: BeautifulSoup, name: str) -> str:
        tag = soup.find("meta", attrs={"name": name})
        if tag is None:
            return ""
        return self.cleaner.clean(tag.get("content") or "")

    def _extract_title(self, soup: BeautifulSoup) -> str:
        if soup.title and soup.title.get_text(strip=True):
            return self.cleaner.clean(soup.title.get_text())
        h1 = soup.find("h1")
        if h1 is not None:
            return self.cleaner.clean(h1.get_text(" "))
        return ""

    def extract_html(self, html: str, url: Optional[str] = None) -> ExtractedText:
        """
        Extract bounded text from an HTML document.

        Title and meta tags are read before non-content elements are removed,
        since the <title> often lives next to stripped <header> markup.

        Args:
            html: Raw HTML document
            url: Origin URL of the document

        Returns:
            ExtractedText with at most ``max_chars`` characters of text
        """
        soup = self._create_soup(html or "")

        title = self._extract_title(soup)
        description = self._meta_content(soup, "description")
        keywords = self._meta_content(soup, "keywords")

        for selector in self.removed_selectors:
            for element in soup.select(selector):
                element.decompose()

        # Title may only be available from an <h1> that survived removal
        if not title:
            title = self._extract_title(soup)

        body = soup.body if soup.body is not None else soup
        body_text = self.cleaner.clean(body.get_text(" "))

        segments = [title, description, keywords, body_text]
        full_text = "\n\n".join(segment for segment in segments if segment)
        full_text = full_text[: self.max_chars]

        return ExtractedText(
            url=url,
            source_domain=extract_domain(url),
            title=title or None,
            text=full_text,
            fetched_at=datetime.now(timezone.utc),
        )

    def extract_free_text(self, text: str, url: Optional[str] = None) -> ExtractedText:
        """Wrap a free-text snippet as ExtractedText."""
        cleaned = self.cleaner.clean(text)
        return ExtractedText(
            url=url,
            source_domain=extract_domain(url),
            title=None,
            text=cleaned[: self.max_chars],
            fetched_at=datetime.now(timezone.utc),
        )


def fetch_and_extract(
    url: str,
    scraper: Scraper,
    extractor: Optional[TextExtractor] = None,
) -> PageExtraction:
    """
    Fetch a page and extract its text.

    A fetch or parse failure yields ``success=False`` with an error message;
    it never raises for a bad page.

    Args:
        url: Page URL
        scraper: Scraper used for the network call
        extractor: TextExtractor (default instance if None)

    Returns:
        PageExtraction
    """
    extractor = extractor or TextExtractor()
    page = scraper.scrape(url)

    try:
        page.raise_for_error()
    except FetchError as e:
        return PageExtraction(success=False, url=url, error=str(e), status_code=e.status_code)

    try:
        extracted = extractor.extract_html(page.html, url)
    except Exception as e:
        logger.error(f"Failed to parse {url}: {e}")
        return PageExtraction(
            success=False,
            url=url,
            error=f"Failed to parse page: {e}",
            status_code=page.status_code,
        )

    extracted.fetched_at = page.scraped_at
    logger.debug(f"Extracted {len(extracted.text)} chars from {url}")
    return PageExtraction(
        success=True,
        url=url,
        extracted=extracted,
        status_code=page.status_code,
    )
