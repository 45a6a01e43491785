"""
Ingestion Module - Fetch pages and extract bounded text.
========================================================

- scraper: HTTP fetching with timeouts and retries
- cleaner: Text cleaning and normalization
- extractor: HTML → ExtractedText (title, meta, body; capped length)

Pipeline flow:
    URL → Scraper → Raw HTML → TextExtractor → ExtractedText
"""

from scholarship_ingest.ingestion.scraper import Scraper, ScrapedPage, ScraperStats
from scholarship_ingest.ingestion.cleaner import TextCleaner, CleanerConfig
from scholarship_ingest.ingestion.extractor import TextExtractor, fetch_and_extract

__all__ = [
    # Scraper
    "Scraper",
    "ScrapedPage",
    "ScraperStats",
    # Cleaner
    "TextCleaner",
    "CleanerConfig",
    # Extractor
    "TextExtractor",
    "fetch_and_extract",
]
