"""
Errors Module - Exception taxonomy for the ingestion pipeline.
==============================================================

Only fetch failures and programmer errors ever reach a caller. AI failures
are caught where they happen and replaced by a rule-based fallback; field
validation never raises at all.
"""

from typing import Optional


class ScholarshipIngestError(Exception):
    """Base class for all pipeline errors."""


class FetchError(ScholarshipIngestError):
    """A page could not be fetched (network error, timeout, non-2xx status)."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class ExtractionError(ScholarshipIngestError):
    """An extraction strategy could not produce a candidate record."""


class LLMError(ScholarshipIngestError):
    """The language-model call failed or is not configured."""


class LLMResponseError(LLMError):
    """The language model answered, but not with the expected JSON shape."""

    def __init__(self, message: str, raw_response: str = ""):
        self.raw_response = raw_response
        super().__init__(message)
