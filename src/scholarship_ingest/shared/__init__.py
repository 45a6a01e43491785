"""
Shared Module - Common utilities, configuration, schemas, and logging.
======================================================================

This module provides foundational components used across all other modules:

- config: Configuration loading and management
- logging: Structured logging setup
- schemas: Pydantic data models
- errors: Exception taxonomy
- utils: Utility functions (hashing, URLs, JSON I/O)
"""

from scholarship_ingest.shared.config import get_settings, Settings
from scholarship_ingest.shared.logging import get_logger, setup_logging
from scholarship_ingest.shared.errors import (
    ScholarshipIngestError,
    FetchError,
    ExtractionError,
    LLMError,
    LLMResponseError,
)
from scholarship_ingest.shared.schemas import (
    Degree,
    DedupMethod,
    RawInput,
    ExtractedText,
    PageExtraction,
    ScholarshipRecord,
    DeadlineResult,
    NormalizationResult,
    ScrapeResult,
    FundingClassification,
    ValidationReport,
    BatchError,
    BatchSummary,
    BatchResult,
    PairJudgment,
    DuplicateGroup,
    DedupMetadata,
    DedupResult,
    DedupValidation,
)
from scholarship_ingest.shared.utils import (
    compute_hash,
    extract_domain,
    is_absolute_http_url,
    load_json,
    save_json,
)

__all__ = [
    # Config
    "get_settings",
    "Settings",
    # Logging
    "get_logger",
    "setup_logging",
    # Errors
    "ScholarshipIngestError",
    "FetchError",
    "ExtractionError",
    "LLMError",
    "LLMResponseError",
    # Schemas
    "Degree",
    "DedupMethod",
    "RawInput",
    "ExtractedText",
    "PageExtraction",
    "ScholarshipRecord",
    "DeadlineResult",
    "NormalizationResult",
    "ScrapeResult",
    "FundingClassification",
    "ValidationReport",
    "BatchError",
    "BatchSummary",
    "BatchResult",
    "PairJudgment",
    "DuplicateGroup",
    "DedupMetadata",
    "DedupResult",
    "DedupValidation",
    # Utils
    "compute_hash",
    "extract_domain",
    "is_absolute_http_url",
    "load_json",
    "save_json",
]
