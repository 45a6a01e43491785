"""
Normalize Module - Page text to validated scholarship records.
==============================================================

- validators: Total field normalizers and record validation
- dates: Deadline resolution (rules, plus an AI tier)
- extractors: Extraction strategies (AI, fallback)
- normalizer: Ordered strategy chain
- funding: Fully-funded classification

Pipeline flow:
    ExtractedText → Extractors → build_record → ScholarshipRecord
"""

from scholarship_ingest.normalize.validators import (
    build_record,
    generate_id,
    truncate_eligibility,
    validate_deadline,
    validate_degree,
    validate_link,
    validate_record,
)
from scholarship_ingest.normalize.dates import DeadlineParser, resolve_deadline
from scholarship_ingest.normalize.extractors import AIExtractor, Extractor, FallbackExtractor
from scholarship_ingest.normalize.normalizer import ScholarshipNormalizer
from scholarship_ingest.normalize.funding import FundingClassifier

__all__ = [
    # Validators
    "validate_degree",
    "truncate_eligibility",
    "validate_link",
    "generate_id",
    "validate_deadline",
    "build_record",
    "validate_record",
    # Dates
    "resolve_deadline",
    "DeadlineParser",
    # Extractors
    "Extractor",
    "AIExtractor",
    "FallbackExtractor",
    # Normalizer
    "ScholarshipNormalizer",
    # Funding
    "FundingClassifier",
]
