"""
Schemas Module - Pydantic data models for the application.
==========================================================

Defines all data contracts used across the pipeline:
- Raw input and extracted page text
- The canonical scholarship record
- Deadline, normalization and scrape results
- Batch, deduplication and validation reports

Multi-word fields are snake_case in Python and carry camelCase aliases,
which is the shape callers of the service exchange as JSON.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ─────────────────────────────────────────────────────────────────────────────
# Enums
# ─────────────────────────────────────────────────────────────────────────────


class Degree(str, Enum):
    """Degree levels a scholarship can target."""

    BACHELOR = "Bachelor"
    MASTER = "Master"
    PHD = "PhD"
    ANY = "Any"


class DedupMethod(str, Enum):
    """Deduplication strategies selectable at the call boundary."""

    AI = "ai"
    RULES = "rules"
    HYBRID = "hybrid"


VARIES = "varies"
DEADLINE_PATTERN = r"^(\d{4}-\d{2}-\d{2}|varies)$"


# ─────────────────────────────────────────────────────────────────────────────
# Input Models
# ─────────────────────────────────────────────────────────────────────────────


class RawInput(BaseModel):
    """
    Raw pipeline input: either a fetched page or a free-text snippet.

    Exactly one of ``raw_html`` (with its ``url``) or ``free_text`` is set.
    """

    url: Optional[str] = None
    raw_html: Optional[str] = Field(default=None, alias="rawHTML")
    free_text: Optional[str] = Field(default=None, alias="freeText")

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def check_one_payload(self) -> "RawInput":
        if (self.raw_html is None) == (self.free_text is None):
            raise ValueError("RawInput needs exactly one of raw_html or free_text")
        if self.raw_html is not None and not self.url:
            raise ValueError("RawInput with raw_html requires a url")
        return self

    @property
    def is_html(self) -> bool:
        return self.raw_html is not None


class ExtractedText(BaseModel):
    """Bounded plain-text view of a page, ready for normalization."""

    url: Optional[str] = Field(default=None, description="Origin URL, if any")
    source_domain: Optional[str] = Field(
        default=None, alias="sourceDomain", description="Host name of the origin"
    )
    title: Optional[str] = Field(default=None, description="Page title")
    text: str = Field(..., max_length=10_000, description="Concatenated page text")
    fetched_at: datetime = Field(default_factory=_utcnow, alias="fetchedAt")

    model_config = ConfigDict(populate_by_name=True)


class PageExtraction(BaseModel):
    """Result of fetching a URL and extracting its text."""

    success: bool
    url: str
    extracted: Optional[ExtractedText] = None
    error: Optional[str] = None
    status_code: Optional[int] = Field(default=None, alias="statusCode")

    model_config = ConfigDict(populate_by_name=True)


# ─────────────────────────────────────────────────────────────────────────────
# Scholarship Record
# ─────────────────────────────────────────────────────────────────────────────


class ScholarshipRecord(BaseModel):
    """
    Canonical scholarship record emitted by the normalizer.

    Invariants (guaranteed when built through the field validators):
    - ``id`` is derived from the origin URL, so re-ingesting a page is idempotent
    - ``degree`` is always one of the four Degree values
    - ``eligibility`` is at most 220 characters
    - ``deadline`` is ``YYYY-MM-DD``, ``"varies"`` or None
    - ``link`` is an absolute URL whenever an origin URL exists
    """

    id: str = Field(..., description="Deterministic id derived from the origin URL")
    name: str = Field(..., description="Scholarship name")
    country: Optional[str] = Field(default=None, description="Host country")
    degree: Degree = Field(default=Degree.ANY, description="Target degree level")
    eligibility: str = Field(..., max_length=220, description="Eligibility summary")
    deadline: Optional[str] = Field(
        default=None, pattern=DEADLINE_PATTERN, description="YYYY-MM-DD, 'varies' or null"
    )
    link: Optional[str] = Field(default=None, description="Absolute apply/info URL")
    source: Optional[str] = Field(default=None, description="Origin domain")
    is_fully_funded: bool = Field(default=False, alias="isFullyFunded")

    # Optional descriptive fields used for deduplication
    amount: Optional[str] = Field(default=None, description="Award amount as written")
    provider: Optional[str] = Field(default=None, description="Awarding organization")

    # Attached by external matching collaborators, never computed here
    fit_score: Optional[float] = Field(default=None, alias="fitScore")
    match_score: Optional[float] = Field(default=None, alias="matchScore")

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    def to_public_dict(self) -> dict[str, Any]:
        """External JSON shape (camelCase, unset optional scores dropped)."""
        data = self.model_dump(mode="json", by_alias=True)
        for key in ("fitScore", "matchScore"):
            if data.get(key) is None:
                data.pop(key, None)
        return data


# ─────────────────────────────────────────────────────────────────────────────
# Result Models
# ─────────────────────────────────────────────────────────────────────────────


class DeadlineResult(BaseModel):
    """Resolved deadline for a free-text snippet."""

    deadline: str = Field(..., pattern=DEADLINE_PATTERN)
    method: str = Field(default="rules", description="ai, rules or default")


class NormalizationResult(BaseModel):
    """Output of the structured normalizer for one page."""

    success: bool = Field(..., description="True when the primary (AI) strategy succeeded")
    scholarship: ScholarshipRecord
    strategy: str = Field(..., description="Name of the extractor that produced the record")
    error: Optional[str] = None
    normalized_at: datetime = Field(default_factory=_utcnow, alias="normalizedAt")

    model_config = ConfigDict(populate_by_name=True)


class ScrapeResult(BaseModel):
    """Result of the single-item scrape → normalize entry point."""

    success: bool
    url: Optional[str] = None
    scholarship: Optional[ScholarshipRecord] = None
    strategy: Optional[str] = None
    error: Optional[str] = None
    scraped_at: Optional[datetime] = Field(default=None, alias="scrapedAt")
    normalized_at: Optional[datetime] = Field(default=None, alias="normalizedAt")

    model_config = ConfigDict(populate_by_name=True)


class FundingClassification(BaseModel):
    """Whether a scholarship is fully funded, with a short reason."""

    is_fully_funded: bool = Field(..., alias="isFullyFunded")
    reason: str = Field(..., max_length=160)
    method: str = Field(default="rules", description="ai or rules")

    model_config = ConfigDict(populate_by_name=True)


class ValidationReport(BaseModel):
    """Schema conformance report for a scholarship record."""

    is_valid: bool = Field(..., alias="isValid")
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


# ─────────────────────────────────────────────────────────────────────────────
# Batch Models
# ─────────────────────────────────────────────────────────────────────────────


class BatchError(BaseModel):
    """A failed batch item; the URL is kept so callers can retry it."""

    url: str
    error: str


class BatchSummary(BaseModel):
    """Aggregate counts for a batch run."""

    total: int
    successful: int
    failed: int

    model_config = ConfigDict(populate_by_name=True)

    @computed_field(alias="successRate")
    @property
    def success_rate(self) -> float:
        """Share of inputs that produced a record (0.0 for an empty batch)."""
        if self.total == 0:
            return 0.0
        return self.successful / self.total


class BatchResult(BaseModel):
    """Output of one batch invocation."""

    results: list[ScholarshipRecord] = Field(default_factory=list)
    errors: list[BatchError] = Field(default_factory=list)
    summary: BatchSummary


# ─────────────────────────────────────────────────────────────────────────────
# Deduplication Models
# ─────────────────────────────────────────────────────────────────────────────


class PairJudgment(BaseModel):
    """Duplicate decision for one pair of records."""

    is_duplicate: bool
    confidence: float = Field(..., ge=0.0, le=1.0)
    score: float = Field(..., ge=0.0, le=1.0, description="Rule-based similarity")
    method: str = Field(..., description="ai or rules")


class DuplicateGroup(BaseModel):
    """Records judged equivalent, collapsed into one survivor."""

    survivor_id: str = Field(..., alias="survivorId")
    member_ids: list[str] = Field(..., min_length=2, alias="memberIds")
    scores: list[float] = Field(
        default_factory=list,
        description="Similarity of each member to the group anchor, parallel to member_ids",
    )
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)

    model_config = ConfigDict(populate_by_name=True)


class DedupMetadata(BaseModel):
    """Reporting metadata for a deduplication call."""

    deduplication_rate: float = Field(default=0.0, alias="deduplicationRate")
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    processing_time: float = Field(default=0.0, alias="processingTime", description="ms")
    likely_duplicate_rate: float = Field(default=0.0, alias="likelyDuplicateRate")
    threshold: float = Field(default=0.7)

    model_config = ConfigDict(populate_by_name=True)


class DedupResult(BaseModel):
    """Output of a deduplication call."""

    deduplicated: list[ScholarshipRecord] = Field(default_factory=list)
    original_count: int = Field(default=0, alias="originalCount")
    deduplicated_count: int = Field(default=0, alias="deduplicatedCount")
    duplicates_removed: int = Field(default=0, alias="duplicatesRemoved")
    method: str = Field(default=DedupMethod.RULES.value)
    groups: list[DuplicateGroup] = Field(default_factory=list)
    metadata: DedupMetadata = Field(default_factory=DedupMetadata)

    model_config = ConfigDict(populate_by_name=True)


class DedupValidation(BaseModel):
    """Sanity check of a deduplication outcome against its input."""

    is_valid: bool = Field(..., alias="isValid")
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    original_count: int = Field(default=0, alias="originalCount")
    deduplicated_count: int = Field(default=0, alias="deduplicatedCount")
    reduction_rate: float = Field(default=0.0, alias="reductionRate")

    model_config = ConfigDict(populate_by_name=True)
