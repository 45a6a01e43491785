"""
Validators Module - Total field normalizers for scholarship records.
====================================================================

Every function here accepts arbitrary input and returns a safe value; none
of them raise. ``build_record`` chains them so that a record produced by any
extraction strategy satisfies the record invariants.
"""

import re
from datetime import date
from typing import Any, Optional
from urllib.parse import urljoin

from scholarship_ingest.normalize.dates import find_deadline, is_iso_date
from scholarship_ingest.shared.config import get_settings
from scholarship_ingest.shared.logging import get_logger
from scholarship_ingest.shared.schemas import (
    DEADLINE_PATTERN,
    VARIES,
    Degree,
    ScholarshipRecord,
    ValidationReport,
)
from scholarship_ingest.shared.utils import (
    collapse_whitespace,
    compute_hash,
    extract_domain,
    is_absolute_http_url,
)

logger = get_logger(__name__)

ID_PREFIX = "scholarship_"
ID_HASH_LENGTH = 12
ELIGIBILITY_MAX_LENGTH = 220
ELLIPSIS = "..."

VALID_DEGREES = frozenset(degree.value for degree in Degree)
REQUIRED_STRING_FIELDS = ("id", "name", "eligibility")


# ─────────────────────────────────────────────────────────────────────────────
# Field Validators
# ─────────────────────────────────────────────────────────────────────────────


def validate_degree(value: Any) -> str:
    """
    Map a degree value onto the closed set, defaulting to ``Any``.

    Matching is exact; "Masters" or "phd" are not members.
    """
    if isinstance(value, Degree):
        return value.value
    if isinstance(value, str) and value in VALID_DEGREES:
        return value
    return Degree.ANY.value


def truncate_eligibility(value: Any, max_length: int = ELIGIBILITY_MAX_LENGTH) -> str:
    """
    Bound eligibility text, cutting at a word boundary.

    Args:
        value: Eligibility text (anything else yields the placeholder)
        max_length: Maximum output length, ellipsis included

    Returns:
        Text of at most ``max_length`` characters
    """
    placeholder = get_settings().normalization.eligibility_placeholder
    if not isinstance(value, str):
        return placeholder

    text = collapse_whitespace(value)
    if not text:
        return placeholder
    if len(text) <= max_length:
        return text

    cut = text[: max_length - len(ELLIPSIS)]
    last_space = cut.rfind(" ")
    if last_space > 0:
        cut = cut[:last_space]
    return cut.rstrip() + ELLIPSIS


def validate_link(link: Any, origin_url: Optional[str]) -> Optional[str]:
    """
    Return an absolute link.

    Tries the link as an absolute URL, then resolves it against the origin
    page, then falls back to the origin URL itself.
    """
    if isinstance(link, str):
        candidate = link.strip()
        if is_absolute_http_url(candidate):
            return candidate
        if candidate and origin_url:
            try:
                resolved = urljoin(origin_url, candidate)
            except ValueError:
                resolved = None
            if is_absolute_http_url(resolved):
                return resolved
    return origin_url


def generate_id(origin_key: str) -> str:
    """
    Deterministic record id for an origin key.

    Example:
        >>> generate_id("https://example.org/award") == generate_id("https://example.org/award")
        True
    """
    return f"{ID_PREFIX}{compute_hash(origin_key)[:ID_HASH_LENGTH]}"


def validate_deadline(value: Any, today: Optional[date] = None) -> Optional[str]:
    """
    Normalize a deadline field.

    Returns:
        ``YYYY-MM-DD``, ``"varies"``, or None when the value carries no date
    """
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    if is_iso_date(text):
        return text

    lowered = text.lower()
    if VARIES in lowered or "rolling" in lowered:
        return VARIES

    return find_deadline(text, today)


def _optional_text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    text = collapse_whitespace(value)
    return text or None


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)


# ─────────────────────────────────────────────────────────────────────────────
# Record Assembly
# ─────────────────────────────────────────────────────────────────────────────


def build_record(
    data: dict[str, Any],
    origin_url: Optional[str] = None,
    title: Optional[str] = None,
    origin_key: Optional[str] = None,
    today: Optional[date] = None,
) -> ScholarshipRecord:
    """
    Assemble a ScholarshipRecord from loosely-typed candidate fields.

    Any id in ``data`` is ignored; the id always comes from the origin key
    (the origin URL, or ``origin_key`` when there is no URL).

    Args:
        data: Candidate fields (record attribute names or camelCase aliases)
        origin_url: URL the candidate was extracted from
        title: Page title, used when the candidate has no name
        origin_key: Identity key for inputs without a URL
        today: Reference date for deadline resolution

    Returns:
        A record satisfying every field invariant
    """
    normalization = get_settings().normalization

    key = origin_url or origin_key or title or ""
    name = _optional_text(data.get("name")) or _optional_text(title) or normalization.unknown_name

    funded = data.get("is_fully_funded", data.get("isFullyFunded", False))

    return ScholarshipRecord(
        id=generate_id(key),
        name=name,
        country=_optional_text(data.get("country")),
        degree=validate_degree(data.get("degree")),
        eligibility=truncate_eligibility(data.get("eligibility"), normalization.eligibility_max_length),
        deadline=validate_deadline(data.get("deadline"), today),
        link=validate_link(data.get("link"), origin_url),
        source=extract_domain(origin_url) or _optional_text(data.get("source")),
        is_fully_funded=_coerce_bool(funded),
        amount=_optional_text(data.get("amount")),
        provider=_optional_text(data.get("provider")),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Record Validation
# ─────────────────────────────────────────────────────────────────────────────


def validate_record(data: Any, today: Optional[date] = None) -> ValidationReport:
    """
    Check a record (model or dict) against the record schema.

    Never raises; problems are reported as errors, soft issues as warnings.
    """
    if isinstance(data, ScholarshipRecord):
        data = data.model_dump(by_alias=True)
    if not isinstance(data, dict):
        return ValidationReport(is_valid=False, errors=["Record must be a JSON object"])

    errors: list[str] = []
    warnings: list[str] = []
    today = today or date.today()

    for field in REQUIRED_STRING_FIELDS:
        value = data.get(field)
        if not isinstance(value, str) or not value.strip():
            errors.append(f"{field} is required and must be a non-empty string")

    degree = data.get("degree")
    if degree is not None and validate_degree(degree) != degree:
        errors.append(f"degree must be one of {sorted(VALID_DEGREES)}, got {degree!r}")

    eligibility = data.get("eligibility")
    if isinstance(eligibility, str):
        if len(eligibility) > ELIGIBILITY_MAX_LENGTH:
            errors.append(
                f"eligibility must be at most {ELIGIBILITY_MAX_LENGTH} characters, "
                f"got {len(eligibility)}"
            )
        if eligibility in (
            get_settings().normalization.eligibility_placeholder,
            get_settings().normalization.fallback_eligibility,
        ):
            warnings.append("eligibility is a placeholder")

    deadline = data.get("deadline")
    if deadline is not None:
        if not isinstance(deadline, str) or not re.match(DEADLINE_PATTERN, deadline):
            errors.append(f"deadline must be YYYY-MM-DD, 'varies' or null, got {deadline!r}")
        elif deadline != VARIES:
            if not is_iso_date(deadline):
                errors.append(f"deadline is not a real calendar date: {deadline}")
            elif date.fromisoformat(deadline) < today:
                warnings.append(f"deadline {deadline} is in the past")

    link = data.get("link")
    if link is not None:
        if not is_absolute_http_url(link):
            errors.append(f"link must be an absolute http(s) URL, got {link!r}")
        elif not link.startswith("https://"):
            warnings.append("link does not use HTTPS")

    funded = data.get("isFullyFunded", data.get("is_fully_funded"))
    if funded is not None and not isinstance(funded, bool):
        errors.append("isFullyFunded must be a boolean")

    if not data.get("country"):
        warnings.append("country is missing")

    return ValidationReport(is_valid=not errors, errors=errors, warnings=warnings)
