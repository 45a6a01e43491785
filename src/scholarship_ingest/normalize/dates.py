"""
Dates Module - Deadline resolution.
===================================

Turns free-text deadline phrasing into ``YYYY-MM-DD`` or ``"varies"``.

Rule-based resolution:
1. Rolling/ongoing phrasing ("varies", "rolling", "open", ...) wins outright.
2. Dates are scanned in four shapes: ISO ``YYYY-M-D``, numeric ``M/D/YYYY``
   or ``M-D-YYYY`` (month first), ``Month D, YYYY`` and ``D Month YYYY``.
   Only real calendar dates in the current year or later are kept.
3. The earliest date on or after today wins; if every date is already past,
   the latest one is returned.
4. Nothing found means ``"varies"``.

DeadlineParser adds an AI tier in front of the rules.
"""

import re
from datetime import date
from typing import Optional

from scholarship_ingest.llm.client import LLMClient
from scholarship_ingest.llm.prompts import build_deadline_prompt
from scholarship_ingest.shared.config import get_settings
from scholarship_ingest.shared.errors import LLMError, LLMResponseError
from scholarship_ingest.shared.logging import get_logger
from scholarship_ingest.shared.schemas import VARIES, DeadlineResult

logger = get_logger(__name__)

MONTHS = {
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "may": 5,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
}

_MONTH_ALTERNATION = "|".join(MONTHS)

ISO_PATTERN = re.compile(r"\b(\d{4})-(\d{1,2})-(\d{1,2})\b")
NUMERIC_PATTERN = re.compile(r"\b(\d{1,2})[/-](\d{1,2})[/-](\d{4})\b")
MONTH_FIRST_PATTERN = re.compile(rf"\b({_MONTH_ALTERNATION})\s+(\d{{1,2}}),?\s+(\d{{4}})\b")
DAY_FIRST_PATTERN = re.compile(rf"\b(\d{{1,2}})\s+({_MONTH_ALTERNATION})\s+(\d{{4}})\b")

STRICT_ISO_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────


def _make_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def is_iso_date(value: str) -> bool:
    """Check for an exact ``YYYY-MM-DD`` string naming a real calendar day."""
    if not STRICT_ISO_PATTERN.match(value):
        return False
    year, month, day = (int(part) for part in value.split("-"))
    return _make_date(year, month, day) is not None


def has_varies_keyword(text: str, keywords: Optional[list[str]] = None) -> bool:
    """Check lower-cased text for rolling/ongoing deadline phrasing."""
    keywords = keywords if keywords is not None else get_settings().deadline.varies_keywords
    lowered = text.lower()
    return any(keyword in lowered for keyword in keywords)


def extract_dates(text: str, min_year: int) -> list[date]:
    """
    Find every calendar date in the text.

    Numeric ``a/b/YYYY`` dates are always read month first.

    Args:
        text: Free text
        min_year: Dates before this year are dropped

    Returns:
        Distinct dates, sorted ascending
    """
    lowered = text.lower()
    found: set[date] = set()

    for match in ISO_PATTERN.finditer(lowered):
        year, month, day = match.groups()
        found.add(_make_date(int(year), int(month), int(day)))

    for match in NUMERIC_PATTERN.finditer(lowered):
        month, day, year = match.groups()
        found.add(_make_date(int(year), int(month), int(day)))

    for match in MONTH_FIRST_PATTERN.finditer(lowered):
        month_name, day, year = match.groups()
        found.add(_make_date(int(year), MONTHS[month_name], int(day)))

    for match in DAY_FIRST_PATTERN.finditer(lowered):
        day, month_name, year = match.groups()
        found.add(_make_date(int(year), MONTHS[month_name], int(day)))

    return sorted(d for d in found if d is not None and d.year >= min_year)


def pick_closest_upcoming(dates: list[date], today: date) -> Optional[date]:
    """Earliest date on or after today, else the latest date, else None."""
    if not dates:
        return None
    ordered = sorted(dates)
    for candidate in ordered:
        if candidate >= today:
            return candidate
    return ordered[-1]


def find_deadline(text: str, today: Optional[date] = None) -> Optional[str]:
    """
    Resolve a deadline, returning None when the text carries no signal.

    Returns ``"varies"`` for rolling phrasing, an ISO date when one is found,
    and None otherwise.
    """
    today = today or date.today()
    if has_varies_keyword(text):
        return VARIES
    chosen = pick_closest_upcoming(extract_dates(text, min_year=today.year), today)
    return chosen.isoformat() if chosen else None


def resolve_deadline(text: str, today: Optional[date] = None) -> str:
    """
    Rule-based deadline resolution.

    Args:
        text: Free-text deadline phrasing
        today: Reference date (default: date.today())

    Returns:
        ``YYYY-MM-DD`` or ``"varies"``

    Example:
        >>> resolve_deadline("Apply by March 1, 2031 or 15 January 2031", date(2030, 6, 1))
        '2031-01-15'
    """
    if not isinstance(text, str) or not text.strip():
        return VARIES
    return find_deadline(text.strip(), today) or VARIES


# ─────────────────────────────────────────────────────────────────────────────
# Deadline Parser
# ─────────────────────────────────────────────────────────────────────────────


class DeadlineParser:
    """
    Two-tier deadline parser: AI first, rules on any AI failure.

    Example:
        >>> parser = DeadlineParser(llm=None)
        >>> parser.parse("Rolling admissions").deadline
        'varies'
    """

    def __init__(self, llm: Optional[LLMClient] = None):
        self.llm = llm

    def parse_with_ai(self, text: str, today: Optional[date] = None) -> DeadlineResult:
        """
        AI-only parse.

        Raises:
            LLMError: If no client is configured, the call fails, or the
                answer is not a valid deadline
        """
        if self.llm is None:
            raise LLMError("No language model configured")

        system_prompt, user_prompt = build_deadline_prompt(text, today or date.today())
        data = self.llm.generate_json(system_prompt, user_prompt)

        deadline = data.get("deadline")
        if not isinstance(deadline, str):
            raise LLMResponseError("Deadline missing from response", raw_response=str(data))
        deadline = deadline.strip()
        if deadline.lower() == VARIES:
            return DeadlineResult(deadline=VARIES, method="ai")
        if not is_iso_date(deadline):
            raise LLMResponseError(f"Invalid deadline format: {deadline!r}", raw_response=str(data))
        return DeadlineResult(deadline=deadline, method="ai")

    def parse_rule_based(self, text: str, today: Optional[date] = None) -> DeadlineResult:
        """Rules-only parse."""
        return DeadlineResult(deadline=resolve_deadline(text, today), method="rules")

    def parse(self, text: str, today: Optional[date] = None) -> DeadlineResult:
        """
        Parse a deadline, never raising.

        Args:
            text: Free-text deadline phrasing
            today: Reference date for closest-upcoming selection

        Returns:
            DeadlineResult with method ``ai``, ``rules`` or ``default``
        """
        if not isinstance(text, str) or not text.strip():
            return DeadlineResult(deadline=VARIES, method="default")

        if self.llm is not None:
            try:
                return self.parse_with_ai(text, today)
            except LLMError as e:
                logger.warning(f"AI deadline parsing failed, using rules: {e}")

        try:
            return self.parse_rule_based(text, today)
        except Exception as e:
            logger.error(f"Rule-based deadline parsing failed: {e}")
            return DeadlineResult(deadline=VARIES, method="default")
