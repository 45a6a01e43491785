"""
Similarity Module - Rule-based record similarity.
=================================================

Weighted combination of four signals:

    name (Jaccard)          0.4
    organization (Jaccard)  0.3   provider if both have one, else source domain
    amount (closeness)      0.2   1 when within 10% of the larger amount
    deadline (exact)        0.1

Only signals present on both records contribute, and the score is
renormalized by the weights actually used. Records with nothing in common
to compare score 0.0.
"""

import re
from dataclasses import dataclass
from typing import Optional

from scholarship_ingest.shared.schemas import ScholarshipRecord
from scholarship_ingest.shared.utils import tokenize

_AMOUNT = re.compile(r"\d[\d,]*")


@dataclass(frozen=True)
class SimilarityWeights:
    """Signal weights; they need not sum to 1."""

    name: float = 0.4
    organization: float = 0.3
    amount: float = 0.2
    deadline: float = 0.1


def jaccard(a: Optional[str], b: Optional[str]) -> float:
    """Jaccard index of the lower-cased word sets of two strings."""
    words_a = tokenize(a)
    words_b = tokenize(b)
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


def parse_amount(value: Optional[str]) -> Optional[int]:
    """
    First numeric run of an amount string.

    Example:
        >>> parse_amount("EUR 1,200 per month")
        1200
    """
    if not value:
        return None
    match = _AMOUNT.search(value)
    if not match:
        return None
    digits = match.group(0).replace(",", "")
    return int(digits) if digits else None


def amounts_close(a: int, b: int, tolerance: float = 0.1) -> bool:
    """True when the amounts differ by less than ``tolerance`` of the larger."""
    return abs(a - b) < max(a, b) * tolerance


class RecordSimilarity:
    """
    Symmetric rule-based similarity scorer.

    Example:
        >>> scorer = RecordSimilarity()
        >>> scorer.score(record, record)
        1.0
    """

    def __init__(self, weights: Optional[SimilarityWeights] = None):
        self.weights = weights or SimilarityWeights()

    def _organizations(
        self, a: ScholarshipRecord, b: ScholarshipRecord
    ) -> tuple[Optional[str], Optional[str]]:
        if a.provider and b.provider:
            return a.provider, b.provider
        if a.source and b.source:
            return a.source, b.source
        return None, None

    def components(self, a: ScholarshipRecord, b: ScholarshipRecord) -> dict[str, float]:
        """Per-signal similarities for the signals both records carry."""
        parts: dict[str, float] = {}

        if a.name and b.name:
            parts["name"] = jaccard(a.name, b.name)

        org_a, org_b = self._organizations(a, b)
        if org_a and org_b:
            parts["organization"] = jaccard(org_a, org_b)

        amount_a = parse_amount(a.amount)
        amount_b = parse_amount(b.amount)
        if amount_a and amount_b:
            parts["amount"] = 1.0 if amounts_close(amount_a, amount_b) else 0.0

        if a.deadline and b.deadline:
            parts["deadline"] = 1.0 if a.deadline == b.deadline else 0.0

        return parts

    def score(self, a: ScholarshipRecord, b: ScholarshipRecord) -> float:
        """Weighted, renormalized similarity in [0, 1]."""
        parts = self.components(a, b)
        if not parts:
            return 0.0

        used = sum(getattr(self.weights, signal) for signal in parts)
        if used <= 0:
            return 0.0
        total = sum(getattr(self.weights, signal) * value for signal, value in parts.items())
        return round(total / used, 6)
