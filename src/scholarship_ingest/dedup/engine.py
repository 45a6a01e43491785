"""
Engine Module - Collapse near-duplicate records into canonical entries.
=======================================================================

Grouping is greedy and anchor-based: records are visited in input order,
and each unvisited record becomes the anchor of a group that absorbs every
later unvisited record judged a duplicate of it.

Methods:
- rules: merge when the similarity score reaches the threshold
- ai: every pair judged by the language model (rules on AI failure)
- hybrid: confident scores decided by rules, only the ambiguous band
  escalated to the language model; the band always contains the threshold

Within a group the survivor is the record with an official link, then the
most complete one; its missing fields are filled from the other members.
"""

import time
from typing import Any, Optional, Union
from urllib.parse import urlparse

from scholarship_ingest.dedup.classifiers import AIDuplicateClassifier, RuleBasedClassifier
from scholarship_ingest.dedup.similarity import RecordSimilarity
from scholarship_ingest.llm.client import LLMClient
from scholarship_ingest.shared.config import DedupConfig, get_settings
from scholarship_ingest.shared.errors import LLMError
from scholarship_ingest.shared.logging import get_logger
from scholarship_ingest.shared.schemas import (
    DedupMetadata,
    DedupMethod,
    DedupResult,
    DedupValidation,
    DuplicateGroup,
    PairJudgment,
    ScholarshipRecord,
)

logger = get_logger(__name__)

OFFICIAL_HOST_LABELS = frozenset({"edu", "gov", "org", "ac"})

# Fields filled from other group members when the survivor lacks them
FILLABLE_FIELDS = ("country", "deadline", "amount", "provider", "source")
COMPLETENESS_FIELDS = ("name", "country", "eligibility", "deadline", "link", "source", "amount", "provider")


# ─────────────────────────────────────────────────────────────────────────────
# Survivor Selection
# ─────────────────────────────────────────────────────────────────────────────


def is_official_link(link: Optional[str]) -> bool:
    """Check whether a link points at an institutional host."""
    if not link:
        return False
    host = (urlparse(link).hostname or "").lower()
    labels = host.split(".")[1:]
    return any(label in OFFICIAL_HOST_LABELS for label in labels)


def completeness(record: ScholarshipRecord) -> float:
    """Share of descriptive fields that carry a real value."""
    normalization = get_settings().normalization
    placeholders = {normalization.eligibility_placeholder, normalization.fallback_eligibility}

    filled = 0
    for field in COMPLETENESS_FIELDS:
        value = getattr(record, field)
        if field == "eligibility" and value in placeholders:
            continue
        if value:
            filled += 1
    return filled / len(COMPLETENESS_FIELDS)


def merge_group(records: list[ScholarshipRecord]) -> ScholarshipRecord:
    """
    Collapse a duplicate group into one record.

    Args:
        records: Group members in input order

    Returns:
        The survivor, with missing fields filled from the other members
    """
    ranked = sorted(
        enumerate(records),
        key=lambda pair: (not is_official_link(pair[1].link), -completeness(pair[1]), pair[0]),
    )
    survivor = ranked[0][1]
    donors = [record for _, record in ranked[1:]]

    updates: dict[str, Any] = {}
    for field in FILLABLE_FIELDS:
        if getattr(survivor, field):
            continue
        for donor in donors:
            value = getattr(donor, field)
            if value:
                updates[field] = value
                break

    normalization = get_settings().normalization
    placeholders = {normalization.eligibility_placeholder, normalization.fallback_eligibility}
    if survivor.eligibility in placeholders:
        for donor in donors:
            if donor.eligibility not in placeholders:
                updates["eligibility"] = donor.eligibility
                break

    if not is_official_link(survivor.link):
        for donor in donors:
            if is_official_link(donor.link):
                updates["link"] = donor.link
                break
    if not survivor.link and "link" not in updates:
        for donor in donors:
            if donor.link:
                updates["link"] = donor.link
                break

    if any(record.is_fully_funded for record in records) and not survivor.is_fully_funded:
        updates["is_fully_funded"] = True

    return survivor.model_copy(update=updates) if updates else survivor


# ─────────────────────────────────────────────────────────────────────────────
# Deduplication Engine
# ─────────────────────────────────────────────────────────────────────────────


class DeduplicationEngine:
    """
    Similarity/deduplication engine.

    Example:
        >>> engine = DeduplicationEngine(llm=None)
        >>> result = engine.deduplicate(records, method="rules")
        >>> result.duplicates_removed
        1
    """

    def __init__(
        self,
        llm: Optional[LLMClient] = None,
        config: Optional[DedupConfig] = None,
        similarity: Optional[RecordSimilarity] = None,
        threshold: Optional[float] = None,
    ):
        settings = get_settings()
        self.config = config or settings.dedup
        if threshold is None:
            threshold = self.config.threshold if config is not None else settings.get_effective_threshold()
        self.default_threshold = threshold
        self.similarity = similarity or RecordSimilarity()
        self.ai_classifier = (
            AIDuplicateClassifier(llm, similarity=self.similarity) if llm is not None else None
        )

    def _resolve_method(self, method: Union[str, DedupMethod]) -> DedupMethod:
        try:
            requested = DedupMethod(method)
        except ValueError:
            valid = ", ".join(m.value for m in DedupMethod)
            raise ValueError(f"Invalid method {method!r}. Use one of: {valid}") from None

        if requested != DedupMethod.RULES and self.ai_classifier is None:
            logger.warning(f"No language model configured; '{requested.value}' dedup runs on rules")
            return DedupMethod.RULES
        return requested

    def _judge_with_ai(
        self,
        a: ScholarshipRecord,
        b: ScholarshipRecord,
        score: float,
        rules: RuleBasedClassifier,
    ) -> PairJudgment:
        try:
            return self.ai_classifier.judge(a, b, score=score)
        except LLMError as e:
            logger.warning(f"AI duplicate judgment failed for ({a.id}, {b.id}), using rules: {e}")
            return rules.judge(a, b, score=score)

    def judge_pair(
        self,
        a: ScholarshipRecord,
        b: ScholarshipRecord,
        method: DedupMethod,
        rules: RuleBasedClassifier,
    ) -> PairJudgment:
        """Judge one pair under the given (already resolved) method."""
        score = self.similarity.score(a, b)

        if method == DedupMethod.RULES:
            return rules.judge(a, b, score=score)

        if method == DedupMethod.AI:
            return self._judge_with_ai(a, b, score, rules)

        # The caller's threshold widens the band escalated to the model
        if score >= max(rules.threshold, self.config.ambiguous_high):
            return PairJudgment(is_duplicate=True, confidence=score, score=score, method="rules")
        if score < min(rules.threshold, self.config.ambiguous_low):
            return PairJudgment(
                is_duplicate=False, confidence=1.0 - score, score=score, method="rules"
            )
        return self._judge_with_ai(a, b, score, rules)

    def deduplicate(
        self,
        records: list[ScholarshipRecord],
        method: Union[str, DedupMethod] = DedupMethod.HYBRID,
        threshold: Optional[float] = None,
    ) -> DedupResult:
        """
        Deduplicate a record set.

        Args:
            records: Candidate records
            method: "ai", "rules" or "hybrid"
            threshold: Rule-based duplicate threshold (default from config)

        Returns:
            DedupResult with survivors in input order of their groups' anchors

        Raises:
            ValueError: If the method or threshold is invalid
        """
        start = time.perf_counter()
        used_method = self._resolve_method(method)
        threshold = self.default_threshold if threshold is None else threshold
        rules = RuleBasedClassifier(threshold, similarity=self.similarity)

        survivors: list[ScholarshipRecord] = []
        groups: list[DuplicateGroup] = []
        confidences: list[float] = []
        likely_pairs = 0
        compared = 0
        processed: set[int] = set()

        for i, anchor in enumerate(records):
            if i in processed:
                continue
            processed.add(i)

            members = [anchor]
            member_scores: list[float] = [1.0]
            member_confidences: list[float] = []

            for j in range(i + 1, len(records)):
                if j in processed:
                    continue
                candidate = records[j]
                judgment = self.judge_pair(anchor, candidate, used_method, rules)

                compared += 1
                confidences.append(judgment.confidence)
                if judgment.score >= self.config.likely_duplicate_band:
                    likely_pairs += 1

                if judgment.is_duplicate:
                    processed.add(j)
                    members.append(candidate)
                    member_scores.append(judgment.score)
                    member_confidences.append(judgment.confidence)

            if len(members) == 1:
                survivors.append(anchor)
                continue

            survivor = merge_group(members)
            survivors.append(survivor)
            groups.append(
                DuplicateGroup(
                    survivor_id=survivor.id,
                    member_ids=[member.id for member in members],
                    scores=member_scores,
                    confidence=sum(member_confidences) / len(member_confidences),
                )
            )
            logger.debug(f"Merged {len(members)} records into {survivor.id}")

        original_count = len(records)
        removed = original_count - len(survivors)
        elapsed_ms = (time.perf_counter() - start) * 1000

        logger.info(
            f"Deduplicated {original_count} records to {len(survivors)} "
            f"({removed} removed, method={used_method.value})"
        )

        return DedupResult(
            deduplicated=survivors,
            original_count=original_count,
            deduplicated_count=len(survivors),
            duplicates_removed=removed,
            method=used_method.value,
            groups=groups,
            metadata=DedupMetadata(
                deduplication_rate=removed / original_count if original_count else 0.0,
                confidence=sum(confidences) / len(confidences) if confidences else 1.0,
                processing_time=round(elapsed_ms, 3),
                likely_duplicate_rate=likely_pairs / compared if compared else 0.0,
                threshold=threshold,
            ),
        )


def validate_deduplication(
    original: list[Any],
    deduplicated: list[Any],
) -> DedupValidation:
    """
    Sanity-check a deduplication outcome.

    Errors: non-list inputs, or more output than input records.
    Warnings: everything removed, or nothing removed.
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not isinstance(original, list):
        errors.append("Original items must be a list")
    if not isinstance(deduplicated, list):
        errors.append("Deduplicated items must be a list")
    if errors:
        return DedupValidation(is_valid=False, errors=errors)

    original_count = len(original)
    deduplicated_count = len(deduplicated)
    reduction_rate = (
        (original_count - deduplicated_count) / original_count if original_count else 0.0
    )

    if deduplicated_count > original_count:
        errors.append("Deduplicated count cannot exceed original count")
    if deduplicated_count == 0 and original_count > 0:
        warnings.append("All items were removed during deduplication")
    if deduplicated_count == original_count:
        warnings.append("No duplicates were found")

    return DedupValidation(
        is_valid=not errors,
        errors=errors,
        warnings=warnings,
        original_count=original_count,
        deduplicated_count=deduplicated_count,
        reduction_rate=reduction_rate,
    )
