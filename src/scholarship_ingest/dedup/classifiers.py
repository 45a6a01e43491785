"""
Classifiers Module - Pairwise duplicate judgments.
==================================================

Provides:
- DuplicateClassifier: abstract pair judge
- RuleBasedClassifier: similarity score against a threshold
- AIDuplicateClassifier: semantic judgment from a language model
"""

from abc import ABC, abstractmethod
from typing import Optional

from scholarship_ingest.dedup.similarity import RecordSimilarity
from scholarship_ingest.llm.client import LLMClient
from scholarship_ingest.llm.prompts import build_duplicate_pair_prompt
from scholarship_ingest.shared.errors import LLMResponseError
from scholarship_ingest.shared.logging import get_logger
from scholarship_ingest.shared.schemas import PairJudgment, ScholarshipRecord

logger = get_logger(__name__)

# Fields shown to the model; ids and scores carry no signal
_COMPARED_FIELDS = {"name", "country", "degree", "eligibility", "deadline", "link", "source", "amount", "provider"}


class DuplicateClassifier(ABC):
    """Abstract pairwise duplicate judge."""

    @property
    @abstractmethod
    def method(self) -> str:
        """Method name reported in judgments."""
        pass

    @abstractmethod
    def judge(
        self,
        a: ScholarshipRecord,
        b: ScholarshipRecord,
        score: Optional[float] = None,
    ) -> PairJudgment:
        """
        Decide whether two records describe the same scholarship.

        Args:
            a: First record
            b: Second record
            score: Precomputed rule-based similarity, if available
        """
        pass


class RuleBasedClassifier(DuplicateClassifier):
    """Duplicate when the similarity score reaches the threshold."""

    def __init__(self, threshold: float, similarity: Optional[RecordSimilarity] = None):
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"threshold must be between 0 and 1, got {threshold}")
        self.threshold = threshold
        self.similarity = similarity or RecordSimilarity()

    @property
    def method(self) -> str:
        return "rules"

    def judge(
        self,
        a: ScholarshipRecord,
        b: ScholarshipRecord,
        score: Optional[float] = None,
    ) -> PairJudgment:
        score = self.similarity.score(a, b) if score is None else score
        is_duplicate = score >= self.threshold
        return PairJudgment(
            is_duplicate=is_duplicate,
            confidence=score if is_duplicate else 1.0 - score,
            score=score,
            method=self.method,
        )


class AIDuplicateClassifier(DuplicateClassifier):
    """
    Language-model duplicate judge.

    Raises LLMError on any failure; the engine decides the fallback.
    """

    def __init__(self, llm: LLMClient, similarity: Optional[RecordSimilarity] = None):
        self.llm = llm
        self.similarity = similarity or RecordSimilarity()

    @property
    def method(self) -> str:
        return "ai"

    def judge(
        self,
        a: ScholarshipRecord,
        b: ScholarshipRecord,
        score: Optional[float] = None,
    ) -> PairJudgment:
        score = self.similarity.score(a, b) if score is None else score

        system_prompt, user_prompt = build_duplicate_pair_prompt(
            a.model_dump(mode="json", include=_COMPARED_FIELDS),
            b.model_dump(mode="json", include=_COMPARED_FIELDS),
        )
        data = self.llm.generate_json(system_prompt, user_prompt)

        duplicate = data.get("duplicate")
        confidence = data.get("confidence", 0.5)
        if not isinstance(duplicate, bool):
            raise LLMResponseError("Missing boolean 'duplicate' in response", raw_response=str(data))
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            raise LLMResponseError("Non-numeric 'confidence' in response", raw_response=str(data))

        return PairJudgment(
            is_duplicate=duplicate,
            confidence=min(1.0, max(0.0, float(confidence))),
            score=score,
            method=self.method,
        )
