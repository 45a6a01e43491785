"""
Funding Module - Fully-funded classification.
=============================================

A scholarship counts as fully funded when it covers tuition plus living
costs (stipend, accommodation), often with travel or insurance. Partial or
ambiguous funding is classified as not fully funded.
"""

from typing import Any, Optional, Union

from scholarship_ingest.llm.client import LLMClient
from scholarship_ingest.llm.prompts import build_funding_prompt
from scholarship_ingest.shared.errors import LLMError, LLMResponseError
from scholarship_ingest.shared.logging import get_logger
from scholarship_ingest.shared.schemas import FundingClassification, ScholarshipRecord

logger = get_logger(__name__)

REASON_MAX_LENGTH = 160

FULL_FUNDING_KEYWORDS = [
    "full funding",
    "fully funded",
    "full scholarship",
    "tuition and living",
    "tuition + stipend",
    "tuition and stipend",
    "living allowance",
    "accommodation provided",
    "travel allowance",
    "insurance covered",
    "monthly stipend",
    "living expenses covered",
]

PARTIAL_FUNDING_KEYWORDS = [
    "tuition only",
    "partial funding",
    "tuition waiver",
    "fee waiver",
    "tuition reduction",
    "partial scholarship",
]


def _clip_reason(reason: str) -> str:
    reason = reason.strip()
    if len(reason) <= REASON_MAX_LENGTH:
        return reason
    return reason[: REASON_MAX_LENGTH - 3] + "..."


class FundingClassifier:
    """
    Classifies records as fully funded, AI first with a keyword fallback.

    Example:
        >>> classifier = FundingClassifier(llm=None)
        >>> classifier.classify({"name": "Fully Funded Fellowship"}).is_fully_funded
        True
    """

    def __init__(self, llm: Optional[LLMClient] = None):
        self.llm = llm

    def classify_with_ai(self, item: dict[str, Any]) -> FundingClassification:
        """
        AI-only classification.

        Raises:
            LLMError: If no client is configured or the answer is malformed
        """
        if self.llm is None:
            raise LLMError("No language model configured")

        system_prompt, user_prompt = build_funding_prompt(item)
        data = self.llm.generate_json(system_prompt, user_prompt)

        funded = data.get("isFullyFunded")
        reason = data.get("reason")
        if not isinstance(funded, bool) or not isinstance(reason, str):
            raise LLMResponseError(
                "Invalid classification response structure", raw_response=str(data)
            )
        return FundingClassification(
            is_fully_funded=funded, reason=_clip_reason(reason), method="ai"
        )

    def classify_with_rules(self, item: dict[str, Any]) -> FundingClassification:
        """Keyword classification; partial-funding phrasing takes priority."""
        text = " ".join(
            str(item.get(field) or "") for field in ("name", "eligibility", "description", "amount")
        ).lower()

        if any(keyword in text for keyword in PARTIAL_FUNDING_KEYWORDS):
            return FundingClassification(
                is_fully_funded=False,
                reason="Contains keywords indicating partial funding only",
            )
        if any(keyword in text for keyword in FULL_FUNDING_KEYWORDS):
            return FundingClassification(
                is_fully_funded=True,
                reason="Contains keywords indicating comprehensive funding coverage",
            )
        return FundingClassification(
            is_fully_funded=False,
            reason="Funding details unclear or insufficient information provided",
        )

    def classify(self, record: Union[ScholarshipRecord, dict[str, Any]]) -> FundingClassification:
        """Classify a record, never raising."""
        item = record.to_public_dict() if isinstance(record, ScholarshipRecord) else dict(record)

        if self.llm is not None:
            try:
                return self.classify_with_ai(item)
            except LLMError as e:
                logger.warning(f"AI funding classification failed, using keywords: {e}")

        return self.classify_with_rules(item)
