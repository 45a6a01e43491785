"""
Extractors Module - Strategies that turn page text into a candidate record.
===========================================================================

Provides:
- Extractor: abstract strategy interface
- AIExtractor: language-model extraction, validated against a loose payload
- FallbackExtractor: title + origin URL only; never fails

Every strategy finishes with ``build_record`` so the record invariants hold
whichever strategy produced it.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from scholarship_ingest.llm.client import LLMClient
from scholarship_ingest.llm.prompts import build_normalization_prompt
from scholarship_ingest.normalize.validators import build_record
from scholarship_ingest.shared.config import get_settings
from scholarship_ingest.shared.errors import ExtractionError, LLMError
from scholarship_ingest.shared.logging import get_logger
from scholarship_ingest.shared.schemas import Degree, ExtractedText, ScholarshipRecord

logger = get_logger(__name__)


class ScholarshipPayload(BaseModel):
    """
    Loose shape of a model-produced record.

    Types are checked, values are not: the field validators normalize them
    afterwards. Unknown keys (including any proposed ``id``) are ignored.
    """

    name: Optional[str] = None
    country: Optional[str] = None
    degree: Optional[str] = None
    eligibility: Optional[str] = None
    deadline: Optional[str] = None
    link: Optional[str] = None
    source: Optional[str] = None
    is_fully_funded: Optional[bool] = Field(default=None, alias="isFullyFunded")
    amount: Optional[Union[str, int, float]] = None
    provider: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ─────────────────────────────────────────────────────────────────────────────
# Abstract Base Class
# ─────────────────────────────────────────────────────────────────────────────


class Extractor(ABC):
    """
    Abstract extraction strategy.

    Implementations either return a record or raise ExtractionError.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Strategy identifier reported in results."""
        pass

    @abstractmethod
    def extract(
        self,
        extracted: ExtractedText,
        origin_key: Optional[str] = None,
        today: Optional[date] = None,
    ) -> ScholarshipRecord:
        """
        Produce a candidate record from extracted text.

        Args:
            extracted: Page text and metadata
            origin_key: Identity key when the text has no URL
            today: Reference date for deadline resolution

        Raises:
            ExtractionError: If this strategy cannot produce a record
        """
        pass


# ─────────────────────────────────────────────────────────────────────────────
# Implementations
# ─────────────────────────────────────────────────────────────────────────────


class AIExtractor(Extractor):
    """Language-model extraction strategy."""

    def __init__(self, llm: LLMClient):
        self.llm = llm

    @property
    def name(self) -> str:
        return "ai"

    def extract(
        self,
        extracted: ExtractedText,
        origin_key: Optional[str] = None,
        today: Optional[date] = None,
    ) -> ScholarshipRecord:
        system_prompt, user_prompt = build_normalization_prompt(
            extracted.text, extracted.source_domain
        )

        try:
            data = self.llm.generate_json(system_prompt, user_prompt)
            payload = ScholarshipPayload.model_validate(data)
        except LLMError as e:
            raise ExtractionError(f"AI extraction failed: {e}") from e
        except ValidationError as e:
            raise ExtractionError(
                f"AI payload failed validation: {e.error_count()} error(s)"
            ) from e

        fields = payload.model_dump(exclude_none=True)
        if "amount" in fields:
            fields["amount"] = str(fields["amount"])

        return build_record(
            fields,
            origin_url=extracted.url,
            title=extracted.title,
            origin_key=origin_key,
            today=today,
        )


class FallbackExtractor(Extractor):
    """
    Terminal strategy: a minimal record from the page title and origin URL.
    """

    @property
    def name(self) -> str:
        return "fallback"

    def extract(
        self,
        extracted: ExtractedText,
        origin_key: Optional[str] = None,
        today: Optional[date] = None,
    ) -> ScholarshipRecord:
        normalization = get_settings().normalization
        data = {
            "name": extracted.title or normalization.fallback_name,
            "degree": Degree.ANY.value,
            "eligibility": normalization.fallback_eligibility,
            "deadline": None,
            "link": extracted.url,
            "is_fully_funded": False,
        }
        return build_record(
            data,
            origin_url=extracted.url,
            title=extracted.title,
            origin_key=origin_key,
            today=today,
        )
