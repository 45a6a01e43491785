"""
Normalizer Module - Ordered extraction strategies with a terminal fallback.
===========================================================================

The normalizer tries each Extractor in order and returns the first record
produced. The last strategy is always a FallbackExtractor, so normalization
of an ExtractedText never fails.
"""

from datetime import date
from typing import Optional

from scholarship_ingest.llm.client import LLMClient
from scholarship_ingest.normalize.extractors import AIExtractor, Extractor, FallbackExtractor
from scholarship_ingest.shared.errors import ExtractionError
from scholarship_ingest.shared.logging import get_logger
from scholarship_ingest.shared.schemas import ExtractedText, NormalizationResult

logger = get_logger(__name__)


class ScholarshipNormalizer:
    """
    Structured normalizer.

    Example:
        >>> normalizer = ScholarshipNormalizer.from_llm(llm=None)
        >>> result = normalizer.normalize(extracted)
        >>> result.strategy
        'fallback'
    """

    def __init__(self, extractors: Optional[list[Extractor]] = None):
        chain = list(extractors or [])
        if not chain or not isinstance(chain[-1], FallbackExtractor):
            chain.append(FallbackExtractor())
        self.extractors = chain

    @classmethod
    def from_llm(cls, llm: Optional[LLMClient]) -> "ScholarshipNormalizer":
        """Build the standard chain: AI (when a client exists), then fallback."""
        if llm is None:
            return cls([FallbackExtractor()])
        return cls([AIExtractor(llm), FallbackExtractor()])

    @property
    def strategy_names(self) -> list[str]:
        return [extractor.name for extractor in self.extractors]

    def normalize(
        self,
        extracted: ExtractedText,
        origin_key: Optional[str] = None,
        today: Optional[date] = None,
    ) -> NormalizationResult:
        """
        Normalize extracted text into a record.

        Args:
            extracted: Page text and metadata
            origin_key: Identity key when the text has no URL
            today: Reference date for deadline resolution

        Returns:
            NormalizationResult; ``success`` is True only when the primary
            strategy produced the record
        """
        last_error: Optional[str] = None

        for position, extractor in enumerate(self.extractors):
            try:
                record = extractor.extract(extracted, origin_key=origin_key, today=today)
            except ExtractionError as e:
                last_error = str(e)
                logger.warning(
                    f"Strategy '{extractor.name}' failed for {extracted.url or 'text input'}: {e}"
                )
                continue

            primary = position == 0 and not isinstance(extractor, FallbackExtractor)
            logger.debug(f"Normalized {extracted.url or 'text input'} with '{extractor.name}'")
            return NormalizationResult(
                success=primary,
                scholarship=record,
                strategy=extractor.name,
                error=None if primary else last_error,
            )

        # FallbackExtractor never raises
        raise ExtractionError("No extraction strategy produced a record")
