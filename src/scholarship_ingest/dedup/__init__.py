"""
Dedup Module - Collapse near-duplicate scholarship records.
===========================================================

- similarity: Weighted rule-based record similarity
- classifiers: Pairwise duplicate judges (rules, AI)
- engine: Grouping, survivor selection and reporting
"""

from scholarship_ingest.dedup.similarity import RecordSimilarity, SimilarityWeights, jaccard
from scholarship_ingest.dedup.classifiers import (
    AIDuplicateClassifier,
    DuplicateClassifier,
    RuleBasedClassifier,
)
from scholarship_ingest.dedup.engine import (
    DeduplicationEngine,
    merge_group,
    validate_deduplication,
)

__all__ = [
    # Similarity
    "RecordSimilarity",
    "SimilarityWeights",
    "jaccard",
    # Classifiers
    "DuplicateClassifier",
    "RuleBasedClassifier",
    "AIDuplicateClassifier",
    # Engine
    "DeduplicationEngine",
    "merge_group",
    "validate_deduplication",
]
