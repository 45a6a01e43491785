"""
Scholarship Ingest - Scholarship record ingestion, normalization and deduplication
==================================================================================

Turns raw scholarship web pages (or free-text deadline snippets) into strict,
schema-conformant scholarship records, and collapses near-duplicate records
gathered from independent sources into one canonical entry.

Pipeline:
    URL → fetch → text extraction → AI / fallback normalization → field validation
    many records → similarity scoring → deduplicated set

An AI-assisted step (Gemini) is used where available; every AI step has a
deterministic rule-based fallback.
"""

__version__ = "0.1.0"
__author__ = "Scholarship Ingest Team"
__license__ = "MIT"

# Public API - lazy imports to avoid circular dependencies and speed up startup
__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    # Main modules (imported on demand)
    "shared",
    "ingestion",
    "llm",
    "normalize",
    "dedup",
    "pipeline",
    "cli",
]
