"""
Pipeline Module - Entry points callers use.
===========================================

- service: ScholarshipService facade and create_service factory
- batch: Bounded-concurrency batch orchestration
"""

from scholarship_ingest.pipeline.batch import BatchOrchestrator, chunked
from scholarship_ingest.pipeline.service import ScholarshipService, create_service

__all__ = [
    "BatchOrchestrator",
    "chunked",
    "ScholarshipService",
    "create_service",
]
