"""
Tests Package - Unit tests for Scholarship Ingest.
==================================================

Test modules:
- test_ingestion: Scraper, cleaner, text extractor tests
- test_normalize: Validators, deadlines, normalizer, funding tests
- test_dedup: Similarity, classifiers, engine tests
- test_pipeline: Batch orchestrator and service tests
- test_shared: Config, schemas, utils, LLM parsing tests
- test_cli: Command-line interface tests

Run tests with:
    pytest tests/
    pytest tests/ -m "not integration"
"""
