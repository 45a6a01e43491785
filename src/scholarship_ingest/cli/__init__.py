"""
CLI Module - Command-line interface for Scholarship Ingest.
===========================================================

Usage:
    scholarship-ingest --help
    scholarship-ingest scrape https://example.org/award
    scholarship-ingest batch -f urls.txt --concurrency 3
    scholarship-ingest deadline "Applications close 1 March 2027"
    scholarship-ingest dedup records.json --method hybrid

Components:
- main: Typer CLI application
"""

from scholarship_ingest.cli.main import app, cli

__all__ = ["app", "cli"]
