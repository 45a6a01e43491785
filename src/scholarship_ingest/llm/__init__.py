"""
LLM Module - Language-model capability for AI-assisted steps.
=============================================================

- client: LLMClient interface, GeminiClient, JSON response parsing
- prompts: System and user prompt templates
"""

from scholarship_ingest.llm.client import (
    GeminiClient,
    LLMClient,
    create_llm_client,
    parse_json_response,
)
from scholarship_ingest.llm.prompts import (
    build_deadline_prompt,
    build_duplicate_pair_prompt,
    build_funding_prompt,
    build_normalization_prompt,
)

__all__ = [
    # Client
    "LLMClient",
    "GeminiClient",
    "create_llm_client",
    "parse_json_response",
    # Prompts
    "build_normalization_prompt",
    "build_deadline_prompt",
    "build_duplicate_pair_prompt",
    "build_funding_prompt",
]
