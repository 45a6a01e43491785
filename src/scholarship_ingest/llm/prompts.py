"""
Prompts Module - Prompt templates for AI-assisted steps.
========================================================

Every template asks for JSON only. The system prompts pin the output shape
and forbid invented values; the builders fill in per-request content and
return ``(system_prompt, user_prompt)`` pairs.
"""

import json
from datetime import date
from typing import Any, Optional

# ─────────────────────────────────────────────────────────────────────────────
# System Prompts
# ─────────────────────────────────────────────────────────────────────────────


NORMALIZATION_SYSTEM_PROMPT = """You convert raw scholarship page text into a normalized JSON object. If something is missing, set null. Never invent URLs or amounts.

Schema:
{ "name": string, "country": string|null, "degree": "Bachelor"|"Master"|"PhD"|"Any", "eligibility": string, "deadline": "YYYY-MM-DD"|"varies"|null, "link": string|null, "isFullyFunded": boolean, "amount": string|null, "provider": string|null }

Constraints:
- eligibility ≤ 220 chars (concise bullets compressed to a sentence).
- link must be the official apply/info URL found in the text.
- degree must be exactly one of the listed values; use "Any" when several or none apply.
- Respect the schema. Return JSON only."""


DEADLINE_SYSTEM_PROMPT = """Parse the application deadline into ISO YYYY-MM-DD or "varies". If multiple deadlines exist, pick the closest upcoming. Return JSON only: { "deadline": "YYYY-MM-DD" | "varies" }.

Rules:
- Rolling, ongoing or open-ended deadlines are "varies".
- If no date can be identified, return "varies".
- Never return a date that does not appear in the text."""


DUPLICATE_PAIR_SYSTEM_PROMPT = """You are a scholarship deduplication system. Decide whether two scholarship items describe the same scholarship program (for example the same award listed on several pages).

Compare based on: title similarity, organization, deadline, amount, requirements. Different intakes, degree levels or countries of the same provider are different programs.

Return JSON only: { "duplicate": true|false, "confidence": number between 0 and 1 }."""


FUNDING_SYSTEM_PROMPT = """You label if a scholarship is fully funded. Return JSON only: { "isFullyFunded": true|false, "reason": string }.

Rules:
- Fully funded includes tuition + stipend/living + often travel/insurance.
- If ambiguous or partial, return false. Reason ≤ 160 chars."""


# ─────────────────────────────────────────────────────────────────────────────
# User Prompt Templates
# ─────────────────────────────────────────────────────────────────────────────


NORMALIZATION_USER_TEMPLATE = """SOURCE_DOMAIN: {source_domain}
PAGE_TEXT:

{text}

Return JSON only per schema."""


DEADLINE_USER_TEMPLATE = """TODAY: {today}
TEXT: {text}"""


DUPLICATE_PAIR_USER_TEMPLATE = """ITEM A:
{item_a}

ITEM B:
{item_b}"""


FUNDING_USER_TEMPLATE = """ITEM:

{item}"""


def _to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


# ─────────────────────────────────────────────────────────────────────────────
# Prompt Builders
# ─────────────────────────────────────────────────────────────────────────────


def build_normalization_prompt(text: str, source_domain: Optional[str]) -> tuple[str, str]:
    """Prompt for turning page text into a record payload."""
    user_prompt = NORMALIZATION_USER_TEMPLATE.format(
        source_domain=source_domain or "unknown",
        text=text,
    )
    return NORMALIZATION_SYSTEM_PROMPT, user_prompt


def build_deadline_prompt(text: str, today: date) -> tuple[str, str]:
    """Prompt for resolving a free-text deadline."""
    user_prompt = DEADLINE_USER_TEMPLATE.format(today=today.isoformat(), text=text)
    return DEADLINE_SYSTEM_PROMPT, user_prompt


def build_duplicate_pair_prompt(item_a: dict[str, Any], item_b: dict[str, Any]) -> tuple[str, str]:
    """Prompt for a single duplicate judgment."""
    user_prompt = DUPLICATE_PAIR_USER_TEMPLATE.format(
        item_a=_to_json(item_a),
        item_b=_to_json(item_b),
    )
    return DUPLICATE_PAIR_SYSTEM_PROMPT, user_prompt


def build_funding_prompt(item: dict[str, Any]) -> tuple[str, str]:
    """Prompt for funding classification."""
    return FUNDING_SYSTEM_PROMPT, FUNDING_USER_TEMPLATE.format(item=_to_json(item))
