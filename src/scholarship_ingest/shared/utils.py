"""
Utilities Module - Common helper functions.
==========================================

Provides utility functions for:
- Hashing (SHA256 for deterministic record identity)
- URL helpers (domain extraction, absolute-URL checks)
- Text helpers (whitespace collapsing, tokenization)
- JSON file I/O for record sets
"""

import hashlib
import json
import re
from pathlib import Path
from typing import Any, Optional, TypeVar
from urllib.parse import urlparse

from pydantic import BaseModel

from scholarship_ingest.shared.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)

_WHITESPACE = re.compile(r"\s+")

# Legal host characters, IDN and IPv6 literals included
_HOST = re.compile(r"[\w.\-:%]+")


# ─────────────────────────────────────────────────────────────────────────────
# Hashing Functions
# ─────────────────────────────────────────────────────────────────────────────


def compute_hash(text: str, algorithm: str = "sha256") -> str:
    """
    Compute hash of text content.

    Args:
        text: Text to hash
        algorithm: Hash algorithm (default: sha256)

    Returns:
        Hexadecimal hash string

    Example:
        >>> compute_hash("hello world")
        'b94d27b9934d3e08a52e52d7da7dabfac484efe37a5380ee9088f7ace2efcde9'
    """
    hasher = hashlib.new(algorithm)
    hasher.update(text.encode("utf-8"))
    return hasher.hexdigest()


# ─────────────────────────────────────────────────────────────────────────────
# URL Helpers
# ─────────────────────────────────────────────────────────────────────────────


def is_absolute_http_url(value: Any) -> bool:
    """Check whether a value is an absolute http(s) URL with a well-formed host."""
    if not isinstance(value, str) or not value.strip():
        return False
    try:
        parsed = urlparse(value.strip())
    except ValueError:
        return False
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return False
    if _WHITESPACE.search(parsed.netloc):
        return False
    try:
        parsed.port
    except ValueError:
        return False
    host = parsed.hostname
    return bool(host) and _HOST.fullmatch(host) is not None


def extract_domain(url: Optional[str]) -> Optional[str]:
    """
    Extract the host name from a URL.

    Example:
        >>> extract_domain("https://www.daad.de/en/scholarships")
        'www.daad.de'
    """
    if not url:
        return None
    try:
        host = urlparse(url.strip()).hostname
    except ValueError:
        return None
    return host or None


# ─────────────────────────────────────────────────────────────────────────────
# Text Helpers
# ─────────────────────────────────────────────────────────────────────────────


def collapse_whitespace(text: str) -> str:
    """Collapse every whitespace run to a single space and strip the ends."""
    return _WHITESPACE.sub(" ", text).strip()


def tokenize(text: Optional[str]) -> set[str]:
    """Lower-cased whitespace token set of a string."""
    if not text:
        return set()
    return set(text.lower().split())


# ─────────────────────────────────────────────────────────────────────────────
# JSON File I/O
# ─────────────────────────────────────────────────────────────────────────────


def load_json(file_path: Path) -> Any:
    """
    Load data from a JSON file.

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If file is not valid JSON
    """
    with open(Path(file_path), "r", encoding="utf-8") as f:
        return json.load(f)


def save_json(file_path: Path, data: Any, indent: int = 2) -> None:
    """Save JSON-serializable data, creating parent directories."""
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    with open(file_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent, ensure_ascii=False, default=str)

    logger.debug(f"Saved JSON to {file_path}")


def load_models_from_json(file_path: Path, model_class: type[T]) -> list[T]:
    """
    Load a list of Pydantic models from a JSON file.

    A file holding a single object is treated as a one-element list.
    """
    data = load_json(file_path)
    if not isinstance(data, list):
        data = [data]
    return [model_class.model_validate(item) for item in data]


def dump_models(models: list[BaseModel]) -> list[dict[str, Any]]:
    """Serialize models to their external (camelCase) JSON shape."""
    return [model.model_dump(mode="json", by_alias=True) for model in models]
