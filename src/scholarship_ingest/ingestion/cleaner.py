"""
Cleaner Module - Text cleaning and normalization.
=================================================

Cleans text pulled out of scholarship pages before it is handed to the
normalizer:
- Decode leftover HTML entities
- Normalize Unicode and drop control characters
- Remove boilerplate lines (cookie banners, copyright footers)
- Collapse whitespace
"""

import html
import re
import unicodedata
from dataclasses import dataclass, field
from typing import Optional

from scholarship_ingest.shared.logging import get_logger

logger = get_logger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Cleaning Configuration
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class CleanerConfig:
    """Configuration for text cleaning operations."""

    decode_html_entities: bool = True
    normalize_unicode: bool = True
    unicode_form: str = "NFKC"
    remove_control_chars: bool = True

    # Single-line output suits page bodies; keep newlines for multi-part text
    collapse_to_single_line: bool = True

    # Boilerplate patterns to remove (regex)
    remove_patterns: list[str] = field(default_factory=lambda: [
        r"©\s*\d{4}[^.\n]*?All rights reserved\.?",
        r"We use cookies[^.\n]*\.",
        r"Back to top",
        r"Skip to (?:main )?content",
    ])


# ─────────────────────────────────────────────────────────────────────────────
# Text Cleaner Class
# ─────────────────────────────────────────────────────────────────────────────


class TextCleaner:
    """
    Text cleaner with configurable cleaning operations.

    Example:
        >>> cleaner = TextCleaner()
        >>> cleaner.clean("Apply&nbsp;by   March 1,\\n 2025")
        'Apply by March 1, 2025'
    """

    def __init__(self, config: Optional[CleanerConfig] = None):
        self.config = config or CleanerConfig()

        self._compiled_patterns = [
            re.compile(pattern, re.IGNORECASE)
            for pattern in self.config.remove_patterns
        ]
        self._any_whitespace = re.compile(r"\s+")
        self._inline_whitespace = re.compile(r"[ \t\f\v]+")
        self._multiple_newlines = re.compile(r"\n{3,}")

    def clean(self, text: Optional[str]) -> str:
        """
        Clean a text string.

        Args:
            text: Text to clean (can be None)

        Returns:
            Cleaned text (empty string if input is None or blank)
        """
        if not text:
            return ""

        result = text

        if self.config.decode_html_entities:
            result = html.unescape(result)

        if self.config.normalize_unicode:
            result = unicodedata.normalize(self.config.unicode_form, result)

        if self.config.remove_control_chars:
            result = self._remove_control_chars(result)

        for pattern in self._compiled_patterns:
            result = pattern.sub(" ", result)

        if self.config.collapse_to_single_line:
            result = self._any_whitespace.sub(" ", result)
        else:
            result = self._inline_whitespace.sub(" ", result)
            result = "\n".join(line.strip() for line in result.split("\n"))
            result = self._multiple_newlines.sub("\n\n", result)

        return result.strip()

    def _remove_control_chars(self, text: str) -> str:
        """Remove control characters except common whitespace."""
        return "".join(
            char for char in text
            if char in "\t\n\r " or unicodedata.category(char) != "Cc"
        )

