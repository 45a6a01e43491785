"""
Configuration Module - Load and validate application settings.
==============================================================

Loads configuration from:
1. config/settings.yaml (defaults)
2. Environment variables from .env file
3. Environment variables from system

Environment variables override YAML defaults.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file early
load_dotenv()


# Find project root (where pyproject.toml is located)
def _find_project_root() -> Path:
    """Find the project root directory by looking for pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    # Fallback to current working directory
    return Path.cwd()


PROJECT_ROOT = _find_project_root()
CONFIG_DIR = PROJECT_ROOT / "config"
DEFAULT_CONFIG_FILE = CONFIG_DIR / "settings.yaml"


# ─────────────────────────────────────────────────────────────────────────────
# Nested Configuration Models
# ─────────────────────────────────────────────────────────────────────────────


class ScrapingConfig(BaseModel):
    """Page fetching and text extraction settings."""

    timeout: int = 30
    max_retries: int = 3
    retry_min_wait: int = 1
    retry_max_wait: int = 10
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    )
    max_text_chars: int = 10_000
    removed_selectors: list[str] = Field(
        default_factory=lambda: [
            "script",
            "style",
            "noscript",
            "nav",
            "header",
            "footer",
            "aside",
            ".navigation",
            ".menu",
            ".sidebar",
        ]
    )


class GenerationConfig(BaseModel):
    """LLM generation settings."""

    enabled: bool = True
    model_name: str = "gemini-2.0-flash"
    temperature: float = 0.1
    max_output_tokens: int = 1024
    request_timeout: int = 30
    max_retries: int = 2


class NormalizationConfig(BaseModel):
    """Record normalization settings."""

    eligibility_max_length: int = 220
    eligibility_placeholder: str = "Eligibility requirements not specified"
    fallback_eligibility: str = "Please visit the official page for eligibility requirements"
    fallback_name: str = "Scholarship Opportunity"
    unknown_name: str = "Unknown Scholarship"

    @field_validator("eligibility_max_length")
    @classmethod
    def clamp_eligibility_length(cls, v: int) -> int:
        """The record schema caps eligibility at 220 characters; room is kept for the ellipsis."""
        return max(4, min(v, 220))


class DeadlineConfig(BaseModel):
    """Deadline parsing settings."""

    varies_keywords: list[str] = Field(
        default_factory=lambda: [
            "varies",
            "rolling",
            "ongoing",
            "continuous",
            "open",
            "no deadline",
            "flexible",
            "year-round",
            "anytime",
        ]
    )


class DedupConfig(BaseModel):
    """Deduplication settings."""

    method: str = "hybrid"
    threshold: float = 0.7
    ambiguous_low: float = 0.5
    ambiguous_high: float = 0.85
    likely_duplicate_band: float = 0.5

    @field_validator("threshold", "ambiguous_low", "ambiguous_high", "likely_duplicate_band")
    @classmethod
    def validate_unit_interval(cls, v: float) -> float:
        """Scores live in [0, 1]."""
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"must be between 0 and 1, got {v}")
        return v


class BatchConfig(BaseModel):
    """Batch orchestration settings."""

    concurrency: int = 3
    delay_seconds: float = 2.0


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = "INFO"
    format: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    rich_console: bool = True
    file: str = ""


# ─────────────────────────────────────────────────────────────────────────────
# Main Settings Class
# ─────────────────────────────────────────────────────────────────────────────


class Settings(BaseSettings):
    """
    Main application settings.

    Loads from:
    1. config/settings.yaml (defaults)
    2. Environment variables

    Environment variables override YAML settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # API Keys (from environment only)
    gemini_api_key: str = Field(default="", validation_alias="GEMINI_API_KEY")

    # Top-level environment overrides
    gemini_model: Optional[str] = Field(default=None, validation_alias="GEMINI_MODEL")
    dedup_threshold: Optional[float] = Field(default=None, validation_alias="DEDUP_THRESHOLD")
    batch_concurrency: Optional[int] = Field(default=None, validation_alias="BATCH_CONCURRENCY")
    log_level: Optional[str] = Field(default=None, validation_alias="LOG_LEVEL")

    # Nested configurations (from YAML)
    scraping: ScrapingConfig = Field(default_factory=ScrapingConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    normalization: NormalizationConfig = Field(default_factory=NormalizationConfig)
    deadline: DeadlineConfig = Field(default_factory=DeadlineConfig)
    dedup: DedupConfig = Field(default_factory=DedupConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("gemini_api_key", mode="before")
    @classmethod
    def validate_api_key(cls, v: Any) -> str:
        """Allow empty API key; AI steps then fall back to rules."""
        if v is None:
            return ""
        return str(v)

    @property
    def project_root(self) -> Path:
        """Get the project root directory."""
        return PROJECT_ROOT

    @property
    def ai_available(self) -> bool:
        """Whether AI-assisted steps can run at all."""
        return self.generation.enabled and bool(self.gemini_api_key)

    def get_effective_model(self) -> str:
        """Get the effective Gemini model (env override or config)."""
        return self.gemini_model or self.generation.model_name

    def get_effective_threshold(self) -> float:
        """Get the effective duplicate threshold (env override or config)."""
        if self.dedup_threshold is not None:
            return self.dedup_threshold
        return self.dedup.threshold

    def get_effective_concurrency(self) -> int:
        """Get the effective batch concurrency (env override or config)."""
        if self.batch_concurrency is not None:
            return self.batch_concurrency
        return self.batch.concurrency

    def get_effective_log_level(self) -> str:
        """Get the effective log level (env override or config)."""
        if self.log_level:
            return self.log_level.upper()
        return self.logging.level.upper()


def _load_yaml_config(config_path: Path) -> dict[str, Any]:
    """Load configuration from YAML file."""
    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
        return data if data else {}


def _create_settings(config_path: Optional[Path] = None) -> Settings:
    """Create settings instance by merging YAML defaults with environment."""
    if config_path is None:
        config_path = DEFAULT_CONFIG_FILE

    yaml_config = _load_yaml_config(config_path)

    # YAML provides defaults, env vars override
    return Settings(**yaml_config)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get the singleton settings instance.

    Returns:
        Settings instance with merged configuration

    Example:
        >>> settings = get_settings()
        >>> print(settings.dedup.threshold)
        0.7
    """
    return _create_settings()


def load_settings(config_path: Path) -> Settings:
    """Load settings from an explicit YAML file, bypassing the cache."""
    return _create_settings(config_path)
