"""
GapScope Configuration Module
=============================

Centralized configuration management using environment variables.
Supports both .env files and system environment variables.

Environment Variables:
    GAPSCOPE_DATA_DIR: Root of the JSON store (default: ./data)

    APPSTORE_COUNTRY: Storefront country code (default: us)
    APPSTORE_REVIEWS_PER_APP: Reviews fetched per app (default: 200)
    APPSTORE_REQUEST_TIMEOUT: HTTP timeout in seconds (default: 15)
    APPSTORE_PAGE_DELAY: Pause between review pages in seconds (default: 1.0)

    AI_INSIGHTS_ENABLED: Enable LLM enrichment (default: true)
    LLM_PROVIDER: openai | anthropic | auto (default: auto)
    LLM_MODEL: Model name override (default: provider default)
    OPENAI_API_KEY / ANTHROPIC_API_KEY: Provider credentials (optional)
    LLM_TIMEOUT_SECONDS: Timeout of one enrichment call (default: 30)
    AI_SAMPLE_SIZE: Reviews sent to the LLM (default: 20)
"""

import os
from dataclasses import dataclass, field
from typing import Optional
from pathlib import Path
from dotenv import load_dotenv


# Load environment variables from .env file if present
env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)
else:
    load_dotenv()


def get_env(key: str, default: Optional[str] = None, required: bool = False) -> Optional[str]:
    """
    Get environment variable with optional default and required validation.

    Args:
        key: Environment variable name
        default: Default value if not set
        required: If True, raises ValueError when not set

    Returns:
        Environment variable value or default

    Raises:
        ValueError: If required=True and variable is not set
    """
    value = os.getenv(key, default)
    if required and value is None:
        raise ValueError(f"Required environment variable '{key}' is not set")
    return value


def get_env_int(key: str, default: int) -> int:
    """Get environment variable as integer."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable '{key}' must be an integer, got: {value}")


def get_env_float(key: str, default: float) -> float:
    """Get environment variable as float."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Environment variable '{key}' must be a float, got: {value}")


def get_env_bool(key: str, default: bool) -> bool:
    """Get environment variable as boolean."""
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


@dataclass
class StorageConfig:
    """JSON store configuration."""

    data_dir: str = field(default_factory=lambda: get_env("GAPSCOPE_DATA_DIR", "./data"))

    @property
    def path(self) -> Path:
        return Path(self.data_dir)


@dataclass
class AppStoreConfig:
    """App Store client configuration."""

    country: str = field(default_factory=lambda: get_env("APPSTORE_COUNTRY", "us"))
    reviews_per_app: int = field(default_factory=lambda: get_env_int("APPSTORE_REVIEWS_PER_APP", 200))
    request_timeout: float = field(default_factory=lambda: get_env_float("APPSTORE_REQUEST_TIMEOUT", 15.0))
    page_delay: float = field(default_factory=lambda: get_env_float("APPSTORE_PAGE_DELAY", 1.0))

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.reviews_per_app < 1:
            raise ValueError(f"reviews_per_app must be >= 1, got {self.reviews_per_app}")
        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be positive, got {self.request_timeout}")
        if self.page_delay < 0:
            raise ValueError(f"page_delay must be >= 0, got {self.page_delay}")


@dataclass
class LLMConfig:
    """AI enrichment configuration."""

    enabled: bool = field(default_factory=lambda: get_env_bool("AI_INSIGHTS_ENABLED", True))
    provider: str = field(default_factory=lambda: get_env("LLM_PROVIDER", "auto"))
    model: Optional[str] = field(default_factory=lambda: get_env("LLM_MODEL"))
    openai_api_key: Optional[str] = field(default_factory=lambda: get_env("OPENAI_API_KEY"))
    anthropic_api_key: Optional[str] = field(default_factory=lambda: get_env("ANTHROPIC_API_KEY"))
    timeout_seconds: float = field(default_factory=lambda: get_env_float("LLM_TIMEOUT_SECONDS", 30.0))
    sample_size: int = field(default_factory=lambda: get_env_int("AI_SAMPLE_SIZE", 20))

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.provider not in ("auto", "openai", "anthropic"):
            raise ValueError(f"LLM_PROVIDER must be auto, openai or anthropic, got {self.provider!r}")
        if self.sample_size < 1:
            raise ValueError(f"sample_size must be >= 1, got {self.sample_size}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {self.timeout_seconds}")

    @property
    def has_credentials(self) -> bool:
        return bool(self.openai_api_key or self.anthropic_api_key)


@dataclass
class GapScopeConfig:
    """Main configuration container."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    app_store: AppStoreConfig = field(default_factory=AppStoreConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)


def load_config() -> GapScopeConfig:
    """
    Load configuration from the environment.

    Raises:
        ValueError: If a variable has an invalid value
    """
    return GapScopeConfig()
