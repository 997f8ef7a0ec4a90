"""Configuration settings for the classroom scoring engine."""

import os
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv
from functools import lru_cache
import logging

load_dotenv()

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# AI CONFIGURATION
# ----------------------------------------------------------------------

class AIConfig(BaseSettings):
    """Judgment-service (OpenAI) configuration."""
    model_config = SettingsConfigDict(env_prefix="AI_", extra="ignore")

    openai_api_key: Optional[str] = os.getenv("OPENAI_API_KEY")
    openai_model: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

    # scoring should be as repeatable as the service allows
    temperature: float = 0.0
    max_tokens: int = 1024

    # deadline around a single judgment call
    timeout_seconds: float = 60.0
    max_retries: int = 0


# ----------------------------------------------------------------------
# SCORING CONFIGURATION
# ----------------------------------------------------------------------

class ScoringConfig(BaseSettings):
    """Defaults used by the rule scorer, dispatcher and aggregator."""
    model_config = SettingsConfigDict(env_prefix="SCORING_", extra="ignore")

    default_points: float = 1.0

    discovery_default_points: float = 10.0
    discovery_default_targets: int = 5

    # analytics max-points when a score result carries none
    objective_max_points: float = 10.0
    participation_max_points: float = 5.0

    photo_relevance_weight: float = 0.6
    puzzle_partial_band: float = 0.5

    max_concurrent_judgments: int = 8


# ----------------------------------------------------------------------
# LOGGING CONFIGURATION
# ----------------------------------------------------------------------

class LoggingConfig(BaseSettings):
    """Logging configuration."""
    model_config = SettingsConfigDict(env_prefix="LOG_", extra="ignore")

    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = os.getenv("LOG_FORMAT", "%(asctime)s [%(levelname)s] %(name)s: %(message)s")


# ----------------------------------------------------------------------
# APP SETTINGS
# ----------------------------------------------------------------------

class Settings(BaseSettings):
    """Main application settings."""
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    ai: AIConfig = Field(default_factory=AIConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# ----------------------------------------------------------------------
# Lazy accessors (cached singletons)
# ----------------------------------------------------------------------

@lru_cache()
def get_config() -> Settings:
    """Return global app configuration."""
    return Settings()


@lru_cache()
def get_ai_config() -> AIConfig:
    """Return judgment-service configuration."""
    return get_config().ai


@lru_cache()
def get_scoring_config() -> ScoringConfig:
    """Return scoring defaults."""
    return get_config().scoring


@lru_cache()
def get_logging_config() -> LoggingConfig:
    """Return logging configuration."""
    return get_config().logging


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for entrypoints."""
    cfg = get_logging_config()
    logging.basicConfig(
        level=getattr(logging, (level or cfg.level).upper(), logging.INFO),
        format=cfg.format,
    )
