"""Configuration module for the pipeline CRM application."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import urlparse

from dotenv import load_dotenv

from app.core.exceptions import ConfigurationError

load_dotenv()

APPROVAL_STAGE_SPELLINGS = ("Approved", "Demo Approved")
PHASE3_ENTRY_SPELLINGS = ("Negotiating", "Deposit Paid")


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Config:
    """Runtime configuration with validation."""

    APP_NAME: str
    APP_VERSION: str
    ENV: str
    DEBUG: bool
    DATABASE_URL: str
    API_HOST: str
    API_PORT: int
    API_PREFIX: str
    LOG_LEVEL: str
    LOG_FILE: str
    SAVE_DEBOUNCE_SECONDS: float
    APPROVAL_STAGE_LABEL: str
    PHASE3_ENTRY_STAGE: str
    CURRENCY_SYMBOL: str

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"


def _build_config(env: str | None = None) -> Config:
    resolved_env = (env or os.getenv("ENV", "development")).strip().lower()
    debug = _as_bool(os.getenv("DEBUG"), default=(resolved_env != "production"))

    config = Config(
        APP_NAME="PipelineCRM",
        APP_VERSION=os.getenv("APP_VERSION", "1.0.0"),
        ENV=resolved_env,
        DEBUG=debug if resolved_env != "production" else False,
        DATABASE_URL=os.getenv("DATABASE_URL", "sqlite:///./pipeline_crm.db"),
        API_HOST=os.getenv("API_HOST", "0.0.0.0"),
        API_PORT=int(os.getenv("API_PORT", "8000")),
        API_PREFIX=os.getenv("API_PREFIX", "/api/v1"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
        LOG_FILE=os.getenv("LOG_FILE", ""),
        SAVE_DEBOUNCE_SECONDS=float(os.getenv("SAVE_DEBOUNCE_SECONDS", "0.5")),
        APPROVAL_STAGE_LABEL=os.getenv("APPROVAL_STAGE_LABEL", "Approved").strip(),
        PHASE3_ENTRY_STAGE=os.getenv("PHASE3_ENTRY_STAGE", "Negotiating").strip(),
        CURRENCY_SYMBOL=os.getenv("CURRENCY_SYMBOL", "₱"),
    )
    _validate_config(config)
    return config


def _validate_database_url(database_url: str) -> None:
    parsed = urlparse(database_url)
    if parsed.scheme not in {"sqlite", "postgresql", "postgresql+psycopg2"}:
        raise ConfigurationError(
            "DATABASE_URL must use sqlite:// or postgresql:// style URL."
        )
    if parsed.scheme.startswith("postgresql") and not parsed.hostname:
        raise ConfigurationError("PostgreSQL DATABASE_URL is missing hostname.")


def _validate_config(config: Config) -> None:
    _validate_database_url(config.DATABASE_URL)

    if config.SAVE_DEBOUNCE_SECONDS <= 0 or config.SAVE_DEBOUNCE_SECONDS > 10:
        raise ConfigurationError("SAVE_DEBOUNCE_SECONDS must be > 0 and <= 10.")
    if config.LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ConfigurationError("LOG_LEVEL must be one of DEBUG/INFO/WARNING/ERROR/CRITICAL.")
    if config.APPROVAL_STAGE_LABEL not in APPROVAL_STAGE_SPELLINGS:
        raise ConfigurationError(
            f"APPROVAL_STAGE_LABEL must be one of {', '.join(APPROVAL_STAGE_SPELLINGS)}."
        )
    if config.PHASE3_ENTRY_STAGE not in PHASE3_ENTRY_SPELLINGS:
        raise ConfigurationError(
            f"PHASE3_ENTRY_STAGE must be one of {', '.join(PHASE3_ENTRY_SPELLINGS)}."
        )
    if config.is_production and "change_me" in config.DATABASE_URL.lower():
        raise ConfigurationError("Production DATABASE_URL uses placeholder credentials.")


@lru_cache(maxsize=8)
def get_config(env: str | None = None) -> Config:
    """Get validated configuration for the requested environment."""
    return _build_config(env)
