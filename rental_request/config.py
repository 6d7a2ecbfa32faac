"""
Centralized configuration with environment variable overrides.

Backend URLs, timeouts, form thresholds and user-facing error messages
are configurable here. Nothing is hardcoded in the controller or clients.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from rental_request.logging_context import SESSION_LOG_FORMAT, install_session_filter

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class LeadApiConfig:
    """Remote lead store settings."""

    api_base: str = os.getenv("RENTAL_API_BASE", "http://localhost:3000")
    api_prefix: str = os.getenv("RENTAL_API_PREFIX", "/api/v1")
    forms_base: str = os.getenv("RENTAL_FORMS_SUBMIT_URL", "")
    timeout_sec: float = _safe_float("RENTAL_API_TIMEOUT", "30.0")
    recreate_timeout_sec: float = _safe_float("RENTAL_RECREATE_TIMEOUT", "10.0")
    client_type: str = os.getenv("RENTAL_CLIENT_TYPE", "mobile-app")
    platform: str = os.getenv("RENTAL_PLATFORM", "python")


@dataclass(frozen=True)
class CatalogConfig:
    """Sanity content catalog settings."""

    project_id: str = os.getenv("SANITY_PROJECT_ID", "")
    dataset: str = os.getenv("SANITY_DATASET", "production")
    api_version: str = os.getenv("SANITY_API_VERSION", "2024-01-01")
    read_token: str = os.getenv("SANITY_API_READ_TOKEN", "")
    timeout_sec: float = _safe_float("SANITY_TIMEOUT", "15.0")


@dataclass(frozen=True)
class FormConfig:
    """Rental form thresholds and messages."""

    min_zip_digits: int = _safe_int("MIN_ZIP_DIGITS", "5")
    max_zip_digits: int = _safe_int("MAX_ZIP_DIGITS", "10")
    phone_digits: int = _safe_int("PHONE_DIGITS", "10")
    draft_store_path: str = os.getenv("DRAFT_STORE_PATH", ".rental_draft.json")
    rate_limit_message: str = os.getenv(
        "RATE_LIMIT_MESSAGE", "Too many requests. Please try again in 15 minutes."
    )
    generic_error_message: str = os.getenv(
        "GENERIC_ERROR_MESSAGE", "Failed to submit. Please try again later."
    )


@dataclass(frozen=True)
class SiteConfig:
    """Public site links shown after a successful request."""

    base_url: str = os.getenv("EQUIPTER_BASE_URL", "https://equipter.com")
    rent_url: str = os.getenv("EQUIPTER_RENT_URL", "https://equipter.com/rent")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    lead_api: LeadApiConfig = field(default_factory=LeadApiConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    form: FormConfig = field(default_factory=FormConfig)
    site: SiteConfig = field(default_factory=SiteConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    client_name: str = os.getenv("CLIENT_NAME", "EquipterRentalApp")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.lead_api.timeout_sec <= 0:
        raise ValueError(
            f"RENTAL_API_TIMEOUT must be > 0, got {config.lead_api.timeout_sec}"
        )
    if config.lead_api.recreate_timeout_sec <= 0:
        raise ValueError(
            "RENTAL_RECREATE_TIMEOUT must be > 0, "
            f"got {config.lead_api.recreate_timeout_sec}"
        )
    if config.catalog.timeout_sec <= 0:
        raise ValueError(
            f"SANITY_TIMEOUT must be > 0, got {config.catalog.timeout_sec}"
        )
    if config.form.max_zip_digits < 1:
        raise ValueError(
            f"MAX_ZIP_DIGITS must be >= 1, got {config.form.max_zip_digits}"
        )
    if not 1 <= config.form.min_zip_digits <= config.form.max_zip_digits:
        raise ValueError(
            "MIN_ZIP_DIGITS must be between 1 and MAX_ZIP_DIGITS, "
            f"got {config.form.min_zip_digits}"
        )
    if config.form.phone_digits < 7:
        raise ValueError(
            f"PHONE_DIGITS must be >= 7, got {config.form.phone_digits}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format=SESSION_LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    install_session_filter()
    logger.info("Configuration loaded for '%s'", config.client_name)
    return config


# Singleton instance
settings = load_config()
