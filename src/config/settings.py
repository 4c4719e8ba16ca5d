import logging
from typing import List, Optional

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_STANDINGS_URL = (
    "https://nihlstats.wordpress.com/2025/07/22/south-2-wilkinson-tables-5/"
)


class AppSettings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    # Webflow Configuration
    webflow_api_token: str = Field(..., description="Bearer token for the Webflow API.")
    webflow_collection_id: str = Field(
        ..., description="ID of the CMS collection holding one item per team."
    )
    webflow_site_id: Optional[str] = Field(
        None, description="Webflow site ID (informational only)."
    )
    webflow_api_base_url: HttpUrl = Field(
        "https://api.webflow.com/v2", description="Base URL of the Webflow v2 API."
    )

    # Source page
    standings_url: HttpUrl = Field(
        DEFAULT_STANDINGS_URL, description="Page embedding the standings table."
    )
    reference_team_names: List[str] = Field(
        default_factory=list,
        description="Extra team names used to recognise the standings table.",
    )

    # Sync behaviour
    write_delay_seconds: float = Field(
        0.2,
        ge=0,
        description="Pause between item writes to respect the CMS rate limit.",
    )
    request_timeout_seconds: float = Field(
        30.0, gt=0, description="Timeout for every HTTP request."
    )
    dry_run: bool = Field(
        False, description="Parse and match, but skip all CMS writes and publishing."
    )

    # Logging Configuration
    log_level: str = Field(
        "INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."
    )

    # Pydantic Settings Configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )


def load_settings(**overrides) -> AppSettings:
    """Loads and validates application settings."""
    try:
        settings = AppSettings(**overrides)
        log_level_upper = settings.log_level.upper()
        # Validate log_level even if loaded from .env
        if log_level_upper not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            logging.warning(
                f"Invalid LOG_LEVEL '{settings.log_level}' found in .env or default. Using INFO."
            )
            settings.log_level = "INFO"
        else:
            settings.log_level = log_level_upper
        return settings
    except Exception as e:
        logging.exception(f"Error loading application settings: {e}")
        raise SystemExit("Failed to load application settings. Exiting.")
