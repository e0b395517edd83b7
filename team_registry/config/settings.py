import logging

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    # Registry File
    registry_path: str = Field(
        "teamdb/teams.json", description="Path of the team registry JSON file."
    )

    # Rankings Source
    rankings_base_url: str = Field(
        "https://www.vlr.gg/rankings",
        description="Base URL the per-region ranking paths are appended to.",
    )
    region_top_n: int = Field(
        30, ge=1, description="How many ranked teams to keep per region."
    )
    region_delay_seconds: float = Field(
        0.8,
        ge=0,
        description="Pause between two region requests (be gentle to the source).",
    )

    # HTTP Client
    request_timeout_seconds: float = Field(
        30.0, gt=0, description="Timeout for a single ranking page request."
    )
    max_request_attempts: int = Field(
        4, ge=1, description="Total attempts per request, including retries."
    )
    user_agent: str = Field(
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_5) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/125 Safari/537.36",
        description="User-Agent header sent with ranking page requests.",
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


def load_settings() -> AppSettings:
    """Loads and validates application settings."""
    try:
        settings = AppSettings()
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


settings: AppSettings = load_settings()
