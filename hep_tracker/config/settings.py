import os
from pathlib import Path
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_database_url() -> str:
    """Get database URL, using absolute path for SQLite to avoid path resolution issues.

    The SQLite file is for local development only. Point DATABASE_URL at a
    server database, or switch RECORD_STORE to airtable, for real deployments.
    """
    db_url = os.getenv("DATABASE_URL", "")
    if db_url:
        logger.info(f"Using DATABASE_URL from environment: {db_url}")
        return db_url

    db_path = Path(__file__).parent.parent.parent / "hep_tracker.db"
    abs_path = db_path.resolve()
    db_url = f"sqlite:///{abs_path}"
    logger.debug(f"Using SQLite record store (LOCAL DEV ONLY): {db_url}")
    return db_url


class Settings(BaseSettings):
    record_store: Literal["sql", "airtable"] = Field(default="sql", validation_alias="RECORD_STORE")
    airtable_api_key: str = Field(default="", validation_alias="AIRTABLE_API_KEY")
    airtable_base_id: str = Field(default="", validation_alias="AIRTABLE_BASE_ID")
    airtable_api_url: str = Field(default="https://api.airtable.com/v0", validation_alias="AIRTABLE_API_URL")
    database_url: str = Field(
        default_factory=get_database_url,
        validation_alias="DATABASE_URL",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")
    local_timezone: str = Field(
        default="UTC",
        validation_alias="LOCAL_TIMEZONE",
        description="IANA timezone that defines 'today' for calendar days",
    )
    week_starts_on: int = Field(
        default=6,
        ge=0,
        le=6,
        validation_alias="WEEK_STARTS_ON",
        description="First day of the displayed week (0=Monday ... 6=Sunday)",
    )
    gateway_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        validation_alias="GATEWAY_TIMEOUT_SECONDS",
        description="Upper bound for a single record store call",
    )
    commit_max_attempts: int = Field(
        default=1,
        ge=1,
        le=5,
        validation_alias="COMMIT_MAX_ATTEMPTS",
        description="Attempts per create/delete when saving a day's selection",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(valid_levels)}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("local_timezone")
    @classmethod
    def validate_local_timezone(cls, value: str) -> str:
        """Fall back to UTC when the configured zone is not a known IANA name."""
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown LOCAL_TIMEZONE '{value}'. Defaulting to UTC.")
            return "UTC"
        return value

    @model_validator(mode="after")
    def validate_airtable_credentials(self) -> "Settings":
        """Warn when the hosted record store is selected without credentials.

        The service still starts; every gateway call will fail with
        GatewayUnavailable until the credentials are provided.
        """
        if self.record_store == "airtable" and not (self.airtable_api_key and self.airtable_base_id):
            logger.warning(
                "RECORD_STORE=airtable but AIRTABLE_API_KEY and/or AIRTABLE_BASE_ID are not set. "
                "Record store calls will fail until they are provided."
            )
        return self


settings = Settings()
