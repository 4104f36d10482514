"""Bot configuration using Pydantic Settings"""

import logging
from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.models.guild_config import DEFAULT_TIMEZONE

logger = logging.getLogger(__name__)


class HappySettings(BaseSettings):
    """Happy Manager settings"""

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parent.parent.parent / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Discord
    discord_token: str = Field(..., description="Discord bot token")
    discord_guild_id: str = Field(default="", description="Guild for fast command sync")

    # Database
    database_url: str = Field(..., description="PostgreSQL database URL")
    database_ssl: str = Field(default="", description="asyncpg ssl mode, e.g. 'require'")

    # Scheduling
    default_timezone: str = Field(default=DEFAULT_TIMEZONE, description="Timezone for new guilds")

    # Remote content
    quote_api_url: str = Field(default="https://api.quotable.io", description="Quote API base URL")
    quote_api_enabled: bool = Field(default=True, description="Try the quote API before the local pack")

    # Health server
    health_port: int = Field(default=8080, description="Health server port")

    # Environment
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if not v.startswith(("postgresql://", "postgres://")):
            raise ValueError("DATABASE_URL must start with 'postgresql://'")
        return v

    @field_validator("default_timezone")
    @classmethod
    def validate_default_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Invalid default timezone '{v}', using {DEFAULT_TIMEZONE}")
            return DEFAULT_TIMEZONE
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            logger.warning(f"Invalid log level '{v}', defaulting to INFO")
            return "INFO"
        return v_upper


@lru_cache
def get_settings() -> HappySettings:
    """Get cached settings instance"""
    return HappySettings()  # type: ignore[call-arg]
