"""
Configuration management for flex attributes.
"""

import logging
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process-wide settings.

    Per-model options passed to ``has_flex_attributes`` always win over the
    naming defaults declared here.
    """

    model_config = SettingsConfigDict(
        env_prefix="FLEX_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="%(asctime)s %(levelname)s %(name)s: %(message)s")

    # Naming conventions for companion classes
    companion_suffix: str = Field(default="Attribute")
    default_name_field: str = Field(default="name")
    default_value_field: str = Field(default="value")
    default_version_column: str = Field(default="version")


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get process-wide settings."""
    return settings


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging from settings.

    The library never calls this itself; applications and scripts opt in.
    """
    level_name = (level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=settings.log_format,
    )
