"""
Converter configuration.

Centralized configuration management with environment variables. Every
setting can be overridden with a ``RAZOR2LIQUID_`` prefixed variable or an
entry in a local ``.env`` file.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Converter settings"""

    model_config = SettingsConfigDict(
        env_prefix="RAZOR2LIQUID_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"  # json or text
    LOG_FILE: Optional[str] = None

    # Files
    SOURCE_EXTENSION: str = ".cshtml"
    TARGET_EXTENSION: str = ".liquid"
    ENCODING: str = "utf-8"

    # Helpers declared with @helper are written next to the converted template
    WRITE_HELPERS: bool = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
