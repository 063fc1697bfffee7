"""schemahound configuration management.

Uses pydantic-settings to load configuration from environment variables
and .env files with validation.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Any, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .constants import DEFAULT_ROOT_TYPE_NAMES, TABLE_NAME_SUFFIX, TEMPLATE_EXTENSION


class Settings(BaseSettings):
    """schemahound settings.

    All settings can be overridden via environment variables
    prefixed with SCHEMAHOUND_.

    Example:
        SCHEMAHOUND_LOG_LEVEL=DEBUG
        SCHEMAHOUND_ROOT_TYPE_NAMES=Query,Mutation
    """

    model_config = SettingsConfigDict(
        env_prefix="SCHEMAHOUND_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Normalization
    root_type_names: Annotated[List[str], NoDecode] = Field(
        default=list(DEFAULT_ROOT_TYPE_NAMES),
        description="Type names treated as top-level API operations",
    )
    table_name_suffix: str = Field(default=TABLE_NAME_SUFFIX, description="Canonical table name suffix")
    template_extension: str = Field(default=TEMPLATE_EXTENSION, description="Mapping template file extension")

    # Output
    output_dir: str = Field(default="schemahound-output", description="Directory for normalized bundles")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("root_type_names", mode="before")
    @classmethod
    def split_root_type_names(cls, v: Any) -> Any:
        # Env values arrive as "Query,Mutation"
        if isinstance(v, str):
            return [n.strip() for n in v.split(",") if n.strip()]
        return v

    @field_validator("root_type_names")
    @classmethod
    def validate_root_type_names(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("At least one root type name is required")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {v}")
        return level


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings instance loaded from environment
    """
    return Settings()
