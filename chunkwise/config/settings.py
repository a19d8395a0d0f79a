"""
Configuration settings for chunkwise.

This module uses Pydantic Settings to manage configuration from environment
variables and .env files with validation and type safety.
"""

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

StrategyName = Literal["paragraph", "sentence", "phrase", "separator", "character"]


class ChunkingSettings(BaseSettings):
    """Text splitting configuration."""

    model_config = SettingsConfigDict(env_prefix="")

    chunk_size: int = Field(
        default=1024,
        ge=1,
        description="Maximum chunk size, as measured by the size function",
    )
    chunk_overlap: int = Field(
        default=200,
        ge=0,
        description="Overlap carried from the tail of one chunk into the next",
    )
    paragraph_separator: str = Field(
        default="\n\n\n",
        description="Literal separator for paragraph-level splitting",
    )
    chunk_separator: str = Field(
        default=" ",
        description="Literal separator for word-level splitting",
    )
    secondary_chunking_regex: str = Field(
        default="[^,.;]+[,.;]?",
        description="Regex used by the phrase strategy",
    )
    chunk_strategies: Annotated[list[StrategyName], NoDecode] = Field(
        default=["paragraph", "sentence", "phrase", "separator", "character"],
        description="Strategy priority list (comma-separated in the environment)",
    )

    @field_validator("chunk_strategies", mode="before")
    @classmethod
    def split_strategy_list(cls, v: object) -> object:
        """Accept a comma-separated string from the environment."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @model_validator(mode="after")
    def validate_overlap_less_than_size(self) -> "ChunkingSettings":
        """Ensure overlap is less than chunk size."""
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be less than chunk_size")
        return self


class CacheSettings(BaseSettings):
    """Ingestion cache configuration."""

    model_config = SettingsConfigDict(env_prefix="CACHE_")

    enabled: bool = Field(
        default=True,
        description="Look up and store transform results in the cache",
    )
    collection: str = Field(
        default="chunkwise_cache",
        description="Collection name inside the key-value backend",
    )
    timeout: float | None = Field(
        default=None,
        gt=0,
        description="Seconds to wait on a backend call before giving up",
    )


class LLMSettings(BaseSettings):
    """LLM provider configuration for metadata extractors."""

    model_config = SettingsConfigDict(env_prefix="")

    openai_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="OpenAI API key",
    )
    llm_model: str = Field(
        default="gpt-4o-mini",
        description="LLM model name",
    )
    llm_temperature: float = Field(
        default=0.0,
        ge=0.0,
        le=2.0,
        description="LLM temperature",
    )
    llm_max_tokens: int = Field(
        default=512,
        ge=1,
        le=128000,
        description="Maximum tokens in response",
    )
    llm_timeout: float = Field(
        default=60.0,
        gt=0,
        description="Request timeout in seconds",
    )


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level",
    )
    log_format: Literal["json", "console"] = Field(
        default="json",
        description="Log format",
    )


class Settings(BaseSettings):
    """Main settings aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(
        default="chunkwise",
        description="Application name included in logs",
    )

    chunking: ChunkingSettings = Field(default_factory=ChunkingSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings.

    Returns:
        Settings: Settings instance.

    Note:
        Settings are cached after first load. Call `get_settings.cache_clear()`
        to reload settings from environment.
    """
    return Settings()


def reload_settings() -> Settings:
    """
    Reload settings from environment.

    Returns:
        Settings: Fresh settings instance.
    """
    get_settings.cache_clear()
    return get_settings()
