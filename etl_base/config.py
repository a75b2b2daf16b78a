"""Task runtime configuration."""

from functools import lru_cache
from typing import Any

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from etl_base.errors import ConfigurationError

DEFAULT_SUBMIT_BUDGET_BYTES = 49 * 1_000_000


class Settings(BaseSettings):
    """Settings supplied by the ETL server through the task environment.

    `ETL_API` - base URL of the API to use
    `ETL_LAYER` - integer layer ID to read config from and post results to
    `ETL_TOKEN` - access token scoped to the layer
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    api_base: str = Field(validation_alias=AliasChoices("ETL_API", "api_base"))
    layer_id: int = Field(validation_alias=AliasChoices("ETL_LAYER", "layer_id"))
    token: str = Field(validation_alias=AliasChoices("ETL_TOKEN", "token"))
    submit_budget_bytes: int = Field(
        default=DEFAULT_SUBMIT_BUDGET_BYTES,
        validation_alias=AliasChoices("ETL_SUBMIT_SIZE", "submit_budget_bytes"),
    )
    debug: bool = Field(default=False, validation_alias=AliasChoices("DEBUG", "debug"))

    @field_validator("api_base")
    @classmethod
    def _check_api_base(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("ETL API URL must include protocol (http:// or https://)")
        return value

    @field_validator("layer_id")
    @classmethod
    def _check_layer_id(cls, value: int) -> int:
        if value < 1:
            raise ValueError("ETL layer ID must be a positive integer")
        return value

    @field_validator("token")
    @classmethod
    def _check_token(cls, value: str) -> str:
        if not value:
            raise ValueError("ETL token cannot be empty")
        return value

    @field_validator("submit_budget_bytes")
    @classmethod
    def _check_budget(cls, value: int) -> int:
        if value < 1:
            raise ValueError("Submit budget must be positive")
        return value


def load_settings(**overrides: Any) -> Settings:
    """Build settings from the environment, raising ConfigurationError when incomplete."""
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ())) or "settings"
        raise ConfigurationError(
            f"Invalid task settings ({location}): {first.get('msg')}",
            code="SETTINGS_INVALID",
            details={"errors": exc.error_count()},
        ) from exc


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return load_settings()
