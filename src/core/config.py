"""Configuration Management."""

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Engine settings from environment."""

    model_config = SettingsConfigDict(
        env_prefix="FORMMODEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    json_logs: bool = Field(default=False, description="Use JSON log format")

    # Form option defaults (per-form options override these)
    debug: bool = Field(default=False, description="Emit internal state for inspection")
    validate_on_render: bool = Field(default=False, description="Validate right after the first build")
    load_external_assets: bool = Field(default=False, description="Let the renderer fetch theme assets")
    framework: str | None = Field(default=None, description="Rendering framework name (opaque)")
    submit_title: str = Field(default="Submit", description="Title of the default submit control")

    # Validation
    validator_cache_size: int = Field(default=32, gt=0, description="Compiled validator cache size")

    # Input limits
    max_input_size: int = Field(default=4 * 1024 * 1024, gt=0, description="Max JSON text input size")
    max_schema_depth: int = Field(default=64, gt=0, le=512, description="Max nesting of inputs")
    repair_json: bool = Field(default=False, description="Repair malformed JSON text inputs")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
