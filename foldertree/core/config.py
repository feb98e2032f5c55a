"""Store configuration with validation."""

from enum import Enum
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator


class Environment(str, Enum):
    """Deployment environment."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """
    Store settings with validation.

    Values come from environment variables (case-insensitive) or a local
    ``.env`` file.
    """

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Deployment environment (development/production)"
    )

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///./foldertree.db",
        description="Database connection URL"
    )

    # Entity limits
    max_file_size_bytes: int = Field(
        default=100 * 1024 * 1024,
        description="Largest file size accepted in file metadata"
    )
    tag_tree_max_depth: int = Field(
        default=32,
        description="Deepest tag nesting walked when building the tag tree"
    )
    popular_tags_limit: int = Field(
        default=10,
        description="Default number of tags returned by popular-tag queries"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: str = Field(
        default="text",
        description="Log output format: 'json' for structured, 'text' for human-readable"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard Python logging levels."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v_upper

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v_lower = v.lower()
        if v_lower not in ('json', 'text'):
            raise ValueError("Invalid log format. Must be 'json' or 'text'")
        return v_lower

    @field_validator('max_file_size_bytes', 'tag_tree_max_depth', 'popular_tags_limit')
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Must be a positive integer")
        return v


# Global settings instance
settings = Settings()
