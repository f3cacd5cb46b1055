"""Configuration and settings management using pydantic-settings."""
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable loading."""

    model_config = SettingsConfigDict(
        env_prefix="KNOTWORK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Core settings
    env: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Log format: json or text")

    # Runtime limits
    max_node_visits: int = Field(
        default=10_000,
        description="Visits per node id before the scheduler drops it",
    )
    http_timeout_s: float = Field(
        default=30.0,
        description="Timeout applied to every outbound HTTP call in seconds",
    )

    # Mock server fallbacks (used when the trigger node does not set them)
    server_host: str = Field(default="0.0.0.0", description="Bind host for serve")
    server_port: int = Field(default=3000, description="Default listen port")
    server_path: str = Field(default="/webhook", description="Default route path")
    server_method: str = Field(default="GET", description="Default trigger method")

    # Flow discovery
    flow_search_dirs: List[str] = Field(
        default_factory=lambda: [".", "tests", "../tests"],
        description="Directories scanned for *.json flows",
    )

    @field_validator("max_node_visits")
    @classmethod
    def validate_max_node_visits(cls, v: int) -> int:
        """Validate that the visit cap is positive."""
        if v <= 0:
            raise ValueError("max_node_visits must be positive")
        return v

    @field_validator("http_timeout_s")
    @classmethod
    def validate_http_timeout(cls, v: float) -> float:
        """Validate that the HTTP timeout is positive."""
        if v <= 0:
            raise ValueError("http_timeout_s must be positive")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return v


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (useful for testing)."""
    global _settings
    _settings = None
