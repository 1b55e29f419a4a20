"""
Configuration management using Pydantic Settings.

This module handles all environment-based configuration for the Essay Question API,
including listener settings, logging, the remote completion service, and the
word-count thresholds used by the task scoring routes.
"""

from pathlib import Path
from typing import Any

from pydantic import AliasChoices, Field, HttpUrl, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Prompt templates shipped with the package
DEFAULT_PROMPTS_DIR = Path(__file__).parent / "prompts"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables and .env file.

    Constructed once by create_app() and passed to the components that need it.
    Caller credentials are never part of the settings: every request brings its own.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API server host address")
    api_port: int = Field(
        default=8000,
        description="API server port",
        validation_alias=AliasChoices("api_port", "port"),
    )
    api_title: str = Field(default="Essay Question API", description="API title")
    api_version: str = Field(default="1.0.0", description="API version")

    # Environment
    environment: str = Field(
        default="development",
        description="Deployment environment",
        pattern="^(development|staging|production|test)$",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )
    log_format: str = Field(
        default="json",
        description="Logging format",
        pattern="^(json|standard)$",
    )

    # Remote completion service
    openai_base_url: HttpUrl | None = Field(
        default=None,
        description="Base URL of the OpenAI-compatible completion service (SDK default when unset)",
    )
    completion_timeout: float = Field(
        default=120.0,
        description="Per-request deadline in seconds for calls to the completion service",
        gt=0,
        le=600,
    )
    relay_shutdown_timeout: float = Field(
        default=5.0,
        description="Seconds to wait for a cancelled stream producer to release its upstream stream",
        gt=0,
        le=60,
    )

    # Prompt templates
    prompts_dir: Path = Field(
        default=DEFAULT_PROMPTS_DIR,
        description="Directory holding the <name>.txt prompt templates",
    )

    # Word-count thresholds for the task scoring routes
    task_response_min_words: int = Field(
        default=250,
        description="Essays shorter than this use the under-length task response prompt",
        ge=0,
    )
    task_achievement_min_words: int = Field(
        default=150,
        description="Reports shorter than this use the under-length task achievement prompt",
        ge=0,
    )

    # CORS Configuration
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins",
    )
    cors_allow_credentials: bool = Field(
        default=False,  # Must be False when using wildcard
        description="Allow CORS credentials",
    )
    cors_allow_methods: list[str] = Field(
        default=["OPTIONS", "GET", "POST"],
        description="Allowed CORS methods",
    )
    cors_allow_headers: list[str] = Field(
        default=["Content-Type", "Content-Length", "Accept", "TOKEN"],
        description="Allowed CORS headers",
    )

    # Request Validation
    max_request_body_size: int = Field(
        default=1048576,  # 1 MB in bytes
        description="Maximum request body size in bytes",
        ge=1024,  # Minimum 1 KB
        le=10485760,  # Maximum 10 MB
    )

    # Security Headers Configuration
    enable_security_headers: bool = Field(
        default=True,
        description="Enable security headers (X-Content-Type-Options, X-Frame-Options, HSTS, X-XSS-Protection)",
    )

    @computed_field
    @property
    def base_url(self) -> str:
        """Computed property for base API URL."""
        protocol = "http" if self.environment == "development" else "https"
        return f"{protocol}://{self.api_host}:{self.api_port}"

    def get_log_config(self) -> dict[str, Any]:
        """Get logging configuration dictionary."""
        return {
            "level": self.log_level,
            "format": self.log_format,
        }

    def get_openai_base_url(self) -> str | None:
        """Return the completion service base URL as a plain string, or None for the SDK default."""
        return str(self.openai_base_url) if self.openai_base_url else None
