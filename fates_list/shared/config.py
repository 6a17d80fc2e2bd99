"""Configuration management using Pydantic Settings."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict

RESOURCES_PATH = Path(__file__).parent.parent.parent / "resources" / "widgets"


class Settings(BaseSettings):
    """Application settings with environment-based configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Optional[str] = Field(
        default=None,
        description="Log file path",
    )

    # Upstream API
    api_base_url: str = Field(
        default="https://api.fateslist.xyz",
        description="Base URL of the Fates List API used to look up bots",
    )
    avatar_fetch_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Timeout in seconds for bot lookups and avatar downloads",
    )

    # Widget assets
    widget_font_path: Path = Field(
        default=RESOURCES_PATH / "font.ttf",
        description="TrueType/OpenType font used for widget text",
    )
    widget_logo_path: Path = Field(
        default=RESOURCES_PATH / "listicon.png",
        description="PNG logo drawn in the widget corner",
    )

    # Widget rendering
    widget_canvas_pool_size: int = Field(
        default=0,
        ge=0,
        description="Number of reusable canvases to keep (0 allocates per render)",
    )
    widget_webp_lossless: bool = Field(
        default=False,
        description="Encode WEBP widgets losslessly",
    )
    widget_webp_quality: int = Field(
        default=90,
        description="Quality for lossy WEBP widgets",
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        valid_environments = {"development", "testing", "production"}
        if v not in valid_environments:
            raise ValueError(f"Environment must be one of: {valid_environments}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v

    @field_validator("widget_webp_quality")
    @classmethod
    def validate_webp_quality(cls, v: int) -> int:
        """Validate WEBP quality range."""
        if not 1 <= v <= 100:
            raise ValueError("WEBP quality must be between 1 and 100")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == "testing"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings


def override_settings(**kwargs) -> Settings:
    """Create a settings instance with overrides (useful for testing)."""
    return Settings(**kwargs)
