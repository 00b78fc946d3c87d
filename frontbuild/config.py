"""Configuration settings for frontbuild.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: CLI flags > env vars > defaults.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_sitemap_template() -> Path:
    """Return the sitemap template shipped with the package."""
    return Path(__file__).parent / "templates" / "sitemap_template.ejs"


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the FRONTBUILD_ prefix.
    CLI flags can override these at runtime.
    """

    model_config = SettingsConfigDict(
        env_prefix="FRONTBUILD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Bundler
    compiler_command: str = Field(
        default="npx frontbuild-webpack",
        description="Bundler driver command; receives --config <file> --json",
    )
    keep_compiler_config: bool = Field(
        default=False,
        description="Keep the generated JSON configuration handed to the bundler",
    )

    # Project layout
    app_config_file: str = Field(
        default="app.yaml",
        description="Application configuration file name",
    )
    module_config_file: str = Field(
        default="module.yaml",
        description="Module configuration file name",
    )
    page_directory: str = Field(
        default="page",
        description="Directory inside each module holding page folders",
    )
    sitemap_template: Path = Field(
        default_factory=_default_sitemap_template,
        description="Template used for the site-level index.html",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )


def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = ["Settings", "get_settings", "print_settings_json"]
