"""Configuration management for WhiskGen.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the WHISKGEN_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (WHISKGEN_* prefix)
2. .env file in the project root
3. Default values defined in WhiskGenConfig

Example .env file:
    WHISKGEN_REQUEST_TIMEOUT=90
    WHISKGEN_DEFAULT_ASPECT_RATIO=IMAGE_ASPECT_RATIO_SQUARE
    WHISKGEN_DATA_DIR=data
    WHISKGEN_GRADIO_SERVER_PORT=7860

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
This ensures a single source of truth for all configuration values across
the application.

Usage Example
-------------
    from whiskgen.core.config import config

    print(config.generate_url)
    print(config.credentials_path)

Credentials are NOT part of this configuration. The bearer token, session
token and workflow id are pasted by the user in the browser and persisted by
:class:`~whiskgen.core.credentials.CredentialStore` under ``data_dir``.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from whiskgen.core.jobs import AspectRatio


class WhiskGenConfig(BaseSettings):
    """Main configuration for WhiskGen.

    Attributes
    ----------
    Remote API:
        upload_url : str
            Endpoint receiving reference (subject) image uploads
        generate_url : str
            Endpoint for text-only image generation
        recipe_url : str
            Endpoint for reference-conditioned (recipe) generation
        request_timeout : float
            Per-request timeout in seconds

    Generation Defaults:
        default_aspect_ratio : AspectRatio
            Aspect ratio preselected in the UI

    Paths:
        data_dir : Path
            Directory holding the saved credentials record
        downloads_dir : Path
            Directory receiving exported images
        credentials_filename : str
            Filename of the credentials record inside data_dir

    UI Settings:
        gallery_refresh_seconds : float
            Interval at which the browser re-reads the job queue
        gradio_server_name : str
            Server bind address
        gradio_server_port : int
            Server port (1024-65535)
        gradio_share : bool
            Create public gradio.live link
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="WHISKGEN_",
        case_sensitive=False,
    )

    # Remote API endpoints
    upload_url: str = Field(
        default="https://labs.google/fx/api/trpc/backbone.uploadImage",
        description="Endpoint for subject image uploads",
    )
    generate_url: str = Field(
        default="https://aisandbox-pa.googleapis.com/v1/whisk:generateImage",
        description="Endpoint for text-only generation",
    )
    recipe_url: str = Field(
        default="https://aisandbox-pa.googleapis.com/v1/whisk:runImageRecipe",
        description="Endpoint for reference-conditioned generation",
    )
    request_timeout: float = Field(
        default=120.0,
        description="Per-request timeout in seconds",
        gt=0,
    )

    # Generation defaults
    default_aspect_ratio: AspectRatio = Field(
        default=AspectRatio.LANDSCAPE,
        description="Aspect ratio preselected in the UI",
    )

    # Paths
    data_dir: Path = Field(
        default=Path("data"),
        description="Directory for the saved credentials record",
    )
    downloads_dir: Path = Field(
        default=Path("downloads"),
        description="Directory for exported images",
    )
    credentials_filename: str = Field(
        default="credentials.json",
        description="Credentials record filename inside data_dir",
    )

    # UI settings
    gallery_refresh_seconds: float = Field(
        default=1.0,
        description="Gallery polling interval in seconds",
        gt=0,
    )
    gradio_server_name: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    gradio_server_port: int = Field(
        default=7860,
        description="Server port",
        ge=1024,
        le=65535,
    )
    gradio_share: bool = Field(
        default=False,
        description="Create public gradio.live link (keep False for local-only)",
    )

    def __init__(self, **kwargs):
        """Initialize configuration and create required directories.

        Args:
            **kwargs: Configuration overrides (typically from environment variables)
        """
        super().__init__(**kwargs)

        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.downloads_dir.mkdir(parents=True, exist_ok=True)

    @property
    def credentials_path(self) -> Path:
        """Full path of the persisted credentials record."""
        return self.data_dir / self.credentials_filename


# Global configuration instance
# Loads values from environment variables (WHISKGEN_* prefix) and .env file.
config = WhiskGenConfig()
