"""
Application Configuration

Settings class using pydantic-settings for environment variable loading.
Defines storage roots, upload limits and transcoder parameters.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For example, OUTPUT_FOLDER can be set via the OUTPUT_FOLDER env var.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="StreamPack", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")
    version: str = Field(default="0.1.0", description="API version")
    log_level: str = Field(default="INFO", description="Root logging level")

    # Server
    host: str = Field(default="0.0.0.0", description="Bind address for the HTTP server")
    port: int = Field(default=5000, description="Bind port for the HTTP server")

    # Storage
    upload_folder: str = Field(
        default="uploads",
        description="Root directory for raw uploaded files",
    )
    output_folder: str = Field(
        default="streams",
        description="Root directory for packaged HLS/DASH trees",
    )

    # Upload limits
    max_upload_size: int = Field(
        default=100 * 1024 * 1024,  # 100MB
        description="Maximum upload file size in bytes (default: 100MB)",
    )
    allowed_extensions: str = Field(
        default="mp4,avi,mov,mkv,wmv,flv,webm",
        description="Comma-separated list of accepted source extensions",
    )

    # Transcoder
    ffmpeg_binary: str = Field(default="ffmpeg", description="FFmpeg executable")
    transcode_timeout_seconds: int = Field(
        default=3600,
        description="Maximum runtime of a single ffmpeg invocation",
    )
    verify_entry_files: bool = Field(
        default=True,
        description="Treat a zero exit without an entry file as a failed conversion",
    )
    parallel_conversions: bool = Field(
        default=False,
        description="Run the HLS and DASH conversions of one upload concurrently",
    )
    max_concurrent_transcodes: int = Field(
        default=4,
        ge=1,
        description="Uploads packaged at once; further uploads wait for a free slot",
    )

    # CORS
    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins",
    )

    @property
    def allowed_extensions_set(self) -> frozenset[str]:
        """Parse allowed extensions into a lower-cased set without dots."""
        return frozenset(
            ext.strip().lstrip(".").lower()
            for ext in self.allowed_extensions.split(",")
            if ext.strip()
        )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string to list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def upload_root(self) -> Path:
        return Path(self.upload_folder).resolve()

    @property
    def output_root(self) -> Path:
        return Path(self.output_folder).resolve()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings instance.

    Uses lru_cache to ensure settings are only loaded once per process.

    Example:
        >>> settings = get_settings()
        >>> print(settings.max_upload_size)
        104857600
    """
    return Settings()
