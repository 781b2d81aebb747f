"""
Service configuration for md2word-mcp.

Settings are read from environment variables (and an optional .env file in the
working directory) using pydantic-settings. Variable names are unprefixed so
existing deployments keep their PORT / BASEPATH / PROXY_URL environment:

    export PORT=3000
    export BASEPATH=/md-to-doc
    export PROXY_URL=https://docs.example.com
    export FILE_EXPIRY_MINUTES=30
    export CLEANUP_INTERVAL_MINUTES=5
"""

from datetime import timedelta
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven settings for the HTTP service and artifact lifecycle."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Listener
    port: int = 3000
    host: str = "localhost"
    protocol: str = "http"
    bind_host: str = "0.0.0.0"

    # Routing
    basepath: str = "/md-to-doc"
    proxy_url: str = "http://localhost:3000"

    # Artifact lifecycle
    file_expiry_minutes: int = 30
    cleanup_interval_minutes: int = 5
    downloads_dir: Path = Path("downloads")

    # Conversion
    pandoc_probe_ttl_seconds: float = 60.0

    # Observability
    log_level: str = "INFO"

    @field_validator("basepath")
    @classmethod
    def _normalize_basepath(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if value and not value.startswith("/"):
            value = "/" + value
        return value

    @field_validator("proxy_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("file_expiry_minutes", "cleanup_interval_minutes")
    @classmethod
    def _positive_minutes(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be a positive number of minutes")
        return value

    @property
    def base_url(self) -> str:
        """Address the server is reachable at directly (used in startup logs)."""
        return f"{self.protocol}://{self.host}:{self.port}"

    @property
    def file_ttl(self) -> timedelta:
        return timedelta(minutes=self.file_expiry_minutes)

    @property
    def cleanup_interval_seconds(self) -> float:
        return self.cleanup_interval_minutes * 60.0

    def route(self, path: str) -> str:
        """Prefix an endpoint path with the configured base path."""
        return f"{self.basepath}{path}"

    def download_url(self, file_id: str) -> str:
        """Externally visible download link for an artifact id."""
        return f"{self.proxy_url}{self.basepath}/download/{file_id}"


# Module-level singleton
settings = Settings()
