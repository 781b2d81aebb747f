"""Shared test fixtures for md2word-mcp."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from md2word_mcp.artifact_store import ArtifactStore
from md2word_mcp.config import Settings
from md2word_mcp.converters import ConversionEngine, Converter
from md2word_mcp.http_app import create_app
from md2word_mcp.service import DocumentService


class FakeClock:
    """Manually advanced, timezone-aware clock."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class UnavailableConverter(Converter):
    """Primary converter stand-in that always reports itself unavailable."""

    name = "unavailable"

    def is_available(self) -> bool:
        return False

    def convert(self, content: str, output_path: Path) -> None:
        raise AssertionError("unavailable converter must not be used")


@pytest.fixture
def downloads_dir(tmp_path: Path) -> Path:
    return tmp_path / "downloads"


@pytest.fixture
def settings(downloads_dir: Path) -> Settings:
    return Settings(
        _env_file=None,
        port=3000,
        basepath="/md-to-doc",
        proxy_url="http://testserver",
        downloads_dir=downloads_dir,
        file_expiry_minutes=30,
        cleanup_interval_minutes=5,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> ArtifactStore:
    return ArtifactStore(ttl=timedelta(minutes=30), clock=clock)


@pytest.fixture
def engine(downloads_dir: Path) -> ConversionEngine:
    """Engine pinned to the built-in converter (no pandoc dependency in tests)."""
    return ConversionEngine(downloads_dir, primary=UnavailableConverter())


@pytest.fixture
def service(settings: Settings, store: ArtifactStore, engine: ConversionEngine) -> DocumentService:
    return DocumentService(settings, store=store, engine=engine)


@pytest.fixture
def client(settings: Settings, service: DocumentService) -> TestClient:
    return TestClient(create_app(settings, service))


def make_payload(directory: Path, name: str = "payload.docx", data: bytes = b"PK\x03\x04data") -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_bytes(data)
    return path
