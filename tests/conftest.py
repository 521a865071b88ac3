# tests/conftest.py

"""Shared fixtures: isolated storage dirs, a running app, an HTTP client."""

from __future__ import annotations

import io
from collections.abc import AsyncIterator, Iterator
from pathlib import Path

import httpx
import pytest
from httpx import ASGITransport
from PIL import Image

from core.settings import Settings, get_settings

ADMIN_SECRET = "4321"
ADMIN_HEADERS = {"X-Admin-Token": ADMIN_SECRET}
STORAGE_CAPACITY = 1_000_000


def make_image_bytes(
    width: int = 64,
    height: int = 48,
    *,
    fmt: str = "PNG",
    mode: str = "RGB",
    color: tuple = (200, 40, 40),
) -> bytes:
    img = Image.new(mode, (width, height), color)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Settings]:
    """Point every storage path at tmp_path and reload configuration."""
    monkeypatch.setenv("PUBLIC_DIR", str(tmp_path / "public"))
    monkeypatch.setenv("TMP_DIR", str(tmp_path / "staging"))
    monkeypatch.setenv("ADMIN_SECRET", ADMIN_SECRET)
    monkeypatch.setenv("ADMIN_BCRYPT_ROUNDS", "4")
    monkeypatch.setenv("TRANSCODE_WORKERS", "2")
    monkeypatch.setenv("STORAGE_CAPACITY_BYTES", str(STORAGE_CAPACITY))
    for name in ("IMAGES_DIR", "DATA_DIR", "ADMIN_SECRET_HASHES", "HISTORY_LIMIT", "MAX_UPLOAD_BYTES"):
        monkeypatch.delenv(name, raising=False)

    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest.fixture
async def running_app(settings: Settings) -> AsyncIterator[Settings]:
    """Run the app lifespan (folders, verifier, worker pool, catalog)."""
    import main

    async with main.lifespan(main.app):
        yield settings


@pytest.fixture
async def client(running_app: Settings) -> AsyncIterator[httpx.AsyncClient]:
    import main

    async with httpx.AsyncClient(transport=ASGITransport(app=main.app), base_url="http://test") as c:
        yield c
