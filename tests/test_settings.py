# tests/test_settings.py

"""Tests for environment-driven configuration."""

import pytest

from core.settings import DEFAULT_MAX_IMAGE_WIDTH, get_settings, storage_capacity_bytes


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch: pytest.MonkeyPatch):
    for name in ("STORAGE_CAPACITY_BYTES", "STORAGE_CAPACITY_GB", "MAX_IMAGE_WIDTH", "JPEG_QUALITY", "PUBLIC_DIR", "IMAGES_DIR", "DATA_DIR", "PRODUCTS_SUBDIR"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_capacity_defaults_to_five_gib() -> None:
    assert storage_capacity_bytes() == 5 * 1024**3


def test_capacity_in_gib(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STORAGE_CAPACITY_GB", "2")
    assert storage_capacity_bytes() == 2 * 1024**3


def test_capacity_bytes_overrides_gib(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STORAGE_CAPACITY_GB", "2")
    monkeypatch.setenv("STORAGE_CAPACITY_BYTES", "12345")
    assert storage_capacity_bytes() == 12345


def test_unparsable_integers_fall_back_to_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MAX_IMAGE_WIDTH", "wide")
    assert get_settings().max_image_width == DEFAULT_MAX_IMAGE_WIDTH


def test_jpeg_quality_is_clamped(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JPEG_QUALITY", "150")
    assert get_settings().jpeg_quality == 95


def test_derived_paths(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.setenv("PUBLIC_DIR", str(tmp_path))
    settings = get_settings()

    assert settings.images_dir == tmp_path.resolve() / "images"
    assert settings.products_dir == tmp_path.resolve() / "images" / "products"
    assert settings.catalog_path == tmp_path.resolve() / "data" / "products.json"
    assert settings.products_url_prefix == "/images/products/"


def test_cors_credentials_only_for_explicit_origins(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CORS_ORIGINS", raising=False)
    assert get_settings().cors_origins == ("*",)
    assert get_settings().cors_allow_credentials is False

    get_settings.cache_clear()
    monkeypatch.setenv("CORS_ORIGINS", "https://shop.example, http://localhost:5173")
    settings = get_settings()
    assert settings.cors_origins == ("https://shop.example", "http://localhost:5173")
    assert settings.cors_allow_credentials is True
