"""
Runtime configuration, read from environment variables.

Every knob the service exposes lives here so nothing below the routers
reads `os.environ` directly. `get_settings()` is cached; call
`get_settings.cache_clear()` after changing the environment (tests do).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

DEFAULT_PORT = 3000
DEFAULT_STORAGE_CAPACITY_GB = 5
DEFAULT_MAX_UPLOAD_BYTES = 25 * 1024 * 1024  # 25 MiB
DEFAULT_MAX_UPLOAD_FILES = 20
DEFAULT_MAX_IMAGE_WIDTH = 1600
DEFAULT_JPEG_QUALITY = 85
DEFAULT_HISTORY_LIMIT = 500
DEFAULT_BCRYPT_ROUNDS = 12
DEFAULT_PLACEHOLDER_IMAGE = "/images/products/default-sample.png"


def _env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, "").strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.environ.get(name, "").strip()
    return Path(raw).expanduser().resolve() if raw else default.resolve()


def _env_list(name: str) -> tuple[str, ...]:
    raw = os.environ.get(name, "")
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def _default_workers() -> int:
    return max(1, min(4, os.cpu_count() or 1))


@dataclass(frozen=True)
class Settings:
    host: str
    port: int
    public_dir: Path
    images_dir: Path
    products_subdir: str
    data_dir: Path
    tmp_dir: Path
    placeholder_image: str
    admin_secret: str
    admin_secret_hashes: tuple[str, ...]
    admin_bcrypt_rounds: int
    storage_capacity_bytes: int
    max_upload_bytes: int
    max_upload_files: int
    max_image_width: int
    jpeg_quality: int
    history_limit: int
    transcode_workers: int
    cors_origins: tuple[str, ...]
    log_level: str

    @property
    def cors_allow_credentials(self) -> bool:
        # Credentialed CORS only for an explicit allowlist, never for "*".
        return "*" not in self.cors_origins

    @property
    def products_dir(self) -> Path:
        return self.images_dir / self.products_subdir

    @property
    def products_url_prefix(self) -> str:
        return f"/images/{self.products_subdir}/"

    @property
    def catalog_path(self) -> Path:
        return self.data_dir / "products.json"


def storage_capacity_bytes() -> int:
    """
    Configured capacity used as the disk-usage denominator.

    - STORAGE_CAPACITY_BYTES wins when set.
    - otherwise STORAGE_CAPACITY_GB (GiB, default 5).

    This is a declared number, not a measurement of the device. Keep it in
    sync with the storage actually provisioned for the image root.
    """
    explicit = _env_int("STORAGE_CAPACITY_BYTES", -1)
    if explicit >= 0:
        return explicit
    gb = _env_int("STORAGE_CAPACITY_GB", DEFAULT_STORAGE_CAPACITY_GB)
    return max(gb, 0) * 1024 * 1024 * 1024


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    public_dir = _env_path("PUBLIC_DIR", Path.cwd() / "public")
    quality = _env_int("JPEG_QUALITY", DEFAULT_JPEG_QUALITY)

    return Settings(
        host=_env_str("HOST", "0.0.0.0"),
        port=_env_int("PORT", DEFAULT_PORT),
        public_dir=public_dir,
        images_dir=_env_path("IMAGES_DIR", public_dir / "images"),
        products_subdir=_env_str("PRODUCTS_SUBDIR", "products"),
        data_dir=_env_path("DATA_DIR", public_dir / "data"),
        tmp_dir=_env_path("TMP_DIR", Path.cwd() / "tmp_uploads"),
        placeholder_image=_env_str("PLACEHOLDER_IMAGE", DEFAULT_PLACEHOLDER_IMAGE),
        admin_secret=os.environ.get("ADMIN_SECRET", "").strip(),
        admin_secret_hashes=_env_list("ADMIN_SECRET_HASHES"),
        admin_bcrypt_rounds=max(4, min(_env_int("ADMIN_BCRYPT_ROUNDS", DEFAULT_BCRYPT_ROUNDS), 31)),
        storage_capacity_bytes=storage_capacity_bytes(),
        max_upload_bytes=max(1, _env_int("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES)),
        max_upload_files=max(1, _env_int("MAX_UPLOAD_FILES", DEFAULT_MAX_UPLOAD_FILES)),
        max_image_width=max(1, _env_int("MAX_IMAGE_WIDTH", DEFAULT_MAX_IMAGE_WIDTH)),
        jpeg_quality=max(1, min(quality, 95)),
        history_limit=max(1, _env_int("HISTORY_LIMIT", DEFAULT_HISTORY_LIMIT)),
        transcode_workers=max(1, _env_int("TRANSCODE_WORKERS", _default_workers())),
        cors_origins=_env_list("CORS_ORIGINS") or ("*",),
        log_level=_env_str("LOG_LEVEL", "INFO").upper(),
    )
