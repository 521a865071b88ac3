"""
Upload pipeline "service layer".

This file contains logic that is independent of FastAPI's routing layer:
- Validate upload names
- Read file bytes with a size limit
- Stage, transcode and commit images
- Delete gallery assets

Per file: stage raw bytes -> derive a collision-free output name ->
transcode to JPEG on the worker pool -> commit atomically -> drop staging.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
import uuid
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Any, Sequence

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from core import workers
from core.errors import NotFoundError, PayloadTooLargeError, StorefrontError, ValidationError
from core.paths import is_image_name, resolve_contained, sanitize_filename
from core.settings import Settings

from . import imaging

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")

SUFFIX_HEX_CHARS = 8
_NAME_ATTEMPTS = 5


@dataclass(frozen=True)
class UploadOutcome:
    file: str
    stored_name: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.stored_name is not None

    def as_dict(self) -> dict[str, Any]:
        if self.ok:
            return {"file": self.file, "storedName": self.stored_name}
        return {"file": self.file, "error": self.error}


def slugify_stem(original_name: str) -> str:
    """
    Stem of `original_name` reduced to `[a-z0-9_-]`.

    Whitespace runs become a single hyphen, everything else outside the
    allowed set is dropped. Falls back to "image" when nothing survives.
    """
    stem = PurePath(original_name).stem
    slug = _WHITESPACE.sub("-", stem.strip())
    slug = _UNSAFE_CHARS.sub("", slug).lower()
    return slug or "image"


def output_name(original_name: str) -> str:
    return f"{slugify_stem(original_name)}-{uuid.uuid4().hex[:SUFFIX_HEX_CHARS]}.jpg"


def unique_target(dest_dir: Path, original_name: str) -> Path:
    """
    Pick a target path under `dest_dir` that does not exist yet.
    """
    for _ in range(_NAME_ATTEMPTS):
        target = resolve_contained(output_name(original_name), dest_dir)
        if not target.exists():
            return target
    # Short suffixes kept colliding; fall back to a full uuid.
    return resolve_contained(f"{slugify_stem(original_name)}-{uuid.uuid4().hex}.jpg", dest_dir)


async def read_upload_bytes(file: UploadFile, max_bytes: int) -> bytes:
    """
    Read the upload into memory, enforcing a maximum size.
    """
    chunk_size = 1024 * 1024  # 1 MiB
    buf = bytearray()

    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break
        buf.extend(chunk)
        if len(buf) > max_bytes:
            raise PayloadTooLargeError(f"File too large. Max is {max_bytes} bytes.")

    if not buf:
        raise ValidationError("Empty file.")
    return bytes(buf)


def _write_staging(path: Path, data: bytes) -> None:
    with open(path, "xb") as fh:
        fh.write(data)


def _unlink_quiet(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError:
        logger.warning("Could not remove staging file %s", path, exc_info=True)


async def stage_upload(data: bytes, safe_name: str, tmp_dir: Path) -> Path:
    # Staging names only need to be unique among in-flight uploads.
    staging = resolve_contained(f"{time.time_ns()}-{uuid.uuid4().hex[:6]}-{safe_name}", tmp_dir)
    await run_in_threadpool(_write_staging, staging, data)
    return staging


async def store_upload(file: UploadFile, dest_dir: Path, settings: Settings) -> str:
    """
    Run one upload through the pipeline and return the stored file name.

    Raises ValidationError / ProcessingError; nothing is left under
    `dest_dir` on failure.
    """
    original = file.filename or ""
    safe_name = sanitize_filename(original)
    data = await read_upload_bytes(file, max_bytes=settings.max_upload_bytes)

    staging = await stage_upload(data, safe_name, settings.tmp_dir)
    try:
        target = await run_in_threadpool(unique_target, dest_dir, original)
        result = await workers.run(
            imaging.transcode_to_jpeg,
            staging,
            target,
            max_width=settings.max_image_width,
            quality=settings.jpeg_quality,
        )
    finally:
        await run_in_threadpool(_unlink_quiet, staging)

    logger.info(
        "Stored %s as %s (%dx%d -> %dx%d, %d bytes)",
        original,
        target.name,
        result.source_width,
        result.source_height,
        result.width,
        result.height,
        result.size_bytes,
    )
    return target.name


async def process_batch(
    files: Sequence[UploadFile],
    dest_dir: Path,
    settings: Settings,
) -> list[UploadOutcome]:
    """
    Run every file through the pipeline independently.

    Concurrency is bounded by the transcode pool size. Results come back in
    input order; a failing file only affects its own outcome.
    """
    if not files:
        raise ValidationError("No files")
    if len(files) > settings.max_upload_files:
        raise ValidationError(f"Too many files. Max is {settings.max_upload_files} per upload.")

    limit = asyncio.Semaphore(workers.max_workers())

    async def _one(file: UploadFile) -> UploadOutcome:
        original = file.filename or ""
        async with limit:
            try:
                stored = await store_upload(file, dest_dir, settings)
            except StorefrontError as exc:
                logger.warning("Upload of %r failed: %s", original, exc.message)
                return UploadOutcome(file=original, error=exc.message)
            except Exception:
                logger.exception("Unexpected failure processing upload %r", original)
                return UploadOutcome(file=original, error="Processing failed")
        return UploadOutcome(file=original, stored_name=stored)

    return list(await asyncio.gather(*(_one(f) for f in files)))


def _placeholder_path(settings: Settings) -> Path | None:
    prefix = "/images/"
    if not settings.placeholder_image.startswith(prefix):
        return None
    relative = settings.placeholder_image[len(prefix):]
    return (settings.images_dir / relative).resolve()


def _gallery_target(name: str, settings: Settings) -> Path:
    safe = sanitize_filename(name)
    if not is_image_name(safe):
        raise ValidationError("Invalid filename")
    target = resolve_contained(safe, settings.images_dir)
    if target == _placeholder_path(settings):
        raise ValidationError("The placeholder image cannot be deleted.")
    return target


def _unlink_asset(path: Path) -> None:
    try:
        if not path.is_file():
            raise NotFoundError("File not found")
        path.unlink()
    except FileNotFoundError as exc:
        raise NotFoundError("File not found") from exc


async def delete_asset(name: str, settings: Settings) -> str:
    """
    Delete one top-level gallery asset. Returns the deleted name.
    """
    target = _gallery_target(name, settings)
    await run_in_threadpool(_unlink_asset, target)
    logger.info("Deleted asset %s", target.name)
    return target.name


async def delete_assets(names: Sequence[str], settings: Settings) -> dict[str, list]:
    """
    Delete several gallery assets; each name succeeds or fails on its own.
    """
    deleted: list[str] = []
    errors: list[dict[str, str]] = []
    for name in names:
        try:
            deleted.append(await delete_asset(name, settings))
        except (ValidationError, NotFoundError) as exc:
            errors.append({"file": name, "error": exc.message})
        except OSError as exc:
            logger.warning("Could not delete asset %r: %s", name, exc)
            errors.append({"file": name, "error": "Delete failed"})
    return {"deleted": deleted, "errors": errors}


def _remove_contained(name: str, root: Path) -> bool:
    target = resolve_contained(name, root)
    try:
        target.unlink()
    except FileNotFoundError:
        return False
    return True


async def remove_file_best_effort(name: str, root: Path) -> bool:
    """
    Remove `root/name` if present. Never raises; failures are logged.
    """
    try:
        removed = await run_in_threadpool(_remove_contained, name, root)
    except (StorefrontError, OSError) as exc:
        logger.warning("Best-effort removal of %r under %s failed: %s", name, root, exc)
        return False
    if not removed:
        logger.warning("Best-effort removal of %r under %s: file already gone", name, root)
    return removed
