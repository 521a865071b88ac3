"""
Image decode/transcode.

Everything here is synchronous and CPU-bound; callers run it on the
transcode pool (`core.workers.run`).

Decoding goes through Pillow. HEIC/HEIF (phone camera output) is handled by
the pillow-heif opener registered at import time.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

import pillow_heif
from PIL import Image, ImageOps, UnidentifiedImageError

from core.errors import ProcessingError
from core.paths import PUBLIC_FILE_MODE

pillow_heif.register_heif_opener()

_BACKGROUND = (255, 255, 255)


@dataclass(frozen=True)
class TranscodeResult:
    width: int
    height: int
    source_width: int
    source_height: int
    size_bytes: int


def _flatten_to_rgb(img: Image.Image) -> Image.Image:
    has_alpha = img.mode in {"RGBA", "LA"} or (img.mode == "P" and "transparency" in img.info)
    if not has_alpha:
        return img if img.mode == "RGB" else img.convert("RGB")

    rgba = img.convert("RGBA")
    background = Image.new("RGB", rgba.size, _BACKGROUND)
    background.paste(rgba, mask=rgba.getchannel("A"))
    return background


def fit_width(size: tuple[int, int], max_width: int) -> tuple[int, int]:
    """
    Target size for a source of `size`: width capped at `max_width`, aspect
    ratio kept, never larger than the source.
    """
    width, height = size
    if width <= max_width:
        return width, height
    new_height = max(1, round(height * max_width / width))
    return max_width, new_height


def _write_jpeg_atomic(img: Image.Image, target: Path, *, quality: int) -> int:
    # Temp file lives next to the target so os.replace stays on one filesystem.
    # The leading dot and `.part` suffix keep it out of gallery listings.
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.stem}-", suffix=".part")
    try:
        with os.fdopen(fd, "wb") as fh:
            img.save(fh, format="JPEG", quality=quality, optimize=True)
            fh.flush()
            os.fsync(fh.fileno())
        # mkstemp creates 0600 files; os.replace keeps that mode.
        os.chmod(tmp_name, PUBLIC_FILE_MODE)
        size = os.path.getsize(tmp_name)
        os.replace(tmp_name, target)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise
    return size


def transcode_to_jpeg(
    source: Path,
    target: Path,
    *,
    max_width: int,
    quality: int,
) -> TranscodeResult:
    """
    Decode `source` in whatever format it is in and commit a JPEG at `target`.

    - EXIF orientation is applied before resizing.
    - Transparent pixels are flattened onto white.
    - Width is capped at `max_width`; smaller images are never enlarged.
    - `target` only ever appears fully written.
    """
    try:
        with Image.open(source) as opened:
            opened.load()
            img = ImageOps.exif_transpose(opened)
            source_size = img.size
            img = _flatten_to_rgb(img)
    except (UnidentifiedImageError, Image.DecompressionBombError) as exc:
        raise ProcessingError("Unsupported or corrupt image") from exc
    except OSError as exc:
        raise ProcessingError(f"Could not decode image: {exc}") from exc

    new_size = fit_width(img.size, max_width)
    if new_size != img.size:
        img = img.resize(new_size, Image.Resampling.LANCZOS)

    try:
        size_bytes = _write_jpeg_atomic(img, target, quality=quality)
    except OSError as exc:
        raise ProcessingError(f"Could not write image: {exc}") from exc

    return TranscodeResult(
        width=img.width,
        height=img.height,
        source_width=source_size[0],
        source_height=source_size[1],
        size_bytes=size_bytes,
    )
