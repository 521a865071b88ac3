"""
Read-only views over the image tree.

Nothing is cached: sizes and timestamps come from the filesystem at call
time. Directory walks are blocking, so the async entry points push them to
the thread pool.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from fastapi.concurrency import run_in_threadpool

from core.paths import is_image_name
from core.settings import Settings


@dataclass(frozen=True)
class AssetInfo:
    file: str
    size: int
    mtime: float

    def as_dict(self) -> dict:
        return {
            "file": self.file,
            "size": self.size,
            "mtime": datetime.fromtimestamp(self.mtime, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
        }


def list_top_level(images_dir: Path) -> list[str]:
    """
    Image files directly under `images_dir`, newest first.

    Subdirectories (product images included) are never descended into.
    """
    entries: list[tuple[float, str]] = []
    try:
        with os.scandir(images_dir) as it:
            for entry in it:
                if not entry.is_file(follow_symlinks=False) or not is_image_name(entry.name):
                    continue
                entries.append((entry.stat(follow_symlinks=False).st_mtime, entry.name))
    except FileNotFoundError:
        return []

    entries.sort(key=lambda e: e[0], reverse=True)
    return [name for _, name in entries]


def walk_images(images_dir: Path) -> list[AssetInfo]:
    """
    Every image file under `images_dir`, recursively, with paths relative to
    `images_dir` using "/" separators. A missing root yields an empty list.
    """
    results: list[AssetInfo] = []
    if not images_dir.is_dir():
        return results

    for dirpath, _dirnames, filenames in os.walk(images_dir):
        for name in filenames:
            if not is_image_name(name):
                continue
            full = Path(dirpath) / name
            try:
                st = full.stat()
            except FileNotFoundError:
                # Deleted between listing and stat.
                continue
            rel = full.relative_to(images_dir).as_posix()
            results.append(AssetInfo(file=rel, size=st.st_size, mtime=st.st_mtime))
    return results


def history(images_dir: Path, *, limit: int) -> list[AssetInfo]:
    items = walk_images(images_dir)
    items.sort(key=lambda a: a.mtime, reverse=True)
    return items[:limit]


def used_percent(used_bytes: int, total_bytes: int) -> int:
    if total_bytes <= 0:
        return 0
    # Round half up.
    return int(math.floor(used_bytes / total_bytes * 100 + 0.5))


def disk_usage(images_dir: Path, *, total_bytes: int) -> dict:
    files = walk_images(images_dir)
    used_bytes = sum(f.size for f in files)
    return {
        "totalBytes": total_bytes,
        "usedBytes": used_bytes,
        "usedPct": used_percent(used_bytes, total_bytes),
        "fileCount": len(files),
    }


async def gallery_list(settings: Settings) -> list[str]:
    return await run_in_threadpool(list_top_level, settings.images_dir)


async def gallery_history(settings: Settings) -> list[dict]:
    items = await run_in_threadpool(history, settings.images_dir, limit=settings.history_limit)
    return [item.as_dict() for item in items]


async def gallery_disk_usage(settings: Settings) -> dict:
    return await run_in_threadpool(
        disk_usage,
        settings.images_dir,
        total_bytes=settings.storage_capacity_bytes,
    )
