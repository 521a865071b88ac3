"""
Gallery listing and disk-usage endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from auth import dependencies as auth_dependencies
from core.settings import Settings, get_settings

from . import service

router = APIRouter()


@router.get("/images/list")
async def list_images(
    response: Response,
    settings: Settings = Depends(get_settings),
) -> list[str]:
    """
    Top-level gallery filenames, newest first.
    """
    response.headers["Cache-Control"] = "no-store"
    return await service.gallery_list(settings)


@router.get("/images/history", dependencies=[Depends(auth_dependencies.require_admin)])
async def image_history(settings: Settings = Depends(get_settings)) -> list[dict]:
    """
    Every image under the gallery root (recursive) with size and mtime,
    newest first, capped at HISTORY_LIMIT entries.
    """
    return await service.gallery_history(settings)


@router.get("/admin/disk-info", dependencies=[Depends(auth_dependencies.require_admin)])
async def disk_info(settings: Settings = Depends(get_settings)) -> dict:
    """
    Bytes used by gallery images against the configured storage capacity.
    """
    return await service.gallery_disk_usage(settings)
