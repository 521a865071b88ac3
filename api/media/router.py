"""
FastAPI router for upload and asset-deletion endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel, Field

from auth import dependencies as auth_dependencies
from core.errors import ValidationError
from core.settings import Settings, get_settings

from . import service

router = APIRouter()


class DeleteImagesRequest(BaseModel):
    filename: str | None = None
    filenames: list[str] | None = Field(default=None, max_length=500)


@router.post("/upload", dependencies=[Depends(auth_dependencies.require_admin)])
async def upload_images(
    images: list[UploadFile] = File(default=[]),
    settings: Settings = Depends(get_settings),
) -> dict:
    """
    Upload one or more images into the gallery root.

    Each file is transcoded to JPEG independently; the response lists one
    outcome per file, in upload order.
    """
    outcomes = await service.process_batch(images, settings.images_dir, settings)
    return {"uploaded": [o.as_dict() for o in outcomes]}


@router.post("/images/delete", dependencies=[Depends(auth_dependencies.require_admin)])
async def delete_images(
    request: DeleteImagesRequest,
    settings: Settings = Depends(get_settings),
) -> dict:
    """
    Delete gallery assets by name (`filename` or `filenames`).
    """
    names: list[str] = []
    if request.filename is not None:
        names.append(request.filename)
    if request.filenames:
        names.extend(request.filenames)
    if not names:
        raise ValidationError("Provide filename or filenames.")

    return await service.delete_assets(names, settings)


@router.delete("/images/{filename}", dependencies=[Depends(auth_dependencies.require_admin)])
async def delete_image(
    filename: str,
    settings: Settings = Depends(get_settings),
) -> dict:
    await service.delete_asset(filename, settings)
    return {"success": True}
