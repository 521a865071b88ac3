"""
Product catalog API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile

from auth import dependencies as auth_dependencies
from core.settings import Settings, get_settings

from . import schemas, service

router = APIRouter()


@router.get("/products/list")
async def list_products(response: Response) -> list[dict]:
    """
    All products, newest first.
    """
    response.headers["Cache-Control"] = "no-store"
    return await service.list_products()


@router.post("/products/add", dependencies=[Depends(auth_dependencies.require_admin)])
async def add_product(
    name: str = Form(default=""),
    description: str = Form(default=""),
    price: str = Form(default=""),
    category: str = Form(default=""),
    rating: str = Form(default=""),
    image: UploadFile | None = File(default=None),
    settings: Settings = Depends(get_settings),
) -> dict:
    payload = service.NewProduct(
        name=name,
        description=description,
        price=price,
        category=category,
        rating=rating,
    )
    product = await service.add_product(payload, settings, image=image)
    return {"success": True, "product": product}


@router.post("/products/delete", dependencies=[Depends(auth_dependencies.require_admin)])
async def delete_product(
    request: schemas.DeleteProductRequest,
    settings: Settings = Depends(get_settings),
) -> dict:
    return await service.delete_product(request.id, settings)
