"""
Product catalog business logic.

Scope:
- list products, newest first
- add a product (optional image goes through the upload pipeline)
- delete a product and, best-effort, its uploaded image

The catalog document is authoritative. Image files are cleaned up after
the catalog changes; a failed cleanup is logged and never undoes the
catalog change.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from fastapi import UploadFile

from core.errors import NotFoundError, StorefrontError, ValidationError
from core.settings import Settings
from media import service as media_service

from . import repository
from .schemas import DEFAULT_CATEGORY, Product

logger = logging.getLogger(__name__)

MIN_RATING = 0.0
MAX_RATING = 5.0


@dataclass(frozen=True)
class NewProduct:
    name: str
    description: str = ""
    price: str = ""
    category: str = ""
    rating: str | float | None = None


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _validate(payload: NewProduct) -> NewProduct:
    name = (payload.name or "").strip()
    if not name:
        raise ValidationError("Name required")

    raw_rating = payload.rating
    if raw_rating is None or (isinstance(raw_rating, str) and not raw_rating.strip()):
        rating = 0.0
    else:
        try:
            rating = float(raw_rating)
        except ValueError as exc:
            raise ValidationError("Rating must be a number.") from exc
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError(f"Rating must be between {MIN_RATING:g} and {MAX_RATING:g}.")

    return NewProduct(
        name=name,
        description=(payload.description or "").strip(),
        price=(payload.price or "").strip(),
        category=(payload.category or "").strip() or DEFAULT_CATEGORY,
        rating=rating,
    )


def _validate_id(product_id: str) -> str:
    raw = (product_id or "").strip()
    try:
        uuid.UUID(raw)
    except ValueError as exc:
        raise ValidationError("Invalid product id.") from exc
    return raw


def _ordered(products: list[Product]) -> list[Product]:
    # Newest first; equal timestamps fall back to later insertion first.
    ranked = sorted(enumerate(products), key=lambda p: (p[1].created_at, p[0]), reverse=True)
    return [p for _, p in ranked]


def uploaded_image_name(image: str, settings: Settings) -> str | None:
    """
    File name of an uploaded product image, or None for the placeholder or
    anything outside the product-image directory.
    """
    if not image or image == settings.placeholder_image:
        return None
    prefix = settings.products_url_prefix
    if not image.startswith(prefix):
        return None
    return image[len(prefix):] or None


async def list_products() -> list[dict]:
    products = await repository.store().load()
    return [p.to_json() for p in _ordered(products)]


async def add_product(
    payload: NewProduct,
    settings: Settings,
    *,
    image: UploadFile | None = None,
) -> dict:
    fields = _validate(payload)

    image_url = settings.placeholder_image
    stored_name: str | None = None
    if image is not None and image.filename:
        stored_name = await media_service.store_upload(image, settings.products_dir, settings)
        image_url = settings.products_url_prefix + stored_name

    product = Product(
        id=str(uuid.uuid4()),
        name=fields.name,
        description=fields.description,
        price=fields.price,
        category=fields.category,
        rating=float(fields.rating or 0),
        image=image_url,
        created_at=_utc_now(),
    )

    try:
        await repository.store().add(product)
    except StorefrontError:
        if stored_name is not None:
            # The record never made it in; don't leave its image behind.
            await media_service.remove_file_best_effort(stored_name, settings.products_dir)
        raise

    logger.info("Added product %s (%s)", product.id, product.name)
    return product.to_json()


async def delete_product(product_id: str, settings: Settings) -> dict:
    product_id = _validate_id(product_id)
    try:
        removed = await repository.store().remove(product_id)
    except NotFoundError:
        logger.info("Delete requested for unknown product %s", product_id)
        raise

    logger.info("Deleted product %s (%s)", removed.id, removed.name)

    image_name = uploaded_image_name(removed.image, settings)
    if image_name is not None:
        await media_service.remove_file_best_effort(image_name, settings.products_dir)

    return {"success": True}
