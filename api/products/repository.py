"""
Catalog persistence.

The catalog is one JSON document holding the product array. This module is
the only code that opens it. Every mutation is read whole document ->
change in memory -> write whole document, and every such sequence runs
under the store's lock so concurrent mutations never overwrite each other.
Writes go to a temp file that replaces the document atomically.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Callable

import pydantic
from fastapi.concurrency import run_in_threadpool

from core.errors import NotFoundError, ProcessingError
from core.paths import PUBLIC_FILE_MODE

from .schemas import Product

logger = logging.getLogger(__name__)


def _read_document(path: Path) -> list[Product]:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return []
    except OSError as exc:
        raise ProcessingError(f"Could not read catalog: {exc}") from exc

    if not raw.strip():
        return []

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ProcessingError("Catalog document is corrupt.") from exc
    if not isinstance(data, list):
        raise ProcessingError("Catalog document is not a list.")

    products: list[Product] = []
    for index, item in enumerate(data):
        try:
            products.append(Product.model_validate(item))
        except pydantic.ValidationError as exc:
            record_id = item.get("id") if isinstance(item, dict) else None
            logger.error(
                "Malformed catalog record at index %d (id=%r) in %s: %s",
                index,
                record_id,
                path,
                exc,
            )
            raise ProcessingError(f"Catalog record #{index} is malformed.") from exc
    return products


def _write_document(path: Path, products: list[Product]) -> None:
    payload = json.dumps([p.to_json() for p in products], indent=2, ensure_ascii=False)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(payload)
            fh.flush()
            os.fsync(fh.fileno())
        os.chmod(tmp_name, PUBLIC_FILE_MODE)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


class CatalogStore:
    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = asyncio.Lock()

    async def ensure_document(self) -> None:
        """
        Create an empty catalog on first boot.
        """
        async with self._lock:
            if await run_in_threadpool(self.path.exists):
                return
            await run_in_threadpool(_write_document, self.path, [])
            logger.info("Created empty catalog at %s", self.path)

    async def load(self) -> list[Product]:
        # Documents are only ever replaced whole, so readers need no lock.
        return await run_in_threadpool(_read_document, self.path)

    async def _persist(self, products: list[Product]) -> None:
        try:
            await run_in_threadpool(_write_document, self.path, products)
        except OSError as exc:
            raise ProcessingError(f"Could not write catalog: {exc}") from exc

    async def mutate(self, change: Callable[[list[Product]], list[Product]]) -> list[Product]:
        """
        Apply `change` to the current product list and persist the result,
        serialized with every other mutation.
        """
        async with self._lock:
            products = await self.load()
            updated = change(products)
            await self._persist(updated)
            return updated

    async def add(self, product: Product) -> Product:
        def _append(products: list[Product]) -> list[Product]:
            if any(p.id == product.id for p in products):
                raise ProcessingError("Duplicate product id.")
            products.append(product)
            return products

        await self.mutate(_append)
        return product

    async def remove(self, product_id: str) -> Product:
        removed: list[Product] = []

        def _remove(products: list[Product]) -> list[Product]:
            for idx, p in enumerate(products):
                if p.id == product_id:
                    removed.append(products.pop(idx))
                    return products
            raise NotFoundError("Product not found")

        await self.mutate(_remove)
        return removed[0]


_store: CatalogStore | None = None


def init_store(path: Path) -> CatalogStore:
    global _store
    _store = CatalogStore(path)
    return _store


def close_store() -> None:
    global _store
    _store = None


def store() -> CatalogStore:
    if _store is None:
        raise RuntimeError("Catalog store is not initialized. Call init_store() on startup.")
    return _store
