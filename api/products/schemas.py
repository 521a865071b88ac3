"""
Product record schema.

Field names on the wire and on disk are camelCase (`createdAt`) to stay
compatible with existing catalog documents.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CATEGORY = "Uncategorized"


class Product(BaseModel):
    # Unknown keys in older documents survive a rewrite.
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: str = ""
    price: str = ""
    category: str = DEFAULT_CATEGORY
    rating: float = 0
    image: str
    created_at: datetime = Field(..., alias="createdAt")

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class DeleteProductRequest(BaseModel):
    id: str = Field(..., min_length=1, max_length=100)
