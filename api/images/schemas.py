"""
Image read-model schemas (response models).
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ImageView(BaseModel):
    id: int
    external_id: str
    width: int
    height: int
    image_url: str
    created_at: datetime
    labels: list[str] = Field(default_factory=list)


class ImagePage(BaseModel):
    total: int
    page: int
    page_size: int
    items: list[ImageView] = Field(default_factory=list)
