"""
Image read endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query

from core.errors import InvalidArgument

from . import schemas, service

router = APIRouter()


@router.get("/api/images", response_model=schemas.ImagePage)
async def list_images(
    tag: str = Query(default=""),
    page: int = 1,
    page_size: int = Query(default=service.DEFAULT_PAGE_SIZE),
) -> schemas.ImagePage:
    """
    Paginated list of images, optionally filtered by tag (case-insensitive).
    """
    try:
        return await service.query_images(tag, page=page, page_size=page_size)
    except InvalidArgument as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.get("/api/images/{image_id}", response_model=schemas.ImageView)
async def get_image(image_id: int) -> schemas.ImageView:
    image = await service.get_image(image_id)
    if image is None:
        raise HTTPException(status_code=404, detail=f"Image with id {image_id} not found")
    return image
