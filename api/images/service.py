"""
Image query service.

Argument checks live here so every caller (HTTP or not) gets the same
`InvalidArgument` behavior.
"""

from __future__ import annotations

from core.errors import InvalidArgument

from . import repository, schemas

DEFAULT_PAGE_SIZE = 10
MAX_TAG_CHARS = 50
# LIMIT and OFFSET are bound as bigint.
MAX_SQL_BIGINT = 2**63 - 1


def normalize_tag(tag: str | None) -> str | None:
    """
    Blank means "no filter"; anything else is trimmed and length-checked.
    """
    tag = (tag or "").strip()
    if not tag:
        return None
    if len(tag) > MAX_TAG_CHARS:
        raise InvalidArgument(f"Tag parameter too long (max {MAX_TAG_CHARS} chars)")
    return tag


def _to_view(row: dict) -> schemas.ImageView:
    return schemas.ImageView(
        id=int(row["id"]),
        external_id=str(row["external_id"]),
        width=int(row["width"]),
        height=int(row["height"]),
        image_url=str(row["image_url"]),
        created_at=row["created_at"],
        labels=[str(name) for name in row.get("labels") or []],
    )


async def query_images(
    tag: str | None = None,
    *,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> schemas.ImagePage:
    if page < 1 or page_size < 1:
        raise InvalidArgument("Page and PageSize must be greater than 0")
    offset = (page - 1) * page_size
    if page_size > MAX_SQL_BIGINT or offset > MAX_SQL_BIGINT:
        raise InvalidArgument("Page and PageSize are too large")
    tag = normalize_tag(tag)

    total, rows = await repository.list_images(
        tag=tag,
        limit=page_size,
        offset=offset,
    )
    return schemas.ImagePage(
        total=total,
        page=page,
        page_size=page_size,
        items=[_to_view(r) for r in rows],
    )


async def get_image(image_id: int) -> schemas.ImageView | None:
    row = await repository.get_image(image_id)
    return _to_view(row) if row is not None else None
