"""
Image read queries (raw).

Listing always orders by `images.id`, which grows with insertion order, so
page boundaries are stable while no new rows arrive.
"""

from __future__ import annotations

from typing import Any

import asyncpg

from core import db

# $1 is the tag (or NULL for no filter).
_TAG_FILTER = """
  ($1::text IS NULL OR EXISTS (
    SELECT 1
    FROM image_labels il
    JOIN labels l ON l.id = il.label_id
    WHERE il.image_id = i.id
      AND lower(l.name) = lower($1::text)
  ))
"""

_COUNT_SQL = f"""
SELECT count(*) AS n
FROM images i
WHERE {_TAG_FILTER}
"""

_PAGE_SQL = f"""
WITH page AS (
  SELECT i.id, i.external_id, i.width, i.height, i.image_url, i.created_at
  FROM images i
  WHERE {_TAG_FILTER}
  ORDER BY i.id
  LIMIT $2
  OFFSET $3
)
SELECT
  p.id,
  p.external_id,
  p.width,
  p.height,
  p.image_url,
  p.created_at,
  COALESCE(
    array_agg(l.name ORDER BY l.id) FILTER (WHERE l.id IS NOT NULL),
    ARRAY[]::text[]
  ) AS labels
FROM page p
LEFT JOIN image_labels il ON il.image_id = p.id
LEFT JOIN labels l ON l.id = il.label_id
GROUP BY p.id, p.external_id, p.width, p.height, p.image_url, p.created_at
ORDER BY p.id
"""


def _row(record: asyncpg.Record) -> dict[str, Any]:
    row = dict(record)
    row["labels"] = list(row.get("labels") or [])
    return row


async def list_images(
    *,
    tag: str | None,
    limit: int,
    offset: int,
) -> tuple[int, list[dict[str, Any]]]:
    """
    Return (total matching, rows for the requested slice).

    Both queries share one snapshot so the total and the page agree.
    """
    async with db.transaction(isolation="repeatable_read", readonly=True) as conn:
        total = await conn.fetchval(_COUNT_SQL, tag)
        records = await conn.fetch(_PAGE_SQL, tag, limit, offset)
    return int(total or 0), [_row(r) for r in records]


async def get_image(image_id: int) -> dict[str, Any] | None:
    row = await db.fetch_one(
        """
        SELECT
          i.id,
          i.external_id,
          i.width,
          i.height,
          i.image_url,
          i.created_at,
          COALESCE(
            array_agg(l.name ORDER BY l.id) FILTER (WHERE l.id IS NOT NULL),
            ARRAY[]::text[]
          ) AS labels
        FROM images i
        LEFT JOIN image_labels il ON il.image_id = i.id
        LEFT JOIN labels l ON l.id = il.label_id
        WHERE i.id = $1
        GROUP BY i.id
        """,
        image_id,
    )
    if row is None:
        return None
    row["labels"] = list(row.get("labels") or [])
    return row
