"""
Ingestion persistence.
This module is where ingestion-related SQL lives.

Schema (see db/migrations):
- images(id bigserial, external_id unique, width, height, image_url, created_at)
- labels(id bigserial, name, created_at), unique on lower(name)
- image_labels(image_id, label_id) join table
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

import asyncpg

from core import db
from core.errors import PersistenceError

from .labels import LabelRef


@dataclass(frozen=True)
class NewImage:
    external_id: str
    image_url: str
    width: int
    height: int
    created_at: datetime
    labels: tuple[LabelRef, ...] = ()


@dataclass(frozen=True)
class BatchOutcome:
    records_added: int
    labels_added: int


async def fetch_external_ids() -> set[str]:
    rows = await db.fetch_all("SELECT external_id FROM images")
    return {str(r["external_id"]) for r in rows}


async def fetch_labels() -> list[dict[str, Any]]:
    """
    All persisted labels, oldest first.
    """
    return await db.fetch_all("SELECT id, name FROM labels ORDER BY id")


async def insert_batch(
    images: list[NewImage],
    labels: list[LabelRef],
    *,
    created_at: datetime,
) -> BatchOutcome:
    """
    Insert staged labels, images and their associations in a single transaction.

    Conflicts on `images.external_id` or `lower(labels.name)` (a concurrent run
    got there first) are absorbed: the existing row wins and is not counted.
    Any other database failure rolls the whole batch back.
    """
    if not images and not labels:
        return BatchOutcome(records_added=0, labels_added=0)

    # Key order, so overlapping runs take unique-index locks in the same sequence.
    ordered_labels = sorted(labels, key=lambda ref: ref.key)
    ordered_images = sorted(images, key=lambda image: image.external_id)

    try:
        async with db.transaction() as conn:
            labels_added = 0
            label_ids: dict[str, int] = {}
            for label in ordered_labels:
                row = await conn.fetchrow(
                    """
                    INSERT INTO labels (name, created_at)
                    VALUES ($1, $2)
                    ON CONFLICT DO NOTHING
                    RETURNING id
                    """,
                    label.name,
                    created_at,
                )
                if row is not None:
                    labels_added += 1
                else:
                    # Case variant already stored; match it the way the index does.
                    row = await conn.fetchrow(
                        "SELECT id FROM labels WHERE lower(name) = lower($1) ORDER BY id LIMIT 1",
                        label.name,
                    )
                    if row is None:
                        raise PersistenceError(f"Label '{label.name}' conflicted but was not found.")
                label_ids[label.key] = int(row["id"])

            records_added = 0
            pairs: list[tuple[int, int]] = []
            for image in ordered_images:
                row = await conn.fetchrow(
                    """
                    INSERT INTO images (external_id, width, height, image_url, created_at)
                    VALUES ($1, $2, $3, $4, $5)
                    ON CONFLICT (external_id) DO NOTHING
                    RETURNING id
                    """,
                    image.external_id,
                    image.width,
                    image.height,
                    image.image_url,
                    image.created_at,
                )
                if row is None:
                    continue
                records_added += 1
                image_id = int(row["id"])
                for ref in image.labels:
                    label_id = ref.id if ref.id is not None else label_ids.get(ref.key)
                    if label_id is None:
                        raise PersistenceError(f"Label '{ref.name}' was not staged with the batch.")
                    pairs.append((image_id, label_id))

            if pairs:
                await conn.executemany(
                    """
                    INSERT INTO image_labels (image_id, label_id)
                    VALUES ($1, $2)
                    ON CONFLICT DO NOTHING
                    """,
                    sorted(set(pairs)),
                )
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
        raise PersistenceError(f"Failed to persist ingestion batch: {e}") from e

    return BatchOutcome(records_added=records_added, labels_added=labels_added)
