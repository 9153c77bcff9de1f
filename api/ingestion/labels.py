"""
Case-insensitive label registry for one ingestion run.

Labels are keyed by their trimmed, lower-cased name. The first casing seen
(persisted or staged) is the one that is stored and displayed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable

LabelLoader = Callable[[], Awaitable[list[dict[str, Any]]]]


def label_key(name: str) -> str:
    return (name or "").strip().lower()


def split_temperament(raw: str | None) -> list[str]:
    """
    "Playful, Friendly,, " -> ["Playful", "Friendly"]
    """
    if not raw:
        return []
    return [token.strip() for token in raw.split(",") if token.strip()]


@dataclass(frozen=True)
class LabelRef:
    """
    Identity of a label within a run.

    `id` is None for labels staged during this run; the store assigns it
    when the batch is written.
    """

    key: str
    name: str
    id: int | None = None

    @property
    def is_new(self) -> bool:
        return self.id is None


class LabelRegistry:
    def __init__(self, loader: LabelLoader) -> None:
        self._loader = loader
        self._labels: dict[str, LabelRef] | None = None
        self._staged: list[LabelRef] = []

    async def _ensure_loaded(self) -> dict[str, LabelRef]:
        if self._labels is None:
            rows = await self._loader()
            labels: dict[str, LabelRef] = {}
            for row in rows:
                name = str(row["name"])
                key = label_key(name)
                # Keep the oldest row if the store ever holds case variants.
                labels.setdefault(key, LabelRef(key=key, name=name, id=int(row["id"])))
            self._labels = labels
        return self._labels

    async def resolve(self, name: str) -> LabelRef:
        display = (name or "").strip()
        if not display:
            raise ValueError("Label name is empty.")

        labels = await self._ensure_loaded()
        key = label_key(display)
        ref = labels.get(key)
        if ref is None:
            ref = LabelRef(key=key, name=display)
            labels[key] = ref
            self._staged.append(ref)
        return ref

    @property
    def staged(self) -> list[LabelRef]:
        return list(self._staged)
