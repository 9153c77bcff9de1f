import itertools
from typing import Any

import pytest

from core import catapi
from core.errors import PersistenceError
from ingestion import repository as ingestion_repository
from jobs import service as jobs_service

API_URL = "https://api.thecatapi.com/v1"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _clear_jobs():
    jobs_service.reset()
    yield
    jobs_service.reset()


@pytest.fixture
def catapi_env(monkeypatch):
    monkeypatch.setenv("CAT_API_URL", API_URL)
    monkeypatch.setenv("CAT_API_KEY", "test-key")
    monkeypatch.delenv("CAT_API_FETCH_LIMIT", raising=False)
    monkeypatch.delenv("CAT_API_TIMEOUT_S", raising=False)


def cat(external_id, temperament=None, *, url=None, width=600, height=400):
    """One /images/search entry as TheCatAPI returns it."""
    item: dict[str, Any] = {
        "id": external_id,
        "url": url if url is not None else f"https://cdn2.thecatapi.com/images/{external_id or 'x'}.jpg",
        "width": width,
        "height": height,
        "breeds": [],
    }
    if temperament is not None:
        item["breeds"] = [{"name": "Some Breed", "temperament": temperament}]
    return item


class FakeCatalog:
    """Stands in for `catapi.search_images`; decodes payloads the real way."""

    def __init__(self):
        self.payload: Any = []
        self.error: Exception | None = None
        self.calls: list[dict[str, Any]] = []

    async def search_images(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return catapi.parse_search_payload(self.payload)


@pytest.fixture
def catalog(monkeypatch, catapi_env):
    fake = FakeCatalog()
    monkeypatch.setattr(catapi, "search_images", fake.search_images)
    return fake


class FakeStore:
    """
    In-memory replacement for `ingestion.repository`.

    Enforces the same unique rules as the schema (external_id, lower(name))
    and commits a batch all at once or not at all.
    """

    def __init__(self):
        self._ids = itertools.count(1)
        self.images: list[dict[str, Any]] = []
        self.labels: list[dict[str, Any]] = []
        self.links: set[tuple[int, int]] = set()
        self.fail_writes = False
        self.write_calls = 0
        self.hide_existing_ids = False

    def add_label(self, name):
        row = {"id": next(self._ids), "name": name}
        self.labels.append(row)
        return row

    def add_image(self, external_id, labels=()):
        row = {
            "id": next(self._ids),
            "external_id": external_id,
            "width": 100,
            "height": 100,
            "image_url": f"https://example.com/{external_id}.jpg",
        }
        self.images.append(row)
        for name in labels:
            label = self._label_by_key(self.labels, name.lower()) or self.add_label(name)
            self.links.add((row["id"], label["id"]))
        return row

    @staticmethod
    def _label_by_key(labels, key):
        return next((l for l in labels if l["name"].lower() == key), None)

    def external_ids(self):
        return [i["external_id"] for i in self.images]

    def label_names(self):
        return sorted(l["name"] for l in self.labels)

    def labels_of(self, external_id):
        image = next(i for i in self.images if i["external_id"] == external_id)
        by_id = {l["id"]: l["name"] for l in self.labels}
        return sorted(by_id[lid] for (iid, lid) in self.links if iid == image["id"])

    async def fetch_external_ids(self):
        if self.hide_existing_ids:
            return set()
        return set(self.external_ids())

    async def fetch_labels(self):
        return [dict(l) for l in self.labels]

    async def insert_batch(self, images, labels, *, created_at):
        self.write_calls += 1
        if self.fail_writes:
            raise PersistenceError("Failed to persist ingestion batch: connection reset")

        new_labels = [dict(l) for l in self.labels]
        new_images = [dict(i) for i in self.images]
        new_links = set(self.links)
        labels_added = 0
        for label in labels:
            if self._label_by_key(new_labels, label.key) is None:
                new_labels.append({"id": next(self._ids), "name": label.name})
                labels_added += 1

        records_added = 0
        for image in images:
            if any(i["external_id"] == image.external_id for i in new_images):
                continue
            row = {
                "id": next(self._ids),
                "external_id": image.external_id,
                "width": image.width,
                "height": image.height,
                "image_url": image.image_url,
            }
            new_images.append(row)
            records_added += 1
            for ref in image.labels:
                label_id = ref.id if ref.id is not None else self._label_by_key(new_labels, ref.key)["id"]
                new_links.add((row["id"], label_id))

        self.labels, self.images, self.links = new_labels, new_images, new_links
        return ingestion_repository.BatchOutcome(records_added=records_added, labels_added=labels_added)


@pytest.fixture
def store(monkeypatch):
    fake = FakeStore()
    monkeypatch.setattr(ingestion_repository, "fetch_external_ids", fake.fetch_external_ids)
    monkeypatch.setattr(ingestion_repository, "fetch_labels", fake.fetch_labels)
    monkeypatch.setattr(ingestion_repository, "insert_batch", fake.insert_batch)
    return fake
