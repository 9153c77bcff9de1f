"""
TheCatAPI HTTP client helpers.

Used endpoints:
- GET /images/search?limit={n}&has_breeds=1
    -> [{"id": "...", "url": "...", "width": 600, "height": 400,
         "breeds": [{"temperament": "Playful, Friendly", ...}]}, ...]

Only structural decoding happens here. Field-level checks (empty ids,
non-positive sizes, bad URLs) belong to `ingestion.validation`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from .errors import ConfigurationError, NetworkError, ParseError


@dataclass(frozen=True)
class RawCatalogItem:
    external_id: str
    image_url: str
    width: int | None
    height: int | None
    temperament: str | None = None


def _require(value: str | None, name: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ConfigurationError(f"{name} is empty.")
    return value


def _optional_int(item: dict[str, Any], key: str) -> int | None:
    value = item.get(key)
    if value is None:
        return None
    # bool is an int subclass; a boolean size is a malformed payload.
    if isinstance(value, bool) or not isinstance(value, int):
        raise ParseError(f"Catalog item field '{key}' is not an integer: {value!r}")
    return value


def _optional_str(item: dict[str, Any], key: str) -> str:
    value = item.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ParseError(f"Catalog item field '{key}' is not a string: {value!r}")
    return value


def _first_temperament(item: dict[str, Any]) -> str | None:
    breeds = item.get("breeds")
    if breeds is None:
        return None
    if not isinstance(breeds, list):
        raise ParseError("Catalog item field 'breeds' is not a list.")
    if not breeds:
        return None

    breed = breeds[0]
    if not isinstance(breed, dict):
        raise ParseError("Catalog breed entry is not an object.")
    temperament = breed.get("temperament")
    if temperament is None:
        return None
    if not isinstance(temperament, str):
        raise ParseError("Catalog breed field 'temperament' is not a string.")
    return temperament


def parse_search_payload(data: Any) -> list[RawCatalogItem]:
    """
    Decode the /images/search JSON body into `RawCatalogItem`s.
    """
    if not isinstance(data, list):
        raise ParseError("Catalog search response is not a JSON array.")

    items: list[RawCatalogItem] = []
    for entry in data:
        if not isinstance(entry, dict):
            raise ParseError("Catalog search response contains a non-object entry.")
        items.append(
            RawCatalogItem(
                external_id=_optional_str(entry, "id"),
                image_url=_optional_str(entry, "url"),
                width=_optional_int(entry, "width"),
                height=_optional_int(entry, "height"),
                temperament=_first_temperament(entry),
            )
        )
    return items


async def search_images(
    *,
    base_url: str,
    api_key: str,
    limit: int,
    has_breeds: bool = True,
    timeout_s: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[RawCatalogItem]:
    """
    Fetch one page of images from the catalog.

    Configuration is checked before the request is built, so a missing key
    never reaches the network.
    """
    base_url = _require(base_url, "CAT_API_URL").rstrip("/")
    api_key = _require(api_key, "CAT_API_KEY")
    if limit <= 0:
        raise ConfigurationError("Catalog fetch limit must be > 0.")

    params: dict[str, Any] = {"limit": limit}
    if has_breeds:
        params["has_breeds"] = 1

    try:
        async with httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_s,
            headers={"x-api-key": api_key},
            transport=transport,
        ) as client:
            resp = await client.get("/images/search", params=params)
    except httpx.HTTPError as e:
        raise NetworkError(f"Catalog search request failed: {e}") from e

    if resp.status_code != 200:
        # Avoid dumping huge bodies; include a small snippet.
        body = resp.text[:500]
        raise NetworkError(f"Catalog search request failed: {resp.status_code} {body}")

    try:
        data = resp.json()
    except ValueError as e:
        raise ParseError("Catalog search response is not valid JSON.") from e

    return parse_search_payload(data)
