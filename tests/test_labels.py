import asyncio

import pytest
from hypothesis import given
from hypothesis import strategies as st

from ingestion.labels import LabelRegistry, label_key, split_temperament


def _loader(rows):
    calls = []

    async def load():
        calls.append(1)
        return [dict(r) for r in rows]

    return load, calls


def _resolve_all(names, rows=()):
    load, _ = _loader(rows)
    registry = LabelRegistry(load)

    async def go():
        return [await registry.resolve(n) for n in names]

    return registry, asyncio.run(go())


def test_split_temperament():
    assert split_temperament("Playful, Friendly,, ,Calm ") == ["Playful", "Friendly", "Calm"]
    assert split_temperament("") == []
    assert split_temperament(None) == []


def test_case_variants_resolve_to_one_staged_label():
    registry, refs = _resolve_all(["Calm", "calm", " CALM "])

    assert len({r.key for r in refs}) == 1
    assert [r.name for r in registry.staged] == ["Calm"]
    assert all(r.is_new for r in refs)


def test_existing_label_is_reused_with_its_id():
    registry, (ref,) = _resolve_all(["playful"], rows=[{"id": 7, "name": "Playful"}])

    assert ref.id == 7
    assert ref.name == "Playful"
    assert registry.staged == []


def test_registry_loads_persisted_labels_once():
    load, calls = _loader([{"id": 1, "name": "Calm"}])
    registry = LabelRegistry(load)

    async def go():
        await registry.resolve("Calm")
        await registry.resolve("Gentle")
        await registry.resolve("gentle")

    asyncio.run(go())

    assert len(calls) == 1
    assert [r.name for r in registry.staged] == ["Gentle"]


def test_blank_name_is_rejected():
    load, _ = _loader([])
    registry = LabelRegistry(load)

    with pytest.raises(ValueError):
        asyncio.run(registry.resolve("   "))


_word = st.text(alphabet="abcdefghijklmnopqrstuvwxyz", min_size=1, max_size=12)


@given(word=_word, flips=st.lists(st.booleans(), min_size=1, max_size=8))
def test_any_casing_maps_to_first_seen_name(word, flips):
    variants = [word.upper() if flip else word.lower() for flip in flips]
    registry, refs = _resolve_all(variants)

    assert len(registry.staged) == 1
    assert registry.staged[0].name == variants[0]
    assert {r.key for r in refs} == {label_key(word)}
