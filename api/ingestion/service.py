"""
Ingestion "service layer".

One run pulls a batch from the catalog and stores what is new:
- fetch (no store transaction is open while waiting on the network)
- skip external ids we already have, including repeats inside the batch
- validate each candidate; invalid ones are reported and dropped
- resolve labels for accepted candidates only
- write everything in one transaction

Only field violations are recovered here. Configuration, network, parse and
persistence errors propagate to the caller and fail the run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from core import catapi, settings
from core.errors import NetworkError, ParseError, PersistenceError

from . import repository
from .labels import LabelRegistry, split_temperament
from .validation import CandidateRecord, FieldViolation, validate

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RunResult:
    records_added: int
    labels_added: int
    fetched: int = 0
    duplicates: int = 0
    violations: list[FieldViolation] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "records_added": self.records_added,
            "labels_added": self.labels_added,
            "fetched": self.fetched,
            "duplicates": self.duplicates,
            "violations": [
                {"external_id": v.external_id, "field": v.field, "message": v.message}
                for v in self.violations
            ],
        }


def _candidate(item: catapi.RawCatalogItem, created_at: datetime) -> CandidateRecord:
    return CandidateRecord(
        external_id=item.external_id.strip(),
        image_url=item.image_url,
        width=item.width,
        height=item.height,
        created_at=created_at,
        label_names=split_temperament(item.temperament),
    )


async def fetch_catalog_items(limit: int | None = None) -> list[catapi.RawCatalogItem]:
    """
    Read settings and call the catalog.

    Settings are resolved first so a missing key fails before any I/O.
    """
    base_url = settings.catalog_api_url()
    api_key = settings.catalog_api_key()
    n = limit if limit is not None and limit > 0 else settings.fetch_limit()

    try:
        return await catapi.search_images(
            base_url=base_url,
            api_key=api_key,
            limit=n,
            has_breeds=True,
            timeout_s=settings.request_timeout_s(),
        )
    except NetworkError:
        logger.exception("catalog_fetch_failed limit=%s", n)
        raise
    except ParseError:
        logger.exception("catalog_parse_failed limit=%s", n)
        raise


async def run_ingestion(*, limit: int | None = None) -> RunResult:
    """
    Execute one ingestion run and report what changed.
    """
    items = await fetch_catalog_items(limit)
    if not items:
        logger.info("ingestion_complete fetched=0 added=0 labels_added=0")
        return RunResult(records_added=0, labels_added=0)

    created_at = _utc_now()
    seen = await repository.fetch_external_ids()
    registry = LabelRegistry(repository.fetch_labels)

    staged: list[repository.NewImage] = []
    violations: list[FieldViolation] = []
    duplicates = 0

    for item in items:
        candidate = _candidate(item, created_at)
        if candidate.external_id in seen:
            duplicates += 1
            continue

        problems = validate(candidate)
        if problems:
            for problem in problems:
                logger.error(
                    "record_rejected external_id=%r field=%s message=%s",
                    problem.external_id,
                    problem.field,
                    problem.message,
                )
            violations.extend(problems)
            continue

        refs = []
        for name in candidate.label_names:
            ref = await registry.resolve(name)
            if ref not in refs:
                refs.append(ref)

        staged.append(
            repository.NewImage(
                external_id=candidate.external_id,
                image_url=candidate.image_url,
                width=int(candidate.width),
                height=int(candidate.height),
                created_at=candidate.created_at,
                labels=tuple(refs),
            )
        )
        seen.add(candidate.external_id)

    if not staged:
        logger.info(
            "ingestion_complete fetched=%s added=0 labels_added=0 duplicates=%s violations=%s",
            len(items),
            duplicates,
            len(violations),
        )
        return RunResult(
            records_added=0,
            labels_added=0,
            fetched=len(items),
            duplicates=duplicates,
            violations=violations,
        )

    new_labels = registry.staged
    logger.info("ingestion_saving records=%s labels=%s", len(staged), len(new_labels))
    try:
        outcome = await repository.insert_batch(staged, new_labels, created_at=created_at)
    except PersistenceError:
        logger.exception("ingestion_persist_failed records=%s labels=%s", len(staged), len(new_labels))
        raise

    result = RunResult(
        records_added=outcome.records_added,
        labels_added=outcome.labels_added,
        fetched=len(items),
        duplicates=duplicates,
        violations=violations,
    )
    logger.info(
        "ingestion_complete fetched=%s added=%s labels_added=%s duplicates=%s violations=%s",
        result.fetched,
        result.records_added,
        result.labels_added,
        result.duplicates,
        len(result.violations),
    )
    return result
