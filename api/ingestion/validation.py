"""
Field-level rules for a candidate image record.

A record either passes every rule or is dropped whole; callers get one
`FieldViolation` per failed field, which is what ends up in the run report.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Annotated

from pydantic import AnyHttpUrl, BaseModel, Field, StringConstraints, ValidationError

MAX_LABEL_CHARS = 80


@dataclass(frozen=True)
class FieldViolation:
    external_id: str
    field: str
    message: str


@dataclass
class CandidateRecord:
    external_id: str
    image_url: str
    width: int | None
    height: int | None
    created_at: datetime
    label_names: list[str] = field(default_factory=list)


class _RecordRules(BaseModel):
    external_id: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    width: int = Field(..., ge=1)
    height: int = Field(..., ge=1)
    image_url: AnyHttpUrl
    label_names: list[Annotated[str, StringConstraints(min_length=1, max_length=MAX_LABEL_CHARS)]] = []


def _field_name(loc: tuple) -> str:
    head, *rest = loc or ("record",)
    name = str(head)
    for part in rest:
        name += f"[{part}]" if isinstance(part, int) else f".{part}"
    return name


def validate(candidate: CandidateRecord) -> list[FieldViolation]:
    """
    Return an empty list when the candidate may be stored.
    """
    try:
        _RecordRules.model_validate(
            {
                "external_id": candidate.external_id,
                "width": candidate.width,
                "height": candidate.height,
                "image_url": candidate.image_url,
                "label_names": candidate.label_names,
            }
        )
    except ValidationError as e:
        violations: list[FieldViolation] = []
        for err in e.errors():
            name = _field_name(tuple(err.get("loc", ())))
            violations.append(
                FieldViolation(
                    external_id=candidate.external_id,
                    field=name,
                    message=f"{name}: {err.get('msg', 'invalid value')}",
                )
            )
        return violations
    return []
