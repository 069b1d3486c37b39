from __future__ import annotations

import re
from typing import Any, Dict, Optional, Tuple, Type

from pydantic import BaseModel, ValidationError

from .schemas import (
    KEBAB_PATTERN,
    SEMVER_PATTERN,
    BannedPhrases,
    BaselineDecisionRecord,
    EvidenceCard,
    TemplateRecord,
    TopicRecord,
    ValidationResult,
)


RECORD_TYPES: Dict[str, Type[BaseModel]] = {
    "topic": TopicRecord,
    "baseline": BaselineDecisionRecord,
    "evidence": EvidenceCard,
    "template": TemplateRecord,
    "banned_phrases": BannedPhrases,
}

_KEBAB_RE = re.compile(KEBAB_PATTERN)
_SEMVER_RE = re.compile(SEMVER_PATTERN)


def is_kebab_case(value: Any) -> bool:
    return isinstance(value, str) and bool(_KEBAB_RE.fullmatch(value))


def is_semver(value: Any) -> bool:
    return isinstance(value, str) and bool(_SEMVER_RE.fullmatch(value))


def _format_error(err: Dict[str, Any]) -> str:
    loc = ".".join(str(p) for p in err.get("loc", ())) or "record"
    msg = str(err.get("msg", "invalid"))
    # pydantic prefixes custom validator messages
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    return f"{loc}: {msg}"


def parse_record(
    record_type: str, data: Any
) -> Tuple[Optional[BaseModel], ValidationResult]:
    """Parse raw content into its typed record.

    Fails closed: any violation yields ``(None, result)`` so a partially
    valid record never reaches the content store.
    """
    model = RECORD_TYPES.get(record_type)
    if model is None:
        return None, ValidationResult.from_violations(
            [f"record: unknown record type '{record_type}'"]
        )
    if not isinstance(data, dict):
        return None, ValidationResult.from_violations(
            [f"record: expected a mapping, got {type(data).__name__}"]
        )

    try:
        record = model.model_validate(data)
    except ValidationError as e:
        return None, ValidationResult.from_violations(
            [_format_error(err) for err in e.errors()]
        )

    return record, ValidationResult(valid=True)


def validate_record(record_type: str, data: Any) -> ValidationResult:
    return parse_record(record_type, data)[1]
