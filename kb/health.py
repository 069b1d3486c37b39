from __future__ import annotations

import logging
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import ValidationError

from .schemas import TopicHealth


logger = logging.getLogger(__name__)

HealthStatus = Literal["healthy", "watch", "critical", "unknown"]


def calculate_refusal_rate(issued: Optional[int], refused: Optional[int]) -> Optional[float]:
    if issued is None or refused is None:
        return None
    total = issued + refused
    if total == 0:
        return None
    return refused / total


def status_from_refusal_rate(rate: Optional[float]) -> HealthStatus:
    if rate is None:
        return "unknown"
    if rate < 0.3:
        return "healthy"
    if rate <= 0.5:
        return "watch"
    return "critical"


def _from_counter(entry: Dict[str, Any], fallback_reasons: List[str]) -> TopicHealth:
    rate = entry.get("refusal_rate")
    if rate is None:
        rate = calculate_refusal_rate(entry.get("issued"), entry.get("refused"))
    reasons = entry.get("refusal_reasons")
    if reasons is None:
        reasons = fallback_reasons
    return TopicHealth(
        topic_id=str(entry["topic_id"]),
        refusal_rate=rate,
        refusal_reasons=[str(r) for r in reasons],
    )


def parse_health_metrics(data: Any) -> List[TopicHealth]:
    """Normalize a health export into per-topic metrics.

    Accepts either a plain list of ``{topic_id, refusal_rate, refusal_reasons}``
    entries or an ops-health payload with ``topic_counters`` (issued/refused
    counts) and ``top_refusal_reasons``. Counters without their own reasons
    inherit the global top reasons.
    """
    if data is None:
        return []
    if isinstance(data, list):
        entries = data
        fallback: List[str] = []
    elif isinstance(data, dict):
        entries = data.get("topic_counters") or data.get("topics") or []
        fallback = [str(r) for r in (data.get("top_refusal_reasons") or [])]
    else:
        raise ValueError(f"Unsupported health metrics payload: {type(data).__name__}")

    out = []
    for entry in entries:
        if not isinstance(entry, dict) or not entry.get("topic_id"):
            logger.warning("Skipping health entry without topic_id: %r", entry)
            continue
        try:
            out.append(_from_counter(entry, fallback))
        except (ValidationError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed health entry for %s: %s", entry["topic_id"], e)
    return out


def load_health_metrics(path: str) -> List[TopicHealth]:
    # yaml.safe_load reads JSON exports as well
    with open(path, "r", encoding="utf-8") as f:
        return parse_health_metrics(yaml.safe_load(f))
