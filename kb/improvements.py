"""
Deterministic topic improvement rules.

Each rule looks at one topic plus its health metrics (refusal rate and
refusal reason strings) and returns at most one suggestion. Candidate
inputs come from fixed, ordered pools; a rule takes the first N the topic
does not already declare, so the same topic state always yields the same
suggestions.
"""

from __future__ import annotations

import json
import math
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .schemas import Suggestion, TopicHealth, TopicImprovementAnalysis, TopicInput, TopicRecord
from .store import ContentStore


HIGH_REFUSAL_THRESHOLD = 0.5
WATCH_REFUSAL_THRESHOLD = 0.3
MIN_REQUIRED_INPUTS = 3

SEVERITY_ORDER = {"high": 0, "medium": 1, "low": 2}


def _inp(key: str, label: str, example: str) -> TopicInput:
    return TopicInput(key=key, label=label, example=example)


MATERIAL_INPUT_SUGGESTIONS: Tuple[TopicInput, ...] = (
    _inp("user_context.dates.month", "Travel month", "July"),
    _inp("user_context.dates.year", "Travel year", "2026"),
    _inp("user_context.budget_band", "Budget tier", "fair_value"),
    _inp("user_context.traveler_type", "Traveler type", "first_time"),
    _inp("user_context.group_size", "Group size", "2"),
)

BOUNDS_INPUT_SUGGESTIONS: Tuple[TopicInput, ...] = (
    _inp("user_context.dates.start", "Earliest travel date", "2026-06-01"),
    _inp("user_context.dates.end", "Latest travel date", "2026-08-31"),
    _inp("request.constraints.min_days", "Minimum trip days", "5"),
    _inp("request.constraints.max_days", "Maximum trip days", "14"),
    _inp("request.constraints.budget_min", "Budget minimum", "3000"),
    _inp("request.constraints.budget_max", "Budget maximum", "8000"),
)

FALLBACK_REQUIRED_INPUTS: Tuple[TopicInput, ...] = (
    _inp("user_context.risk_tolerance", "Risk tolerance", "medium"),
    _inp("user_context.pace_preference", "Pace preference", "balanced"),
)

DEFAULT_OPTIONAL_INPUTS: Tuple[TopicInput, ...] = (
    _inp("user_context.risk_tolerance", "Risk tolerance", "medium"),
    _inp("request.constraints.flexibility", "Flexibility", "flexible"),
)

DEFAULT_VARIANT_DEFAULTS = {
    "budget_band": "fair_value",
    "group_size": 2,
    "traveler_type": "first_time",
    "risk_tolerance": "medium",
}

GUARANTEE_NOTE = "Guarantees not possible - topic involves inherent uncertainty."

# reason code -> substrings that identify it in free-text refusal reasons
REASON_SIGNATURES: Dict[str, Tuple[str, ...]] = {
    "missing_material_inputs": ("missing_material_inputs", "missing material"),
    "inputs_conflict": ("inputs_conflict", "conflict"),
    "guarantee_request": ("guarantee",),
}


def reasons_match(reasons: Sequence[str], code: str) -> bool:
    """True if any refusal reason maps to ``code``.

    Upstream only supplies free-text reasons, so matching is substring based.
    """
    needles = REASON_SIGNATURES[code]
    for reason in reasons:
        lower = reason.lower()
        if any(n in lower for n in needles):
            return True
    return False


def _first_missing(
    pool: Sequence[TopicInput], existing: Sequence[str], limit: int
) -> List[TopicInput]:
    if limit <= 0:
        return []
    present = set(existing)
    return [s.model_copy() for s in pool if s.key not in present][:limit]


def _percent(rate: float) -> int:
    # round half up
    return int(math.floor(rate * 100 + 0.5))


def _required_keys(topic: TopicRecord) -> List[str]:
    return [i.key for i in topic.required_inputs]


# ---------------------------------------------------------------------------
# Rate rules
# ---------------------------------------------------------------------------


def rule_high_refusal_rate(
    topic: TopicRecord, refusal_rate: Optional[float]
) -> Optional[Suggestion]:
    if refusal_rate is None or refusal_rate <= HIGH_REFUSAL_THRESHOLD:
        return None

    missing = _first_missing(MATERIAL_INPUT_SUGGESTIONS, _required_keys(topic), 2)
    return Suggestion(
        rule_id="high_refusal_rate",
        severity="high",
        message=(
            f"Refusal rate {_percent(refusal_rate)}% exceeds 50%. Add more "
            "required_inputs examples to improve input completeness."
        ),
        field="required_inputs",
        suggested_additions=missing or [s.model_copy() for s in FALLBACK_REQUIRED_INPUTS],
    )


def rule_watch_refusal_rate(
    topic: TopicRecord, refusal_rate: Optional[float]
) -> Optional[Suggestion]:
    if (
        refusal_rate is None
        or refusal_rate <= WATCH_REFUSAL_THRESHOLD
        or refusal_rate > HIGH_REFUSAL_THRESHOLD
    ):
        return None

    return Suggestion(
        rule_id="watch_refusal_rate",
        severity="medium",
        message=(
            f"Refusal rate {_percent(refusal_rate)}% is elevated (30-50%). "
            "Consider adding optional_inputs for edge cases."
        ),
        field="optional_inputs",
        suggested_additions=[
            _inp("request.constraints.flexibility", "Date flexibility", "flexible")
        ],
    )


def rule_no_variant_defaults(
    topic: TopicRecord, refusal_rate: Optional[float]
) -> Optional[Suggestion]:
    if refusal_rate is None or refusal_rate < WATCH_REFUSAL_THRESHOLD:
        return None
    if topic.variant_defaults:
        return None

    return Suggestion(
        rule_id="suggest_variant_defaults",
        severity="low",
        message="Consider adding variant_defaults to provide fallback values for missing inputs.",
        field="variant_defaults",
        suggested_changes=dict(DEFAULT_VARIANT_DEFAULTS),
    )


# ---------------------------------------------------------------------------
# Refusal reason rules
# ---------------------------------------------------------------------------


def rule_missing_material_inputs(
    topic: TopicRecord, refusal_reasons: Sequence[str]
) -> Optional[Suggestion]:
    if not reasons_match(refusal_reasons, "missing_material_inputs"):
        return None

    return Suggestion(
        rule_id="missing_material_inputs",
        severity="high",
        message=(
            "Refusals due to missing material inputs. Tighten required_inputs "
            "list with explicit examples."
        ),
        field="required_inputs",
        suggested_additions=_first_missing(
            MATERIAL_INPUT_SUGGESTIONS, _required_keys(topic), 3
        ),
    )


def rule_inputs_conflict(
    topic: TopicRecord, refusal_reasons: Sequence[str]
) -> Optional[Suggestion]:
    if not reasons_match(refusal_reasons, "inputs_conflict"):
        return None

    return Suggestion(
        rule_id="inputs_conflict_unbounded",
        severity="high",
        message=(
            "Refusals due to unbounded/conflicting inputs. Add bounds examples "
            "(date range, budget range, days)."
        ),
        field="optional_inputs",
        suggested_additions=_first_missing(
            BOUNDS_INPUT_SUGGESTIONS, topic.input_keys(), 4
        ),
    )


def rule_guarantee_request(
    topic: TopicRecord, refusal_reasons: Sequence[str]
) -> Optional[Suggestion]:
    if not reasons_match(refusal_reasons, "guarantee_request"):
        return None

    return Suggestion(
        rule_id="guarantee_request",
        severity="medium",
        message=(
            'Refusals due to guarantee requests. Add dev-only note: '
            '"Guarantees not possible for this topic."'
        ),
        field="topic_note",
        suggested_changes={"dev_note": GUARANTEE_NOTE},
    )


# ---------------------------------------------------------------------------
# Structural rules
# ---------------------------------------------------------------------------


def rule_insufficient_required_inputs(
    topic: TopicRecord, refusal_rate: Optional[float]
) -> Optional[Suggestion]:
    count = len(topic.required_inputs)
    if count >= MIN_REQUIRED_INPUTS:
        return None

    return Suggestion(
        rule_id="insufficient_required_inputs",
        severity="medium",
        message=(
            f"Only {count} required_inputs defined. Recommend at least 3 for "
            "reliable decisions."
        ),
        field="required_inputs",
        suggested_additions=_first_missing(
            MATERIAL_INPUT_SUGGESTIONS, _required_keys(topic), MIN_REQUIRED_INPUTS - count
        ),
    )


def rule_no_optional_inputs(
    topic: TopicRecord, refusal_rate: Optional[float]
) -> Optional[Suggestion]:
    if topic.optional_inputs:
        return None

    return Suggestion(
        rule_id="no_optional_inputs",
        severity="low",
        message="No optional_inputs defined. Consider adding for variant exploration.",
        field="optional_inputs",
        suggested_additions=[s.model_copy() for s in DEFAULT_OPTIONAL_INPUTS],
    )


def rule_missing_date_context(
    topic: TopicRecord, refusal_rate: Optional[float]
) -> Optional[Suggestion]:
    tc = topic.time_context
    if tc is None or not (tc.month or tc.season):
        return None
    if any("dates" in k or "month" in k for k in _required_keys(topic)):
        return None

    return Suggestion(
        rule_id="missing_date_context",
        severity="medium",
        message=(
            "Topic has time_context but no date-related required_input. Add "
            "date input for consistency."
        ),
        field="required_inputs",
        suggested_additions=[
            _inp("user_context.dates.month", "Travel month", tc.month or "July")
        ],
    )


def rule_missing_destination_input(
    topic: TopicRecord, refusal_rate: Optional[float]
) -> Optional[Suggestion]:
    if len(topic.destinations) <= 1:
        return None
    if any("destination" in k for k in _required_keys(topic)):
        return None

    return Suggestion(
        rule_id="missing_destination_input",
        severity="medium",
        message=(
            f"Topic covers {len(topic.destinations)} destinations but lacks "
            "destination input."
        ),
        field="required_inputs",
        suggested_additions=[
            _inp(
                "request.destinations_considered",
                "Destinations",
                json.dumps(topic.destinations[:2], separators=(",", ":")),
            )
        ],
    )


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

Rule = Callable[[TopicRecord, Optional[float], Sequence[str]], Optional[Suggestion]]

RULES: Tuple[Rule, ...] = (
    lambda t, rate, reasons: rule_high_refusal_rate(t, rate),
    lambda t, rate, reasons: rule_watch_refusal_rate(t, rate),
    lambda t, rate, reasons: rule_missing_material_inputs(t, reasons),
    lambda t, rate, reasons: rule_inputs_conflict(t, reasons),
    lambda t, rate, reasons: rule_guarantee_request(t, reasons),
    lambda t, rate, reasons: rule_insufficient_required_inputs(t, rate),
    lambda t, rate, reasons: rule_no_optional_inputs(t, rate),
    lambda t, rate, reasons: rule_missing_date_context(t, rate),
    lambda t, rate, reasons: rule_no_variant_defaults(t, rate),
    lambda t, rate, reasons: rule_missing_destination_input(t, rate),
)


def analyze_topic(
    topic: TopicRecord,
    refusal_rate: Optional[float],
    refusal_reasons: Optional[Sequence[str]] = None,
) -> TopicImprovementAnalysis:
    reasons = list(refusal_reasons or [])
    if refusal_rate is not None and not math.isfinite(refusal_rate):
        # NaN and inf carry no signal; treat as missing metrics
        refusal_rate = None
    suggestions: List[Suggestion] = []
    for rule in RULES:
        result = rule(topic, refusal_rate, reasons)
        if result is not None:
            suggestions.append(result)

    # sorted() is stable, so rule order breaks ties
    suggestions = sorted(suggestions, key=lambda s: SEVERITY_ORDER[s.severity])
    return TopicImprovementAnalysis(
        topic_id=topic.topic_id, refusal_rate=refusal_rate, suggestions=suggestions
    )


def analyze_topics(
    store: ContentStore, metrics: Sequence[TopicHealth]
) -> List[TopicImprovementAnalysis]:
    by_topic = {m.topic_id: m for m in metrics}
    out = []
    for topic in store.list_topics():
        health = by_topic.get(topic.topic_id)
        if health is None:
            out.append(analyze_topic(topic, None, []))
        else:
            out.append(analyze_topic(topic, health.refusal_rate, health.refusal_reasons))
    return out
