from __future__ import annotations

import json
from typing import Any, Dict, List, Sequence

from .schemas import TopicImprovementAnalysis, TopicInput, TopicPatch, TopicRecord


def dedupe_by_key(inputs: Sequence[TopicInput]) -> List[TopicInput]:
    seen = set()
    out = []
    for inp in inputs:
        if inp.key in seen:
            continue
        seen.add(inp.key)
        out.append(inp)
    return out


def generate_topic_patch(analysis: TopicImprovementAnalysis) -> TopicPatch:
    required: List[TopicInput] = []
    optional: List[TopicInput] = []
    variant_changes: Dict[str, Any] = {}
    notes: Dict[str, Any] = {}

    for s in analysis.suggestions:
        if s.field == "required_inputs":
            required.extend(s.suggested_additions or [])
        elif s.field == "optional_inputs":
            optional.extend(s.suggested_additions or [])
        elif s.field == "variant_defaults":
            variant_changes.update(s.suggested_changes or {})
        elif s.field == "topic_note":
            notes.update(s.suggested_changes or {})
        else:
            raise ValueError(f"Unhandled suggestion field: {s.field}")

    return TopicPatch(
        topic_id=analysis.topic_id,
        suggested_required_inputs_additions=dedupe_by_key(required),
        suggested_optional_inputs_additions=dedupe_by_key(optional),
        suggested_variant_default_changes=variant_changes,
        suggested_topic_notes=notes,
    )


def patch_to_json(patch: TopicPatch) -> str:
    return json.dumps(patch.model_dump(), indent=2, ensure_ascii=False)


def apply_patch(topic: TopicRecord, patch: TopicPatch) -> TopicRecord:
    """Return a copy of ``topic`` with the patch applied.

    Additions whose key the topic already declares are skipped; variant
    defaults are merged over the existing ones. Topic notes are review-only
    and are not written into the record.
    """
    if patch.topic_id != topic.topic_id:
        raise ValueError(
            f"Patch for {patch.topic_id} cannot be applied to {topic.topic_id}"
        )

    existing = set(topic.input_keys())
    required = list(topic.required_inputs)
    for inp in patch.suggested_required_inputs_additions:
        if inp.key not in existing:
            required.append(inp.model_copy())
            existing.add(inp.key)
    optional = list(topic.optional_inputs)
    for inp in patch.suggested_optional_inputs_additions:
        if inp.key not in existing:
            optional.append(inp.model_copy())
            existing.add(inp.key)

    variant_defaults = dict(topic.variant_defaults)
    variant_defaults.update(patch.suggested_variant_default_changes)

    return topic.model_copy(
        update={
            "required_inputs": required,
            "optional_inputs": optional,
            "variant_defaults": variant_defaults,
        }
    )
