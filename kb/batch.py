from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Sequence

from .health import status_from_refusal_rate
from .patch import generate_topic_patch, patch_to_json
from .schemas import TopicImprovementAnalysis


def export_patches(
    analyses: Sequence[TopicImprovementAnalysis], out_dir: Path
) -> List[Path]:
    """Write one ``<topic_id>.patch.json`` per topic that has suggestions."""
    out_dir.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []
    for analysis in analyses:
        patch = generate_topic_patch(analysis)
        if patch.is_empty():
            continue
        path = out_dir / f"{analysis.topic_id}.patch.json"
        path.write_text(patch_to_json(patch), encoding="utf-8")
        written.append(path)
    return written


def summarize(analyses: Sequence[TopicImprovementAnalysis]) -> Dict[str, Any]:
    severity_counts: Dict[str, int] = {"high": 0, "medium": 0, "low": 0}
    rule_counts: Dict[str, int] = {}
    status_counts: Dict[str, int] = {}
    topics: Dict[str, Any] = {}

    for a in analyses:
        status = status_from_refusal_rate(a.refusal_rate)
        status_counts[status] = status_counts.get(status, 0) + 1
        for s in a.suggestions:
            severity_counts[s.severity] += 1
            rule_counts[s.rule_id] = rule_counts.get(s.rule_id, 0) + 1
        topics[a.topic_id] = {
            "status": status,
            "refusal_rate": a.refusal_rate,
            "suggestions": [s.rule_id for s in a.suggestions],
        }

    total = len(analyses)
    rule_hit_rate = {
        k: float(f"{(v / total if total else 0.0):.4f}") for k, v in rule_counts.items()
    }
    top3 = sorted(rule_counts.items(), key=lambda x: x[1], reverse=True)[:3]

    return {
        "total": total,
        "status_counts": status_counts,
        "severity_counts": severity_counts,
        "rule_counts": rule_counts,
        "rule_hit_rate": rule_hit_rate,
        "top3": {k: v for k, v in top3},
        "topics": topics,
    }


def write_summary(summary: Dict[str, Any], out_dir: Path) -> Path:
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / "_summary.json"
    path.write_text(json.dumps(summary, indent=2, ensure_ascii=False), encoding="utf-8")
    return path
