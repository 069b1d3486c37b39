from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from kb.schemas import BannedPhrases, BaselineDecisionRecord, TopicInput, TopicRecord


ROOT = Path(__file__).resolve().parents[1]
CONTENT_DIR = ROOT / "content"

TS = "2025-12-25T00:00:00Z"


def topic_data(**overrides: Any) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "topic_id": "test-topic",
        "slug": "test-topic",
        "version": "1.0.0",
        "title": "A test decision topic",
        "question": "Should I book this test safari?",
        "context_line": "Context line long enough to pass validation.",
        "bucket": "timing",
        "decision_complexity": "binary",
        "destinations": ["Tanzania"],
        "eligible_outcomes": ["book", "wait"],
        "default_outcome": "book",
        "launch_priority": "P0",
        "seo_intent": "high",
        "assurance_eligible": True,
        "compare_enabled": False,
        "created_at": TS,
        "updated_at": TS,
    }
    data.update(overrides)
    return data


def make_topic(
    required: Optional[List[str]] = None,
    optional: Optional[List[str]] = None,
    **overrides: Any,
) -> TopicRecord:
    data = topic_data(**overrides)
    if required is not None:
        data["required_inputs"] = [inp(k) for k in required]
    if optional is not None:
        data["optional_inputs"] = [inp(k) for k in optional]
    return TopicRecord.model_validate(data)


def inp(key: str) -> Dict[str, str]:
    return {"key": key, "label": key.split(".")[-1], "example": "x"}


def topic_input(key: str) -> TopicInput:
    return TopicInput(**inp(key))


def baseline_data(**overrides: Any) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "topic_id": "test-topic",
        "version": "1.0.0",
        "outcome": "book",
        "headline": "Book this trip if timing is flexible",
        "summary": "A summary that is comfortably longer than fifty characters in total.",
        "assumptions": [
            {"id": "first-assumption", "text": "The first assumption text", "confidence": 0.7},
            {"id": "second-assumption", "text": "The second assumption text", "confidence": 0.5},
        ],
        "tradeoffs": {
            "gains": ["Better game viewing"],
            "losses": ["Higher prices"],
        },
        "change_conditions": ["If the budget drops, wait for shoulder season"],
        "confidence": 0.75,
        "created_at": TS,
        "updated_at": TS,
    }
    data.update(copy.deepcopy(overrides))
    return data


def make_baseline(**overrides: Any) -> BaselineDecisionRecord:
    return BaselineDecisionRecord.model_validate(baseline_data(**overrides))


def make_phrases(
    banned_words: Optional[List[str]] = None,
    patterns: Optional[List[Dict[str, str]]] = None,
) -> BannedPhrases:
    return BannedPhrases.model_validate(
        {
            "version": "1.0.0",
            "updated_at": TS,
            "banned_words": banned_words if banned_words is not None else ["guarantee"],
            "forbidden_patterns": patterns if patterns is not None else [],
            "preferred_vocabulary": ["likely"],
        }
    )


def write_yaml(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data, allow_unicode=True, sort_keys=False), encoding="utf-8")
    return path


def write_content_tree(root: Path, topics=(), baselines=(), phrases=None) -> Path:
    for subdir in ("topics", "baselines", "evidence", "templates"):
        (root / subdir).mkdir(parents=True, exist_ok=True)
    for i, t in enumerate(topics, start=1):
        write_yaml(root / "topics" / f"{i:02d}_{t['topic_id']}.yaml", t)
    for i, b in enumerate(baselines, start=1):
        write_yaml(root / "baselines" / f"{i:02d}_{b['topic_id']}.yaml", b)
    if phrases is None:
        phrases = make_phrases().model_dump(mode="json")
    write_yaml(root / "governance" / "banned_phrases.yaml", phrases)
    return root
