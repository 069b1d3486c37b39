"""
Referential integrity checks over a loaded content store.

Every check enumerates all offending ids in one pass; callers decide
whether a non-empty result is fatal.
"""

from __future__ import annotations

from collections import Counter
from typing import Dict, List

from pydantic import BaseModel

from .schemas import LaunchPriority
from .store import ContentStore


PRIORITIES: List[LaunchPriority] = ["P0", "P1", "P2"]


class CheckResult(BaseModel):
    name: str
    violations: List[str] = []

    @property
    def passed(self) -> bool:
        return not self.violations


class IntegrityReport(BaseModel):
    checks: List[CheckResult] = []
    coverage: Dict[str, float] = {}

    @property
    def passed(self) -> bool:
        return all(c.passed for c in self.checks)


def _duplicates(ids: List[str]) -> List[str]:
    if len(ids) == len(set(ids)):
        return []
    counts = Counter(ids)
    seen = set()
    out = []
    for i in ids:
        if counts[i] > 1 and i not in seen:
            out.append(i)
            seen.add(i)
    return out


def check_baseline_topic_refs(store: ContentStore) -> CheckResult:
    dangling = [b for b in store.baseline_ids if not store.has_topic(b)]
    return CheckResult(name="baseline_topic_refs", violations=dangling)


def check_unique_topic_ids(store: ContentStore) -> CheckResult:
    return CheckResult(name="unique_topic_ids", violations=_duplicates(store.topic_ids))


def check_unique_baseline_ids(store: ContentStore) -> CheckResult:
    return CheckResult(
        name="unique_baseline_ids", violations=_duplicates(store.baseline_ids)
    )


def check_unique_topic_slugs(store: ContentStore) -> CheckResult:
    return CheckResult(
        name="unique_topic_slugs", violations=_duplicates(store.topic_slugs)
    )


def check_p0_baseline_coverage(store: ContentStore) -> CheckResult:
    missing = [tid for tid in store.p0_topic_ids() if not store.has_baseline(tid)]
    return CheckResult(name="p0_baseline_coverage", violations=missing)


def check_input_integrity(store: ContentStore) -> CheckResult:
    violations: List[str] = []
    for topic in store.list_topics():
        seen = set()
        for inp in list(topic.required_inputs) + list(topic.optional_inputs):
            for attr in ("key", "label", "example"):
                if not getattr(inp, attr).strip():
                    violations.append(f'{topic.topic_id}: input "{inp.key}" has blank {attr}')
            if inp.key in seen:
                violations.append(f'{topic.topic_id}: duplicate input key "{inp.key}"')
            seen.add(inp.key)
    return CheckResult(name="input_integrity", violations=violations)


def coverage_by_priority(store: ContentStore) -> Dict[str, float]:
    out: Dict[str, float] = {}
    for priority in PRIORITIES:
        ids = [t.topic_id for t in store.list_topics_by_priority(priority)]
        covered = sum(1 for tid in ids if store.has_baseline(tid))
        out[priority] = covered / len(ids) if ids else 0.0
    return out


def check_integrity(store: ContentStore) -> IntegrityReport:
    checks = [
        check_baseline_topic_refs(store),
        check_unique_topic_ids(store),
        check_unique_baseline_ids(store),
        check_unique_topic_slugs(store),
        check_p0_baseline_coverage(store),
        check_input_integrity(store),
    ]
    return IntegrityReport(checks=checks, coverage=coverage_by_priority(store))
