from __future__ import annotations

from pydantic import BaseModel

from .store import ContentStore


class TopicCounts(BaseModel):
    total: int = 0
    p0: int = 0
    p1: int = 0
    p2: int = 0


class BaselineCounts(BaseModel):
    total: int = 0
    coverage: float = 0.0


class Total(BaseModel):
    total: int = 0


class KBStats(BaseModel):
    topics: TopicCounts
    baselines: BaselineCounts
    evidence: Total
    templates: Total


def get_kb_stats(store: ContentStore) -> KBStats:
    topics = store.list_topics()
    p0_ids = store.p0_topic_ids()
    p0_with_baseline = sum(1 for tid in p0_ids if store.has_baseline(tid))

    return KBStats(
        topics=TopicCounts(
            total=len(topics),
            p0=len(p0_ids),
            p1=sum(1 for t in topics if t.launch_priority == "P1"),
            p2=sum(1 for t in topics if t.launch_priority == "P2"),
        ),
        baselines=BaselineCounts(
            total=len(store.baseline_topic_ids()),
            coverage=p0_with_baseline / len(p0_ids) if p0_ids else 0.0,
        ),
        evidence=Total(total=len(store.list_evidence())),
        templates=Total(total=len(store.list_templates())),
    )


def format_stats(stats: KBStats) -> str:
    t = stats.topics
    return "\n".join(
        [
            f"Topics: {t.total} total (P0: {t.p0}, P1: {t.p1}, P2: {t.p2})",
            f"Baselines: {stats.baselines.total} total",
            f"P0 Baseline Coverage: {stats.baselines.coverage * 100:.1f}%",
            f"Evidence Cards: {stats.evidence.total}",
            f"Templates: {stats.templates.total}",
        ]
    )
