from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from .schemas import (
    BannedPhrases,
    BaselineDecisionRecord,
    EvidenceCard,
    LaunchPriority,
    TemplateCategory,
    TemplateRecord,
    TopicBucket,
    TopicRecord,
)


class ContentStoreError(Exception):
    """Raised when a caller asks for content the store does not hold."""


def _index(records: Iterable, key: str) -> Dict[str, object]:
    out: Dict[str, object] = {}
    for r in records:
        out.setdefault(getattr(r, key), r)
    return out


class ContentStore:
    """Immutable snapshot of the knowledge base.

    Raw key lists are kept alongside the indexes so duplicate keys in the
    authored content stay visible to the integrity checks. Lookups return
    the first record seen for a key.
    """

    def __init__(
        self,
        topics: Iterable[TopicRecord] = (),
        baselines: Iterable[BaselineDecisionRecord] = (),
        evidence: Iterable[EvidenceCard] = (),
        templates: Iterable[TemplateRecord] = (),
        banned_phrases: Optional[BannedPhrases] = None,
    ) -> None:
        self._topic_list = tuple(topics)
        self._baseline_list = tuple(baselines)
        self._evidence_list = tuple(evidence)
        self._template_list = tuple(templates)
        self._banned_phrases = banned_phrases

        self._topics = _index(self._topic_list, "topic_id")
        self._baselines = _index(self._baseline_list, "topic_id")
        self._evidence = _index(self._evidence_list, "evidence_id")
        self._templates = _index(self._template_list, "template_id")

    # -- raw keys ---------------------------------------------------------

    @property
    def topic_ids(self) -> List[str]:
        return [t.topic_id for t in self._topic_list]

    @property
    def topic_slugs(self) -> List[str]:
        return [t.slug for t in self._topic_list]

    @property
    def baseline_ids(self) -> List[str]:
        return [b.topic_id for b in self._baseline_list]

    @property
    def evidence_ids(self) -> List[str]:
        return [e.evidence_id for e in self._evidence_list]

    @property
    def template_ids(self) -> List[str]:
        return [t.template_id for t in self._template_list]

    # -- topics -----------------------------------------------------------

    def get_topic(self, topic_id: str) -> Optional[TopicRecord]:
        return self._topics.get(topic_id)  # type: ignore[return-value]

    def require_topic(self, topic_id: str) -> TopicRecord:
        topic = self.get_topic(topic_id)
        if topic is None:
            raise ContentStoreError(f"Unknown topic_id: {topic_id}")
        return topic

    def get_topic_by_slug(self, slug: str) -> Optional[TopicRecord]:
        for t in self._topic_list:
            if t.slug == slug:
                return t
        return None

    def list_topics(self) -> List[TopicRecord]:
        return list(self._topics.values())  # type: ignore[arg-type]

    def list_topics_by_bucket(self, bucket: TopicBucket) -> List[TopicRecord]:
        return [t for t in self.list_topics() if t.bucket == bucket]

    def list_topics_by_priority(self, priority: LaunchPriority) -> List[TopicRecord]:
        return [t for t in self.list_topics() if t.launch_priority == priority]

    def has_topic(self, topic_id: str) -> bool:
        return topic_id in self._topics

    def p0_topic_ids(self) -> List[str]:
        return [t.topic_id for t in self.list_topics_by_priority("P0")]

    def topic_ids_by_bucket(self, bucket: TopicBucket) -> List[str]:
        return [t.topic_id for t in self.list_topics_by_bucket(bucket)]

    # -- baselines --------------------------------------------------------

    def get_baseline(self, topic_id: str) -> Optional[BaselineDecisionRecord]:
        return self._baselines.get(topic_id)  # type: ignore[return-value]

    def list_baselines(self) -> List[BaselineDecisionRecord]:
        return list(self._baselines.values())  # type: ignore[arg-type]

    def has_baseline(self, topic_id: str) -> bool:
        return topic_id in self._baselines

    def baseline_topic_ids(self) -> List[str]:
        return list(self._baselines.keys())

    # -- evidence ---------------------------------------------------------

    def get_evidence(self, evidence_id: str) -> Optional[EvidenceCard]:
        return self._evidence.get(evidence_id)  # type: ignore[return-value]

    def list_evidence(self) -> List[EvidenceCard]:
        return list(self._evidence.values())  # type: ignore[arg-type]

    def search_evidence_by_tags(self, tags: List[str]) -> List[EvidenceCard]:
        if not tags:
            return []
        wanted = {t.lower() for t in tags}
        return [
            e for e in self.list_evidence() if any(t.lower() in wanted for t in e.tags)
        ]

    def search_evidence_by_topic(self, topic_id: str) -> List[EvidenceCard]:
        return [e for e in self.list_evidence() if topic_id in e.topic_ids]

    def search_evidence_by_destination(self, destination: str) -> List[EvidenceCard]:
        needle = destination.lower()
        return [
            e
            for e in self.list_evidence()
            if any(needle in d.lower() for d in e.destinations)
        ]

    def search_evidence(self, query: str) -> List[EvidenceCard]:
        terms = [t for t in query.lower().split() if t]
        if not terms:
            return []
        hits = []
        for e in self.list_evidence():
            haystack = " ".join([e.title, e.content, " ".join(e.tags)]).lower()
            if all(term in haystack for term in terms):
                hits.append(e)
        return hits

    # -- templates --------------------------------------------------------

    def get_template(self, template_id: str) -> Optional[TemplateRecord]:
        return self._templates.get(template_id)  # type: ignore[return-value]

    def list_templates(self) -> List[TemplateRecord]:
        return list(self._templates.values())  # type: ignore[arg-type]

    def templates_by_category(self, category: TemplateCategory) -> List[TemplateRecord]:
        return [t for t in self.list_templates() if t.category == category]

    # -- governance -------------------------------------------------------

    @property
    def banned_phrases(self) -> Optional[BannedPhrases]:
        return self._banned_phrases
