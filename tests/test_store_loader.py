from __future__ import annotations

import pytest

from factories import (
    CONTENT_DIR,
    baseline_data,
    make_baseline,
    make_topic,
    topic_data,
    write_content_tree,
    write_yaml,
)

from kb.loader import load_store
from kb.schemas import EvidenceCard
from kb.store import ContentStore, ContentStoreError


def _card(evidence_id, tags, **kw):
    data = {
        "evidence_id": evidence_id,
        "version": "1.0.0",
        "type": "statistic",
        "title": "An evidence card title",
        "content": "Evidence content that is long enough.",
        "tags": tags,
        "created_at": "2025-12-25T00:00:00Z",
        "updated_at": "2025-12-25T00:00:00Z",
    }
    data.update(kw)
    return EvidenceCard.model_validate(data)


def test_store_topic_queries():
    store = ContentStore(
        topics=[
            make_topic(topic_id="a-topic", slug="a-topic"),
            make_topic(topic_id="b-topic", slug="b-slug", bucket="logistics", launch_priority="P1"),
        ],
        baselines=[make_baseline(topic_id="a-topic")],
    )
    assert store.get_topic("a-topic").topic_id == "a-topic"
    assert store.get_topic("missing") is None
    assert store.get_topic_by_slug("b-slug").topic_id == "b-topic"
    assert [t.topic_id for t in store.list_topics_by_bucket("logistics")] == ["b-topic"]
    assert store.p0_topic_ids() == ["a-topic"]
    assert store.has_baseline("a-topic")
    assert not store.has_baseline("b-topic")
    assert store.baseline_topic_ids() == ["a-topic"]


def test_require_topic_raises_for_unknown_id():
    store = ContentStore()
    with pytest.raises(ContentStoreError, match="Unknown topic_id: nope"):
        store.require_topic("nope")


def test_store_keeps_first_record_for_duplicate_keys():
    first = make_topic(topic_id="dup", slug="first")
    second = make_topic(topic_id="dup", slug="second")
    store = ContentStore(topics=[first, second])
    assert store.topic_ids == ["dup", "dup"]
    assert store.get_topic("dup").slug == "first"
    assert len(store.list_topics()) == 1


def test_evidence_searches():
    store = ContentStore(
        evidence=[
            _card("fees", ["cost", "park-fees"], topic_ids=["total-budget"], destinations=["Tanzania"]),
            _card("crowds", ["crowding"], title="Dry season crowding at crossings"),
        ]
    )
    assert [e.evidence_id for e in store.search_evidence_by_tags(["COST"])] == ["fees"]
    assert store.search_evidence_by_tags([]) == []
    assert [e.evidence_id for e in store.search_evidence_by_topic("total-budget")] == ["fees"]
    assert [e.evidence_id for e in store.search_evidence_by_destination("tanz")] == ["fees"]
    assert [e.evidence_id for e in store.search_evidence("dry crowding")] == ["crowds"]
    assert store.search_evidence("   ") == []


def test_shipped_content_loads_cleanly():
    result = load_store(str(CONTENT_DIR))
    assert result.ok, result.errors
    store = result.store
    assert "tz-dry-season" in store.topic_ids
    assert store.banned_phrases is not None
    assert store.list_evidence()
    assert store.templates_by_category("refusal")


def test_loader_excludes_invalid_records(tmp_path):
    bad = baseline_data(topic_id="other-topic", tradeoffs={"gains": [], "losses": ["Higher prices"]})
    write_content_tree(
        tmp_path,
        topics=[topic_data(), topic_data(topic_id="other-topic", slug="other-topic")],
        baselines=[baseline_data(), bad],
    )
    result = load_store(str(tmp_path))

    assert not result.ok
    assert any("no gains" in e for e in result.errors)
    assert any(e.startswith("baselines/02_other-topic.yaml") for e in result.errors)
    assert result.store.baseline_ids == ["test-topic"]
    assert len(result.store.topic_ids) == 2


def test_loader_reads_record_lists(tmp_path):
    write_content_tree(tmp_path)
    write_yaml(
        tmp_path / "topics" / "batch.yaml",
        [topic_data(topic_id="one-topic", slug="one"), topic_data(topic_id="Bad Id", slug="two")],
    )
    result = load_store(str(tmp_path))
    assert result.store.topic_ids == ["one-topic"]
    assert any(e.startswith("topics/batch.yaml[1]: topic_id:") for e in result.errors)


def test_loader_reports_malformed_yaml(tmp_path):
    write_content_tree(tmp_path)
    (tmp_path / "topics" / "broken.yaml").write_text("topic_id: [unclosed\n", encoding="utf-8")
    result = load_store(str(tmp_path))
    assert any(e.startswith("topics/broken.yaml: invalid YAML") for e in result.errors)


def test_loader_requires_governance_document(tmp_path):
    write_content_tree(tmp_path)
    (tmp_path / "governance" / "banned_phrases.yaml").unlink()
    result = load_store(str(tmp_path))
    assert result.store.banned_phrases is None
    assert any("governance document not found" in e for e in result.errors)


def test_missing_content_dir_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_store(str(tmp_path / "nowhere"))


def test_loader_reports_bad_encoding(tmp_path):
    write_content_tree(tmp_path, topics=[topic_data()])
    (tmp_path / "topics" / "zz.yaml").write_bytes(b"topic_id: caf\xe9\n")
    result = load_store(str(tmp_path))
    assert any(e.startswith("topics/zz.yaml: invalid encoding") for e in result.errors)
    assert result.store.topic_ids == ["test-topic"]
