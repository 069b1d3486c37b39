from __future__ import annotations

import logging

from factories import CONTENT_DIR, make_baseline, make_topic, write_yaml

from kb.config import ROOT, KBConfig, load_config
from kb.loader import load_store
from kb.logging_config import configure_logging
from kb.stats import format_stats, get_kb_stats
from kb.store import ContentStore


def test_stats_on_shipped_content():
    stats = get_kb_stats(load_store(str(CONTENT_DIR)).store)
    assert stats.topics.total == 8
    assert (stats.topics.p0, stats.topics.p1, stats.topics.p2) == (5, 2, 1)
    assert stats.baselines.total == 6
    assert stats.baselines.coverage == 1.0
    assert stats.evidence.total == 3
    assert stats.templates.total == 3


def test_stats_partial_coverage_and_format():
    store = ContentStore(
        topics=[
            make_topic(topic_id="a", slug="a"),
            make_topic(topic_id="b", slug="b"),
            make_topic(topic_id="c", slug="c"),
        ],
        baselines=[make_baseline(topic_id="a")],
    )
    stats = get_kb_stats(store)
    assert abs(stats.baselines.coverage - 1 / 3) < 1e-9
    text = format_stats(stats)
    assert "Topics: 3 total (P0: 3, P1: 0, P2: 0)" in text
    assert "P0 Baseline Coverage: 33.3%" in text


def test_stats_empty_store():
    stats = get_kb_stats(ContentStore())
    assert stats.topics.total == 0
    assert stats.baselines.coverage == 0.0


def test_config_defaults_and_relative_paths(monkeypatch):
    monkeypatch.delenv("KB_CONTENT_DIR", raising=False)
    monkeypatch.delenv("KB_LOG_LEVEL", raising=False)
    cfg = KBConfig({})
    assert cfg.content_dir == ROOT / "content"
    assert cfg.reports_dir == ROOT / "reports"
    assert cfg.log_level == "INFO"
    assert cfg.log_file is None
    assert cfg.strict is False


def test_config_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("KB_CONTENT_DIR", str(tmp_path))
    monkeypatch.setenv("KB_LOG_LEVEL", "debug")
    cfg = KBConfig({"content_dir": "elsewhere", "log_level": "WARNING"})
    assert cfg.content_dir == tmp_path
    assert cfg.log_level == "DEBUG"


def test_load_config_from_explicit_path(monkeypatch, tmp_path):
    monkeypatch.delenv("KB_CONTENT_DIR", raising=False)
    monkeypatch.delenv("KB_LOG_LEVEL", raising=False)
    path = write_yaml(
        tmp_path / "kb.yaml",
        {"content_dir": str(tmp_path / "content"), "strict": True, "log_level": "warning"},
    )
    cfg = load_config(str(path))
    assert cfg.content_dir == tmp_path / "content"
    assert cfg.strict is True
    assert cfg.log_level == "WARNING"


def test_shipped_config_points_at_content(monkeypatch):
    monkeypatch.delenv("KB_CONTENT_DIR", raising=False)
    cfg = load_config(str(ROOT / "config" / "kb.yaml"))
    assert cfg.content_dir == CONTENT_DIR


def test_configure_logging_leaves_existing_handlers():
    root = logging.getLogger()
    saved, level = root.handlers[:], root.level
    sentinel = logging.NullHandler()
    root.handlers[:] = [sentinel]
    try:
        configure_logging("DEBUG")
        assert root.handlers == [sentinel]
        assert root.level == level
    finally:
        root.handlers[:] = saved


def test_configure_logging_installs_handlers(tmp_path):
    root = logging.getLogger()
    saved, level = root.handlers[:], root.level
    root.handlers[:] = []
    log_file = tmp_path / "logs" / "kb.log"
    try:
        configure_logging("warning", str(log_file))
        assert len(root.handlers) == 2
        assert root.level == logging.WARNING
        assert log_file.parent.is_dir()
    finally:
        for h in root.handlers:
            h.close()
        root.handlers[:] = saved
        root.setLevel(level)
