from __future__ import annotations

import glob
import logging
import os
from typing import Any, List, Optional, Tuple

import yaml

from .schemas import BannedPhrases
from .store import ContentStore
from .validator import parse_record


logger = logging.getLogger(__name__)

COLLECTIONS = (
    ("topic", "topics"),
    ("baseline", "baselines"),
    ("evidence", "evidence"),
    ("template", "templates"),
)
BANNED_PHRASES_FILE = os.path.join("governance", "banned_phrases.yaml")


class LoadResult:
    def __init__(self, store: ContentStore, errors: List[str]) -> None:
        self.store = store
        # structural violations, "<file>: <field>: <message>"
        self.errors = errors

    @property
    def ok(self) -> bool:
        return not self.errors


def _read_yaml(path: str) -> Tuple[Any, Optional[str]]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f), None
    except UnicodeDecodeError as e:
        return None, f"invalid encoding ({e.reason})"
    except yaml.YAMLError as e:
        return None, f"invalid YAML ({e.__class__.__name__})"
    except OSError as e:
        return None, f"unreadable ({e.strerror})"


def _load_collection(content_dir: str, record_type: str, subdir: str, errors: List[str]) -> list:
    records = []
    for path in sorted(glob.glob(os.path.join(content_dir, subdir, "*.yaml"))):
        rel = os.path.relpath(path, content_dir)
        data, err = _read_yaml(path)
        if err:
            errors.append(f"{rel}: {err}")
            continue
        entries = data if isinstance(data, list) else [data]
        for i, entry in enumerate(entries):
            label = rel if len(entries) == 1 else f"{rel}[{i}]"
            record, result = parse_record(record_type, entry)
            if record is None:
                errors.extend(f"{label}: {v}" for v in result.violations)
                continue
            records.append(record)
    logger.debug("Loaded %d %s record(s) from %s", len(records), record_type, subdir)
    return records


def _load_banned_phrases(content_dir: str, errors: List[str]) -> Optional[BannedPhrases]:
    path = os.path.join(content_dir, BANNED_PHRASES_FILE)
    if not os.path.exists(path):
        errors.append(f"{BANNED_PHRASES_FILE}: governance document not found")
        return None
    data, err = _read_yaml(path)
    if err:
        errors.append(f"{BANNED_PHRASES_FILE}: {err}")
        return None
    record, result = parse_record("banned_phrases", data)
    if record is None:
        errors.extend(f"{BANNED_PHRASES_FILE}: {v}" for v in result.violations)
        return None
    return record  # type: ignore[return-value]


def load_store(content_dir: str) -> LoadResult:
    """Load every content collection under ``content_dir`` into a store.

    Records failing schema validation are excluded and reported in
    ``LoadResult.errors``; only a missing content directory raises.
    """
    if not os.path.isdir(content_dir):
        raise FileNotFoundError(f"Content directory not found: {content_dir}")

    errors: List[str] = []
    loaded = {
        subdir: _load_collection(content_dir, record_type, subdir, errors)
        for record_type, subdir in COLLECTIONS
    }
    phrases = _load_banned_phrases(content_dir, errors)

    store = ContentStore(
        topics=loaded["topics"],
        baselines=loaded["baselines"],
        evidence=loaded["evidence"],
        templates=loaded["templates"],
        banned_phrases=phrases,
    )
    if errors:
        logger.warning("%d structural violation(s) while loading %s", len(errors), content_dir)
    return LoadResult(store, errors)
