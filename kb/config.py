from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


ROOT = Path(__file__).resolve().parents[1]
CONFIG_DIR = ROOT / "config"
KB_CFG_PATH = CONFIG_DIR / "kb.yaml"
KB_LOCAL_CFG_PATH = CONFIG_DIR / "kb.local.yaml"


def _resolve(path: str) -> Path:
    p = Path(path).expanduser()
    return p if p.is_absolute() else ROOT / p


class KBConfig:
    def __init__(self, cfg: Dict[str, Any]) -> None:
        self.content_dir = _resolve(cfg.get("content_dir") or "content")
        self.reports_dir = _resolve(cfg.get("reports_dir") or "reports")
        self.log_level = str(cfg.get("log_level", "INFO")).upper()
        log_file = cfg.get("log_file")
        self.log_file = _resolve(log_file) if log_file else None
        # strict: P1/P2 coverage gaps are printed as warnings by the gate
        self.strict = bool(cfg.get("strict", False))

        # Environment overrides
        env_content = os.environ.get("KB_CONTENT_DIR")
        if env_content:
            self.content_dir = _resolve(env_content)
        env_level = os.environ.get("KB_LOG_LEVEL")
        if env_level:
            self.log_level = env_level.upper()


def load_config(path: Optional[str] = None) -> KBConfig:
    # explicit path > config/kb.local.yaml > config/kb.yaml > defaults
    if path:
        chosen: Optional[Path] = Path(path)
    elif KB_LOCAL_CFG_PATH.exists():
        chosen = KB_LOCAL_CFG_PATH
    elif KB_CFG_PATH.exists():
        chosen = KB_CFG_PATH
    else:
        chosen = None

    data: Dict[str, Any] = {}
    if chosen is not None:
        with open(chosen, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    return KBConfig(data)
