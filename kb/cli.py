from __future__ import annotations

import sys

from . import main as km


def check_entry() -> None:
    sys.exit(km.main(["check"] + sys.argv[1:]))


def analyze_entry() -> None:
    if len(sys.argv) < 2:
        print("Usage: kb-analyze <topic_id> [--refusal-rate R] [--reason TEXT ...]")
        sys.exit(2)
    topic_id = sys.argv[1]
    sys.exit(km.main(["analyze", "--topic", topic_id] + sys.argv[2:]))


def main_entry() -> None:
    sys.exit(km.main())
