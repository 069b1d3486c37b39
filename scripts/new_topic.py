from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
import re
import sys
import yaml


ROOT = Path(__file__).resolve().parents[1]
TOPICS = ROOT / "content" / "topics"


TEMPLATE = {
    "topic_id": "",
    "slug": "",
    "version": "1.0.0",
    "title": "",
    "question": "",
    "context_line": "",
    "bucket": "timing",  # personal_fit|destination_choice|timing|experience_type|accommodation|logistics|risk_ethics|value_cost
    "decision_complexity": "binary",  # binary|conditional|multi-factor
    "destinations": [],
    "eligible_outcomes": ["book", "wait"],
    "default_outcome": "book",
    "launch_priority": "P2",  # P0|P1|P2
    "seo_intent": "medium",
    "assurance_eligible": False,
    "compare_enabled": False,
    "required_inputs": [],
    "optional_inputs": [],
}


def slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def next_file_prefix() -> int:
    # Files are numbered NN_<topic_id>.yaml
    nums = []
    for p in TOPICS.glob("*.yaml"):
        m = re.match(r"(\d+)_", p.name)
        if m:
            nums.append(int(m.group(1)))
    return max(nums) + 1 if nums else 1


def prompt(msg: str, default: str = "") -> str:
    val = input(f"{msg}{' [' + default + ']' if default else ''}: ").strip()
    return val or default


def main() -> None:
    sys.path.insert(0, str(ROOT))
    from kb.validator import validate_record

    TOPICS.mkdir(parents=True, exist_ok=True)
    title = prompt("Topic title")
    topic_id = prompt("Topic id (kebab-case)", slugify(title))
    question = prompt("Decision question")
    context_line = prompt("Context line")
    bucket = prompt("Bucket", TEMPLATE["bucket"])
    priority = prompt("Launch priority (P0|P1|P2)", TEMPLATE["launch_priority"])
    destinations = [d.strip() for d in prompt("Destinations (comma separated)").split(",") if d.strip()]

    now = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    data = dict(TEMPLATE)
    data.update(
        {
            "topic_id": topic_id,
            "slug": topic_id,
            "title": title,
            "question": question,
            "context_line": context_line,
            "bucket": bucket,
            "launch_priority": priority,
            "destinations": destinations,
            "created_at": now,
            "updated_at": now,
        }
    )

    result = validate_record("topic", data)
    if not result.valid:
        for v in result.violations:
            print(f"  - {v}")
        print("Not written: fix the values above and run again.")
        raise SystemExit(1)

    path = TOPICS / f"{next_file_prefix():02d}_{topic_id}.yaml"
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, allow_unicode=True, sort_keys=False)

    print(str(path))
    print("Done: add required_inputs/optional_inputs, and a baseline if the topic is P0.")


if __name__ == "__main__":
    main()
