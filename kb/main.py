from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .batch import export_patches, summarize, write_summary
from .config import KBConfig, load_config
from .governance import check_governance
from .health import load_health_metrics
from .improvements import analyze_topic, analyze_topics
from .integrity import CheckResult, IntegrityReport, check_integrity
from .loader import LoadResult, load_store
from .logging_config import configure_logging
from .patch import generate_topic_patch, patch_to_json
from .stats import format_stats, get_kb_stats
from .store import ContentStoreError


logger = logging.getLogger(__name__)


def _setup(args: argparse.Namespace) -> KBConfig:
    cfg = load_config(getattr(args, "config", None))
    if getattr(args, "content", None):
        cfg.content_dir = Path(args.content).resolve()
    configure_logging(cfg.log_level, str(cfg.log_file) if cfg.log_file else None)
    return cfg


def _load(cfg: KBConfig) -> LoadResult:
    result = load_store(str(cfg.content_dir))
    logger.info(
        "Loaded %d topic(s), %d baseline(s) from %s",
        len(result.store.topic_ids),
        len(result.store.baseline_ids),
        cfg.content_dir,
    )
    return result


def run_checks(
    result: LoadResult, integrity: Optional[IntegrityReport] = None
) -> List[CheckResult]:
    if integrity is None:
        integrity = check_integrity(result.store)
    checks = [CheckResult(name="schema", violations=list(result.errors))]
    checks += integrity.checks
    checks += check_governance(result.store)
    return checks


def format_gate_report(checks: List[CheckResult], coverage: Dict[str, float]) -> str:
    lines = ["=== KB Validation ==="]
    for c in checks:
        if c.passed:
            lines.append(f"  [PASS] {c.name}")
        else:
            lines.append(f"  [FAIL] {c.name} ({len(c.violations)})")
            lines.extend(f"      - {v}" for v in c.violations)
    lines.append("")
    lines.append(
        "Coverage: " + ", ".join(f"{p} {r * 100:.1f}%" for p, r in coverage.items())
    )
    return "\n".join(lines)


def cmd_check(args: argparse.Namespace) -> int:
    cfg = _setup(args)
    result = _load(cfg)
    integrity = check_integrity(result.store)
    checks = run_checks(result, integrity)
    coverage = integrity.coverage
    stats = get_kb_stats(result.store)
    passed = all(c.passed for c in checks)

    if args.json:
        payload: Dict[str, Any] = {
            "passed": passed,
            "checks": [
                {"name": c.name, "passed": c.passed, "violations": c.violations}
                for c in checks
            ],
            "coverage": coverage,
            "stats": stats.model_dump(),
        }
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        print(format_gate_report(checks, coverage))
        if cfg.strict:
            counts = {"P1": stats.topics.p1, "P2": stats.topics.p2}
            for priority, n in counts.items():
                if n and coverage.get(priority, 0.0) < 1:
                    print(f"WARNING: {priority} baseline coverage below 100%")
        print("")
        print(format_stats(stats))
        print("")
        print("ALL CHECKS PASSED" if passed else "VALIDATION FAILED")

    return 0 if passed else 1


def cmd_stats(args: argparse.Namespace) -> int:
    cfg = _setup(args)
    stats = get_kb_stats(_load(cfg).store)
    if args.json:
        print(stats.model_dump_json(indent=2))
    else:
        print(format_stats(stats))
    return 0


def _analysis_for(args: argparse.Namespace):
    cfg = _setup(args)
    store = _load(cfg).store
    topic = store.require_topic(args.topic)
    return cfg, analyze_topic(topic, args.refusal_rate, args.reason or [])


def cmd_analyze(args: argparse.Namespace) -> int:
    _, analysis = _analysis_for(args)
    if args.json:
        print(analysis.model_dump_json(indent=2, exclude_none=True))
        return 0

    rate = "n/a" if analysis.refusal_rate is None else f"{analysis.refusal_rate * 100:.0f}%"
    print(f"{analysis.topic_id} (refusal rate: {rate})")
    if not analysis.suggestions:
        print("  No suggestions.")
    for s in analysis.suggestions:
        print(f"  [{s.severity}] {s.rule_id} -> {s.field}: {s.message}")
        for inp in s.suggested_additions or []:
            print(f"      + {inp.key} ({inp.label}, e.g. {inp.example})")
        for k, v in (s.suggested_changes or {}).items():
            print(f"      ~ {k} = {v!r}")
    return 0


def cmd_patch(args: argparse.Namespace) -> int:
    _, analysis = _analysis_for(args)
    content = patch_to_json(generate_topic_patch(analysis))
    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(content, encoding="utf-8")
        print(str(out_path))
    else:
        print(content)
    return 0


def cmd_batch(args: argparse.Namespace) -> int:
    cfg = _setup(args)
    store = _load(cfg).store
    metrics = load_health_metrics(args.metrics)
    unknown = [m.topic_id for m in metrics if not store.has_topic(m.topic_id)]
    if unknown:
        logger.warning("Metrics reference unknown topic(s): %s", ", ".join(unknown))

    analyses = analyze_topics(store, metrics)
    out_dir = Path(args.out) if args.out else cfg.reports_dir / "patches"
    written = export_patches(analyses, out_dir)
    for i, path in enumerate(written, start=1):
        print(f"[{i}/{len(written)}] -> {path}")
    summary_path = write_summary(summarize(analyses), out_dir)
    print(f"Summary written -> {summary_path}")
    return 0


def _add_common(s: argparse.ArgumentParser) -> None:
    s.add_argument("--content", type=str, help="Content directory (overrides config)")
    s.add_argument("--config", type=str, help=argparse.SUPPRESS)


def _refusal_rate(value: str) -> float:
    try:
        rate = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    # NaN fails both comparisons
    if not 0.0 <= rate <= 1.0:
        raise argparse.ArgumentTypeError(f"refusal rate must be within 0-1, got {value}")
    return rate


def _add_metrics(s: argparse.ArgumentParser) -> None:
    s.add_argument("--topic", required=True, type=str, help="Topic id")
    s.add_argument("--refusal-rate", type=_refusal_rate, default=None, help="Refusal rate 0-1")
    s.add_argument(
        "--reason", action="append", default=[], help="Refusal reason (repeatable)"
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="kb", description="Decision knowledge base governance and topic improvements"
    )
    sub = p.add_subparsers(dest="command", required=True)

    # check
    s = sub.add_parser("check", help="Run schema, integrity and governance checks (CI gate)")
    _add_common(s)
    s.add_argument("--json", action="store_true", help="Emit the report as JSON")
    s.set_defaults(func=cmd_check)

    # stats
    s = sub.add_parser("stats", help="Print coverage statistics")
    _add_common(s)
    s.add_argument("--json", action="store_true")
    s.set_defaults(func=cmd_stats)

    # analyze
    s = sub.add_parser("analyze", help="Suggest improvements for one topic")
    _add_common(s)
    _add_metrics(s)
    s.add_argument("--json", action="store_true")
    s.set_defaults(func=cmd_analyze)

    # patch
    s = sub.add_parser("patch", help="Export a topic patch as JSON")
    _add_common(s)
    _add_metrics(s)
    s.add_argument("--out", type=str, help="Write the patch to this path")
    s.set_defaults(func=cmd_patch)

    # batch
    s = sub.add_parser("batch", help="Analyze every topic against a health export")
    _add_common(s)
    s.add_argument("--metrics", required=True, type=str, help="Health metrics YAML/JSON")
    s.add_argument("--out", type=str, help="Output directory for patches")
    s.set_defaults(func=cmd_batch)

    return p


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except ContentStoreError as e:
        print(str(e), file=sys.stderr)
        return 2
    except FileNotFoundError as e:
        print(str(e), file=sys.stderr)
        return 2
    except yaml.YAMLError as e:
        print(f"Invalid YAML: {e}", file=sys.stderr)
        return 2
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
