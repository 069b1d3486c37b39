import json
import sys
from pathlib import Path
import subprocess

ROOT = Path(__file__).resolve().parents[1]


def run_cmd(args):
    proc = subprocess.run(args, cwd=ROOT, capture_output=True, text=True)
    if proc.returncode != 0:
        print(proc.stdout)
        print(proc.stderr, file=sys.stderr)
        raise SystemExit(proc.returncode)
    return proc.stdout.strip()


def main() -> None:
    # CI gate over the shipped content
    out = run_cmd([sys.executable, "-m", "kb.main", "check"])
    assert out.splitlines()[-1] == "ALL CHECKS PASSED", out

    out = run_cmd([sys.executable, "-m", "kb.main", "stats", "--json"])
    stats = json.loads(out)
    assert stats["baselines"]["coverage"] == 1.0, stats

    # Patch export for a topic the rules have plenty to say about
    patch_path = ROOT / "reports" / "smoke" / "lodge-vs-tented.patch.json"
    out = run_cmd(
        [
            sys.executable,
            "-m",
            "kb.main",
            "patch",
            "--topic",
            "lodge-vs-tented",
            "--refusal-rate",
            "0.55",
            "--out",
            str(patch_path),
        ]
    )
    assert Path(out.splitlines()[-1].strip()) == patch_path
    data = json.loads(patch_path.read_text(encoding="utf-8"))
    for k in [
        "topic_id",
        "suggested_required_inputs_additions",
        "suggested_optional_inputs_additions",
        "suggested_variant_default_changes",
    ]:
        assert k in data, f"Missing key in patch: {k}"

    print("Smoke test passed.")


if __name__ == "__main__":
    main()
