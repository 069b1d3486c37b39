from __future__ import annotations

from pathlib import Path
import glob
import yaml

ROOT = Path(__file__).resolve().parents[1]
CONTENT = ROOT / "content"


def assert_collection(record_type: str, subdir: str) -> int:
    from kb.validator import validate_record

    files = sorted(glob.glob(str(CONTENT / subdir / "*.yaml")))
    assert files, f"No {subdir} files found"
    for p in files:
        data = yaml.safe_load(Path(p).read_text(encoding="utf-8")) or {}
        for entry in data if isinstance(data, list) else [data]:
            result = validate_record(record_type, entry)
            assert result.valid, f"{p}: {result.violations}"
    return len(files)


def assert_banned_phrases() -> None:
    from kb.validator import validate_record

    path = CONTENT / "governance" / "banned_phrases.yaml"
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    result = validate_record("banned_phrases", data)
    assert result.valid, result.violations


def main() -> None:
    for record_type, subdir in [
        ("topic", "topics"),
        ("baseline", "baselines"),
        ("evidence", "evidence"),
        ("template", "templates"),
    ]:
        n = assert_collection(record_type, subdir)
        print(f"{subdir}: {n} file(s) ok")
    assert_banned_phrases()
    print("Schema checks passed.")


if __name__ == "__main__":
    main()
