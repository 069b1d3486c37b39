"""
Brand-voice governance checks.

Prose is scanned against the versioned banned-phrase document: banned
words (case-insensitive substrings), forbidden regex patterns and the
no-exclamation-mark rule. Preferred vocabulary is advisory and never
produces a violation.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Pattern

from .integrity import CheckResult
from .schemas import BannedPhrases, BaselineDecisionRecord, ValidationResult
from .store import ContentStore


logger = logging.getLogger(__name__)

_BRACED_UNICODE = re.compile(r"\\u\{([0-9a-fA-F]{1,6})\}")


def _translate_unicode_escapes(pattern: str) -> str:
    # governance patterns are authored with \u{1F600}-style escapes
    return _BRACED_UNICODE.sub(lambda m: "\\U%08X" % int(m.group(1), 16), pattern)


def compile_pattern(pattern: str) -> Optional[Pattern[str]]:
    source = _translate_unicode_escapes(pattern) if "\\u{" in pattern else pattern
    try:
        return re.compile(source, re.IGNORECASE)
    except re.error as e:
        logger.debug("Skipping uncompilable governance pattern %r: %s", pattern, e)
        return None


def validate_text(text: str, banned_phrases: BannedPhrases) -> ValidationResult:
    violations: List[str] = []
    lower = text.lower()

    for word in banned_phrases.banned_words:
        if word.lower() in lower:
            violations.append(f'Contains banned word: "{word}"')

    for fp in banned_phrases.forbidden_patterns:
        regex = compile_pattern(fp.pattern)
        if regex is None:
            continue
        if regex.search(text):
            violations.append(f"Matches forbidden pattern: {fp.description}")

    return ValidationResult.from_violations(violations)


def validate_baseline_governance(
    baseline: BaselineDecisionRecord, banned_phrases: BannedPhrases
) -> ValidationResult:
    fields = [("headline", baseline.headline), ("summary", baseline.summary)]
    fields += [(f'assumption "{a.id}"', a.text) for a in baseline.assumptions]
    fields += [("gain", g) for g in baseline.tradeoffs.gains]
    fields += [("loss", l) for l in baseline.tradeoffs.losses]
    fields += [("change_condition", c) for c in baseline.change_conditions]

    violations: List[str] = []
    for label, text in fields:
        result = validate_text(text, banned_phrases)
        violations.extend(f"{label}: {v}" for v in result.violations)
    return ValidationResult.from_violations(violations)


def baseline_prose(baseline: BaselineDecisionRecord) -> str:
    parts = [baseline.headline, baseline.summary]
    parts += [a.text for a in baseline.assumptions]
    parts += baseline.tradeoffs.gains
    parts += baseline.tradeoffs.losses
    parts += baseline.change_conditions
    return " ".join(parts)


def check_no_exclamations(baselines: List[BaselineDecisionRecord]) -> List[str]:
    return [b.topic_id for b in baselines if "!" in baseline_prose(b)]


def check_governance_document(banned_phrases: Optional[BannedPhrases]) -> CheckResult:
    violations: List[str] = []
    if banned_phrases is None:
        violations.append("banned phrases document is missing")
    else:
        if not banned_phrases.banned_words:
            violations.append("banned_words is empty")
        if not banned_phrases.forbidden_patterns:
            violations.append("forbidden_patterns is empty")
        if not banned_phrases.preferred_vocabulary:
            violations.append("preferred_vocabulary is empty")
    return CheckResult(name="governance_document", violations=violations)


def check_governance(store: ContentStore) -> List[CheckResult]:
    phrases = store.banned_phrases
    baselines = store.list_baselines()

    banned: List[str] = []
    if phrases is not None:
        for b in baselines:
            result = validate_baseline_governance(b, phrases)
            banned.extend(f"{b.topic_id}: {v}" for v in result.violations)

    return [
        check_governance_document(phrases),
        CheckResult(name="banned_phrases", violations=banned),
        CheckResult(name="no_exclamation_marks", violations=check_no_exclamations(baselines)),
    ]
