"""Rule evaluator - evaluates one rule against a transcript with explainability."""

import math
from collections.abc import Sequence
from typing import Protocol

from callqual.schemas.qualification import RuleVerdict
from callqual.schemas.rule import (
    CustomCriteria,
    DurationCriteria,
    EvaluableRule,
    KeywordCriteria,
    KeywordPosition,
    SpeakerTimeCriteria,
    UnparseableRule,
)

KEYWORD_PASS_CONFIDENCE = 0.95
KEYWORD_FAIL_CONFIDENCE = 0.85
DURATION_CONFIDENCE = 1.0
SPEAKER_TIME_CONFIDENCE = 0.9
POSITION_WINDOW = 3


class LineLike(Protocol):
    """Anything shaped like a transcript line (ORM row or TimedLine)."""

    speaker: str
    text: str
    start_time: int
    end_time: int


def _quoted(words: Sequence[str]) -> str:
    return '"' + '", "'.join(words) + '"'


def _fmt_bound(value: int | float) -> str:
    """Render a bound the way a user typed it (30, not 30.0)."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _eval_keyword(criteria: KeywordCriteria, lines: Sequence[LineLike]) -> tuple[bool, float, str, str | None]:
    relevant = [ln for ln in lines if ln.speaker == criteria.speaker] if criteria.speaker else list(lines)

    if criteria.position == KeywordPosition.FIRST_3_LINES:
        relevant = relevant[:POSITION_WINDOW]
    elif criteria.position == KeywordPosition.LAST_3_LINES:
        relevant = relevant[-POSITION_WINDOW:]

    full_text = " ".join(ln.text.lower() for ln in relevant)
    matches = [kw for kw in criteria.keywords if kw.lower() in full_text]

    if matches:
        return True, KEYWORD_PASS_CONFIDENCE, f"Found keyword(s): {_quoted(matches)}", matches[0]
    return (
        False,
        KEYWORD_FAIL_CONFIDENCE,
        f"Missing required keywords: {_quoted(criteria.keywords)}",
        None,
    )


def _eval_duration(criteria: DurationCriteria, call_duration_ms: int | None) -> tuple[bool, float, str, str | None]:
    if call_duration_ms is None:
        return False, DURATION_CONFIDENCE, "Insufficient data: call duration is unknown", None

    seconds = math.floor(call_duration_ms / 1000)
    # A bound of 0 counts as unset
    if criteria.min_seconds and seconds < criteria.min_seconds:
        passed = False
        explanation = f"Call too short: {seconds}s (minimum: {_fmt_bound(criteria.min_seconds)}s)"
    elif criteria.max_seconds and seconds > criteria.max_seconds:
        passed = False
        explanation = f"Call too long: {seconds}s (maximum: {_fmt_bound(criteria.max_seconds)}s)"
    else:
        passed = True
        explanation = f"Call duration {seconds}s is within acceptable range"
    return passed, DURATION_CONFIDENCE, explanation, f"{seconds}s"


def _eval_speaker_time(criteria: SpeakerTimeCriteria, lines: Sequence[LineLike]) -> tuple[bool, float, str, str | None]:
    if not lines:
        return False, SPEAKER_TIME_CONFIDENCE, "Insufficient data: transcript has no lines", None

    total_time = lines[-1].end_time - lines[0].start_time
    if total_time <= 0:
        return (
            False,
            SPEAKER_TIME_CONFIDENCE,
            "Insufficient data: transcript spans no measurable time",
            None,
        )

    speaker_time = sum(ln.end_time - ln.start_time for ln in lines if ln.speaker == criteria.speaker)
    percentage = speaker_time / total_time * 100
    pct = f"{percentage:.1f}"

    if criteria.min_percentage and percentage < criteria.min_percentage:
        passed = False
        explanation = f"{criteria.speaker} spoke {pct}% (minimum: {_fmt_bound(criteria.min_percentage)}%)"
    elif criteria.max_percentage and percentage > criteria.max_percentage:
        passed = False
        explanation = f"{criteria.speaker} spoke {pct}% (maximum: {_fmt_bound(criteria.max_percentage)}%)"
    else:
        passed = True
        explanation = f"{criteria.speaker} spoke {pct}% of the time"
    return passed, SPEAKER_TIME_CONFIDENCE, explanation, f"{pct}%"


def evaluate_rule(
    rule: EvaluableRule,
    lines: Sequence[LineLike],
    call_duration_ms: int | None,
) -> RuleVerdict:
    """
    Evaluate a single rule against transcript lines (in sequence order).
    Total over its inputs: bad criteria and unknown types become failing verdicts.
    """
    if isinstance(rule, UnparseableRule):
        return RuleVerdict(
            rule_id=rule.id,
            rule_name=rule.name,
            passed=False,
            confidence=0.0,
            explanation=rule.reason,
        )

    criteria = rule.criteria
    if isinstance(criteria, KeywordCriteria):
        passed, confidence, explanation, matched = _eval_keyword(criteria, lines)
    elif isinstance(criteria, DurationCriteria):
        passed, confidence, explanation, matched = _eval_duration(criteria, call_duration_ms)
    elif isinstance(criteria, SpeakerTimeCriteria):
        passed, confidence, explanation, matched = _eval_speaker_time(criteria, lines)
    elif isinstance(criteria, CustomCriteria):
        passed, confidence, explanation, matched = False, 0.0, "Custom rules not yet implemented", None
    else:
        passed, confidence, explanation, matched = False, 0.0, f"Unknown rule type: {rule.type}", None

    return RuleVerdict(
        rule_id=rule.id,
        rule_name=rule.name,
        passed=passed,
        confidence=confidence,
        explanation=explanation,
        matched_text=matched,
    )
