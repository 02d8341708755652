"""Qualification aggregator - combines per-rule verdicts into a call verdict."""

from collections.abc import Sequence

from callqual.engine.evaluator import LineLike, evaluate_rule
from callqual.models.qualification import OverallStatus
from callqual.schemas.qualification import QualificationVerdict
from callqual.schemas.rule import EvaluableRule


def aggregate(
    call_id: str,
    rules: Sequence[EvaluableRule],
    lines: Sequence[LineLike],
    duration_ms: int | None,
) -> QualificationVerdict | None:
    """
    Evaluate every rule independently and roll the verdicts up.

    Returns None when there are no rules - the call has nothing to qualify.
    The call is QUALIFIED iff every required rule passed; optional rules are
    recorded and counted but never change the overall status.
    """
    if not rules:
        return None

    verdicts = [evaluate_rule(rule, lines, duration_ms) for rule in rules]

    required_ok = all(v.passed for rule, v in zip(rules, verdicts) if rule.is_required)
    rules_passed = sum(1 for v in verdicts if v.passed)

    return QualificationVerdict(
        call_id=call_id,
        overall_status=OverallStatus.QUALIFIED if required_ok else OverallStatus.DISQUALIFIED,
        confidence_avg=sum(v.confidence for v in verdicts) / len(verdicts),
        rules_passed=rules_passed,
        rules_failed=len(verdicts) - rules_passed,
        rule_results=verdicts,
    )
