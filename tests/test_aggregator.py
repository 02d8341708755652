"""Unit tests for qualification aggregation."""

import pytest

from callqual.engine.aggregator import aggregate
from callqual.models.qualification import OverallStatus
from callqual.schemas.rule import parse_rule


@pytest.fixture
def lines(line):
    return [
        line(1, "AGENT", "Hello, this call is being recorded.", 0, 4000),
        line(2, "CUSTOMER", "Okay, I am interested in pricing.", 4500, 9000),
        line(3, "AGENT", "Great, thank you for your time.", 9500, 40000),
    ]


def test_required_failure_disqualifies(lines):
    """Two required pass, one required fails, one optional fails."""
    rules = [
        parse_rule("r1", "Recording disclosure", "KEYWORD", {"keywords": ["recorded"]}, True),
        parse_rule("r2", "Long enough", "DURATION", {"min_seconds": 30}, True),
        parse_rule("r3", "Budget mentioned", "KEYWORD", {"keywords": ["budget"]}, True),
        parse_rule("r4", "Demo booked", "KEYWORD", {"keywords": ["demo"]}, False),
    ]
    verdict = aggregate("call-1", rules, lines, 40000)

    assert verdict.call_id == "call-1"
    assert verdict.overall_status == OverallStatus.DISQUALIFIED
    assert verdict.rules_passed == 2
    assert verdict.rules_failed == 2
    assert [r.rule_id for r in verdict.rule_results] == ["r1", "r2", "r3", "r4"]


def test_optional_failures_do_not_disqualify(lines):
    rules = [
        parse_rule("r1", "Recording disclosure", "KEYWORD", {"keywords": ["recorded"]}, True),
        parse_rule("r2", "Demo booked", "KEYWORD", {"keywords": ["demo"]}, False),
    ]
    verdict = aggregate("call-1", rules, lines, 40000)
    assert verdict.overall_status == OverallStatus.QUALIFIED
    assert verdict.rules_passed == 1
    assert verdict.rules_failed == 1


def test_no_required_rules_qualifies_even_if_all_fail(lines):
    rules = [
        parse_rule("r1", "Demo booked", "KEYWORD", {"keywords": ["demo"]}, False),
        parse_rule("r2", "Custom", "CUSTOM", {}, False),
    ]
    verdict = aggregate("call-1", rules, lines, 40000)
    assert verdict.overall_status == OverallStatus.QUALIFIED
    assert verdict.rules_passed == 0
    assert verdict.rules_failed == 2


def test_unparseable_required_rule_disqualifies(lines):
    rules = [parse_rule("r1", "Broken", "KEYWORD", {"keywords": "recorded"}, True)]
    verdict = aggregate("call-1", rules, lines, 40000)
    assert verdict.overall_status == OverallStatus.DISQUALIFIED
    assert verdict.rule_results[0].confidence == 0


def test_confidence_is_mean_of_rule_confidences(lines):
    rules = [
        parse_rule("r1", "Recording disclosure", "KEYWORD", {"keywords": ["recorded"]}),  # 0.95
        parse_rule("r2", "Long enough", "DURATION", {"min_seconds": 30}),  # 1.0
        parse_rule("r3", "Custom", "CUSTOM", {}),  # 0.0
    ]
    verdict = aggregate("call-1", rules, lines, 40000)
    assert verdict.confidence_avg == pytest.approx((0.95 + 1.0 + 0.0) / 3)


def test_counts_add_up(lines):
    rules = [
        parse_rule(f"r{i}", f"Rule {i}", "KEYWORD", {"keywords": [kw]}, i % 2 == 0)
        for i, kw in enumerate(["hello", "nope", "pricing", "thank", "missing"])
    ]
    verdict = aggregate("call-1", rules, lines, 40000)
    assert verdict.rules_passed + verdict.rules_failed == len(rules)
    assert len(verdict.rule_results) == len(rules)


def test_empty_rule_set_returns_none(lines):
    assert aggregate("call-1", [], lines, 40000) is None
