"""Rule verdict and aggregate qualification schemas."""

from pydantic import BaseModel, Field

from callqual.models.qualification import OverallStatus


class RuleVerdict(BaseModel):
    """One rule's outcome against one call."""

    rule_id: str
    rule_name: str
    passed: bool
    confidence: float = Field(ge=0.0, le=1.0)
    explanation: str
    matched_text: str | None = None


class QualificationVerdict(BaseModel):
    """Aggregate outcome for one call."""

    call_id: str
    overall_status: OverallStatus
    confidence_avg: float
    rules_passed: int
    rules_failed: int
    rule_results: list[RuleVerdict] = Field(default_factory=list)
