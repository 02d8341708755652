"""Database models."""

from callqual.models.call import Call, CallStatus
from callqual.models.qualification import OverallStatus, QualificationResult, RuleResult
from callqual.models.rule import Rule, RuleType
from callqual.models.transcript import Transcript, TranscriptLine

__all__ = [
    "Call",
    "CallStatus",
    "OverallStatus",
    "QualificationResult",
    "Rule",
    "RuleResult",
    "RuleType",
    "Transcript",
    "TranscriptLine",
]
