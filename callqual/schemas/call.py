"""Call request/response schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from callqual.models.call import CallStatus


class SubmitCallRequest(BaseModel):
    """POST /v1/calls request."""

    recording_locator: str = Field(min_length=1)
    file_name: str | None = None
    caller_name: str | None = None
    caller_phone: str | None = None
    agent_name: str | None = None
    campaign: str | None = None
    source: str | None = None
    metadata: dict[str, Any] | None = None

    def build_metadata(self) -> dict[str, Any] | None:
        """Merge the named caller fields into free-form metadata."""
        meta = dict(self.metadata or {})
        for key in ("caller_name", "caller_phone", "agent_name", "campaign", "source"):
            value = getattr(self, key)
            if value:
                meta[key] = value
        return meta or None


class BatchProcessRequest(BaseModel):
    """POST /v1/calls/batch request."""

    call_ids: list[str] = Field(min_length=1)


class TranscriptLineOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sequence_number: int
    speaker: str
    text: str
    start_time: int
    end_time: int
    confidence: float


class TranscriptOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    language: str
    confidence_avg: float
    speakers_count: int
    processing_time_ms: int | None = None
    lines: list[TranscriptLineOut] = Field(default_factory=list)


class RuleResultOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    rule_id: str
    rule_name: str
    passed: bool
    confidence: float
    explanation: str
    matched_text: str | None = None


class QualificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    overall_status: str
    confidence_avg: float
    rules_passed: int
    rules_failed: int
    rule_results: list[RuleResultOut] = Field(default_factory=list)


class CallOut(BaseModel):
    """Call without nested transcript/qualification."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    recording_locator: str
    file_name: str | None = None
    call_metadata: dict[str, Any] | None = Field(default=None, serialization_alias="metadata")
    duration_ms: int | None = None
    status: CallStatus
    error_reason: str | None = None
    created_at: datetime
    updated_at: datetime


class TranscriptSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    confidence_avg: float


class QualificationSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    overall_status: str
    rules_passed: int
    rules_failed: int


class CallListItem(CallOut):
    """GET /v1/calls item - call with transcript and verdict summaries."""

    transcript: TranscriptSummary | None = None
    qualification: QualificationSummary | None = None


class CallDetail(CallOut):
    """GET /v1/calls/{id} response."""

    transcript: TranscriptOut | None = None
    qualification: QualificationOut | None = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class CallListResponse(BaseModel):
    """GET /v1/calls response."""

    data: list[CallListItem]
    pagination: Pagination


class CallStats(BaseModel):
    """GET /v1/calls/stats response."""

    total: int = 0
    pending: int = 0
    transcribing: int = 0
    evaluating: int = 0
    completed: int = 0
    failed: int = 0
