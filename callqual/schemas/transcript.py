"""Transcript schemas passed between the orchestrator and the lifecycle controller."""

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TimedLine(BaseModel):
    """A transcript line with timing, before it is persisted."""

    model_config = ConfigDict(from_attributes=True)

    sequence_number: int = Field(ge=1)
    speaker: str
    text: str
    start_time: int = Field(ge=0)
    end_time: int = Field(ge=0)
    confidence: float = Field(ge=0.0, le=1.0)

    @model_validator(mode="after")
    def check_span(self) -> "TimedLine":
        if self.end_time < self.start_time:
            raise ValueError("end_time must not precede start_time")
        return self


class TranscriptData(BaseModel):
    """A complete transcript produced for one call."""

    language: str = "en-US"
    confidence_avg: float = Field(ge=0.0, le=1.0)
    speakers_count: int
    processing_time_ms: int | None = None
    lines: list[TimedLine]

    @model_validator(mode="after")
    def check_sequence(self) -> "TranscriptData":
        for expected, line in enumerate(self.lines, start=1):
            if line.sequence_number != expected:
                raise ValueError(
                    f"sequence numbers must be contiguous from 1 (got {line.sequence_number} "
                    f"at position {expected})"
                )
        return self

    @property
    def duration_ms(self) -> int:
        """Call duration - end of the last line (of the latest-ending one if speech overlaps)."""
        return max((ln.end_time for ln in self.lines), default=0)
