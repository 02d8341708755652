"""Call model and status state machine values."""

import enum
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from callqual.database import Base, JSONVariant

if TYPE_CHECKING:
    from callqual.models.qualification import QualificationResult
    from callqual.models.transcript import Transcript


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CallStatus(str, enum.Enum):
    """Pipeline status of a call."""

    PENDING = "PENDING"
    TRANSCRIBING = "TRANSCRIBING"
    EVALUATING = "EVALUATING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


ACTIVE_STATUSES = frozenset(
    {CallStatus.PENDING, CallStatus.TRANSCRIBING, CallStatus.EVALUATING}
)


class Call(Base):
    """One uploaded recording tracked through the pipeline."""

    __tablename__ = "calls"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    recording_locator: Mapped[str] = mapped_column(Text, nullable=False)
    file_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    # "metadata" is reserved on declarative classes
    call_metadata: Mapped[dict | None] = mapped_column("metadata", JSONVariant, nullable=True)
    duration_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=CallStatus.PENDING.value
    )  # PENDING|TRANSCRIBING|EVALUATING|COMPLETED|FAILED
    error_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    transcript: Mapped["Transcript | None"] = relationship(
        back_populates="call", cascade="all, delete-orphan", uselist=False
    )
    qualification: Mapped["QualificationResult | None"] = relationship(
        back_populates="call", cascade="all, delete-orphan", uselist=False
    )
