"""Transcript and transcript line models."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from callqual.database import Base
from callqual.models.call import utcnow

if TYPE_CHECKING:
    from callqual.models.call import Call


class Transcript(Base):
    """One transcript per call, immutable once written."""

    __tablename__ = "transcripts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    call_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("calls.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    language: Mapped[str] = mapped_column(String(16), nullable=False, default="en-US")
    confidence_avg: Mapped[float] = mapped_column(Float, nullable=False)
    speakers_count: Mapped[int] = mapped_column(Integer, nullable=False)
    processing_time_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    call: Mapped["Call"] = relationship(back_populates="transcript")
    lines: Mapped[list["TranscriptLine"]] = relationship(
        back_populates="transcript",
        cascade="all, delete-orphan",
        order_by="TranscriptLine.sequence_number",
    )


class TranscriptLine(Base):
    """One utterance; sequence_number defines canonical order."""

    __tablename__ = "transcript_lines"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    transcript_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("transcripts.id", ondelete="CASCADE"), nullable=False
    )
    sequence_number: Mapped[int] = mapped_column(Integer, nullable=False)
    speaker: Mapped[str] = mapped_column(String(64), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    start_time: Mapped[int] = mapped_column(Integer, nullable=False)  # ms from call start
    end_time: Mapped[int] = mapped_column(Integer, nullable=False)
    confidence: Mapped[float] = mapped_column(Float, nullable=False)

    transcript: Mapped["Transcript"] = relationship(back_populates="lines")

    __table_args__ = (
        UniqueConstraint("transcript_id", "sequence_number", name="uq_transcript_lines_seq"),
    )
