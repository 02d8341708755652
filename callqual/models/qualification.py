"""Qualification result and per-rule audit records - append-only."""

import enum
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from callqual.database import Base
from callqual.models.call import utcnow

if TYPE_CHECKING:
    from callqual.models.call import Call


class OverallStatus(str, enum.Enum):
    QUALIFIED = "QUALIFIED"
    DISQUALIFIED = "DISQUALIFIED"


class QualificationResult(Base):
    """Aggregate verdict for one call."""

    __tablename__ = "qualification_results"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    call_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("calls.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    overall_status: Mapped[str] = mapped_column(String(20), nullable=False)
    confidence_avg: Mapped[float] = mapped_column(Float, nullable=False)
    rules_passed: Mapped[int] = mapped_column(Integer, nullable=False)
    rules_failed: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    call: Mapped["Call"] = relationship(back_populates="qualification")
    rule_results: Mapped[list["RuleResult"]] = relationship(
        back_populates="qualification",
        cascade="all, delete-orphan",
        order_by="RuleResult.position",
    )


class RuleResult(Base):
    """One rule's verdict. rule_id is not a foreign key so results outlive rules."""

    __tablename__ = "rule_results"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    qualification_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("qualification_results.id", ondelete="CASCADE"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    rule_id: Mapped[str] = mapped_column(String(36), nullable=False)
    rule_name: Mapped[str] = mapped_column(Text, nullable=False)
    passed: Mapped[bool] = mapped_column(Boolean, nullable=False)
    confidence: Mapped[float] = mapped_column(Float, nullable=False)
    explanation: Mapped[str] = mapped_column(Text, nullable=False)
    matched_text: Mapped[str | None] = mapped_column(Text, nullable=True)

    qualification: Mapped["QualificationResult"] = relationship(back_populates="rule_results")
