"""Qualification rule model."""

import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from callqual.database import Base, JSONVariant
from callqual.models.call import utcnow


class RuleType(str, enum.Enum):
    KEYWORD = "KEYWORD"
    DURATION = "DURATION"
    SPEAKER_TIME = "SPEAKER_TIME"
    CUSTOM = "CUSTOM"


class Rule(Base):
    """User-authored rule. criteria shape depends on type."""

    __tablename__ = "rules"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False)  # KEYWORD|DURATION|SPEAKER_TIME|CUSTOM
    criteria: Mapped[dict] = mapped_column(JSONVariant, nullable=False)
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
