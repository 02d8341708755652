"""Repository functions for calls, transcripts, qualifications and rules."""

from collections.abc import Iterable
from typing import Any
from uuid import uuid4

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from callqual.models import (
    Call,
    CallStatus,
    QualificationResult,
    Rule,
    RuleResult,
    Transcript,
    TranscriptLine,
)
from callqual.models.call import utcnow
from callqual.schemas.qualification import QualificationVerdict
from callqual.schemas.transcript import TranscriptData


def _new_id() -> str:
    return str(uuid4())


def _with_children():
    return (
        selectinload(Call.transcript).selectinload(Transcript.lines),
        selectinload(Call.qualification).selectinload(QualificationResult.rule_results),
    )


async def create_call(
    db: AsyncSession,
    owner_id: str,
    recording_locator: str,
    file_name: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> Call:
    """Create a call in PENDING."""
    now = utcnow()
    call = Call(
        id=_new_id(),
        owner_id=owner_id,
        recording_locator=recording_locator,
        file_name=file_name,
        call_metadata=metadata,
        status=CallStatus.PENDING.value,
        created_at=now,
        updated_at=now,
    )
    db.add(call)
    await db.flush()
    return call


async def get_call(db: AsyncSession, call_id: str, owner_id: str | None = None) -> Call | None:
    """Get call by ID, optionally owner-scoped."""
    stmt = select(Call).where(Call.id == call_id)
    if owner_id is not None:
        stmt = stmt.where(Call.owner_id == owner_id)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_call_detail(db: AsyncSession, call_id: str, owner_id: str | None = None) -> Call | None:
    """Get call with transcript lines and rule results eagerly loaded."""
    stmt = select(Call).where(Call.id == call_id).options(*_with_children())
    if owner_id is not None:
        stmt = stmt.where(Call.owner_id == owner_id)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def list_calls(
    db: AsyncSession,
    owner_id: str,
    page: int = 1,
    limit: int = 20,
    status: str | None = None,
    search: str | None = None,
) -> tuple[list[Call], int]:
    """
    Owner's calls, newest first, with total count for pagination.
    search matches the file name or the caller name in metadata.
    """
    conditions = [Call.owner_id == owner_id]
    if status:
        conditions.append(Call.status == status)
    if search:
        pattern = f"%{search}%"
        conditions.append(
            or_(
                Call.file_name.ilike(pattern),
                Call.call_metadata["caller_name"].as_string().ilike(pattern),
            )
        )

    total = await db.scalar(select(func.count()).select_from(Call).where(*conditions))
    result = await db.execute(
        select(Call)
        .where(*conditions)
        .options(selectinload(Call.transcript), selectinload(Call.qualification))
        .order_by(Call.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), int(total or 0)


async def count_calls_by_status(db: AsyncSession, owner_id: str) -> dict[str, int]:
    """Count owner's calls grouped by status."""
    result = await db.execute(
        select(Call.status, func.count()).where(Call.owner_id == owner_id).group_by(Call.status)
    )
    return {status: count for status, count in result.all()}


async def transition_status(
    db: AsyncSession,
    call_id: str,
    from_statuses: Iterable[CallStatus],
    to_status: CallStatus,
    **values: Any,
) -> bool:
    """
    Conditionally move a call to to_status.
    Returns False when the call does not exist or is not in one of from_statuses.
    """
    result = await db.execute(
        update(Call)
        .where(Call.id == call_id, Call.status.in_([s.value for s in from_statuses]))
        .values(status=to_status.value, updated_at=utcnow(), **values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def create_transcript(db: AsyncSession, call_id: str, data: TranscriptData) -> Transcript:
    """Create transcript and its lines."""
    transcript = Transcript(
        id=_new_id(),
        call_id=call_id,
        language=data.language,
        confidence_avg=data.confidence_avg,
        speakers_count=data.speakers_count,
        processing_time_ms=data.processing_time_ms,
        created_at=utcnow(),
        lines=[
            TranscriptLine(
                id=_new_id(),
                sequence_number=line.sequence_number,
                speaker=line.speaker,
                text=line.text,
                start_time=line.start_time,
                end_time=line.end_time,
                confidence=line.confidence,
            )
            for line in data.lines
        ],
    )
    db.add(transcript)
    await db.flush()
    return transcript


async def create_qualification(db: AsyncSession, verdict: QualificationVerdict) -> QualificationResult:
    """Create qualification result and its rule results."""
    qualification = QualificationResult(
        id=_new_id(),
        call_id=verdict.call_id,
        overall_status=verdict.overall_status.value,
        confidence_avg=verdict.confidence_avg,
        rules_passed=verdict.rules_passed,
        rules_failed=verdict.rules_failed,
        created_at=utcnow(),
        rule_results=[
            RuleResult(
                id=_new_id(),
                position=position,
                rule_id=r.rule_id,
                rule_name=r.rule_name,
                passed=r.passed,
                confidence=r.confidence,
                explanation=r.explanation,
                matched_text=r.matched_text,
            )
            for position, r in enumerate(verdict.rule_results)
        ],
    )
    db.add(qualification)
    await db.flush()
    return qualification


async def delete_call(db: AsyncSession, call_id: str, owner_id: str) -> bool:
    """Delete a call with its transcript and qualification."""
    call = await get_call_detail(db, call_id, owner_id)
    if not call:
        return False
    await db.delete(call)
    await db.flush()
    return True


async def list_active_rules(db: AsyncSession, owner_id: str) -> list[Rule]:
    """Active rules for an owner, oldest first - the evaluation snapshot."""
    result = await db.execute(
        select(Rule)
        .where(Rule.owner_id == owner_id, Rule.is_active.is_(True))
        .order_by(Rule.created_at.asc(), Rule.id.asc())
    )
    return list(result.scalars().all())


async def list_rules(db: AsyncSession, owner_id: str) -> list[Rule]:
    """All rules for an owner, newest first."""
    result = await db.execute(
        select(Rule).where(Rule.owner_id == owner_id).order_by(Rule.created_at.desc())
    )
    return list(result.scalars().all())


async def get_rule(db: AsyncSession, rule_id: str, owner_id: str) -> Rule | None:
    """Get rule by ID (owner-scoped)."""
    result = await db.execute(select(Rule).where(Rule.id == rule_id, Rule.owner_id == owner_id))
    return result.scalar_one_or_none()


async def create_rule(
    db: AsyncSession,
    owner_id: str,
    name: str,
    rule_type: str,
    criteria: dict[str, Any],
    description: str | None = None,
    is_required: bool = False,
    is_active: bool = True,
) -> Rule:
    """Create a rule."""
    now = utcnow()
    rule = Rule(
        id=_new_id(),
        owner_id=owner_id,
        name=name,
        description=description,
        type=rule_type,
        criteria=criteria,
        is_required=is_required,
        is_active=is_active,
        created_at=now,
        updated_at=now,
    )
    db.add(rule)
    await db.flush()
    return rule
