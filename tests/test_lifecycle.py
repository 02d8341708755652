"""Integration tests for the call lifecycle (SQLite via aiosqlite)."""

import asyncio

import pytest
from sqlalchemy import func, select

from callqual.models import (
    CallStatus,
    OverallStatus,
    QualificationResult,
    Transcript,
    TranscriptLine,
)
from callqual.pipeline.errors import (
    AdmissionRejectedError,
    CallNotFoundError,
    InvalidTransitionError,
)
from callqual.pipeline.queue import max_depth_admission
from callqual.storage import repositories as repo
from conftest import FailingProvider, SlowProvider, StaticProvider

OWNER = "owner-1"


async def add_rule(session_maker, name, rule_type, criteria, is_required=True, is_active=True, owner=OWNER):
    async with session_maker.begin() as db:
        return await repo.create_rule(
            db,
            owner_id=owner,
            name=name,
            rule_type=rule_type,
            criteria=criteria,
            is_required=is_required,
            is_active=is_active,
        )


async def run_call(controller, locator="uploads/call.mp3", owner=OWNER, **kwargs):
    call = await controller.submit_call(owner, locator, **kwargs)
    await controller.wait_idle()
    return await controller.get_call(owner, call.id)


@pytest.mark.asyncio
async def test_submit_returns_pending_call(controller):
    call = await controller.submit_call(OWNER, "uploads/a.mp3", file_name="a.mp3")
    assert call.status == CallStatus.PENDING
    assert call.owner_id == OWNER
    await controller.wait_idle()


@pytest.mark.asyncio
async def test_no_rules_completes_without_qualification(controller, static_provider):
    call = await run_call(controller)

    assert call.status == CallStatus.COMPLETED
    assert call.qualification is None
    assert call.error_reason is None
    assert static_provider.calls == ["uploads/call.mp3"]

    lines = call.transcript.lines
    assert [ln.sequence_number for ln in lines] == [1, 2, 3]
    assert [ln.speaker for ln in lines] == ["AGENT", "CUSTOMER", "AGENT"]
    assert call.transcript.speakers_count == 2
    assert call.duration_ms == lines[-1].end_time
    for prev, cur in zip(lines, lines[1:]):
        assert cur.start_time > prev.end_time


@pytest.mark.asyncio
async def test_qualified_when_required_rules_pass(controller, session_maker):
    await add_rule(session_maker, "Recording disclosure", "KEYWORD", {"keywords": ["recorded"]})
    await add_rule(session_maker, "Long enough", "DURATION", {"min_seconds": 1})
    await add_rule(session_maker, "Demo booked", "KEYWORD", {"keywords": ["demo"]}, is_required=False)

    call = await run_call(controller)

    assert call.status == CallStatus.COMPLETED
    q = call.qualification
    assert q.overall_status == OverallStatus.QUALIFIED
    assert q.rules_passed == 2
    assert q.rules_failed == 1
    results = {r.rule_name: r for r in q.rule_results}
    assert results["Recording disclosure"].matched_text == "recorded"
    assert results["Demo booked"].passed is False


@pytest.mark.asyncio
async def test_disqualified_when_required_rule_fails(controller, session_maker):
    await add_rule(session_maker, "Recording disclosure", "KEYWORD", {"keywords": ["recorded"]})
    await add_rule(session_maker, "Budget", "KEYWORD", {"keywords": ["budget"]})

    call = await run_call(controller)

    assert call.qualification.overall_status == OverallStatus.DISQUALIFIED
    failed = [r for r in call.qualification.rule_results if not r.passed]
    assert [r.rule_name for r in failed] == ["Budget"]
    assert failed[0].explanation == 'Missing required keywords: "budget"'


@pytest.mark.asyncio
async def test_inactive_and_foreign_rules_are_ignored(controller, session_maker):
    await add_rule(session_maker, "Off", "KEYWORD", {"keywords": ["budget"]}, is_active=False)
    await add_rule(session_maker, "Other owner", "KEYWORD", {"keywords": ["budget"]}, owner="owner-2")

    call = await run_call(controller)

    assert call.status == CallStatus.COMPLETED
    assert call.qualification is None


@pytest.mark.asyncio
async def test_malformed_stored_rule_fails_only_that_rule(controller, session_maker):
    await add_rule(session_maker, "Broken", "SPEAKER_TIME", {"min_percentage": 10}, is_required=False)
    await add_rule(session_maker, "Recording disclosure", "KEYWORD", {"keywords": ["recorded"]})

    call = await run_call(controller)

    assert call.status == CallStatus.COMPLETED
    assert call.qualification.overall_status == OverallStatus.QUALIFIED
    broken = next(r for r in call.qualification.rule_results if r.rule_name == "Broken")
    assert broken.passed is False
    assert broken.explanation.startswith("Invalid criteria for SPEAKER_TIME rule")


@pytest.mark.asyncio
async def test_provider_failure_marks_call_failed(make_controller):
    controller = make_controller(FailingProvider())
    call = await run_call(controller)

    assert call.status == CallStatus.FAILED
    assert call.error_reason == "Transcription error: speech engine unavailable"
    assert call.transcript is None
    assert call.qualification is None


@pytest.mark.asyncio
async def test_empty_provider_output_marks_call_failed(make_controller):
    controller = make_controller(StaticProvider([]))
    call = await run_call(controller)

    assert call.status == CallStatus.FAILED
    assert "no utterances" in call.error_reason


@pytest.mark.asyncio
async def test_on_failure_is_idempotent(controller):
    call = await controller.create_call(OWNER, "uploads/x.mp3")

    await controller.on_failure(call.id, "first reason")
    await controller.on_failure(call.id, "second reason")

    stored = await controller.get_call(OWNER, call.id)
    assert stored.status == CallStatus.FAILED
    assert stored.error_reason == "first reason"


@pytest.mark.asyncio
async def test_completed_call_cannot_fail_or_rerun(controller):
    call = await run_call(controller)
    assert call.status == CallStatus.COMPLETED

    with pytest.raises(InvalidTransitionError):
        await controller.on_failure(call.id, "late failure")
    with pytest.raises(InvalidTransitionError) as exc_info:
        await controller.submit(call.id)
    assert exc_info.value.current == CallStatus.COMPLETED

    stored = await controller.get_call(OWNER, call.id)
    assert stored.status == CallStatus.COMPLETED
    assert stored.error_reason is None


@pytest.mark.asyncio
async def test_transitions_reject_wrong_state(controller):
    call = await controller.create_call(OWNER, "uploads/x.mp3")

    with pytest.raises(InvalidTransitionError):
        await controller.on_qualified(call.id, None)

    began = await controller.begin_transcription(call.id)
    assert began.status == CallStatus.TRANSCRIBING
    with pytest.raises(InvalidTransitionError):
        await controller.begin_transcription(call.id)


@pytest.mark.asyncio
async def test_unknown_call(controller):
    with pytest.raises(CallNotFoundError):
        await controller.submit("does-not-exist")
    with pytest.raises(CallNotFoundError):
        await controller.on_failure("does-not-exist", "whatever")
    with pytest.raises(CallNotFoundError):
        await controller.get_call(OWNER, "does-not-exist")


@pytest.mark.asyncio
async def test_calls_are_owner_scoped(controller):
    call = await controller.create_call(OWNER, "uploads/x.mp3")
    with pytest.raises(CallNotFoundError):
        await controller.get_call("someone-else", call.id)
    with pytest.raises(CallNotFoundError):
        await controller.delete_call("someone-else", call.id)


@pytest.mark.asyncio
async def test_admission_rejection_fails_the_call(make_controller, static_provider, session_maker):
    controller = make_controller(static_provider, admission=max_depth_admission(0))

    with pytest.raises(AdmissionRejectedError):
        await controller.submit_call(OWNER, "uploads/x.mp3")

    calls, total = await controller.list_calls(OWNER)
    assert total == 1
    assert calls[0].status == CallStatus.FAILED
    assert "queue is full" in calls[0].error_reason
    assert static_provider.calls == []


@pytest.mark.asyncio
async def test_delete_cascades(controller, session_maker):
    await add_rule(session_maker, "Recording disclosure", "KEYWORD", {"keywords": ["recorded"]})
    call = await run_call(controller)

    await controller.delete_call(OWNER, call.id)

    with pytest.raises(CallNotFoundError):
        await controller.get_call(OWNER, call.id)
    async with session_maker() as db:
        assert await db.scalar(select(func.count()).select_from(Transcript)) == 0
        assert await db.scalar(select(func.count()).select_from(QualificationResult)) == 0
        assert await db.scalar(select(func.count()).select_from(TranscriptLine)) == 0


@pytest.mark.asyncio
async def test_stats(controller, make_controller):
    await run_call(controller)
    await run_call(controller)
    await controller.create_call(OWNER, "uploads/waiting.mp3")
    await run_call(make_controller(FailingProvider()))
    await controller.create_call("owner-2", "uploads/other.mp3")

    stats = await controller.get_stats(OWNER)

    assert stats.total == 4
    assert stats.completed == 2
    assert stats.pending == 1
    assert stats.failed == 1
    assert stats.transcribing == 0
    assert stats.evaluating == 0


@pytest.mark.asyncio
async def test_list_calls_paging_and_search(controller):
    for name in ["alpha.mp3", "beta.mp3", "alphabet.wav"]:
        await controller.create_call(OWNER, f"uploads/{name}", file_name=name)

    calls, total = await controller.list_calls(OWNER, page=1, limit=2)
    assert total == 3
    assert len(calls) == 2

    calls, total = await controller.list_calls(OWNER, search="ALPHA")
    assert total == 2
    assert {c.file_name for c in calls} == {"alpha.mp3", "alphabet.wav"}

    calls, total = await controller.list_calls(OWNER, status=CallStatus.COMPLETED)
    assert total == 0


@pytest.mark.asyncio
async def test_batch_processes_sequentially_and_skips_bad_ids(controller, static_provider):
    first = await controller.create_call(OWNER, "uploads/1.mp3")
    second = await controller.create_call(OWNER, "uploads/2.mp3")

    await controller.process_batch([first.id, "missing-id", second.id])

    assert static_provider.calls == ["uploads/1.mp3", "uploads/2.mp3"]
    for call_id in (first.id, second.id):
        call = await controller.get_call(OWNER, call_id)
        assert call.status == CallStatus.COMPLETED


@pytest.mark.asyncio
async def test_metadata_is_stored(controller):
    call = await controller.create_call(
        OWNER, "uploads/x.mp3", metadata={"caller_name": "John", "campaign": "Q3"}
    )
    stored = await controller.get_call(OWNER, call.id)
    assert stored.call_metadata == {"caller_name": "John", "campaign": "Q3"}


@pytest.mark.asyncio
async def test_stop_fails_call_interrupted_mid_pipeline(make_controller):
    controller = make_controller(SlowProvider(5.0), shutdown_timeout=0.05)
    call = await controller.submit_call(OWNER, "uploads/slow.mp3")
    await asyncio.sleep(0.1)

    await controller.stop()

    stored = await controller.get_call(OWNER, call.id)
    assert stored.status == CallStatus.FAILED
    assert stored.error_reason == "Pipeline stopped during processing"
    assert stored.transcript is None


@pytest.mark.asyncio
async def test_stop_drains_running_calls(make_controller):
    controller = make_controller(SlowProvider(0.1), shutdown_timeout=5.0)
    call = await controller.submit_call(OWNER, "uploads/slow.mp3")
    await asyncio.sleep(0.02)

    await controller.stop()

    stored = await controller.get_call(OWNER, call.id)
    assert stored.status == CallStatus.COMPLETED
    assert stored.error_reason is None


@pytest.mark.asyncio
async def test_list_calls_search_matches_caller_name(controller):
    await controller.create_call(
        OWNER, "uploads/1.mp3", file_name="monday.mp3", metadata={"caller_name": "Jane Doe"}
    )
    await controller.create_call(
        OWNER, "uploads/2.mp3", file_name="tuesday.mp3", metadata={"caller_name": "John Roe"}
    )
    await controller.create_call(OWNER, "uploads/3.mp3", file_name="jane-notes.mp3")

    calls, total = await controller.list_calls(OWNER, search="jane")

    assert total == 2
    assert {c.file_name for c in calls} == {"monday.mp3", "jane-notes.mp3"}


@pytest.mark.asyncio
async def test_list_calls_loads_summaries(controller, session_maker):
    await add_rule(session_maker, "Recording disclosure", "KEYWORD", {"keywords": ["recorded"]})
    done = await run_call(controller)
    waiting = await controller.create_call(OWNER, "uploads/waiting.mp3")

    calls, _ = await controller.list_calls(OWNER)
    by_id = {c.id: c for c in calls}

    assert by_id[done.id].transcript.id == done.transcript.id
    assert by_id[done.id].qualification.overall_status == OverallStatus.QUALIFIED
    assert by_id[waiting.id].transcript is None
    assert by_id[waiting.id].qualification is None
