"""Call lifecycle controller - the only writer of Call.status."""

import logging
import random
from collections.abc import Sequence
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from callqual.config import Settings
from callqual.database import async_session_maker
from callqual.engine.aggregator import aggregate
from callqual.models import Call, CallStatus
from callqual.models.call import ACTIVE_STATUSES
from callqual.pipeline.errors import (
    AdmissionRejectedError,
    CallNotFoundError,
    InvalidTransitionError,
    PipelineError,
)
from callqual.pipeline.orchestrator import TranscriptionOrchestrator
from callqual.pipeline.queue import AdmissionHook, PipelineQueue, max_depth_admission
from callqual.providers import TranscriptionProvider, build_provider
from callqual.schemas.call import CallStats
from callqual.schemas.qualification import QualificationVerdict
from callqual.schemas.rule import rule_from_model
from callqual.schemas.transcript import TranscriptData
from callqual.storage import repositories as repo

logger = logging.getLogger(__name__)


class CallLifecycleController:
    """
    Owns the call state machine:

        PENDING -> TRANSCRIBING -> EVALUATING -> COMPLETED
        PENDING/TRANSCRIBING/EVALUATING -> FAILED

    Each transition is one conditional UPDATE committed together with the rows
    it creates, so readers never see a half-written stage.
    """

    def __init__(
        self,
        provider: TranscriptionProvider,
        session_maker: async_sessionmaker[AsyncSession] | None = None,
        max_workers: int = 4,
        admission: AdmissionHook | None = None,
        rng: random.Random | None = None,
        shutdown_timeout: float = 30.0,
    ):
        self._session_maker = session_maker or async_session_maker
        self._shutdown_timeout = shutdown_timeout
        self.orchestrator = TranscriptionOrchestrator(self, provider, rng=rng)
        self.queue = PipelineQueue(self.orchestrator.process_call, max_workers, admission)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        session_maker: async_sessionmaker[AsyncSession] | None = None,
    ) -> "CallLifecycleController":
        admission = None
        if settings.pipeline_max_queue_depth > 0:
            admission = max_depth_admission(settings.pipeline_max_queue_depth)
        return cls(
            provider=build_provider(settings),
            session_maker=session_maker,
            max_workers=settings.pipeline_max_workers,
            admission=admission,
            rng=random.Random(settings.synthetic_seed),
            shutdown_timeout=settings.pipeline_shutdown_timeout_seconds,
        )

    async def _raise_transition_error(self, db: AsyncSession, call_id: str, target: CallStatus):
        call = await repo.get_call(db, call_id)
        if call is None:
            raise CallNotFoundError(call_id)
        raise InvalidTransitionError(call_id, call.status, target.value)

    # --- Exposed operations ---

    async def create_call(
        self,
        owner_id: str,
        recording_locator: str,
        file_name: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Call:
        """Create a PENDING call without scheduling it (see process_batch)."""
        async with self._session_maker.begin() as db:
            call = await repo.create_call(db, owner_id, recording_locator, file_name, metadata)
        logger.info("Created call %s for owner %s", call.id, owner_id)
        return call

    async def submit_call(
        self,
        owner_id: str,
        recording_locator: str,
        file_name: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Call:
        """Create a call and schedule its pipeline. Returns before processing starts."""
        call = await self.create_call(owner_id, recording_locator, file_name, metadata)
        try:
            await self.submit(call.id)
        except AdmissionRejectedError as e:
            await self.on_failure(call.id, str(e))
            raise
        return call

    async def get_call(self, owner_id: str, call_id: str) -> Call:
        """Call with transcript lines and qualification rule results."""
        async with self._session_maker() as db:
            call = await repo.get_call_detail(db, call_id, owner_id)
        if call is None:
            raise CallNotFoundError(call_id)
        return call

    async def list_calls(
        self,
        owner_id: str,
        page: int = 1,
        limit: int = 20,
        status: CallStatus | None = None,
        search: str | None = None,
    ) -> tuple[list[Call], int]:
        async with self._session_maker() as db:
            return await repo.list_calls(
                db, owner_id, page, limit, status.value if status else None, search
            )

    async def get_stats(self, owner_id: str) -> CallStats:
        """Counts per status for an owner."""
        async with self._session_maker() as db:
            counts = await repo.count_calls_by_status(db, owner_id)
        return CallStats(
            total=sum(counts.values()),
            **{status.value.lower(): counts.get(status.value, 0) for status in CallStatus},
        )

    async def delete_call(self, owner_id: str, call_id: str) -> None:
        """Delete a call; transcript and qualification go with it."""
        async with self._session_maker.begin() as db:
            deleted = await repo.delete_call(db, call_id, owner_id)
        if not deleted:
            raise CallNotFoundError(call_id)
        logger.info("Deleted call %s", call_id)

    async def process_batch(self, call_ids: Sequence[str]) -> None:
        """Run several PENDING calls one after another, outside the worker pool."""
        await self.orchestrator.batch_process_calls(call_ids)

    # --- Transitions ---

    async def submit(self, call_id: str) -> None:
        """Validate the call is PENDING and enqueue it. Non-blocking."""
        async with self._session_maker() as db:
            call = await repo.get_call(db, call_id)
        if call is None:
            raise CallNotFoundError(call_id)
        if call.status != CallStatus.PENDING.value:
            raise InvalidTransitionError(call_id, call.status, CallStatus.TRANSCRIBING.value)
        self.queue.enqueue(call_id)
        logger.info("Submitted call %s for processing", call_id)

    async def begin_transcription(self, call_id: str) -> Call:
        """PENDING -> TRANSCRIBING. Returns the call as of the transition."""
        async with self._session_maker.begin() as db:
            if not await repo.transition_status(
                db, call_id, [CallStatus.PENDING], CallStatus.TRANSCRIBING
            ):
                await self._raise_transition_error(db, call_id, CallStatus.TRANSCRIBING)
            call = await repo.get_call(db, call_id)
        logger.info("Call %s: PENDING -> TRANSCRIBING", call_id)
        return call

    async def on_transcribed(
        self, call_id: str, transcript: TranscriptData
    ) -> QualificationVerdict | None:
        """
        TRANSCRIBING -> EVALUATING, storing the transcript and duration, then
        qualify against the owner's active rules. Failures after this point
        move the call to FAILED.
        """
        async with self._session_maker.begin() as db:
            if not await repo.transition_status(
                db,
                call_id,
                [CallStatus.TRANSCRIBING],
                CallStatus.EVALUATING,
                duration_ms=transcript.duration_ms,
            ):
                await self._raise_transition_error(db, call_id, CallStatus.EVALUATING)
            await repo.create_transcript(db, call_id, transcript)
            call = await repo.get_call(db, call_id)
            owner_id = call.owner_id
        logger.info("Call %s: TRANSCRIBING -> EVALUATING", call_id)

        try:
            async with self._session_maker() as db:
                rules = [rule_from_model(r) for r in await repo.list_active_rules(db, owner_id)]
            verdict = aggregate(call_id, rules, transcript.lines, transcript.duration_ms)
            if verdict is None:
                logger.warning("No rules found for owner %s, skipping evaluation", owner_id)
            await self.on_qualified(call_id, verdict)
        except Exception as e:
            logger.exception("Qualification failed for call %s", call_id)
            await self.on_failure(call_id, f"Qualification error: {e}")
            return None
        return verdict

    async def on_qualified(self, call_id: str, verdict: QualificationVerdict | None) -> None:
        """EVALUATING -> COMPLETED, storing the verdict if there is one."""
        if verdict is not None and verdict.call_id != call_id:
            raise ValueError(f"Verdict for {verdict.call_id} passed for call {call_id}")
        async with self._session_maker.begin() as db:
            if not await repo.transition_status(
                db, call_id, [CallStatus.EVALUATING], CallStatus.COMPLETED
            ):
                await self._raise_transition_error(db, call_id, CallStatus.COMPLETED)
            if verdict is not None:
                await repo.create_qualification(db, verdict)

        if verdict is None:
            logger.info("Call %s: EVALUATING -> COMPLETED (no rules configured)", call_id)
        else:
            logger.info(
                "Call %s: EVALUATING -> COMPLETED, %s (%d/%d rules passed)",
                call_id,
                verdict.overall_status.value,
                verdict.rules_passed,
                verdict.rules_passed + verdict.rules_failed,
            )

    async def on_failure(self, call_id: str, reason: str) -> None:
        """Any non-terminal state -> FAILED. No-op if already FAILED."""
        async with self._session_maker.begin() as db:
            if await repo.transition_status(
                db, call_id, ACTIVE_STATUSES, CallStatus.FAILED, error_reason=reason
            ):
                logger.error("Call %s: -> FAILED (%s)", call_id, reason)
                return
            call = await repo.get_call(db, call_id)
            if call is None:
                raise CallNotFoundError(call_id)
            if call.status == CallStatus.FAILED.value:
                logger.debug("Call %s already FAILED, ignoring: %s", call_id, reason)
                return
            raise InvalidTransitionError(call_id, call.status, CallStatus.FAILED.value)

    # --- Worker pool ---

    def start(self) -> None:
        self.queue.start()

    async def stop(self) -> None:
        """Drain the worker pool, failing any call it had to interrupt."""
        interrupted = await self.queue.stop(self._shutdown_timeout)
        for call_id in interrupted:
            try:
                await self.on_failure(call_id, "Pipeline stopped during processing")
            except PipelineError as e:
                logger.warning("Could not fail interrupted call %s: %s", call_id, e)
        await self.orchestrator.provider.close()

    async def wait_idle(self) -> None:
        """Block until every scheduled pipeline has finished."""
        await self.queue.join()
