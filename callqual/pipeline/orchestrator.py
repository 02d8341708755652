"""Transcription orchestrator - runs one call through the provider."""

import logging
import random
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING

from callqual.engine.timing import build_transcript
from callqual.pipeline.errors import PipelineError, TranscriptionError
from callqual.providers.base import TranscriptionProvider

if TYPE_CHECKING:
    from callqual.pipeline.lifecycle import CallLifecycleController

logger = logging.getLogger(__name__)


class TranscriptionOrchestrator:
    """Sequences provider calls and hands results to the lifecycle controller."""

    def __init__(
        self,
        controller: "CallLifecycleController",
        provider: TranscriptionProvider,
        rng: random.Random | None = None,
    ):
        self._controller = controller
        self._provider = provider
        self._rng = rng or random.Random()

    @property
    def provider(self) -> TranscriptionProvider:
        return self._provider

    async def process_call(self, call_id: str) -> None:
        """Transcribe a PENDING call, then hand off to qualification."""
        logger.info("Starting transcription for call %s via %s", call_id, self._provider.name)

        try:
            call = await self._controller.begin_transcription(call_id)
        except PipelineError:
            raise
        except Exception as e:
            logger.exception("Could not start transcription for call %s", call_id)
            await self._controller.on_failure(call_id, f"Transcription error: {e}")
            return

        started = time.monotonic()
        try:
            raw = await self._provider.transcribe(call.recording_locator)
            if not raw.utterances:
                raise TranscriptionError("Provider returned no utterances")
            processing_ms = int((time.monotonic() - started) * 1000)
            transcript = build_transcript(raw, self._rng, processing_time_ms=processing_ms)
        except Exception as e:
            logger.exception("Transcription failed for call %s", call_id)
            await self._controller.on_failure(call_id, f"Transcription error: {e}")
            return

        logger.info(
            "Transcription completed for call %s: %d lines, %d ms",
            call_id,
            len(transcript.lines),
            transcript.duration_ms,
        )

        try:
            await self._controller.on_transcribed(call_id, transcript)
        except PipelineError as e:
            logger.warning("Dropping transcript for call %s: %s", call_id, e)
        except Exception as e:
            logger.exception("Could not store transcript for call %s", call_id)
            await self._controller.on_failure(call_id, f"Transcription error: {e}")

    async def batch_process_calls(self, call_ids: Sequence[str]) -> None:
        """Process calls strictly one at a time, end to end."""
        logger.info("Starting batch transcription for %d calls", len(call_ids))
        for call_id in call_ids:
            try:
                await self.process_call(call_id)
            except PipelineError as e:
                logger.warning("Skipping call %s in batch: %s", call_id, e)
        logger.info("Batch transcription completed for %d calls", len(call_ids))
