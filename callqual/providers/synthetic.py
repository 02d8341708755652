"""Synthetic transcription provider - scripted dialogue, seeded randomness."""

import asyncio
import logging
import random
from collections.abc import Sequence

from callqual.providers.base import ProviderTranscript, TranscriptionProvider, Utterance
from callqual.providers.scripts import DEFAULT_SCRIPTS, DialogueScript

logger = logging.getLogger(__name__)

# Transcript-level confidence is drawn on its own, not derived from the lines.
MIN_TRANSCRIPT_CONFIDENCE = 0.85
MAX_TRANSCRIPT_CONFIDENCE = 0.98


class SyntheticTranscriptionProvider(TranscriptionProvider):
    """Returns one of a fixed set of scripted dialogues, without timing."""

    name = "synthetic"

    def __init__(
        self,
        scripts: Sequence[DialogueScript] = DEFAULT_SCRIPTS,
        seed: int | None = None,
        min_delay_ms: int = 1000,
        max_delay_ms: int = 2000,
        language: str = "en-US",
    ):
        if not scripts:
            raise ValueError("at least one dialogue script is required")
        self._scripts = list(scripts)
        self._rng = random.Random(seed)
        self._min_delay_ms = min_delay_ms
        self._max_delay_ms = max(max_delay_ms, min_delay_ms)
        self._language = language

    async def transcribe(self, recording_locator: str) -> ProviderTranscript:
        delay_ms = self._rng.uniform(self._min_delay_ms, self._max_delay_ms)
        if delay_ms > 0:
            await asyncio.sleep(delay_ms / 1000)

        script = self._rng.choice(self._scripts)
        logger.debug("Synthetic transcript for %s: %d lines", recording_locator, len(script))
        return ProviderTranscript(
            utterances=[Utterance(speaker=speaker, text=text) for speaker, text in script],
            language=self._language,
            confidence=self._rng.uniform(MIN_TRANSCRIPT_CONFIDENCE, MAX_TRANSCRIPT_CONFIDENCE),
        )
