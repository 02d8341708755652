"""Timing and confidence synthesis for utterances that arrive without them."""

import math
import random
from collections.abc import Sequence

from callqual.providers.base import ProviderTranscript, Utterance
from callqual.schemas.transcript import TimedLine, TranscriptData

WORDS_PER_MINUTE = 150
MIN_PAUSE_MS = 500
MAX_PAUSE_MS = 1500
MIN_LINE_CONFIDENCE = 0.80
MAX_LINE_CONFIDENCE = 0.99


def spoken_duration_ms(text: str) -> int:
    """Approximate speaking time at 150 words per minute."""
    word_count = len(text.split())
    return math.floor(word_count / WORDS_PER_MINUTE * 60 * 1000)


def synthesize_lines(utterances: Sequence[Utterance], rng: random.Random) -> list[TimedLine]:
    """
    Assign sequence numbers, timing and confidence in emission order.

    Utterances carrying their own timing keep it; the clock never moves
    backwards, so an utterance without timing starts after the previous end.
    """
    lines: list[TimedLine] = []
    current = 0
    for seq, utt in enumerate(utterances, start=1):
        if utt.start_time is not None and utt.end_time is not None:
            start, end = utt.start_time, max(utt.end_time, utt.start_time)
        else:
            current += math.floor(rng.uniform(MIN_PAUSE_MS, MAX_PAUSE_MS))
            start = current
            end = start + spoken_duration_ms(utt.text)

        confidence = utt.confidence
        if confidence is None:
            confidence = rng.uniform(MIN_LINE_CONFIDENCE, MAX_LINE_CONFIDENCE)

        lines.append(
            TimedLine(
                sequence_number=seq,
                speaker=utt.speaker,
                text=utt.text,
                start_time=start,
                end_time=end,
                confidence=confidence,
            )
        )
        current = max(current, end)
    return lines


def build_transcript(
    raw: ProviderTranscript,
    rng: random.Random,
    processing_time_ms: int | None = None,
) -> TranscriptData:
    """Turn raw provider output into a complete transcript."""
    lines = synthesize_lines(raw.utterances, rng)
    if raw.confidence is not None:
        confidence_avg = raw.confidence
    else:
        confidence_avg = sum(ln.confidence for ln in lines) / len(lines) if lines else 0.0
    return TranscriptData(
        language=raw.language,
        confidence_avg=confidence_avg,
        speakers_count=len({ln.speaker for ln in lines}),
        processing_time_ms=processing_time_ms,
        lines=lines,
    )
