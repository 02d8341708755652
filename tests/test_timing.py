"""Tests for timing synthesis."""

import random

import pytest
from pydantic import ValidationError

from callqual.engine.timing import (
    MAX_PAUSE_MS,
    MIN_PAUSE_MS,
    build_transcript,
    spoken_duration_ms,
    synthesize_lines,
)
from callqual.providers.base import ProviderTranscript, Utterance
from callqual.schemas.transcript import TimedLine, TranscriptData


def test_spoken_duration_at_150_wpm():
    assert spoken_duration_ms("") == 0
    assert spoken_duration_ms(" ".join(["word"] * 150)) == 60000
    assert spoken_duration_ms(" ".join(["word"] * 75)) == 30000


def test_synthesized_lines_are_ordered_and_paused():
    utterances = [
        Utterance(speaker="AGENT", text="Hello there, how are you doing today?"),
        Utterance(speaker="CUSTOMER", text="Fine."),
        Utterance(speaker="AGENT", text="Great to hear it."),
    ]
    lines = synthesize_lines(utterances, random.Random(1))

    assert [ln.sequence_number for ln in lines] == [1, 2, 3]
    assert MIN_PAUSE_MS <= lines[0].start_time <= MAX_PAUSE_MS
    for prev, cur in zip(lines, lines[1:]):
        gap = cur.start_time - prev.end_time
        assert MIN_PAUSE_MS <= gap <= MAX_PAUSE_MS
    for ln, utt in zip(lines, utterances):
        assert ln.end_time - ln.start_time == spoken_duration_ms(utt.text)
        assert 0.80 <= ln.confidence <= 0.99


def test_provider_timing_is_kept():
    utterances = [
        Utterance(speaker="AGENT", text="Hi", start_time=100, end_time=900, confidence=0.5),
        Utterance(speaker="CUSTOMER", text="Hello back"),
    ]
    lines = synthesize_lines(utterances, random.Random(1))
    assert (lines[0].start_time, lines[0].end_time, lines[0].confidence) == (100, 900, 0.5)
    assert lines[1].start_time >= 900 + MIN_PAUSE_MS


def test_same_seed_same_lines():
    utterances = [Utterance(speaker="AGENT", text="one two three")] * 4
    a = synthesize_lines(utterances, random.Random(42))
    b = synthesize_lines(utterances, random.Random(42))
    assert a == b


def test_build_transcript_derives_confidence_from_lines():
    raw = ProviderTranscript(
        utterances=[
            Utterance(speaker="AGENT", text="a", confidence=0.8),
            Utterance(speaker="CUSTOMER", text="b", confidence=0.9),
            Utterance(speaker="AGENT", text="c", confidence=1.0),
        ]
    )
    transcript = build_transcript(raw, random.Random(0), processing_time_ms=12)
    assert transcript.confidence_avg == pytest.approx(0.9)
    assert transcript.speakers_count == 2
    assert transcript.processing_time_ms == 12
    assert transcript.duration_ms == transcript.lines[-1].end_time


def test_build_transcript_prefers_provider_confidence():
    raw = ProviderTranscript(utterances=[Utterance(speaker="AGENT", text="a")], confidence=0.91)
    assert build_transcript(raw, random.Random(0)).confidence_avg == 0.91


def test_transcript_rejects_gaps_in_sequence():
    lines = [
        TimedLine(sequence_number=1, speaker="A", text="x", start_time=0, end_time=1, confidence=0.9),
        TimedLine(sequence_number=3, speaker="A", text="y", start_time=2, end_time=3, confidence=0.9),
    ]
    with pytest.raises(ValidationError):
        TranscriptData(confidence_avg=0.9, speakers_count=1, lines=lines)


def test_line_end_before_start_rejected():
    with pytest.raises(ValidationError):
        TimedLine(sequence_number=1, speaker="A", text="x", start_time=10, end_time=5, confidence=0.9)
