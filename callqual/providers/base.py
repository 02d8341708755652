"""Transcription provider interface."""

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from callqual.pipeline.errors import TranscriptionError

__all__ = ["ProviderTranscript", "TranscriptionError", "TranscriptionProvider", "Utterance"]


class Utterance(BaseModel):
    """One utterance as returned by a provider. Timing is optional."""

    speaker: str
    text: str
    start_time: int | None = None
    end_time: int | None = None
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)


class ProviderTranscript(BaseModel):
    """Raw provider output, in emission order."""

    utterances: list[Utterance]
    language: str = "en-US"
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)


class TranscriptionProvider(ABC):
    """Speech-to-text backend. Implementations raise TranscriptionError on failure."""

    name: str = "provider"

    @abstractmethod
    async def transcribe(self, recording_locator: str) -> ProviderTranscript:
        """Transcribe the recording behind an opaque locator."""

    async def close(self) -> None:
        """Release any held resources."""
        return None
