"""Transcription providers."""

from callqual.config import Settings
from callqual.providers.base import ProviderTranscript, TranscriptionProvider, Utterance
from callqual.providers.http import HttpTranscriptionProvider
from callqual.providers.synthetic import SyntheticTranscriptionProvider

__all__ = [
    "HttpTranscriptionProvider",
    "ProviderTranscript",
    "SyntheticTranscriptionProvider",
    "TranscriptionProvider",
    "Utterance",
    "build_provider",
]


def build_provider(settings: Settings) -> TranscriptionProvider:
    """Pick the provider named by settings.transcription_provider."""
    kind = settings.transcription_provider.strip().lower()
    if kind == "synthetic":
        return SyntheticTranscriptionProvider(
            seed=settings.synthetic_seed,
            min_delay_ms=settings.synthetic_min_delay_ms,
            max_delay_ms=settings.synthetic_max_delay_ms,
        )
    if kind == "http":
        if not settings.transcription_api_url:
            raise ValueError("transcription_api_url is required for the http provider")
        return HttpTranscriptionProvider(
            base_url=settings.transcription_api_url,
            api_key=settings.transcription_api_key,
            timeout_seconds=settings.transcription_timeout_seconds,
        )
    raise ValueError(f"Unknown transcription provider '{kind}'. Available: http, synthetic")
