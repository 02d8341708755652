"""HTTP transcription provider - adapter for an external speech-to-text service."""

import logging

import httpx
from pydantic import ValidationError

from callqual.providers.base import ProviderTranscript, TranscriptionError, TranscriptionProvider

logger = logging.getLogger(__name__)


class HttpTranscriptionProvider(TranscriptionProvider):
    """
    POSTs {"recording_locator": ...} to ``{base_url}/transcriptions`` and expects
    a body shaped like ProviderTranscript:

        {"language": "en-US", "confidence": 0.93,
         "utterances": [{"speaker": "AGENT", "text": "...", "start_time": 0, ...}]}
    """

    name = "http"

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout_seconds: float = 120.0,
        client: httpx.AsyncClient | None = None,
    ):
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=httpx.Timeout(timeout_seconds),
        )

    async def transcribe(self, recording_locator: str) -> ProviderTranscript:
        try:
            response = await self._client.post(
                "/transcriptions", json={"recording_locator": recording_locator}
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TranscriptionError(
                f"Provider returned HTTP {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.RequestError as e:
            raise TranscriptionError(f"Provider request failed: {type(e).__name__}: {e}") from e

        try:
            return ProviderTranscript.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.warning("Unparseable provider response for %s", recording_locator)
            raise TranscriptionError(f"Invalid provider response: {e}") from e

    async def close(self) -> None:
        await self._client.aclose()
