import asyncio
import random

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

import callqual.models  # noqa: F401  registers tables
from callqual.database import Base, build_session_maker
from callqual.pipeline.errors import TranscriptionError
from callqual.pipeline.lifecycle import CallLifecycleController
from callqual.providers.base import ProviderTranscript, TranscriptionProvider, Utterance
from callqual.schemas.transcript import TimedLine


class StaticProvider(TranscriptionProvider):
    """Returns the same utterances for every recording."""

    name = "static"

    def __init__(self, utterances: list[Utterance], confidence: float | None = None):
        self.utterances = utterances
        self.confidence = confidence
        self.calls: list[str] = []

    async def transcribe(self, recording_locator: str) -> ProviderTranscript:
        self.calls.append(recording_locator)
        return ProviderTranscript(utterances=self.utterances, confidence=self.confidence)


class SlowProvider(StaticProvider):
    """Takes delay seconds per recording before answering."""

    name = "slow"

    def __init__(self, delay: float, utterances: list[Utterance] | None = None):
        super().__init__(utterances if utterances is not None else list(THREE_LINES))
        self.delay = delay

    async def transcribe(self, recording_locator: str) -> ProviderTranscript:
        await asyncio.sleep(self.delay)
        return await super().transcribe(recording_locator)


class FailingProvider(TranscriptionProvider):
    name = "failing"

    def __init__(self, message: str = "speech engine unavailable"):
        self.message = message

    async def transcribe(self, recording_locator: str) -> ProviderTranscript:
        raise TranscriptionError(self.message)


THREE_LINES = [
    Utterance(speaker="AGENT", text="Hello, this call is being recorded for quality purposes."),
    Utterance(speaker="CUSTOMER", text="Sure, go ahead."),
    Utterance(speaker="AGENT", text="Thank you for your time, have a great day."),
]


def make_line(seq: int, speaker: str, text: str, start: int = 0, end: int = 0) -> TimedLine:
    return TimedLine(
        sequence_number=seq,
        speaker=speaker,
        text=text,
        start_time=start,
        end_time=end,
        confidence=0.9,
    )


@pytest.fixture
def line():
    return make_line


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'callqual.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield build_session_maker(engine)
    await engine.dispose()


@pytest.fixture
def static_provider():
    return StaticProvider(list(THREE_LINES))


@pytest_asyncio.fixture
async def controller(session_maker, static_provider):
    ctl = CallLifecycleController(
        provider=static_provider,
        session_maker=session_maker,
        max_workers=2,
        rng=random.Random(7),
    )
    yield ctl
    await ctl.stop()


@pytest_asyncio.fixture
async def make_controller(session_maker):
    """Build a controller around an arbitrary provider."""
    created: list[CallLifecycleController] = []

    def _make(provider: TranscriptionProvider, **kwargs) -> CallLifecycleController:
        ctl = CallLifecycleController(
            provider=provider,
            session_maker=session_maker,
            rng=random.Random(11),
            **kwargs,
        )
        created.append(ctl)
        return ctl

    yield _make
    for ctl in created:
        await ctl.stop()
