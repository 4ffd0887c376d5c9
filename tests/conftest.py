"""Shared test fixtures for book-reader tests."""

import asyncio
from pathlib import Path
from typing import Optional

import numpy as np
import pytest

from book_reader.config import Settings
from book_reader.exceptions import SpeechBackendError
from book_reader.session import ReaderSession
from book_reader.speech.backends import SpeechClip

SAMPLE_TEXT = (
    "The first sentence is here. The second one follows.\n"
    "Dr. Smith arrived at 9 A.M. He brought Mr. Jones.\n"
    "A final paragraph ends the text!"
)

# Blank lines become empty paragraphs 1 and 2 when they are kept
GAP_TEXT = "One. Two.\n   \n\t\nThree four."


class ManualClock:
    """Virtual clock for driver cadence tests.

    sleep() records the requested delay and blocks until advance() moves the
    clock past its wake time.
    """

    def __init__(self):
        self.now = 0.0
        self.delays: list[float] = []
        self._sleepers: list[tuple[float, asyncio.Future]] = []

    async def sleep(self, delay: float) -> None:
        self.delays.append(delay)
        future = asyncio.get_running_loop().create_future()
        self._sleepers.append((self.now + delay, future))
        await future

    async def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            await self.settle()
            self._sleepers = [s for s in self._sleepers if not s[1].done()]
            due = [s for s in self._sleepers if s[0] <= target + 1e-9]
            if not due:
                break
            wake, future = min(due, key=lambda s: s[0])
            self._sleepers.remove((wake, future))
            self.now = wake
            future.set_result(None)
        self.now = target
        await self.settle()

    @staticmethod
    async def settle(rounds: int = 10) -> None:
        """Let ready tasks run."""
        for _ in range(rounds):
            await asyncio.sleep(0)


class ControlledBackend:
    """Speech backend whose requests finish only when the test says so."""

    def __init__(self, ignore_cancel: bool = False, sample_rate: int = 100):
        """
        Args:
            ignore_cancel: Keep waiting for the result after being cancelled,
                           like a client that cannot abort its request
            sample_rate: Sample rate of produced clips
        """
        self.ignore_cancel = ignore_cancel
        self.sample_rate = sample_rate
        self.requests: list[tuple[str, str, asyncio.Future]] = []
        self.returned: list[str] = []

    @property
    def texts(self) -> list[str]:
        return [text for text, _voice, _future in self.requests]

    async def synthesize(self, text: str, voice: str) -> SpeechClip:
        future = asyncio.get_running_loop().create_future()
        self.requests.append((text, voice, future))
        try:
            clip = await asyncio.shield(future)
        except asyncio.CancelledError:
            if not self.ignore_cancel:
                raise
            clip = await future
        self.returned.append(text)
        return clip

    def complete(self, index: int = -1, seconds: float = 0.0) -> None:
        text, _voice, future = self.requests[index]
        samples = int(seconds * self.sample_rate)
        future.set_result(SpeechClip(np.zeros(samples, dtype=np.float32), self.sample_rate, text))

    def fail(self, index: int = -1, message: str = "speech server unavailable") -> None:
        self.requests[index][2].set_exception(SpeechBackendError(message))


class FakePlayer:
    """Audio player that finishes instantly, or when released if holding."""

    def __init__(self, hold: bool = False):
        self.hold = hold
        self.played: list[SpeechClip] = []
        self.stops = 0
        self._pending: Optional[asyncio.Future] = None

    @property
    def is_playing(self) -> bool:
        return self._pending is not None and not self._pending.done()

    async def play(self, clip: SpeechClip) -> None:
        self.played.append(clip)
        if not self.hold:
            await asyncio.sleep(0)
            return
        self._pending = asyncio.get_running_loop().create_future()
        await self._pending

    def release(self) -> None:
        if self.is_playing:
            self._pending.set_result(None)

    def stop(self) -> None:
        self.stops += 1


@pytest.fixture
def sample_text() -> str:
    """Three paragraphs with two, two and one sentences."""
    return SAMPLE_TEXT


@pytest.fixture
def gap_text() -> str:
    """Two non-empty paragraphs separated by whitespace-only lines."""
    return GAP_TEXT


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings isolated from the environment, with a mock speech backend."""
    return Settings(
        _env_file=None,
        speech_backend="mock",
        progress_dir=str(tmp_path / "progress"),
    )


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def backend() -> ControlledBackend:
    return ControlledBackend()


@pytest.fixture
def player() -> FakePlayer:
    return FakePlayer()


@pytest.fixture
def make_session(settings, clock, backend, player):
    """Factory building a session over SAMPLE_TEXT with fake collaborators."""

    def factory(text: str = SAMPLE_TEXT, **kwargs) -> ReaderSession:
        kwargs.setdefault("backend", backend)
        kwargs.setdefault("player", player)
        kwargs.setdefault("settings", settings)
        kwargs.setdefault("sleep", clock.sleep)
        session = ReaderSession(**kwargs)
        session.load_document(text)
        return session

    return factory


@pytest.fixture
def uncancellable_backend() -> ControlledBackend:
    """Backend that still delivers its result after being cancelled."""
    return ControlledBackend(ignore_cancel=True)


@pytest.fixture
def holding_player() -> FakePlayer:
    """Player whose clips play until release() or cancellation."""
    return FakePlayer(hold=True)
