"""Audio players used by the speech adapter."""

import asyncio
import logging
from typing import TYPE_CHECKING, Protocol

from ..exceptions import PlaybackError
from .backends import SpeechClip

if TYPE_CHECKING:
    from ..config import Settings

logger = logging.getLogger(__name__)


class AudioPlayer(Protocol):
    """Plays one clip at a time.

    play() returns when the clip finishes naturally; cancelling the awaiting
    task or calling stop() ends playback early.
    """

    async def play(self, clip: SpeechClip) -> None:
        ...

    def stop(self) -> None:
        ...


class SoundDevicePlayer:
    """Plays clips on the default output device via sounddevice."""

    def __init__(self):
        self._sd = None

    def _device(self):
        # Imported lazily: PortAudio may be missing on headless machines
        if self._sd is None:
            try:
                import sounddevice
            except OSError as e:
                raise PlaybackError(f"Audio output unavailable: {e}") from e
            self._sd = sounddevice
        return self._sd

    async def play(self, clip: SpeechClip) -> None:
        sd = self._device()
        try:
            sd.play(clip.audio, clip.sample_rate)
            await asyncio.to_thread(sd.wait)
        except asyncio.CancelledError:
            sd.stop()
            raise
        except sd.PortAudioError as e:
            raise PlaybackError(f"Playback failed: {e}") from e

    def stop(self) -> None:
        if self._sd is not None:
            self._sd.stop()


class SilentPlayer:
    """Waits for the clip's duration without producing sound."""

    def __init__(self, time_scale: float = 1.0):
        """
        Initialize the silent player.

        Args:
            time_scale: Multiplier applied to clip durations (0 plays instantly)
        """
        self.time_scale = time_scale
        self.played: list[SpeechClip] = []

    async def play(self, clip: SpeechClip) -> None:
        self.played.append(clip)
        await asyncio.sleep(clip.duration_seconds * self.time_scale)

    def stop(self) -> None:
        # Nothing is buffered; cancelling play() is enough
        pass


def create_player(settings: "Settings") -> AudioPlayer:
    """Build a player matching the configured backend."""
    if settings.speech_backend == "mock":
        return SilentPlayer()
    return SoundDevicePlayer()
