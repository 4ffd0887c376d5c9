"""Speech synthesis, playback and sentence synchronization."""

from .adapter import SpeechAdapter, SpeechState
from .backends import (
    KOKORO_VOICES,
    LANGUAGE_NAMES,
    KokoroHttpBackend,
    KokoroLocalBackend,
    MockBackend,
    SpeechBackend,
    SpeechClip,
    create_backend,
    list_voices_by_language,
)
from .playback import AudioPlayer, SilentPlayer, SoundDevicePlayer, create_player

__all__ = [
    "AudioPlayer",
    "KOKORO_VOICES",
    "KokoroHttpBackend",
    "LANGUAGE_NAMES",
    "KokoroLocalBackend",
    "MockBackend",
    "SilentPlayer",
    "SoundDevicePlayer",
    "SpeechAdapter",
    "SpeechBackend",
    "SpeechClip",
    "SpeechState",
    "create_backend",
    "create_player",
    "list_voices_by_language",
]
