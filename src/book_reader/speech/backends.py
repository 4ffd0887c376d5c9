"""Speech synthesis backends producing one audio clip per sentence."""

import asyncio
import io
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Protocol

import numpy as np
import requests
import soundfile as sf

from ..exceptions import SpeechBackendError
from ..utils import estimate_audio_duration

if TYPE_CHECKING:
    from ..config import Settings

logger = logging.getLogger(__name__)

# Available Kokoro voices by language
KOKORO_VOICES = {
    # American English (best quality)
    "af_heart": ("a", "American English Female - Heart (A grade)"),
    "af_bella": ("a", "American English Female - Bella (A- grade)"),
    "af_nicole": ("a", "American English Female - Nicole"),
    "af_sarah": ("a", "American English Female - Sarah"),
    "af_sky": ("a", "American English Female - Sky"),
    "am_fenrir": ("a", "American English Male - Fenrir"),
    "am_michael": ("a", "American English Male - Michael"),
    "am_puck": ("a", "American English Male - Puck"),
    "am_adam": ("a", "American English Male - Adam"),
    # British English
    "bf_emma": ("b", "British English Female - Emma (B- grade)"),
    "bf_isabella": ("b", "British English Female - Isabella"),
    "bf_alice": ("b", "British English Female - Alice"),
    "bm_george": ("b", "British English Male - George"),
    "bm_lewis": ("b", "British English Male - Lewis"),
    "bm_daniel": ("b", "British English Male - Daniel"),
    # Spanish
    "ef_dora": ("e", "Spanish Female - Dora"),
    "em_alex": ("e", "Spanish Male - Alex"),
    # French
    "ff_siwis": ("f", "French Female - Siwis (B- grade)"),
    # Japanese
    "jf_alpha": ("j", "Japanese Female - Alpha"),
    "jm_kumo": ("j", "Japanese Male - Kumo"),
    # Chinese
    "zf_xiaobei": ("z", "Chinese Female - Xiaobei"),
    "zm_yunjian": ("z", "Chinese Male - Yunjian"),
}

LANGUAGE_NAMES = {
    "a": "American English",
    "b": "British English",
    "e": "Spanish",
    "f": "French",
    "j": "Japanese",
    "z": "Chinese",
}


def list_voices_by_language(lang: Optional[str] = None) -> dict[str, str]:
    """
    List voices, optionally filtered by language.

    Args:
        lang: Language code filter ('a'=American, 'b'=British, 'e'=Spanish, etc.)

    Returns:
        Dict of voice_name -> description
    """
    return {
        voice: desc
        for voice, (lang_code, desc) in KOKORO_VOICES.items()
        if lang is None or lang_code == lang
    }


@dataclass
class SpeechClip:
    """Synthesized audio for one sentence (float32, mono)."""

    audio: np.ndarray
    sample_rate: int
    text: str = ""

    @property
    def duration_seconds(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return len(self.audio) / self.sample_rate


class SpeechBackend(Protocol):
    """Turns sentence text into audio; raises SpeechBackendError on failure."""

    async def synthesize(self, text: str, voice: str) -> SpeechClip:
        ...


def decode_wav(data: bytes, text: str = "") -> SpeechClip:
    """
    Decode WAV bytes into a mono float32 clip.

    Raises:
        SpeechBackendError: If the bytes are not readable audio
    """
    try:
        audio, sample_rate = sf.read(io.BytesIO(data), dtype="float32")
    except RuntimeError as e:
        raise SpeechBackendError(f"Could not decode speech audio: {e}") from e

    if audio.ndim > 1:
        audio = audio.mean(axis=1)
    return SpeechClip(audio=audio.astype(np.float32), sample_rate=sample_rate, text=text)


class KokoroHttpBackend:
    """Client for a Kokoro-FastAPI server (OpenAI-compatible speech endpoint)."""

    def __init__(
        self,
        endpoint: str = "http://localhost:8880",
        model: str = "kokoro",
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the HTTP backend.

        Args:
            endpoint: Base URL of the server
            model: Model name sent with each request
            timeout: Request timeout in seconds
            session: Optional requests session (for connection reuse)
        """
        self.endpoint = endpoint.rstrip("/")
        self.api_url = f"{self.endpoint}/v1/audio/speech"
        self.voices_url = f"{self.endpoint}/v1/audio/voices"
        self.model = model
        self.timeout = timeout
        self._session = session or requests.Session()

    async def synthesize(self, text: str, voice: str) -> SpeechClip:
        # requests is blocking; a cancelled caller simply never sees the result
        return await asyncio.to_thread(self._synthesize_sync, text, voice)

    def _synthesize_sync(self, text: str, voice: str) -> SpeechClip:
        payload = {
            "model": self.model,
            "input": text,
            "voice": voice,
            "response_format": "wav",
        }

        try:
            resp = self._session.post(self.api_url, json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise SpeechBackendError(f"Network error calling speech API: {e}") from e

        if resp.status_code != 200:
            raise SpeechBackendError(f"Speech API error: {resp.status_code} {resp.text[:200]}")

        return decode_wav(resp.content, text=text)

    def list_voices(self) -> list[str]:
        """Get available voices from the server."""
        try:
            resp = self._session.get(self.voices_url, timeout=5)
        except requests.exceptions.RequestException as e:
            raise SpeechBackendError(f"Network error listing voices: {e}") from e
        if resp.status_code != 200:
            raise SpeechBackendError(f"Speech API error: {resp.status_code}")
        return resp.json().get("voices", [])


class KokoroLocalBackend:
    """Runs the Kokoro-82M pipeline in-process."""

    def __init__(self, device: str = "cpu"):
        """
        Initialize the local backend.

        Args:
            device: Device to use ('cuda' or 'cpu')
        """
        self.device = device
        self._pipeline = None
        self._lang_code: Optional[str] = None

    @property
    def sample_rate(self) -> int:
        return 24000  # Kokoro uses 24kHz

    @staticmethod
    def lang_code_for(voice: str) -> str:
        """Get language code for a voice."""
        if voice in KOKORO_VOICES:
            return KOKORO_VOICES[voice][0]
        # Infer from voice name prefix
        prefix = voice[:1] if voice else "a"
        return prefix if prefix in LANGUAGE_NAMES else "a"

    def _load_pipeline(self, lang_code: str) -> None:
        import os

        # Force CPU mode if specified (must be set before importing torch)
        if self.device == "cpu":
            os.environ["CUDA_VISIBLE_DEVICES"] = ""

        try:
            from kokoro import KPipeline
        except ImportError as e:
            raise SpeechBackendError(
                "kokoro is not installed; install the 'local' extra"
            ) from e

        logger.info(f"Loading Kokoro pipeline (lang={lang_code}, device={self.device})")
        self._pipeline = KPipeline(lang_code=lang_code, device=self.device)
        self._lang_code = lang_code

    async def synthesize(self, text: str, voice: str) -> SpeechClip:
        return await asyncio.to_thread(self._synthesize_sync, text, voice)

    def _synthesize_sync(self, text: str, voice: str) -> SpeechClip:
        lang_code = self.lang_code_for(voice)
        # Reload pipeline if language changed
        if self._pipeline is None or lang_code != self._lang_code:
            self._load_pipeline(lang_code)

        chunks = []
        try:
            for _gs, _ps, audio in self._pipeline(text, voice=voice):
                # Convert torch tensor to numpy if needed
                if hasattr(audio, "numpy"):
                    audio = audio.numpy()
                elif hasattr(audio, "cpu"):
                    audio = audio.cpu().numpy()
                if audio.ndim > 1:
                    audio = audio.squeeze()
                chunks.append(audio.astype(np.float32))
        except Exception as e:
            raise SpeechBackendError(f"Kokoro synthesis failed: {e}") from e

        if not chunks:
            raise SpeechBackendError("Kokoro produced no audio")
        return SpeechClip(audio=np.concatenate(chunks), sample_rate=self.sample_rate, text=text)


class MockBackend:
    """Generates silence proportional to text length, for testing and demos.

    Assumes ~150 words per minute speaking rate.
    """

    def __init__(self, latency: float = 0.0, sample_rate: int = 24000):
        """
        Initialize the mock backend.

        Args:
            latency: Simulated request latency in seconds
            sample_rate: Sample rate of the generated clips
        """
        self.latency = latency
        self.sample_rate = sample_rate
        self.requests: list[tuple[str, str]] = []

    async def synthesize(self, text: str, voice: str) -> SpeechClip:
        self.requests.append((text, voice))
        if self.latency:
            await asyncio.sleep(self.latency)

        # Clamp duration
        duration_seconds = max(0.1, min(estimate_audio_duration(text), 60))
        samples = int(duration_seconds * self.sample_rate)
        return SpeechClip(
            audio=np.zeros(samples, dtype=np.float32),
            sample_rate=self.sample_rate,
            text=text,
        )


def create_backend(settings: "Settings") -> SpeechBackend:
    """Build the speech backend selected in settings."""
    if settings.speech_backend == "mock":
        return MockBackend()
    if settings.speech_backend == "local":
        return KokoroLocalBackend(device=settings.tts_device)
    return KokoroHttpBackend(
        endpoint=settings.speech_endpoint,
        model=settings.speech_model,
        timeout=settings.speech_timeout_seconds,
    )
