"""Sentence-paced speech playback synchronized with the reading position."""

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING, Optional

from ..commands import Move, MoveKind
from ..exceptions import PlaybackError
from ..models import ChangeSource
from ..utils import current_task_or_none
from .backends import SpeechBackend, SpeechClip
from .playback import AudioPlayer

if TYPE_CHECKING:
    from ..session import ReaderSession

logger = logging.getLogger(__name__)


class SpeechState(str, Enum):
    """Lifecycle of the speech adapter."""

    IDLE = "idle"
    REQUESTING = "requesting"
    PLAYING = "playing"


class SpeechAdapter:
    """Speaks the current sentence, then advances to the next one.

    The adapter never moves the position itself: after a sentence finishes
    playing it submits a next-sentence move, tagged with its epoch, to the
    session. Every enable, restart or disable bumps the epoch, so a request
    or playback that completes after being superseded is discarded here and
    any move it might still submit is dropped by the session.

    Fetch failures turn speech off (no retry); the error is kept in
    last_error for the caller to show.
    """

    def __init__(
        self,
        session: "ReaderSession",
        backend: SpeechBackend,
        player: AudioPlayer,
        voice: str = "af_heart",
    ):
        self._session = session
        self.backend = backend
        self.player = player
        self.voice = voice
        self.state = SpeechState.IDLE
        self.last_error: Optional[str] = None
        self._enabled = False
        self._epoch = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def is_loading(self) -> bool:
        return self.state is SpeechState.REQUESTING

    @property
    def is_speaking(self) -> bool:
        return self.state is SpeechState.PLAYING

    def accepts(self, ticket: Optional[int]) -> bool:
        return self._enabled and ticket == self._epoch

    def enable(self, voice: Optional[str] = None) -> None:
        if voice:
            self.voice = voice
        if self._enabled:
            return
        # Autoscroll and speech never run together
        self._session.autoscroll.disable()
        self._enabled = True
        self.last_error = None
        self._start()
        logger.info(f"Speech on (voice={self.voice})")

    def disable(self) -> None:
        """Stop playback and drop any in-flight request; the position stays put."""
        if not self._enabled:
            return
        self._enabled = False
        self._cancel()
        self.player.stop()
        self._set_state(SpeechState.IDLE)
        logger.info("Speech off")

    def toggle(self) -> bool:
        if self._enabled:
            self.disable()
        else:
            self.enable()
        return self._enabled

    def restart(self) -> None:
        """Supersede the current sentence and start over at the current position."""
        if not self._enabled:
            return
        self._cancel()
        self.player.stop()
        self._start()

    def _start(self) -> None:
        self._epoch += 1
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(self._epoch))
        self._task.add_done_callback(self._on_task_done)

    def _cancel(self) -> None:
        self._epoch += 1
        task, self._task = self._task, None
        if task is not None and not task.done() and task is not current_task_or_none():
            task.cancel()

    def _is_current(self, epoch: int) -> bool:
        return self._enabled and epoch == self._epoch

    def _set_state(self, state: SpeechState) -> None:
        if state is not self.state:
            logger.debug(f"Speech state {self.state.value} -> {state.value}")
            self.state = state

    def _stop(self, error: Optional[str] = None) -> None:
        # Called from inside the running task
        self._enabled = False
        self._epoch += 1
        self._task = None
        self.last_error = error
        self._set_state(SpeechState.IDLE)

    async def _run(self, epoch: int) -> None:
        navigator = self._session.navigator

        while self._is_current(epoch):
            position = self._session.position
            text = navigator.sentence_text(position)

            if text:
                clip = await self._request(text, epoch)
                if clip is None:
                    return

                self._set_state(SpeechState.PLAYING)
                try:
                    await self.player.play(clip)
                except PlaybackError as e:
                    if self._is_current(epoch):
                        logger.warning(f"Speech playback failed: {e}")
                        self._stop(str(e))
                    return

                if not self._is_current(epoch):
                    logger.debug("Playback finished for a superseded sentence")
                    return

            if navigator.next_sentence_target(position) == position:
                logger.info("Speech reached the end of the document")
                self._stop()
                return

            self._set_state(SpeechState.REQUESTING)
            self._session.submit(Move(MoveKind.NEXT_SENTENCE, ChangeSource.SPEECH, ticket=epoch))

    async def _request(self, text: str, epoch: int) -> Optional[SpeechClip]:
        self._set_state(SpeechState.REQUESTING)
        try:
            clip = await self.backend.synthesize(text, self.voice)
        except Exception as e:
            if self._is_current(epoch):
                logger.warning(f"Speech request failed: {e}")
                self._stop(str(e))
            return None

        if not self._is_current(epoch):
            logger.debug("Discarded speech result for a superseded request")
            return None
        return clip

    def _on_task_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Speech stopped unexpectedly: {exc}", exc_info=exc)
            if self._task is task:
                self._stop(str(exc))
