"""Timed word-by-word advancement."""

import asyncio
import logging
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

from .commands import Move, MoveKind
from .models import ChangeSource
from .utils import current_task_or_none, word_delay_ms

if TYPE_CHECKING:
    from .session import ReaderSession

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


class AutoscrollDriver:
    """Advances one word every 60000 / wpm milliseconds while enabled.

    Ticks are submitted through the session's command queue with the
    driver's current epoch; ticks from a disabled or restarted cadence are
    dropped by the session.
    """

    def __init__(
        self,
        session: "ReaderSession",
        words_per_minute: int = 200,
        pause_at_end: bool = False,
        sleep: Optional[SleepFunc] = None,
    ):
        """
        Initialize the driver.

        Args:
            session: Session receiving the word moves
            words_per_minute: Reading speed (positive)
            pause_at_end: Disable automatically once the last word is reached.
                          By default the driver keeps ticking harmless no-ops.
            sleep: Coroutine used to wait between ticks (asyncio.sleep)
        """
        word_delay_ms(words_per_minute)  # validates
        self._session = session
        self._wpm = words_per_minute
        self.pause_at_end = pause_at_end
        self._sleep = sleep or asyncio.sleep
        self._enabled = False
        self._epoch = 0
        self._task: Optional[asyncio.Task] = None
        self.ticks = 0

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def words_per_minute(self) -> int:
        return self._wpm

    @property
    def delay_ms(self) -> float:
        return word_delay_ms(self._wpm)

    def accepts(self, ticket: Optional[int]) -> bool:
        return self._enabled and ticket == self._epoch

    def enable(self) -> None:
        """Start the word cadence; speech is turned off first."""
        if self._enabled:
            return
        self._session.speech.disable()
        self._enabled = True
        self._start()
        logger.info(f"Autoscroll on at {self._wpm} wpm")

    def disable(self) -> None:
        if not self._enabled:
            return
        self._enabled = False
        self._cancel()
        logger.info("Autoscroll off")

    def toggle(self) -> bool:
        if self._enabled:
            self.disable()
        else:
            self.enable()
        return self._enabled

    def set_speed(self, words_per_minute: int) -> None:
        """
        Change the reading speed.

        A running cadence is restarted at the new delay; the next word comes
        one full new delay after the change.
        """
        word_delay_ms(words_per_minute)
        if words_per_minute == self._wpm:
            return
        self._wpm = words_per_minute
        if self._enabled:
            self._cancel()
            self._start()
        logger.info(f"Autoscroll speed set to {words_per_minute} wpm")

    def _start(self) -> None:
        self._epoch += 1
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(self._epoch, self.delay_ms / 1000))
        self._task.add_done_callback(self._on_task_done)

    def _cancel(self) -> None:
        self._epoch += 1
        task, self._task = self._task, None
        if task is not None and not task.done() and task is not current_task_or_none():
            task.cancel()

    async def _run(self, epoch: int, delay_seconds: float) -> None:
        while True:
            await self._sleep(delay_seconds)
            if not self.accepts(epoch):
                return
            self.ticks += 1
            self._session.submit(Move(MoveKind.NEXT_WORD, ChangeSource.AUTOSCROLL, ticket=epoch))

            # An observer may have turned autoscroll off during the move
            if not self.accepts(epoch):
                return
            if self.pause_at_end and self._session.navigator.is_at_end():
                logger.info("Autoscroll reached the end of the document")
                self.disable()
                return

    def _on_task_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Autoscroll stopped unexpectedly: {exc}", exc_info=exc)
            if self._task is task:
                self._enabled = False
                self._task = None
