"""Position-mutating commands and the serialized queue that applies them."""

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Literal, Optional, Union

from .document import Document
from .models import ChangeSource, Position

logger = logging.getLogger(__name__)


class MoveKind(str, Enum):
    """Relative moves understood by the navigator."""

    NEXT_WORD = "next_word"
    PREV_WORD = "prev_word"
    NEXT_SENTENCE = "next_sentence"
    PREV_SENTENCE = "prev_sentence"
    NEXT_PARAGRAPH = "next_paragraph"
    PREV_PARAGRAPH = "prev_paragraph"

    @classmethod
    def from_parts(
        cls,
        unit: Literal["word", "sentence", "paragraph"],
        direction: Literal["next", "prev"],
    ) -> "MoveKind":
        return cls(f"{direction}_{unit}")


@dataclass(frozen=True)
class Move:
    kind: MoveKind
    source: ChangeSource = ChangeSource.USER
    # Driver epoch; commands carrying a stale ticket are dropped
    ticket: Optional[int] = None


@dataclass(frozen=True)
class JumpTo:
    target: Position
    source: ChangeSource = ChangeSource.USER
    ticket: Optional[int] = None


@dataclass(frozen=True)
class LoadDocument:
    document: Document
    document_id: str
    resume_at: Optional[Position] = None
    source: ChangeSource = ChangeSource.LOAD
    ticket: Optional[int] = None


Command = Union[Move, JumpTo, LoadDocument]


class CommandQueue:
    """Applies commands one at a time, in submission order.

    A command submitted while another is being applied (for example by an
    observer reacting to a change) is queued and runs after the current one
    completes, so two transitions never interleave.
    """

    def __init__(self, handler: Callable[[Command], None]):
        """
        Initialize the queue.

        Args:
            handler: Applies a single command; called only from drain()
        """
        self._handler = handler
        self._pending: deque[Command] = deque()
        self._draining = False
        self.processed = 0

    @property
    def pending(self) -> int:
        return len(self._pending)

    @property
    def is_draining(self) -> bool:
        return self._draining

    def submit(self, command: Command) -> bool:
        """
        Queue a command and apply everything pending.

        Args:
            command: Command to apply

        Returns:
            True if the command was applied before returning, False if it
            was deferred behind the command currently being applied
        """
        self._pending.append(command)
        if self._draining:
            logger.debug(f"Deferred re-entrant command: {command}")
            return False
        self._drain()
        return True

    def _drain(self) -> None:
        self._draining = True
        try:
            while self._pending:
                command = self._pending.popleft()
                self._handler(command)
                self.processed += 1
        finally:
            self._draining = False
