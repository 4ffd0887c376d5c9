"""The reader session: authoritative owner of the position and its drivers."""

import logging
import time
from typing import Callable, Literal, Optional, Union

from .autoscroll import AutoscrollDriver, SleepFunc
from .commands import Command, CommandQueue, JumpTo, LoadDocument, Move, MoveKind
from .config import Settings, get_settings
from .document import Document, SegmentationCache
from .exceptions import ProgressStoreError
from .models import BookContent, ChangeSource, Position, PositionChange, PositionObserver
from .navigation import Navigator
from .notifier import PositionNotifier
from .persistence import ProgressStore
from .segmentation import Segmenter
from .speech.adapter import SpeechAdapter
from .speech.backends import SpeechBackend, create_backend
from .speech.playback import AudioPlayer, create_player

logger = logging.getLogger(__name__)

Mode = Literal["manual", "autoscroll", "speech"]


class ReaderSession:
    """Ties the navigator, the command queue, the notifier and both drivers together.

    Every position mutation, whether it comes from the user, the autoscroll
    timer or the speech adapter, is submitted here and applied through a
    single CommandQueue. Driver commands carry an epoch ticket and are dropped
    once that driver is disabled or restarted. Autoscroll and speech are
    mutually exclusive: enabling one disables the other.

    Enabling a driver starts an asyncio task, so it must happen inside a
    running event loop.
    """

    def __init__(
        self,
        backend: Optional[SpeechBackend] = None,
        player: Optional[AudioPlayer] = None,
        settings: Optional[Settings] = None,
        segmenter: Optional[Segmenter] = None,
        progress_store: Optional[ProgressStore] = None,
        sleep: Optional[SleepFunc] = None,
    ):
        """
        Initialize the session.

        Args:
            backend: Speech backend (built from settings if None)
            player: Audio player (built from settings if None)
            settings: Reader settings (get_settings() if None)
            segmenter: Segmentation policy for loaded documents
            progress_store: Optional store subscribed to every change
            sleep: Coroutine the autoscroll driver waits with
        """
        self.settings = settings or get_settings()
        self.segmenter = segmenter or Segmenter(
            keep_empty_paragraphs=self.settings.keep_empty_paragraphs
        )
        self.navigator = Navigator(cache=SegmentationCache(self.settings.segment_cache_size))
        self.notifier = PositionNotifier()
        self.commands = CommandQueue(self._apply)
        self.document_id = "current"

        self.autoscroll = AutoscrollDriver(
            self,
            words_per_minute=self.settings.autoscroll_wpm,
            pause_at_end=self.settings.pause_at_end,
            sleep=sleep,
        )
        self.speech = SpeechAdapter(
            self,
            backend=backend or create_backend(self.settings),
            player=player or create_player(self.settings),
            voice=self.settings.voice,
        )

        self.progress_store = progress_store
        if progress_store is not None:
            self.notifier.subscribe(progress_store)

        self._moves: dict[MoveKind, Callable[[], Position]] = {
            kind: getattr(self.navigator, f"move_{kind.value}") for kind in MoveKind
        }

    @property
    def position(self) -> Position:
        return self.navigator.position

    @property
    def document(self) -> Document:
        return self.navigator.document

    @property
    def mode(self) -> Mode:
        if self.speech.enabled:
            return "speech"
        if self.autoscroll.enabled:
            return "autoscroll"
        return "manual"

    def subscribe(self, observer: PositionObserver) -> Callable[[], None]:
        """Register a position observer; returns its unsubscribe function."""
        return self.notifier.subscribe(observer)

    # Documents

    def load_document(
        self,
        source: Union[str, BookContent, Document],
        document_id: Optional[str] = None,
        title: str = "",
        resume: bool = False,
    ) -> Position:
        """
        Replace the current document.

        Both drivers are turned off and the position resets to the start, or
        to the saved progress (clamped) when resume is requested.

        Args:
            source: Raw text, extracted book content or a prepared document
            document_id: Key used for progress persistence
            title: Display title for raw text
            resume: Restore the saved position for document_id

        Returns:
            The position after loading
        """
        if isinstance(source, Document):
            document = source
        elif isinstance(source, BookContent):
            document = Document.from_book(source, self.segmenter)
        else:
            document = Document.from_text(source, self.segmenter, title=title)

        document_id = document_id or self.document_id
        resume_at = self._saved_position(document_id) if resume else None

        self.submit(LoadDocument(document, document_id, resume_at=resume_at))
        return self.position

    def _saved_position(self, document_id: str) -> Optional[Position]:
        if self.progress_store is None:
            return None
        try:
            progress = self.progress_store.load(document_id)
        except ProgressStoreError as e:
            logger.warning(f"Ignoring saved progress: {e}")
            return None
        if progress is None:
            return None
        logger.info(f"Resuming {document_id} at {progress.position}")
        return progress.position

    # Commands

    def submit(self, command: Command) -> bool:
        return self.commands.submit(command)

    def move(self, kind: MoveKind) -> Position:
        self.submit(Move(kind))
        return self.position

    def next_word(self) -> Position:
        return self.move(MoveKind.NEXT_WORD)

    def prev_word(self) -> Position:
        return self.move(MoveKind.PREV_WORD)

    def next_sentence(self) -> Position:
        return self.move(MoveKind.NEXT_SENTENCE)

    def prev_sentence(self) -> Position:
        return self.move(MoveKind.PREV_SENTENCE)

    def next_paragraph(self) -> Position:
        return self.move(MoveKind.NEXT_PARAGRAPH)

    def prev_paragraph(self) -> Position:
        return self.move(MoveKind.PREV_PARAGRAPH)

    def jump_to(self, target: Position) -> Position:
        self.submit(JumpTo(target))
        return self.position

    # Pages

    @property
    def page_count(self) -> int:
        return len(self.document.pages)

    @property
    def current_page(self) -> Optional[int]:
        """Page number holding the current paragraph, if pages are known."""
        return self.document.page_for_paragraph(self.position.paragraph_index)

    def go_to_page(self, page_number: int) -> Position:
        """
        Jump to the first paragraph of a source page.

        Page numbers outside the document are clamped to the first or last
        page; a number skipped during extraction (a blank page) resolves to
        the next page that has text. Documents without pages stay put.

        Args:
            page_number: 1-indexed source page number

        Returns:
            The position after the jump
        """
        pages = self.document.pages
        if not pages:
            return self.position

        page = next((p for p in pages if p.page_number >= page_number), pages[-1])
        return self.jump_to(Position(page.start_paragraph_index, 0, 0))

    def next_page(self) -> Position:
        slot = self._page_slot()
        if slot is None or slot + 1 >= self.page_count:
            return self.position
        return self.go_to_page(self.document.pages[slot + 1].page_number)

    def prev_page(self) -> Position:
        slot = self._page_slot()
        if slot is None or slot == 0:
            return self.position
        return self.go_to_page(self.document.pages[slot - 1].page_number)

    def _page_slot(self) -> Optional[int]:
        paragraph_index = self.position.paragraph_index
        for slot, page in enumerate(self.document.pages):
            if page.contains(paragraph_index):
                return slot
        return None

    def _accepts(self, command: Command) -> bool:
        if command.source is ChangeSource.AUTOSCROLL:
            return self.autoscroll.accepts(command.ticket) and not self.speech.enabled
        if command.source is ChangeSource.SPEECH:
            return self.speech.accepts(command.ticket) and not self.autoscroll.enabled
        return True

    def _apply(self, command: Command) -> None:
        if not self._accepts(command):
            logger.debug(f"Dropped stale {command.source.value} command")
            return

        if isinstance(command, LoadDocument):
            self._apply_load(command)
            return

        previous = self.navigator.position
        if isinstance(command, Move):
            position = self._moves[command.kind]()
        else:
            position = self.navigator.jump_to(command.target)

        if position == previous:
            return
        self._publish(position, previous, command.source)

        # The user moved to another sentence while it was being read aloud
        if (
            command.source is ChangeSource.USER
            and self.speech.enabled
            and (position.paragraph_index, position.sentence_index)
            != (previous.paragraph_index, previous.sentence_index)
        ):
            self.speech.restart()

    def _apply_load(self, command: LoadDocument) -> None:
        self.autoscroll.disable()
        self.speech.disable()

        self.navigator.load(command.document)
        if command.resume_at is not None:
            self.navigator.jump_to(command.resume_at)
        self.document_id = command.document_id

        logger.info(
            f"Loaded {command.document_id} "
            f"({command.document.paragraph_count} paragraphs) at {self.position}"
        )
        self._publish(self.position, None, command.source)

    def _publish(
        self,
        position: Position,
        previous: Optional[Position],
        source: ChangeSource,
    ) -> None:
        self.notifier.publish(
            PositionChange(
                position=position,
                previous=previous,
                document_id=self.document_id,
                timestamp=time.time(),
                source=source,
            )
        )

    # Modes

    def set_autoscroll(self, enabled: bool, words_per_minute: Optional[int] = None) -> None:
        if words_per_minute is not None:
            self.autoscroll.set_speed(words_per_minute)
        if enabled:
            self.autoscroll.enable()
        else:
            self.autoscroll.disable()

    def toggle_autoscroll(self) -> bool:
        self.set_autoscroll(not self.autoscroll.enabled)
        return self.autoscroll.enabled

    def set_speech(self, enabled: bool, voice: Optional[str] = None) -> None:
        if enabled:
            self.speech.enable(voice)
        else:
            if voice:
                self.speech.voice = voice
            self.speech.disable()

    def toggle_speech(self) -> bool:
        self.set_speech(not self.speech.enabled)
        return self.speech.enabled

    def shutdown(self) -> None:
        """Stop both drivers."""
        self.autoscroll.disable()
        self.speech.disable()
