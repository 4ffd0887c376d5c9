"""Position state machine over a segmented document."""

from typing import Optional

from .document import Document, SegmentationCache
from .models import Position
from .segmentation import ParagraphSegments
from .utils import clamp


class Navigator:
    """Owns the current reading position and moves it through a document.

    Every move replaces the position as a whole value and always leaves it
    resolvable against the current segmentation. Moves that cannot go any
    further (document start or end) are no-ops, never errors.

    Sentence and word moves that cross a paragraph boundary skip paragraphs
    with no sentences; if no such paragraph exists in that direction the move
    halts. Paragraph moves do not skip.
    """

    def __init__(
        self,
        document: Optional[Document] = None,
        cache: Optional[SegmentationCache] = None,
    ):
        """
        Initialize the navigator.

        Args:
            document: Initial document (an empty one if None)
            cache: Segmentation cache shared by all lookups
        """
        self.cache = cache if cache is not None else SegmentationCache()
        self._document = document if document is not None else Document.from_text("")
        self._position = Position.start()

    @property
    def document(self) -> Document:
        return self._document

    @property
    def position(self) -> Position:
        return self._position

    @property
    def paragraph_count(self) -> int:
        return self._document.paragraph_count

    def load(self, document: Document) -> Position:
        """Replace the document and reset to the start."""
        previous = self._document
        if (
            document.revision != previous.revision
            or document.segmenter is not previous.segmenter
        ):
            self.cache.invalidate(previous.revision)
        self._document = document
        self._position = Position.start()
        return self._position

    # Derived segmentation

    def segments(self, paragraph_index: int) -> ParagraphSegments:
        return self.cache.get(self._document, paragraph_index)

    def sentences(self, paragraph_index: int) -> tuple[str, ...]:
        return self.segments(paragraph_index).sentences

    def words(self, paragraph_index: int, sentence_index: int) -> tuple[str, ...]:
        return self.segments(paragraph_index).words_in(sentence_index)

    def current_paragraph(self) -> str:
        return self._document.paragraph(self._position.paragraph_index)

    def sentence_text(self, position: Optional[Position] = None) -> str:
        """Return the sentence at a position (the current one by default)."""
        position = position or self._position
        sentences = self.sentences(position.paragraph_index)
        if 0 <= position.sentence_index < len(sentences):
            return sentences[position.sentence_index]
        return ""

    def current_sentence(self) -> str:
        return self.sentence_text()

    def current_word(self) -> str:
        pos = self._position
        words = self.words(pos.paragraph_index, pos.sentence_index)
        if 0 <= pos.word_index < len(words):
            return words[pos.word_index]
        return ""

    def is_at_start(self) -> bool:
        return self._prev_word_target() == self._position

    def is_at_end(self) -> bool:
        return self._next_word_target() == self._position

    # Moves

    def move_next_word(self) -> Position:
        return self._commit(self._next_word_target())

    def move_prev_word(self) -> Position:
        return self._commit(self._prev_word_target())

    def move_next_sentence(self) -> Position:
        return self._commit(self.next_sentence_target(self._position))

    def move_prev_sentence(self) -> Position:
        pos = self._position
        if pos.sentence_index > 0:
            return self._commit(Position(pos.paragraph_index, pos.sentence_index - 1, 0))

        prev_idx = self._prev_non_empty(pos.paragraph_index)
        if prev_idx is None:
            return pos
        last_sentence = self.segments(prev_idx).sentence_count - 1
        return self._commit(Position(prev_idx, last_sentence, 0))

    def move_next_paragraph(self) -> Position:
        pos = self._position
        if pos.paragraph_index < self.paragraph_count - 1:
            return self._commit(Position(pos.paragraph_index + 1, 0, 0))
        return pos

    def move_prev_paragraph(self) -> Position:
        pos = self._position
        if pos.paragraph_index > 0:
            return self._commit(Position(pos.paragraph_index - 1, 0, 0))
        return pos

    def jump_to(self, target: Position) -> Position:
        """Move to a target position, clamped into valid bounds."""
        return self._commit(self.resolve(target))

    def resolve(self, target: Position) -> Position:
        """
        Clamp a position against the current segmentation.

        The paragraph index is clamped first, then the sentence index within
        that paragraph, then the word index within that sentence.

        Args:
            target: Requested position, possibly out of range or negative

        Returns:
            The nearest valid position
        """
        paragraph_idx = clamp(target.paragraph_index, 0, self.paragraph_count - 1)
        segments = self.segments(paragraph_idx)
        sentence_idx = clamp(target.sentence_index, 0, segments.sentence_count - 1)
        word_idx = clamp(target.word_index, 0, len(segments.words_in(sentence_idx)) - 1)
        return Position(paragraph_idx, sentence_idx, word_idx)

    def next_sentence_target(self, position: Position) -> Position:
        """
        Compute where a next-sentence move from a position would land.

        Returns the position unchanged at the end of the document.
        """
        segments = self.segments(position.paragraph_index)
        if position.sentence_index < segments.sentence_count - 1:
            return Position(position.paragraph_index, position.sentence_index + 1, 0)

        next_idx = self._next_non_empty(position.paragraph_index)
        if next_idx is None:
            return position
        return Position(next_idx, 0, 0)

    def _next_word_target(self) -> Position:
        pos = self._position
        segments = self.segments(pos.paragraph_index)
        words = segments.words_in(pos.sentence_index)

        if pos.word_index < len(words) - 1:
            return Position(pos.paragraph_index, pos.sentence_index, pos.word_index + 1)
        return self.next_sentence_target(pos)

    def _prev_word_target(self) -> Position:
        pos = self._position
        if pos.word_index > 0:
            return Position(pos.paragraph_index, pos.sentence_index, pos.word_index - 1)

        if pos.sentence_index > 0:
            sentence_idx = pos.sentence_index - 1
            last_word = len(self.words(pos.paragraph_index, sentence_idx)) - 1
            return Position(pos.paragraph_index, sentence_idx, max(last_word, 0))

        prev_idx = self._prev_non_empty(pos.paragraph_index)
        if prev_idx is None:
            return pos
        segments = self.segments(prev_idx)
        sentence_idx = segments.sentence_count - 1
        last_word = len(segments.words_in(sentence_idx)) - 1
        return Position(prev_idx, sentence_idx, max(last_word, 0))

    def _next_non_empty(self, paragraph_index: int) -> Optional[int]:
        for idx in range(paragraph_index + 1, self.paragraph_count):
            if self.segments(idx).sentence_count:
                return idx
        return None

    def _prev_non_empty(self, paragraph_index: int) -> Optional[int]:
        for idx in range(min(paragraph_index, self.paragraph_count) - 1, -1, -1):
            if self.segments(idx).sentence_count:
                return idx
        return None

    def _commit(self, position: Position) -> Position:
        self._position = position
        return position
