"""Dataclasses shared across the reader: positions, book content and events."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Literal, Optional


@dataclass(frozen=True, order=True)
class Position:
    """A reading location as a (paragraph, sentence, word) index triple.

    Ordering follows document order, so positions compare the way a reader
    moves through the text.
    """

    paragraph_index: int = 0
    sentence_index: int = 0
    word_index: int = 0

    @classmethod
    def start(cls) -> "Position":
        """Return the position at the very beginning of a document."""
        return cls(0, 0, 0)

    @classmethod
    def from_dict(cls, data: dict) -> "Position":
        """Create a Position from a dictionary."""
        return cls(
            paragraph_index=int(data.get("paragraph_index", 0)),
            sentence_index=int(data.get("sentence_index", 0)),
            word_index=int(data.get("word_index", 0)),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "paragraph_index": self.paragraph_index,
            "sentence_index": self.sentence_index,
            "word_index": self.word_index,
        }

    def __str__(self) -> str:
        return f"¶{self.paragraph_index} s{self.sentence_index} w{self.word_index}"


@dataclass(frozen=True)
class PageMetadata:
    """Maps a source page onto an inclusive range of paragraph indices."""

    page_number: int
    start_paragraph_index: int
    end_paragraph_index: int

    def contains(self, paragraph_index: int) -> bool:
        return self.start_paragraph_index <= paragraph_index <= self.end_paragraph_index


@dataclass
class BookContent:
    """Text extracted from a book file, plus informational metadata."""

    text: str
    title: str
    format: Literal["pdf", "epub", "text"] = "text"
    author: Optional[str] = None
    pages: list[PageMetadata] = field(default_factory=list)

    def page_for_paragraph(self, paragraph_index: int) -> Optional[int]:
        """Find the page number holding a paragraph, if pages are known."""
        for page in self.pages:
            if page.contains(paragraph_index):
                return page.page_number
        return None


@dataclass(frozen=True)
class ReadingProgress:
    """What the persistence collaborator records for a document."""

    position: Position
    timestamp: float
    document_id: str

    @classmethod
    def from_dict(cls, data: dict) -> "ReadingProgress":
        """Create ReadingProgress from a dictionary."""
        return cls(
            position=Position.from_dict(data["position"]),
            timestamp=float(data["timestamp"]),
            document_id=data["document_id"],
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "position": self.position.to_dict(),
            "timestamp": self.timestamp,
            "document_id": self.document_id,
        }


class ChangeSource(str, Enum):
    """Who asked for a position change."""

    USER = "user"
    AUTOSCROLL = "autoscroll"
    SPEECH = "speech"
    LOAD = "load"


@dataclass(frozen=True)
class PositionChange:
    """Published once for every accepted position transition."""

    position: Position
    previous: Optional[Position]
    document_id: str
    timestamp: float
    source: ChangeSource = ChangeSource.USER

    @property
    def progress(self) -> ReadingProgress:
        return ReadingProgress(
            position=self.position,
            timestamp=self.timestamp,
            document_id=self.document_id,
        )


PositionObserver = Callable[[PositionChange], None]
