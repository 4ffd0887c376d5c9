"""Paragraph, sentence and word navigation for books, with autoscroll and speech."""

from .autoscroll import AutoscrollDriver
from .commands import CommandQueue, JumpTo, LoadDocument, Move, MoveKind
from .document import Document, SegmentationCache
from .exceptions import (
    BookReaderError,
    PlaybackError,
    ProgressStoreError,
    SpeechBackendError,
    UnsupportedFormatError,
)
from .loader import load_book
from .models import (
    BookContent,
    ChangeSource,
    PageMetadata,
    Position,
    PositionChange,
    PositionObserver,
    ReadingProgress,
)
from .navigation import Navigator
from .notifier import PositionNotifier
from .persistence import ProgressStore
from .segmentation import (
    AbbreviationClassifier,
    BoundaryClassifier,
    Segmenter,
    split_paragraphs,
    split_sentences,
    split_words,
)
from .session import ReaderSession
from .speech import SpeechAdapter, SpeechState

__version__ = "1.0.0"
__all__ = [
    # Session
    "ReaderSession",
    # Core
    "Navigator",
    "Document",
    "SegmentationCache",
    "CommandQueue",
    "Move",
    "MoveKind",
    "JumpTo",
    "LoadDocument",
    "PositionNotifier",
    # Drivers
    "AutoscrollDriver",
    "SpeechAdapter",
    "SpeechState",
    # Segmentation
    "Segmenter",
    "BoundaryClassifier",
    "AbbreviationClassifier",
    "split_paragraphs",
    "split_sentences",
    "split_words",
    # IO
    "load_book",
    "ProgressStore",
    # Data classes
    "Position",
    "PositionChange",
    "PositionObserver",
    "ChangeSource",
    "ReadingProgress",
    "BookContent",
    "PageMetadata",
    # Errors
    "BookReaderError",
    "UnsupportedFormatError",
    "SpeechBackendError",
    "PlaybackError",
    "ProgressStoreError",
]
