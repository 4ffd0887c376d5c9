"""Exception types raised by the reader's IO-facing collaborators.

Navigation itself never raises for out-of-range input; it clamps.
"""


class BookReaderError(Exception):
    """Base class for all book-reader errors."""


class UnsupportedFormatError(BookReaderError, ValueError):
    """The input file type has no extractor."""


class SpeechBackendError(BookReaderError):
    """The speech backend could not produce audio for a sentence."""


class PlaybackError(BookReaderError):
    """Audio playback failed before completing."""


class ProgressStoreError(BookReaderError):
    """Saved reading progress is missing fields or cannot be parsed."""
