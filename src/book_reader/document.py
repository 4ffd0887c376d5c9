"""Immutable document snapshots and the per-paragraph segmentation cache."""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Optional

from .models import BookContent, PageMetadata
from .segmentation import ParagraphSegments, Segmenter
from .utils import hash_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Document:
    """An immutable text snapshot and its ordered paragraphs.

    Sentences and words are never stored here; they are derived from a
    paragraph on demand (see SegmentationCache).
    """

    text: str
    paragraphs: tuple[str, ...]
    revision: str
    segmenter: Segmenter = field(compare=False, repr=False)
    title: str = ""
    pages: tuple[PageMetadata, ...] = ()

    @classmethod
    def from_text(
        cls,
        text: str,
        segmenter: Optional[Segmenter] = None,
        title: str = "",
        pages: tuple[PageMetadata, ...] = (),
    ) -> "Document":
        """
        Build a document from raw text.

        Args:
            text: Full document text
            segmenter: Segmentation policy (defaults to Segmenter())
            title: Display title
            pages: Informational page metadata

        Returns:
            New Document
        """
        segmenter = segmenter or Segmenter()
        return cls(
            text=text,
            paragraphs=tuple(segmenter.paragraphs(text)),
            revision=hash_text(text),
            segmenter=segmenter,
            title=title,
            pages=tuple(pages),
        )

    @classmethod
    def from_book(cls, book: BookContent, segmenter: Optional[Segmenter] = None) -> "Document":
        """Build a document from extracted book content."""
        return cls.from_text(
            book.text,
            segmenter=segmenter,
            title=book.title,
            pages=tuple(book.pages),
        )

    @property
    def paragraph_count(self) -> int:
        return len(self.paragraphs)

    @property
    def is_empty(self) -> bool:
        return not self.paragraphs

    def paragraph(self, index: int) -> str:
        if 0 <= index < len(self.paragraphs):
            return self.paragraphs[index]
        return ""

    def page_for_paragraph(self, paragraph_index: int) -> Optional[int]:
        for page in self.pages:
            if page.contains(paragraph_index):
                return page.page_number
        return None

    def segment(self, index: int) -> ParagraphSegments:
        """Segment one paragraph from scratch (uncached)."""
        return self.segmenter.segment_paragraph(self.paragraph(index))


class SegmentationCache:
    """LRU cache of paragraph segmentations keyed by (revision, paragraph).

    Entries of an old revision are dropped by invalidate(); the navigator
    calls it whenever the document text changes.
    """

    def __init__(self, max_entries: int = 256):
        """
        Initialize the cache.

        Args:
            max_entries: Maximum number of cached paragraphs (0 disables caching)
        """
        self.max_entries = max_entries
        self._entries: OrderedDict[tuple[str, int], ParagraphSegments] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: tuple[str, int]) -> bool:
        return key in self._entries

    def get(self, document: Document, paragraph_index: int) -> ParagraphSegments:
        """
        Get the segmentation of a paragraph, computing it on a miss.

        Args:
            document: Document the paragraph belongs to
            paragraph_index: Paragraph index (out-of-range yields no sentences)

        Returns:
            ParagraphSegments for the paragraph
        """
        key = (document.revision, paragraph_index)
        segments = self._entries.get(key)
        if segments is not None:
            self.hits += 1
            self._entries.move_to_end(key)
            return segments

        self.misses += 1
        segments = document.segment(paragraph_index)
        if self.max_entries > 0:
            self._entries[key] = segments
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
        return segments

    def invalidate(self, revision: Optional[str] = None) -> None:
        """
        Drop cached entries.

        Args:
            revision: Only drop entries of this revision; drop everything if None
        """
        if revision is None:
            self._entries.clear()
        else:
            for key in [k for k in self._entries if k[0] == revision]:
                del self._entries[key]
        logger.debug(f"Segmentation cache invalidated (revision={revision})")
