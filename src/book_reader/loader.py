"""Dispatch book files to the matching extractor."""

import logging
from pathlib import Path
from typing import Optional

from .epub_extractor import EPUBExtractor
from .exceptions import UnsupportedFormatError
from .models import BookContent
from .pagination import join_pages
from .pdf_extractor import PDFExtractor
from .segmentation import Segmenter

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".txt", ".pdf", ".epub")


class TextExtractor:
    """Read plain-text files as a single page."""

    def __init__(self, segmenter: Optional[Segmenter] = None, encoding: str = "utf-8"):
        self.segmenter = segmenter or Segmenter()
        self.encoding = encoding

    def extract(self, text_path: str) -> BookContent:
        text_path = Path(text_path)
        if not text_path.exists():
            raise FileNotFoundError(f"Text file not found: {text_path}")

        raw = text_path.read_text(encoding=self.encoding, errors="replace")
        text, pages = join_pages([(1, raw)], self.segmenter)
        return BookContent(text=text, title=text_path.stem, format="text", pages=pages)


def load_book(path: str, segmenter: Optional[Segmenter] = None) -> BookContent:
    """
    Extract a book file by its extension.

    Args:
        path: Path to a .txt, .pdf or .epub file
        segmenter: Paragraph policy used for page ranges; pass the same one
                   the document will be built with

    Returns:
        Extracted BookContent

    Raises:
        UnsupportedFormatError: If the extension has no extractor
        FileNotFoundError: If the file does not exist
    """
    suffix = Path(path).suffix.lower()

    if suffix == ".pdf":
        extractor = PDFExtractor(segmenter)
    elif suffix == ".epub":
        extractor = EPUBExtractor(segmenter)
    elif suffix == ".txt":
        extractor = TextExtractor(segmenter)
    else:
        raise UnsupportedFormatError(
            f"Unsupported file type '{suffix or path}'. "
            f"Expected one of: {', '.join(SUPPORTED_SUFFIXES)}"
        )

    book = extractor.extract(path)
    logger.info(f"Extracted '{book.title}' ({book.format}, {len(book.pages)} pages)")
    return book
