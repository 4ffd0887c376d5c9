"""EPUB text extraction using ebooklib and BeautifulSoup."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from bs4 import BeautifulSoup
from ebooklib import epub

from .models import BookContent
from .pagination import join_pages
from .segmentation import Segmenter


class EPUBExtractor:
    """Extract reading text from EPUB files; each spine document is a page."""

    def __init__(self, segmenter: Optional[Segmenter] = None):
        self.segmenter = segmenter or Segmenter()

    def extract(self, epub_path: str) -> BookContent:
        """
        Extract text and metadata from an EPUB file.

        Args:
            epub_path: Path to the EPUB file

        Returns:
            BookContent with one PageMetadata per non-blank spine item
        """
        epub_path = Path(epub_path)
        if not epub_path.exists():
            raise FileNotFoundError(f"EPUB file not found: {epub_path}")

        book = epub.read_epub(str(epub_path))
        text, pages = join_pages(self._spine_texts(book), self.segmenter)

        return BookContent(
            text=text,
            title=self._get_metadata_value(book, "title") or epub_path.stem,
            format="epub",
            author=self._get_metadata_value(book, "creator") or None,
            pages=pages,
        )

    def _get_metadata_value(self, book: epub.EpubBook, key: str) -> str:
        values = book.get_metadata("DC", key)
        if not values:
            return ""
        return values[0][0]

    def _spine_texts(self, book: epub.EpubBook) -> list[tuple[int, str]]:
        spine_items = [item for item in book.spine if item[0] != "nav"]
        texts = []

        for idx, (item_id, _linear) in enumerate(spine_items, start=1):
            item = book.get_item_with_id(item_id)
            if item is None:
                continue
            texts.append((idx, self._html_to_text(item.get_content() or b"")))

        return texts

    def _html_to_text(self, content: bytes) -> str:
        html = content.decode("utf-8", errors="ignore")
        soup = BeautifulSoup(html, "html.parser")

        for tag in soup(["script", "style"]):
            tag.decompose()

        # The head only repeats the chapter title
        root = soup.body or soup
        text = root.get_text(separator="\n")
        lines = [line.strip() for line in text.splitlines()]
        return "\n\n".join(line for line in lines if line)
