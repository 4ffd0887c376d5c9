"""PDF text extraction using PyMuPDF."""

from pathlib import Path
from typing import Optional

import fitz  # PyMuPDF

from .models import BookContent
from .pagination import join_pages
from .segmentation import Segmenter


class PDFExtractor:
    """Extract reading text and page metadata from PDF files."""

    def __init__(self, segmenter: Optional[Segmenter] = None, preserve_layout: bool = False):
        """
        Initialize the extractor.

        Args:
            segmenter: Paragraph policy used to compute page ranges
            preserve_layout: If True, keep the page's line layout.
                           If False, extract one paragraph per text block.
        """
        self.segmenter = segmenter or Segmenter()
        self.preserve_layout = preserve_layout

    def extract(self, pdf_path: str) -> BookContent:
        """
        Extract text and metadata from a PDF file.

        Args:
            pdf_path: Path to the PDF file

        Returns:
            BookContent with one PageMetadata per non-blank page
        """
        pdf_path = Path(pdf_path)
        if not pdf_path.exists():
            raise FileNotFoundError(f"PDF file not found: {pdf_path}")

        doc = fitz.open(pdf_path)

        try:
            meta = doc.metadata or {}
            page_texts = [
                (page_num + 1, self._page_text(doc[page_num]))  # 1-indexed
                for page_num in range(doc.page_count)
            ]
        finally:
            doc.close()

        text, pages = join_pages(page_texts, self.segmenter)

        return BookContent(
            text=text,
            title=meta.get("title") or pdf_path.stem,
            format="pdf",
            author=meta.get("author") or None,
            pages=pages,
        )

    def _page_text(self, page: fitz.Page) -> str:
        if self.preserve_layout:
            return page.get_text("text", sort=True)
        return self._extract_flowing_text(page)

    def _extract_flowing_text(self, page: fitz.Page) -> str:
        """Extract text as flowing paragraphs."""
        blocks = page.get_text("blocks", sort=True)

        paragraphs = []
        for block in blocks:
            # blocks format: (x0, y0, x1, y1, "text", block_no, block_type)
            if len(block) >= 7 and block[6] == 0:  # type 0 = text
                text = " ".join(block[4].split())
                if text:
                    paragraphs.append(text)

        return "\n\n".join(paragraphs)
