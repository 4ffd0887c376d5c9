"""Join per-page text while recording which paragraphs each page holds."""

from typing import Iterable, Optional

from .models import PageMetadata
from .segmentation import Segmenter


def join_pages(
    page_texts: Iterable[tuple[int, str]],
    segmenter: Optional[Segmenter] = None,
) -> tuple[str, list[PageMetadata]]:
    """
    Combine page texts into one document text.

    Paragraph ranges are counted with the segmenter's paragraph policy, so
    they line up with the indices of a Document built from the returned text
    by the same segmenter. Pages without any paragraph get no metadata.

    Args:
        page_texts: (page_number, text) pairs in reading order
        segmenter: Segmentation policy (defaults to Segmenter())

    Returns:
        Tuple of (full_text, pages)
    """
    segmenter = segmenter or Segmenter()
    chunks: list[str] = []
    pages: list[PageMetadata] = []
    paragraph_offset = 0

    for page_number, text in page_texts:
        text = text.strip()
        if not text:
            continue

        count = len(segmenter.paragraphs(text))
        chunks.append(text)
        if count:
            pages.append(PageMetadata(
                page_number=page_number,
                start_paragraph_index=paragraph_offset,
                end_paragraph_index=paragraph_offset + count - 1,
            ))
            paragraph_offset += count

    return "\n\n".join(chunks), pages
