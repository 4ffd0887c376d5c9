"""Paragraph, sentence and word segmentation for navigation."""

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol

# Paragraphs are separated by one or more line breaks
PARAGRAPH_BREAK = re.compile(r"[\r\n]+")

# Terminal punctuation, optional closing quotes/brackets, then whitespace
SENTENCE_BREAK = re.compile(r"[.!?][\"'”’)\]]*(?=\s)")

CLOSING_CHARS = "\"'”’)]"
OPENING_CHARS = "\"'“‘(["

INITIAL = re.compile(r"[A-Z]\.")
NUMBER = re.compile(r"\d+\.")


class BoundaryClassifier(Protocol):
    """Decides whether a tentative sentence break is a real one."""

    def is_boundary(self, candidate: str) -> bool:
        """
        Check a candidate sentence.

        Args:
            candidate: Text from the start of the pending sentence up to and
                       including the terminal punctuation

        Returns:
            True if the sentence ends here, False to merge with what follows
        """
        ...


class AbbreviationClassifier:
    """Rejects sentence breaks that follow a known abbreviation.

    A break after ``.`` is rejected when the final token is a title or common
    abbreviation (``Mr.``, ``Dr.``, ``e.g.``), a single capital initial
    (``J.``) or a number (``9.``). Breaks after ``!`` and ``?`` always stand.
    """

    ABBREVIATIONS = frozenset({
        # Titles
        "mr", "mrs", "ms", "dr", "prof", "sr", "jr", "st", "mt", "rev",
        "hon", "gen", "col", "capt", "lt", "sgt", "fr",
        # Common abbreviations
        "vs", "e.g", "i.e", "cf", "approx", "dept", "govt", "inc", "ltd",
        "corp", "ave", "blvd", "apt", "vol", "ch", "fig", "pp",
        # Months
        "jan", "feb", "mar", "apr", "jun", "jul", "aug", "sep", "sept",
        "oct", "nov", "dec",
    })

    def __init__(
        self,
        abbreviations: Optional[Iterable[str]] = None,
        extra: Iterable[str] = (),
    ):
        """
        Initialize the classifier.

        Args:
            abbreviations: Replacement abbreviation set (without the final
                           period, case-insensitive). Defaults to ABBREVIATIONS.
            extra: Additional abbreviations merged into the set
        """
        base = self.ABBREVIATIONS if abbreviations is None else abbreviations
        self.abbreviations = frozenset(
            a.lower().rstrip(".") for a in (*base, *extra)
        )

    def is_boundary(self, candidate: str) -> bool:
        stripped = candidate.rstrip().rstrip(CLOSING_CHARS)
        if not stripped.endswith("."):
            return True

        tokens = stripped.split()
        if not tokens:
            return True
        token = tokens[-1].lstrip(OPENING_CHARS)

        if INITIAL.fullmatch(token) or NUMBER.fullmatch(token):
            return False
        return token[:-1].lower() not in self.abbreviations


DEFAULT_CLASSIFIER = AbbreviationClassifier()


def split_paragraphs(text: str, keep_empty: bool = False) -> list[str]:
    """
    Split text into paragraphs on runs of line breaks.

    Args:
        text: Full document text
        keep_empty: Keep blank paragraphs as empty strings instead of
                    dropping them

    Returns:
        Stripped paragraphs in document order
    """
    paragraphs = [p.strip() for p in PARAGRAPH_BREAK.split(text)]
    if keep_empty:
        return paragraphs
    return [p for p in paragraphs if p]


def split_sentences(
    paragraph: str,
    classifier: Optional[BoundaryClassifier] = None,
) -> list[str]:
    """
    Split a paragraph into sentences.

    Tentative breaks on terminal punctuation are confirmed or merged by the
    classifier; merged fragments keep accumulating until a confirmed break,
    and whatever is left at the end becomes the final sentence.

    Args:
        paragraph: Paragraph text
        classifier: Boundary classifier (defaults to AbbreviationClassifier)

    Returns:
        Non-empty sentences, each keeping its terminal punctuation
    """
    classifier = classifier or DEFAULT_CLASSIFIER
    sentences: list[str] = []
    start = 0

    for match in SENTENCE_BREAK.finditer(paragraph):
        candidate = paragraph[start:match.end()]
        if classifier.is_boundary(candidate):
            sentences.append(candidate.strip())
            start = match.end()

    # Flush remaining text
    sentences.append(paragraph[start:].strip())

    return [s for s in sentences if s]


def split_words(sentence: str) -> list[str]:
    """Split a sentence into words on runs of whitespace."""
    return sentence.split()


@dataclass(frozen=True)
class ParagraphSegments:
    """Sentences of one paragraph and the words of each sentence."""

    sentences: tuple[str, ...]
    words: tuple[tuple[str, ...], ...]

    @property
    def sentence_count(self) -> int:
        return len(self.sentences)

    @property
    def word_count(self) -> int:
        return sum(len(w) for w in self.words)

    def words_in(self, sentence_index: int) -> tuple[str, ...]:
        if 0 <= sentence_index < len(self.words):
            return self.words[sentence_index]
        return ()


class Segmenter:
    """Bundles a boundary classifier with the paragraph policy."""

    def __init__(
        self,
        classifier: Optional[BoundaryClassifier] = None,
        keep_empty_paragraphs: bool = False,
    ):
        """
        Initialize the segmenter.

        Args:
            classifier: Sentence boundary classifier
            keep_empty_paragraphs: Retain blank paragraphs as entries with
                                   zero sentences
        """
        self.classifier = classifier or DEFAULT_CLASSIFIER
        self.keep_empty_paragraphs = keep_empty_paragraphs

    def paragraphs(self, text: str) -> list[str]:
        return split_paragraphs(text, keep_empty=self.keep_empty_paragraphs)

    def sentences(self, paragraph: str) -> list[str]:
        return split_sentences(paragraph, self.classifier)

    def words(self, sentence: str) -> list[str]:
        return split_words(sentence)

    def segment_paragraph(self, paragraph: str) -> ParagraphSegments:
        """Derive the sentences and words of a single paragraph."""
        sentences = tuple(self.sentences(paragraph))
        return ParagraphSegments(
            sentences=sentences,
            words=tuple(tuple(self.words(s)) for s in sentences),
        )
