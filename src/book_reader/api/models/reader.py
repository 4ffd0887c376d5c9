"""Pydantic models for document, position and mode endpoints."""

from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from ...config import MAX_WPM, MIN_WPM, WPM_STEP


class LoadDocumentRequest(BaseModel):
    """Request model for loading a document from raw text."""

    text: str
    title: str = ""
    document_id: str = Field(default="current", min_length=1)
    resume: bool = False


class PageInfo(BaseModel):
    """Paragraph range of a source page."""

    page_number: int
    start_paragraph_index: int
    end_paragraph_index: int

    class Config:
        from_attributes = True


class ParagraphInfo(BaseModel):
    """Segmentation summary of one paragraph."""

    index: int
    sentence_count: int
    word_count: int
    preview: str


class DocumentOutline(BaseModel):
    """Response model for the loaded document."""

    document_id: str
    title: str
    revision: str
    paragraph_count: int
    paragraphs: list[ParagraphInfo]
    pages: list[PageInfo]


class PositionModel(BaseModel):
    """A (paragraph, sentence, word) triple; out-of-range values are clamped on jump."""

    paragraph_index: int = 0
    sentence_index: int = 0
    word_index: int = 0

    class Config:
        from_attributes = True


class PositionState(BaseModel):
    """Response model for the current reading position."""

    document_id: str
    position: PositionModel
    paragraph: str
    sentence: str
    word: str
    page_number: Optional[int] = None
    page_count: int = 0
    paragraph_count: int
    is_at_start: bool
    is_at_end: bool


class MoveRequest(BaseModel):
    """Request model for a relative move."""

    unit: Literal["word", "sentence", "paragraph"]
    direction: Literal["next", "prev"]


class PageRequest(BaseModel):
    """Request model for page navigation: a page number or a direction."""

    page_number: Optional[int] = None
    direction: Optional[Literal["next", "prev"]] = None

    @model_validator(mode="after")
    def check_one_target(self) -> "PageRequest":
        if (self.page_number is None) == (self.direction is None):
            raise ValueError("Give exactly one of page_number or direction")
        return self


class AutoscrollRequest(BaseModel):
    """Request model for switching autoscroll."""

    enabled: bool
    words_per_minute: Optional[int] = Field(
        default=None, ge=MIN_WPM, le=MAX_WPM, multiple_of=WPM_STEP
    )


class SpeechRequest(BaseModel):
    """Request model for switching speech."""

    enabled: bool
    voice: Optional[str] = None


class AutoscrollStatus(BaseModel):
    enabled: bool
    words_per_minute: int
    delay_ms: float


class SpeechStatus(BaseModel):
    enabled: bool
    state: str
    voice: str
    is_loading: bool
    is_speaking: bool
    last_error: Optional[str] = None


class ModesState(BaseModel):
    """Response model for the driver modes."""

    mode: Literal["manual", "autoscroll", "speech"]
    autoscroll: AutoscrollStatus
    speech: SpeechStatus
