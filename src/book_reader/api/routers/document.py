"""Document router for loading text and reading its outline."""

from fastapi import APIRouter, Depends

from ...session import ReaderSession
from ..dependencies import get_session
from ..models.reader import DocumentOutline, LoadDocumentRequest, PageInfo, ParagraphInfo

router = APIRouter(prefix="/document", tags=["Document"])

PREVIEW_CHARS = 80


def _outline(session: ReaderSession) -> DocumentOutline:
    document = session.document
    paragraphs = []
    for idx, text in enumerate(document.paragraphs):
        segments = session.navigator.segments(idx)
        paragraphs.append(ParagraphInfo(
            index=idx,
            sentence_count=segments.sentence_count,
            word_count=segments.word_count,
            preview=text[:PREVIEW_CHARS],
        ))

    return DocumentOutline(
        document_id=session.document_id,
        title=document.title,
        revision=document.revision,
        paragraph_count=document.paragraph_count,
        paragraphs=paragraphs,
        pages=[PageInfo.model_validate(page) for page in document.pages],
    )


@router.post(
    "",
    response_model=DocumentOutline,
    summary="Load a document",
)
async def load_document(
    request: LoadDocumentRequest,
    session: ReaderSession = Depends(get_session),
):
    """
    Replace the current document with raw text.

    Autoscroll and speech are turned off. The position starts at the
    beginning, or at the saved progress for `document_id` when `resume` is
    set (clamped to the new text).
    """
    session.load_document(
        request.text,
        document_id=request.document_id,
        title=request.title,
        resume=request.resume,
    )
    return _outline(session)


@router.get(
    "",
    response_model=DocumentOutline,
    summary="Get the document outline",
)
async def get_document(session: ReaderSession = Depends(get_session)):
    """Paragraphs of the loaded document with sentence and word counts."""
    return _outline(session)
