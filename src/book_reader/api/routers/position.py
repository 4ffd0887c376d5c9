"""Position router for moves, jumps and change events."""

import asyncio
import json
import logging
from typing import AsyncGenerator, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from ...commands import MoveKind
from ...models import Position, PositionChange
from ...session import ReaderSession
from ..dependencies import get_session
from ..models.reader import MoveRequest, PageRequest, PositionModel, PositionState

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/position", tags=["Position"])


def _format_sse(data: dict, event: str = "message") -> str:
    """Format data as a Server-Sent Event."""
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


def _position_state(session: ReaderSession) -> PositionState:
    navigator = session.navigator
    position = session.position
    return PositionState(
        document_id=session.document_id,
        position=PositionModel.model_validate(position),
        paragraph=navigator.current_paragraph(),
        sentence=navigator.current_sentence(),
        word=navigator.current_word(),
        page_number=session.current_page,
        page_count=session.page_count,
        paragraph_count=navigator.paragraph_count,
        is_at_start=navigator.is_at_start(),
        is_at_end=navigator.is_at_end(),
    )


def _change_event(session: ReaderSession, change: PositionChange) -> dict:
    position = change.position
    previous: Optional[Position] = change.previous
    words = session.navigator.words(position.paragraph_index, position.sentence_index)
    return {
        "document_id": change.document_id,
        "source": change.source.value,
        "timestamp": change.timestamp,
        "position": position.to_dict(),
        "previous": previous.to_dict() if previous else None,
        "word": words[position.word_index] if position.word_index < len(words) else "",
    }


async def _position_events_generator(
    session: ReaderSession,
    limit: int = 0,
    heartbeat_interval: float = 15.0,
) -> AsyncGenerator[str, None]:
    """
    Async generator that yields SSE events for position changes.

    Starts with a snapshot of the current position, then one event per
    accepted change. Sends heartbeat comments to keep the connection alive.
    Terminates after `limit` events when limit is positive.
    """
    queue: asyncio.Queue[PositionChange] = asyncio.Queue()
    unsubscribe = session.subscribe(queue.put_nowait)
    sent = 0

    try:
        yield _format_sse(_position_state(session).model_dump(), event="snapshot")
        sent += 1

        while not (limit and sent >= limit):
            try:
                change = await asyncio.wait_for(queue.get(), timeout=heartbeat_interval)
            except asyncio.TimeoutError:
                yield ": heartbeat\n\n"
                continue

            yield _format_sse(_change_event(session, change), event="position")
            sent += 1
    finally:
        unsubscribe()
        logger.debug("Position event stream closed")


@router.get(
    "",
    response_model=PositionState,
    summary="Get the current position",
)
async def get_position(session: ReaderSession = Depends(get_session)):
    """Current position with the sentence and word it points at."""
    return _position_state(session)


@router.post(
    "/move",
    response_model=PositionState,
    summary="Move by word, sentence or paragraph",
)
async def move(
    request: MoveRequest,
    session: ReaderSession = Depends(get_session),
):
    """
    Move one unit forward or backward.

    Moves past the start or end of the document leave the position
    unchanged. Sentence and word moves skip paragraphs without sentences.
    """
    session.move(MoveKind.from_parts(request.unit, request.direction))
    return _position_state(session)


@router.post(
    "/jump",
    response_model=PositionState,
    summary="Jump to a position",
)
async def jump(
    request: PositionModel,
    session: ReaderSession = Depends(get_session),
):
    """Jump to a position; out-of-range or negative indices are clamped."""
    session.jump_to(Position(
        request.paragraph_index,
        request.sentence_index,
        request.word_index,
    ))
    return _position_state(session)


@router.post(
    "/page",
    response_model=PositionState,
    summary="Go to a page",
)
async def go_to_page(
    request: PageRequest,
    session: ReaderSession = Depends(get_session),
):
    """
    Jump to the start of a source page, or to the next/previous page.

    Page numbers are clamped to the document's pages. Text loaded without
    page metadata keeps its position.
    """
    if request.page_number is not None:
        session.go_to_page(request.page_number)
    elif request.direction == "next":
        session.next_page()
    else:
        session.prev_page()
    return _position_state(session)


@router.get(
    "/events",
    summary="Stream position changes (SSE)",
    response_class=StreamingResponse,
)
async def stream_position_events(
    limit: int = Query(0, ge=0, description="Close the stream after this many events (0 = never)"),
    session: ReaderSession = Depends(get_session),
):
    """
    Stream position changes via Server-Sent Events.

    **Event types:**
    - `snapshot`: The position when the stream opened
    - `position`: An accepted change (source, position, previous, word)

    **Example (JavaScript):**
    ```javascript
    const es = new EventSource('/api/v1/position/events');
    es.addEventListener('position', e => highlight(JSON.parse(e.data)));
    ```
    """
    return StreamingResponse(
        _position_events_generator(session, limit=limit),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
    )
