"""Modes router for switching autoscroll and speech."""

from fastapi import APIRouter, Depends

from ...session import ReaderSession
from ..dependencies import get_session
from ..models.reader import (
    AutoscrollRequest,
    AutoscrollStatus,
    ModesState,
    SpeechRequest,
    SpeechStatus,
)

router = APIRouter(prefix="/modes", tags=["Modes"])


def _modes_state(session: ReaderSession) -> ModesState:
    autoscroll = session.autoscroll
    speech = session.speech
    return ModesState(
        mode=session.mode,
        autoscroll=AutoscrollStatus(
            enabled=autoscroll.enabled,
            words_per_minute=autoscroll.words_per_minute,
            delay_ms=autoscroll.delay_ms,
        ),
        speech=SpeechStatus(
            enabled=speech.enabled,
            state=speech.state.value,
            voice=speech.voice,
            is_loading=speech.is_loading,
            is_speaking=speech.is_speaking,
            last_error=speech.last_error,
        ),
    )


@router.get(
    "",
    response_model=ModesState,
    summary="Get autoscroll and speech status",
)
async def get_modes(session: ReaderSession = Depends(get_session)):
    return _modes_state(session)


@router.post(
    "/autoscroll",
    response_model=ModesState,
    summary="Switch autoscroll",
)
async def set_autoscroll(
    request: AutoscrollRequest,
    session: ReaderSession = Depends(get_session),
):
    """
    Turn autoscroll on or off, optionally changing its speed.

    Turning autoscroll on turns speech off. Changing the speed while running
    restarts the word cadence at the new delay.
    """
    session.set_autoscroll(request.enabled, words_per_minute=request.words_per_minute)
    return _modes_state(session)


@router.post(
    "/speech",
    response_model=ModesState,
    summary="Switch speech",
)
async def set_speech(
    request: SpeechRequest,
    session: ReaderSession = Depends(get_session),
):
    """
    Turn speech on or off.

    Turning speech on turns autoscroll off and starts reading at the current
    sentence. Turning it off stops playback without moving the position.
    A failed speech request turns speech off; see `speech.last_error`.
    """
    session.set_speech(request.enabled, voice=request.voice)
    return _modes_state(session)
