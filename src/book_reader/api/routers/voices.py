"""Voices router for listing available TTS voices."""

from fastapi import APIRouter, Query

from ...speech import KOKORO_VOICES, LANGUAGE_NAMES
from ..models.voice import VoiceInfo, VoiceListResponse

router = APIRouter(prefix="/voices", tags=["Voices"])


@router.get(
    "",
    response_model=VoiceListResponse,
    summary="List available voices",
)
async def list_voices(
    language: str | None = Query(
        default=None,
        description="Filter by language code (a=American, b=British, e=Spanish, etc.)",
    ),
):
    """
    List the Kokoro voices speech mode can use.

    Voice naming convention: `[lang][gender]_[name]`
    - First letter: Language (a=American, b=British, e=Spanish, f=French, j=Japanese, z=Chinese)
    - Second letter: Gender (f=female, m=male)
    """
    voices = []
    by_language: dict[str, list[VoiceInfo]] = {}

    for voice_name, (lang_code, description) in KOKORO_VOICES.items():
        if language and lang_code != language:
            continue

        voice_info = VoiceInfo(
            name=voice_name,
            description=description,
            language_code=lang_code,
            language_name=LANGUAGE_NAMES.get(lang_code, lang_code),
        )
        voices.append(voice_info)
        by_language.setdefault(lang_code, []).append(voice_info)

    return VoiceListResponse(voices=voices, by_language=by_language)
