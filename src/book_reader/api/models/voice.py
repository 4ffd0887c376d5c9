"""Pydantic models for voice-related endpoints."""

from pydantic import BaseModel


class VoiceInfo(BaseModel):
    """Information about a TTS voice."""

    name: str
    description: str
    language_code: str
    language_name: str


class VoiceListResponse(BaseModel):
    """Response model for voice listing."""

    voices: list[VoiceInfo]
    by_language: dict[str, list[VoiceInfo]]
