"""Utility functions for the book reader."""

import asyncio
import hashlib
import re
from typing import Optional


def hash_text(text: str) -> str:
    """
    Compute a short revision identifier for a text snapshot.

    Args:
        text: Document text

    Returns:
        First 16 characters of the SHA256 hash (sufficient for comparison)
    """
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:16]


def clamp(value: int, low: int, high: int) -> int:
    """Clamp value into [low, high]; an empty range collapses to low."""
    if high < low:
        return low
    return max(low, min(value, high))


def word_delay_ms(words_per_minute: int) -> float:
    """
    Delay between words for a reading speed.

    Args:
        words_per_minute: Reading speed, must be positive

    Returns:
        Milliseconds per word (60000 / wpm)
    """
    if words_per_minute <= 0:
        raise ValueError(f"words_per_minute must be positive, got {words_per_minute}")
    return 60000 / words_per_minute


def estimate_audio_duration(text: str, words_per_minute: float = 150) -> float:
    """
    Estimate audio duration based on text length.

    Args:
        text: The text to estimate duration for
        words_per_minute: Average speaking rate (default 150 wpm)

    Returns:
        Estimated duration in seconds
    """
    word_count = len(text.split())
    return (word_count / words_per_minute) * 60


def sanitize_filename(name: str) -> str:
    """Sanitize a string for use as a filename."""
    # Remove or replace invalid characters
    name = re.sub(r'[<>:"/\\|?*]', "", name)
    name = re.sub(r"\s+", "_", name)
    return name[:100] or "document"


def current_task_or_none() -> Optional["asyncio.Task"]:
    """Return the running asyncio task, or None outside an event loop."""
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None
