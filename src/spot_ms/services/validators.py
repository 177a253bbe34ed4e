"""
Input Validation for Render Requests.

Validation runs before anything else, so a bad request never costs a
provider call or a subprocess.

Validation Rules:
    - text: Required, non-blank, max 5000 characters
    - voice_id: Required, non-blank, max 64 characters, no path separators

The messages for missing fields ("No text provided", "No voiceId
provided") are what clients already match on; keep them stable.
"""
from __future__ import annotations

from typing import Any

from spot_ms.core.config import Defaults
from spot_ms.core.errors import ValidationError


def validate_text(text: Any, max_length: int = Defaults.VALIDATION_TEXT_MAX_CHARS) -> str:
    """
    Validate the script text.

    Returns:
        The text, stripped.

    Raises:
        ValidationError: If missing, blank, not a string, or too long.
    """
    if not isinstance(text, str) or not text.strip():
        raise ValidationError("No text provided", field="text")

    text = text.strip()
    if len(text) > max_length:
        raise ValidationError(
            f"Text exceeds maximum length ({len(text)} > {max_length})",
            field="text",
        )
    return text


def validate_voice_id(voice_id: Any, max_length: int = Defaults.VALIDATION_VOICE_ID_MAX_CHARS) -> str:
    """
    Validate the provider voice identifier.

    Raises:
        ValidationError: If missing, blank, too long, or containing "/".
    """
    if not isinstance(voice_id, str) or not voice_id.strip():
        raise ValidationError("No voiceId provided", field="voiceId")

    voice_id = voice_id.strip()
    if len(voice_id) > max_length:
        raise ValidationError(
            f"voiceId exceeds maximum length ({len(voice_id)} > {max_length})",
            field="voiceId",
        )
    if "/" in voice_id or "\\" in voice_id:
        raise ValidationError("voiceId contains invalid characters", field="voiceId")
    return voice_id
