"""
API Request Schemas.

Models:
    RenderRequest: Input schema for POST /render and POST /api/render

Example Request:
    {
        "text": "Nu bij ons: twee halen, een betalen!",
        "voiceId": "21m00Tcm4TlvDq8ikWAM"
    }

Both fields are optional at the schema level. Missing or blank values are
rejected by services/validators.py so the client gets the plain-text 400
messages it expects instead of a schema error listing.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RenderRequest(BaseModel):
    """
    Render request for the spot endpoints.

    Attributes:
        text: Script to speak.
        voice_id: Provider voice identifier, sent as ``voiceId``.
    """
    model_config = ConfigDict(populate_by_name=True)

    text: Optional[str] = Field(None, description="Script to speak")
    voice_id: Optional[str] = Field(None, alias="voiceId", description="ElevenLabs voice id")
