"""
Text-to-Speech Providers.

    - elevenlabs.py: ElevenLabs HTTP client (httpx)
"""
from .elevenlabs import ElevenLabsClient, SpeechProvider

__all__ = ["ElevenLabsClient", "SpeechProvider"]
