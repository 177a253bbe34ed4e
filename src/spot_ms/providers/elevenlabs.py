"""
ElevenLabs Text-to-Speech Client.

One POST per render:

    POST {base_url}/v1/text-to-speech/{voice_id}
    xi-api-key: <key>
    Accept: audio/mpeg
    {"text": ..., "model_id": "eleven_multilingual_v2",
     "voice_settings": {"stability": 0.45, "similarity_boost": 0.85,
                        "style": 0.6, "use_speaker_boost": true}}

A 2xx response body is the MP3 voice clip. Anything else becomes a
ProviderError whose message is the provider's own response text, so the
caller sees exactly what ElevenLabs said. The API key is passed per call
because it is read from the environment at request time.
"""
from __future__ import annotations

from typing import Optional
from urllib.parse import quote

import httpx

from spot_ms.core.config import ProviderConfig
from spot_ms.core.errors import ProviderError
from spot_ms.core.logging import get_logger, verbose, warn


class SpeechProvider:
    """
    Base class for text-to-speech providers.

    Subclasses implement synthesize(), returning encoded audio bytes or
    raising ProviderError.
    """
    name: str = "base"

    def synthesize(self, text: str, voice_id: str, api_key: str) -> bytes:
        raise NotImplementedError

    def close(self) -> None:
        pass


class ElevenLabsClient(SpeechProvider):
    """
    ElevenLabs HTTP client.

    Args:
        config: Provider configuration (endpoint, model, voice settings).
        transport: Optional httpx transport, e.g. httpx.MockTransport in tests.
    """
    name = "elevenlabs"

    def __init__(self, config: Optional[ProviderConfig] = None, transport: Optional[httpx.BaseTransport] = None):
        self.config = config or ProviderConfig()
        self.logger = get_logger("spot-ms.provider.elevenlabs")
        self._client = httpx.Client(
            base_url=self.config.base_url,
            timeout=self.config.timeout_s,
            transport=transport,
        )

    def payload(self, text: str) -> dict:
        return {
            "text": text,
            "model_id": self.config.model_id,
            "voice_settings": self.config.voice_settings(),
        }

    def synthesize(self, text: str, voice_id: str, api_key: str) -> bytes:
        """
        Synthesize ``text`` with ``voice_id``.

        Returns:
            MP3 bytes.

        Raises:
            ProviderError: Non-2xx status (message = response text),
                transport failure, or an empty body.
        """
        path = f"/v1/text-to-speech/{quote(voice_id, safe='')}"
        headers = {
            "xi-api-key": api_key,
            "Content-Type": "application/json",
            "Accept": "audio/mpeg",
        }
        try:
            resp = self._client.post(path, json=self.payload(text), headers=headers)
        except httpx.TimeoutException as e:
            raise ProviderError(f"ElevenLabs request timed out after {self.config.timeout_s}s") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"ElevenLabs request failed: {e}") from e

        if not resp.is_success:
            message = resp.text.strip() or f"ElevenLabs returned HTTP {resp.status_code}"
            warn(self.logger, "provider_error", status=resp.status_code, voice_id=voice_id)
            raise ProviderError(message, status=resp.status_code)

        if not resp.content:
            raise ProviderError("ElevenLabs returned empty audio", status=resp.status_code)

        verbose(self.logger, "synthesized", bytes=len(resp.content), voice_id=voice_id)
        return resp.content

    def close(self) -> None:
        self._client.close()
