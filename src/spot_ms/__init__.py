"""
spot-ms: Branded Audio Spot Rendering Microservice.

Turns a short text into a radio-style "spot": a text-to-speech voice track
mixed over a looping background music bed, with the bed ducked while the
voice speaks and faded out at the end.

Pipeline:
    text -> TTS provider -> voice file -> duration probe
         -> timeline plan -> mix graph -> ffmpeg -> MP3 bytes

Key Features:
    - Pure, testable timeline planning (pre-roll, ducked voice bed, post-roll)
    - Inspectable mix graph rendered to an ffmpeg filter_complex
    - ElevenLabs TTS client (httpx)
    - FastAPI endpoint (/render), health check and Prometheus metrics
    - Serverless CLI (spot-ms)

Example Usage:
    >>> from spot_ms.audio.timeline import plan
    >>> from spot_ms.core.config import TimelineConfig
    >>>
    >>> p = plan(10.0, TimelineConfig())
    >>> p.total_seconds, p.fade_out_start_seconds
    (13.0, 11.5)
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
