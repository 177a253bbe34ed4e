"""
SpotService - Render Pipeline.

This module provides the SpotService class, the single entry point for
rendering a spot. The HTTP routes and the CLI both go through it.

Architecture:
    Validate → Config check → TTS → Write voice → Probe → Plan → Build → Mix

Every step depends on the previous one, so a request runs strictly
sequentially. Requests share nothing mutable: each gets its own temporary
directory, removed on every exit path.

Key Components:
    - Provider: ElevenLabs text-to-speech (providers/elevenlabs.py)
    - Engine: ffprobe/ffmpeg subprocess engine (audio/engine.py)
    - Planner and graph builder: pure functions (audio/timeline.py, audio/graph.py)

Error Handling:
    Every failure is a SpotError subclass (core/errors.py) and propagates
    to the caller with its HTTP status. The failing stage is logged and
    counted in spot_stage_failures_total.

Example:
    >>> from spot_ms.core.config import Settings
    >>> service = SpotService(Settings(raw={}))
    >>> result = service.render(SpotRequest(text="Hello", voice_id="abc"), request_id="r-1")
    >>> result.plan.total_seconds
"""
from __future__ import annotations

import dataclasses
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from spot_ms import __version__
from spot_ms.audio.engine import BaseAudioEngine, get_engine
from spot_ms.audio.graph import build
from spot_ms.audio.mixer import MixExecutor
from spot_ms.audio.probe import probe_clip
from spot_ms.audio.timeline import SegmentPlan, plan
from spot_ms.core.config import Settings, SpotServiceConfig
from spot_ms.core.errors import ConfigurationError, SpotError
from spot_ms.core.logging import debug, fail, get_level_name, get_log_config, get_logger, info, success, verbose
from spot_ms.core.metrics import metrics
from spot_ms.providers.elevenlabs import ElevenLabsClient, SpeechProvider
from spot_ms.services.validators import validate_text, validate_voice_id
from spot_ms.utils.tempfiles import request_workdir
from spot_ms.utils.timeit import timeit

_LOG = get_logger("spot-ms.service")


@dataclass
class SpotRequest:
    """
    A render request.

    Attributes:
        text: Script to speak. Must be non-blank.
        voice_id: Provider voice identifier. Must be non-blank.
    """
    text: Optional[str]
    voice_id: Optional[str]


@dataclass
class SpotResult:
    """
    A rendered spot.

    Attributes:
        audio_bytes: Encoded audio (MP3).
        media_type: MIME type of audio_bytes.
        filename: Suggested download filename.
        plan: Timeline the spot was mixed with.
        request_id: Request id for tracing.
        total_seconds: Wall time of the whole render.
        timings: Per-stage wall time in seconds.
    """
    audio_bytes: bytes
    media_type: str
    filename: str
    plan: SegmentPlan
    request_id: str
    total_seconds: float = -1.0
    timings: Dict[str, float] = field(default_factory=dict)


class SpotService:
    """
    Renders spots from text.

    Thread-safe: holds only read-only configuration plus the engine and
    provider, neither of which keeps per-request state.

    Args:
        settings: Application settings.
        engine: Audio engine (defaults to FfmpegEngine from settings).
        provider: TTS provider (defaults to ElevenLabsClient from settings).
    """

    def __init__(
        self,
        settings: Settings,
        engine: Optional[BaseAudioEngine] = None,
        provider: Optional[SpeechProvider] = None,
    ):
        self._settings = settings
        self._config: SpotServiceConfig = settings.get_service_config()
        self._engine = engine or get_engine(self._config.engine)
        self._provider = provider or ElevenLabsClient(self._config.provider)
        self._mixer = MixExecutor(self._engine)
        self._text_preview_chars = self._config.logging.text_preview_chars

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def config(self) -> SpotServiceConfig:
        return self._config

    @property
    def engine(self) -> BaseAudioEngine:
        return self._engine

    @property
    def provider(self) -> SpeechProvider:
        return self._provider

    @property
    def bgm_path(self) -> Path:
        return Path(self._config.assets.bgm_path)

    def _check_configuration(self) -> Tuple[str, Path]:
        api_key = self._settings.api_key
        if not api_key:
            raise ConfigurationError(f"Missing {self._config.provider.api_key_env}")
        bgm_path = self.bgm_path
        if not bgm_path.is_file():
            raise ConfigurationError(f"Missing {bgm_path}", {"bgm_path": str(bgm_path)})
        return api_key, bgm_path

    def render(self, request: SpotRequest, request_id: str) -> SpotResult:
        """
        Render a spot (main API method).

        Pipeline:
            1. Validate text and voice id
            2. Check the credential and the music bed are present
            3. Synthesize the voice clip
            4. Write it to a request-scoped temp dir and probe its length
            5. Plan the timeline and build the mix graph
            6. Mix and encode
            7. Remove the temp dir (always)

        Args:
            request: SpotRequest with text and voice id.
            request_id: Unique ID for request tracing.

        Returns:
            SpotResult with the encoded spot and its plan.

        Raises:
            ValidationError: Missing or malformed fields. Nothing else runs.
            ConfigurationError: Credential or music bed missing. The
                provider is not called.
            ProviderError, ProbeError, MixExecutionError: Stage failures.
        """
        timings: Dict[str, float] = {}
        stage = "validate"

        try:
            with timeit("request_total") as total_t:
                text = validate_text(request.text, self._config.validation.text_max_chars)
                voice_id = validate_voice_id(request.voice_id, self._config.validation.voice_id_max_chars)

                preview = text[:self._text_preview_chars] if self._text_preview_chars > 0 else ""
                info(_LOG, "request", chars=len(text), voice_id=voice_id, text_preview=preview)
                debug(_LOG, "request_full", text=text)

                stage = "config"
                api_key, bgm_path = self._check_configuration()

                stage = "provider"
                with timeit("provider", into=timings):
                    voice_bytes = self._provider.synthesize(text, voice_id, api_key)
                verbose(_LOG, "stage", event="provider", seconds=round(timings["provider"], 4),
                        bytes=len(voice_bytes))

                with request_workdir() as workdir:
                    voice_path = workdir.write("voice" + self._config.engine.output_suffix, voice_bytes)

                    stage = "probe"
                    with timeit("probe", into=timings):
                        clip = probe_clip(self._engine, voice_path)
                    verbose(_LOG, "stage", event="probe", seconds=round(timings["probe"], 4),
                            voice_seconds=round(clip.seconds, 3))

                    stage = "plan"
                    with timeit("plan", into=timings):
                        segment_plan = plan(clip.seconds, self._config.timeline)
                        graph = build(segment_plan)
                    verbose(_LOG, "stage", event="plan", seconds=round(timings["plan"], 4),
                            total=round(segment_plan.total_seconds, 3),
                            voice_trim=round(segment_plan.voice_trim_seconds, 3),
                            truncated=segment_plan.truncated)
                    debug(_LOG, "filter_graph", filter_complex=graph.render())

                    stage = "mix"
                    with timeit("mix", into=timings):
                        audio = self._mixer.execute(clip, bgm_path, graph)
                    verbose(_LOG, "stage", event="mix", seconds=round(timings["mix"], 4))

        except SpotError as e:
            fail(_LOG, "request_failed", stage=stage, code=e.code, error=e.message, **e.details)
            metrics.record_failure(stage)
            metrics.record_request(status="error", duration=-1)
            raise
        except Exception as e:
            fail(_LOG, "request_failed", stage=stage, error=str(e), error_type=type(e).__name__)
            metrics.record_failure(stage)
            metrics.record_request(status="error", duration=-1)
            raise

        total_s = total_t.seconds
        if segment_plan.truncated:
            info(_LOG, "voice_truncated", voice_seconds=round(segment_plan.voice_seconds, 3),
                 kept_seconds=round(segment_plan.voice_trim_seconds, 3))
        success(_LOG, "done", bytes=len(audio), spot_seconds=round(segment_plan.total_seconds, 3),
                seconds=round(total_s, 3))

        metrics.record_plan(segment_plan.voice_seconds, segment_plan.total_seconds, segment_plan.truncated)
        metrics.record_request(status="success", duration=total_s, audio_bytes=len(audio))

        return SpotResult(
            audio_bytes=audio,
            media_type=self._config.output.media_type,
            filename=self._config.output.filename,
            plan=segment_plan,
            request_id=request_id,
            total_seconds=total_s,
            timings=timings,
        )

    def get_health_info(self) -> Dict[str, Any]:
        """
        Get health and readiness information.

        Returns a dictionary with:
            - ready: engine available, music bed present, credential set
            - engine / provider names
            - asset and credential presence (never the credential itself)
            - the timeline configuration
            - the active log level and whether JSONL logs are written
        """
        engine_available = bool(self._engine.available())
        bgm_present = self.bgm_path.is_file()
        credential_present = self._settings.api_key is not None

        timeline = dataclasses.asdict(self._config.timeline)
        timeline["overflow_policy"] = self._config.timeline.overflow_policy.value

        return {
            "ok": True,
            "ready": engine_available and bgm_present and credential_present,
            "version": __version__,
            "engine": self._engine.name,
            "engine_available": engine_available,
            "provider": self._provider.name,
            "credential_present": credential_present,
            "bgm_path": str(self.bgm_path),
            "bgm_present": bgm_present,
            "timeline": timeline,
            "logging": {
                "level": get_level_name(),
                "jsonl": bool(get_log_config().get("log_dir")),
            },
        }


# =============================================================================
# Global Service Singleton
# =============================================================================

_service: Optional[SpotService] = None
_service_lock = threading.Lock()


def get_service(settings: Settings) -> SpotService:
    """
    Get or create the global SpotService instance.

    Thread-safe lazy singleton.
    """
    global _service
    if _service is None:
        with _service_lock:
            if _service is None:
                _service = SpotService(settings)
    return _service


def reset_service() -> None:
    """Reset the global service instance (used by tests)."""
    global _service
    with _service_lock:
        _service = None
