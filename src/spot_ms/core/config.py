"""
Configuration Management for spot-ms.

This module provides centralized configuration handling with:
    - Default values (Defaults class)
    - Dataclass-based configuration objects
    - YAML file loading with environment variable overrides
    - Validation with meaningful error messages

Configuration Hierarchy (highest priority first):
    1. Environment variables (ELEVENLABS_API_KEY, SPOT_MS_BGM_PATH, etc.)
    2. YAML config file (config/settings.yaml)
    3. Defaults class values

Example settings.yaml:
    timeline:
      pre_roll_seconds: 1.5
      post_roll_seconds: 1.5
      max_total_seconds: 25
      overflow_policy: truncate

    assets:
      bgm_path: assets/audio/bgm.mp3

    logging:
      level: 2  # NORMAL
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


class ConfigValidationError(Exception):
    """
    Raised when configuration validation fails.

    This exception is thrown when a configuration value is outside
    acceptable bounds or of the wrong type.
    """
    pass


class OverflowPolicy(str, Enum):
    """
    What to do when the voice clip does not fit in the maximum spot length.

    TRUNCATE: Cap the spot at max_total_seconds and cut the voice short so
        the pre-roll and post-roll keep their full length.
    EXTEND: Never cut speech; the spot grows past max_total_seconds.
    """
    TRUNCATE = "truncate"
    EXTEND = "extend"


class Defaults:
    """
    Centralized default configuration values.

    All default values are defined here to ensure consistency across
    the codebase. These values are used when no override is provided
    via YAML config or environment variables.

    Sections:
        - Timeline: Spot layout and volumes
        - Provider: ElevenLabs text-to-speech
        - Engine: ffmpeg/ffprobe invocation
        - Assets: Background music bed
        - Output: Response media type and filename
        - Validation: Request limits
        - Logging: Log level and formatting
        - API: HTTP surface
    """

    # ─────────────────────────────────────────────────────────────────────────
    # Timeline
    # ─────────────────────────────────────────────────────────────────────────
    TIMELINE_PRE_ROLL_SECONDS = 1.5     # Music-only intro before the voice
    TIMELINE_POST_ROLL_SECONDS = 1.5    # Music-only outro, faded out
    TIMELINE_MAX_TOTAL_SECONDS = 25.0   # Hard cap on spot length
    TIMELINE_BGM_PRE_POST_VOLUME = 0.55 # Bed volume during intro/outro
    TIMELINE_BGM_DURING_VOLUME = 0.80   # Bed volume under the voice
    TIMELINE_VOICE_VOLUME = 0.80        # Voice gain
    TIMELINE_MIN_VOICE_SECONDS = 0.1    # Floor for the trimmed voice segment
    TIMELINE_OVERFLOW_POLICY = OverflowPolicy.TRUNCATE.value

    # ─────────────────────────────────────────────────────────────────────────
    # Provider (ElevenLabs)
    # ─────────────────────────────────────────────────────────────────────────
    PROVIDER_BASE_URL = "https://api.elevenlabs.io"
    PROVIDER_MODEL_ID = "eleven_multilingual_v2"
    PROVIDER_API_KEY_ENV = "ELEVENLABS_API_KEY"
    PROVIDER_STABILITY = 0.45
    PROVIDER_SIMILARITY_BOOST = 0.85
    PROVIDER_STYLE = 0.6
    PROVIDER_USE_SPEAKER_BOOST = True
    PROVIDER_TIMEOUT_S = 60.0

    # ─────────────────────────────────────────────────────────────────────────
    # Engine (ffmpeg)
    # ─────────────────────────────────────────────────────────────────────────
    ENGINE_FFMPEG_BIN = "ffmpeg"
    ENGINE_FFPROBE_BIN = "ffprobe"
    ENGINE_AUDIO_CODEC = "libmp3lame"
    ENGINE_AUDIO_BITRATE = "192k"
    ENGINE_OUTPUT_SUFFIX = ".mp3"
    ENGINE_TIMEOUT_S: Optional[float] = None  # No timeout, like the platform default

    # ─────────────────────────────────────────────────────────────────────────
    # Assets
    # ─────────────────────────────────────────────────────────────────────────
    ASSETS_BGM_PATH = "assets/audio/bgm.mp3"

    # ─────────────────────────────────────────────────────────────────────────
    # Output
    # ─────────────────────────────────────────────────────────────────────────
    OUTPUT_MEDIA_TYPE = "audio/mpeg"
    OUTPUT_FILENAME = "spot.mp3"

    # ─────────────────────────────────────────────────────────────────────────
    # Validation
    # ─────────────────────────────────────────────────────────────────────────
    VALIDATION_TEXT_MAX_CHARS = 5000
    VALIDATION_VOICE_ID_MAX_CHARS = 64

    # ─────────────────────────────────────────────────────────────────────────
    # Logging
    # ─────────────────────────────────────────────────────────────────────────
    LOGGING_TEXT_PREVIEW_CHARS = 80     # Characters to show in text preview
    LOGGING_LEVEL = 2                   # 1=MINIMAL, 2=NORMAL, 3=VERBOSE, 4=DEBUG

    # ─────────────────────────────────────────────────────────────────────────
    # API
    # ─────────────────────────────────────────────────────────────────────────
    API_CORS_ORIGINS = ["*"]


def _validate_non_negative(name: str, value: float) -> None:
    if not math.isfinite(value) or value < 0:
        raise ConfigValidationError(f"{name} must be non-negative, got {value}")


def _validate_positive(name: str, value: float) -> None:
    if not math.isfinite(value) or value <= 0:
        raise ConfigValidationError(f"{name} must be positive, got {value}")


def _coerce_policy(value: Any) -> OverflowPolicy:
    try:
        return OverflowPolicy(str(value).strip().lower())
    except ValueError:
        choices = ", ".join(p.value for p in OverflowPolicy)
        raise ConfigValidationError(
            f"timeline.overflow_policy must be one of: {choices}, got {value!r}"
        )


@dataclass(frozen=True)
class TimelineConfig:
    """
    Immutable layout of a spot.

    Passed explicitly into the timeline planner and the mix graph builder,
    so both stay pure functions of their inputs.

    Invariants (checked on construction):
        - all durations are non-negative
        - all volumes are non-negative linear multipliers
        - pre_roll_seconds + post_roll_seconds < max_total_seconds
        - min_voice_seconds > 0
    """
    pre_roll_seconds: float = Defaults.TIMELINE_PRE_ROLL_SECONDS
    post_roll_seconds: float = Defaults.TIMELINE_POST_ROLL_SECONDS
    max_total_seconds: float = Defaults.TIMELINE_MAX_TOTAL_SECONDS
    bgm_pre_post_volume: float = Defaults.TIMELINE_BGM_PRE_POST_VOLUME
    bgm_during_volume: float = Defaults.TIMELINE_BGM_DURING_VOLUME
    voice_volume: float = Defaults.TIMELINE_VOICE_VOLUME
    min_voice_seconds: float = Defaults.TIMELINE_MIN_VOICE_SECONDS
    overflow_policy: OverflowPolicy = OverflowPolicy(Defaults.TIMELINE_OVERFLOW_POLICY)

    def __post_init__(self) -> None:
        _validate_non_negative("timeline.pre_roll_seconds", self.pre_roll_seconds)
        _validate_non_negative("timeline.post_roll_seconds", self.post_roll_seconds)
        _validate_positive("timeline.max_total_seconds", self.max_total_seconds)
        _validate_positive("timeline.min_voice_seconds", self.min_voice_seconds)
        _validate_non_negative("timeline.bgm_pre_post_volume", self.bgm_pre_post_volume)
        _validate_non_negative("timeline.bgm_during_volume", self.bgm_during_volume)
        _validate_non_negative("timeline.voice_volume", self.voice_volume)
        bookends = self.pre_roll_seconds + self.post_roll_seconds
        if bookends >= self.max_total_seconds:
            raise ConfigValidationError(
                "timeline.pre_roll_seconds + timeline.post_roll_seconds must be less than "
                f"timeline.max_total_seconds ({self.pre_roll_seconds} + "
                f"{self.post_roll_seconds} >= {self.max_total_seconds})"
            )
        if bookends + self.min_voice_seconds > self.max_total_seconds:
            raise ConfigValidationError(
                "timeline.max_total_seconds leaves no room for "
                f"timeline.min_voice_seconds ({self.min_voice_seconds}s) between the pre-roll and post-roll"
            )
        if not isinstance(self.overflow_policy, OverflowPolicy):
            # frozen dataclass: bypass __setattr__ to store the coerced enum
            object.__setattr__(self, "overflow_policy", _coerce_policy(self.overflow_policy))


@dataclass
class ProviderConfig:
    """
    Text-to-speech provider configuration.

    The API key itself is never stored in the YAML file; only the name of
    the environment variable that holds it.
    """
    base_url: str = Defaults.PROVIDER_BASE_URL
    model_id: str = Defaults.PROVIDER_MODEL_ID
    api_key_env: str = Defaults.PROVIDER_API_KEY_ENV
    stability: float = Defaults.PROVIDER_STABILITY
    similarity_boost: float = Defaults.PROVIDER_SIMILARITY_BOOST
    style: float = Defaults.PROVIDER_STYLE
    use_speaker_boost: bool = Defaults.PROVIDER_USE_SPEAKER_BOOST
    timeout_s: float = Defaults.PROVIDER_TIMEOUT_S

    def voice_settings(self) -> Dict[str, Any]:
        """Voice-quality parameters sent with every synthesis call."""
        return {
            "stability": self.stability,
            "similarity_boost": self.similarity_boost,
            "style": self.style,
            "use_speaker_boost": self.use_speaker_boost,
        }


@dataclass
class EngineConfig:
    """
    Audio processing engine configuration.

    ffmpeg renders the mix, ffprobe measures the voice clip.
    """
    ffmpeg_bin: str = Defaults.ENGINE_FFMPEG_BIN
    ffprobe_bin: str = Defaults.ENGINE_FFPROBE_BIN
    audio_codec: str = Defaults.ENGINE_AUDIO_CODEC
    audio_bitrate: str = Defaults.ENGINE_AUDIO_BITRATE
    output_suffix: str = Defaults.ENGINE_OUTPUT_SUFFIX
    timeout_s: Optional[float] = Defaults.ENGINE_TIMEOUT_S


@dataclass
class AssetsConfig:
    """Static assets. The music bed must exist before any mix can succeed."""
    bgm_path: str = Defaults.ASSETS_BGM_PATH


@dataclass
class OutputConfig:
    """Response metadata for rendered spots."""
    media_type: str = Defaults.OUTPUT_MEDIA_TYPE
    filename: str = Defaults.OUTPUT_FILENAME


@dataclass
class ValidationConfig:
    """Request limits."""
    text_max_chars: int = Defaults.VALIDATION_TEXT_MAX_CHARS
    voice_id_max_chars: int = Defaults.VALIDATION_VOICE_ID_MAX_CHARS


@dataclass
class LoggingConfig:
    """
    Logging configuration.

    Log levels:
        1 = MINIMAL: Startup, shutdown, critical errors only
        2 = NORMAL: Request lifecycle (default)
        3 = VERBOSE: Per-stage timing, plan details
        4 = DEBUG: Filter graphs, engine command lines
    """
    text_preview_chars: int = Defaults.LOGGING_TEXT_PREVIEW_CHARS
    level: int = Defaults.LOGGING_LEVEL


@dataclass
class ApiConfig:
    """HTTP surface configuration."""
    cors_origins: List[str] = field(default_factory=lambda: list(Defaults.API_CORS_ORIGINS))


@dataclass
class SpotServiceConfig:
    """
    Validated configuration for SpotService.

    This is the main configuration object created from Settings.
    It validates all values and provides typed access to configuration.

    Usage:
        settings = load_settings("config/settings.yaml")
        config = SpotServiceConfig.from_settings(settings)
        print(config.timeline.max_total_seconds)  # Typed access
    """
    timeline: TimelineConfig = field(default_factory=TimelineConfig)
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    assets: AssetsConfig = field(default_factory=AssetsConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    api: ApiConfig = field(default_factory=ApiConfig)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "SpotServiceConfig":
        """
        Create SpotServiceConfig from Settings with validation.

        Reads raw configuration dictionary, applies defaults for missing
        values, validates constraints, and returns typed configuration.

        Args:
            settings: Raw Settings object loaded from YAML.

        Returns:
            Validated SpotServiceConfig instance.

        Raises:
            ConfigValidationError: If any value fails validation.
        """
        raw = settings.raw

        try:
            # ─────────────────────────────────────────────────────────────────
            # Timeline (validated in TimelineConfig.__post_init__)
            # ─────────────────────────────────────────────────────────────────
            tl = raw.get("timeline", {}) or {}
            timeline = TimelineConfig(
                pre_roll_seconds=float(tl.get("pre_roll_seconds", Defaults.TIMELINE_PRE_ROLL_SECONDS)),
                post_roll_seconds=float(tl.get("post_roll_seconds", Defaults.TIMELINE_POST_ROLL_SECONDS)),
                max_total_seconds=float(tl.get("max_total_seconds", Defaults.TIMELINE_MAX_TOTAL_SECONDS)),
                bgm_pre_post_volume=float(tl.get("bgm_pre_post_volume", Defaults.TIMELINE_BGM_PRE_POST_VOLUME)),
                bgm_during_volume=float(tl.get("bgm_during_volume", Defaults.TIMELINE_BGM_DURING_VOLUME)),
                voice_volume=float(tl.get("voice_volume", Defaults.TIMELINE_VOICE_VOLUME)),
                min_voice_seconds=float(tl.get("min_voice_seconds", Defaults.TIMELINE_MIN_VOICE_SECONDS)),
                overflow_policy=_coerce_policy(tl.get("overflow_policy", Defaults.TIMELINE_OVERFLOW_POLICY)),
            )

            # ─────────────────────────────────────────────────────────────────
            # Provider
            # ─────────────────────────────────────────────────────────────────
            pr = raw.get("provider", {}) or {}
            voice = pr.get("voice_settings", {}) or {}
            provider = ProviderConfig(
                base_url=str(pr.get("base_url", Defaults.PROVIDER_BASE_URL)).rstrip("/"),
                model_id=str(pr.get("model_id", Defaults.PROVIDER_MODEL_ID)),
                api_key_env=str(pr.get("api_key_env", Defaults.PROVIDER_API_KEY_ENV)),
                stability=float(voice.get("stability", Defaults.PROVIDER_STABILITY)),
                similarity_boost=float(voice.get("similarity_boost", Defaults.PROVIDER_SIMILARITY_BOOST)),
                style=float(voice.get("style", Defaults.PROVIDER_STYLE)),
                use_speaker_boost=bool(voice.get("use_speaker_boost", Defaults.PROVIDER_USE_SPEAKER_BOOST)),
                timeout_s=float(pr.get("timeout_s", Defaults.PROVIDER_TIMEOUT_S)),
            )
            _validate_positive("provider.timeout_s", provider.timeout_s)

            # ─────────────────────────────────────────────────────────────────
            # Engine
            # ─────────────────────────────────────────────────────────────────
            en = raw.get("engine", {}) or {}
            timeout_raw = en.get("timeout_s", Defaults.ENGINE_TIMEOUT_S)
            engine = EngineConfig(
                ffmpeg_bin=str(en.get("ffmpeg_bin", Defaults.ENGINE_FFMPEG_BIN)),
                ffprobe_bin=str(en.get("ffprobe_bin", Defaults.ENGINE_FFPROBE_BIN)),
                audio_codec=str(en.get("audio_codec", Defaults.ENGINE_AUDIO_CODEC)),
                audio_bitrate=str(en.get("audio_bitrate", Defaults.ENGINE_AUDIO_BITRATE)),
                output_suffix=str(en.get("output_suffix", Defaults.ENGINE_OUTPUT_SUFFIX)),
                timeout_s=float(timeout_raw) if timeout_raw is not None else None,
            )
            if engine.timeout_s is not None:
                _validate_positive("engine.timeout_s", engine.timeout_s)

            # ─────────────────────────────────────────────────────────────────
            # Assets / output / validation
            # ─────────────────────────────────────────────────────────────────
            assets = AssetsConfig(
                bgm_path=str((raw.get("assets", {}) or {}).get("bgm_path", Defaults.ASSETS_BGM_PATH)),
            )

            out = raw.get("output", {}) or {}
            output = OutputConfig(
                media_type=str(out.get("media_type", Defaults.OUTPUT_MEDIA_TYPE)),
                filename=str(out.get("filename", Defaults.OUTPUT_FILENAME)),
            )

            va = raw.get("validation", {}) or {}
            validation = ValidationConfig(
                text_max_chars=int(va.get("text_max_chars", Defaults.VALIDATION_TEXT_MAX_CHARS)),
                voice_id_max_chars=int(va.get("voice_id_max_chars", Defaults.VALIDATION_VOICE_ID_MAX_CHARS)),
            )
            _validate_positive("validation.text_max_chars", validation.text_max_chars)
            _validate_positive("validation.voice_id_max_chars", validation.voice_id_max_chars)

            # ─────────────────────────────────────────────────────────────────
            # Logging
            # ─────────────────────────────────────────────────────────────────
            lg = raw.get("logging", {}) or {}
            log_level_raw = lg.get("level", Defaults.LOGGING_LEVEL)
            if isinstance(log_level_raw, str):
                level_map = {
                    "MINIMAL": 1, "1": 1,
                    "NORMAL": 2, "INFO": 2, "2": 2,
                    "VERBOSE": 3, "3": 3,
                    "DEBUG": 4, "TRACE": 4, "4": 4,
                }
                log_level = level_map.get(log_level_raw.strip().upper(), Defaults.LOGGING_LEVEL)
            else:
                log_level = int(log_level_raw)
            logging_cfg = LoggingConfig(
                text_preview_chars=int(lg.get("text_preview_chars", Defaults.LOGGING_TEXT_PREVIEW_CHARS)),
                level=log_level,
            )
            _validate_non_negative("logging.text_preview_chars", logging_cfg.text_preview_chars)
            if not 1 <= logging_cfg.level <= 4:
                raise ConfigValidationError(
                    f"logging.level must be between 1 and 4, got {logging_cfg.level}"
                )

            # ─────────────────────────────────────────────────────────────────
            # API
            # ─────────────────────────────────────────────────────────────────
            origins = (raw.get("api", {}) or {}).get("cors_origins", Defaults.API_CORS_ORIGINS)
            if isinstance(origins, str):
                origins = [o.strip() for o in origins.split(",") if o.strip()]
            api = ApiConfig(cors_origins=list(origins))

        except (TypeError, ValueError) as e:
            raise ConfigValidationError(f"invalid configuration value: {e}") from e

        return cls(
            timeline=timeline,
            provider=provider,
            engine=engine,
            assets=assets,
            output=output,
            validation=validation,
            logging=logging_cfg,
            api=api,
        )


@dataclass(frozen=True)
class Settings:
    """
    Immutable settings container loaded from YAML.

    This is the raw settings object before validation. Use
    get_service_config() to get the validated SpotServiceConfig.

    Attributes:
        raw: Dictionary of raw configuration values.
    """
    raw: Dict[str, Any]

    @property
    def api_key_env(self) -> str:
        """Name of the environment variable holding the provider credential."""
        return str((self.raw.get("provider") or {}).get("api_key_env", Defaults.PROVIDER_API_KEY_ENV))

    @property
    def api_key(self) -> Optional[str]:
        """Provider credential, read from the environment at call time."""
        value = os.getenv(self.api_key_env, "").strip()
        return value or None

    @property
    def bgm_path(self) -> Path:
        """Path of the background music bed."""
        return Path((self.raw.get("assets") or {}).get("bgm_path", Defaults.ASSETS_BGM_PATH))

    def get_service_config(self) -> SpotServiceConfig:
        """
        Get validated SpotServiceConfig from these settings.

        Raises:
            ConfigValidationError: If validation fails.
        """
        return SpotServiceConfig.from_settings(self)


# Environment variable -> (section, key)
_ENV_OVERRIDES = {
    "SPOT_MS_BGM_PATH": ("assets", "bgm_path"),
    "SPOT_MS_FFMPEG": ("engine", "ffmpeg_bin"),
    "SPOT_MS_FFPROBE": ("engine", "ffprobe_bin"),
    "SPOT_MS_MAX_TOTAL_SECONDS": ("timeline", "max_total_seconds"),
    "SPOT_MS_OVERFLOW_POLICY": ("timeline", "overflow_policy"),
}


def load_settings(path: str = "config/settings.yaml", required: bool = False, quiet: bool = False) -> Settings:
    """
    Load settings from a YAML configuration file.

    Every value has a default, so a missing file yields default settings
    unless ``required`` is set.

    Environment variable overrides:
        - SPOT_MS_BGM_PATH: assets.bgm_path
        - SPOT_MS_FFMPEG / SPOT_MS_FFPROBE: engine binaries
        - SPOT_MS_MAX_TOTAL_SECONDS: timeline.max_total_seconds
        - SPOT_MS_OVERFLOW_POLICY: timeline.overflow_policy

    Args:
        path: Path to the YAML configuration file.
        required: Raise if the file does not exist.
        quiet: Do not log a missing file (used while logging is being configured).

    Returns:
        Settings object with loaded configuration.

    Raises:
        FileNotFoundError: If required and the settings file doesn't exist.
    """
    p = Path(path)
    raw: Dict[str, Any] = {}
    if p.exists():
        with p.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    elif required:
        raise FileNotFoundError(f"settings file not found: {p.resolve()}")
    elif not quiet:
        from spot_ms.core.logging import get_logger, warn
        warn(get_logger("spot-ms.config"), "settings_file_missing", path=str(p), using="defaults")

    for env_name, (section, key) in _ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            if not isinstance(raw.get(section), dict):
                raw[section] = {}
            raw[section][key] = value

    return Settings(raw=raw)
