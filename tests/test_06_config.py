"""
Tests for configuration validation and defaults.

Tests cover:
- Defaults class values
- SpotServiceConfig.from_settings() - all sections
- ConfigValidationError on invalid values
- Environment overrides in load_settings()
- Settings properties
"""
from unittest.mock import patch

import pytest

from spot_ms.core.config import (
    ConfigValidationError,
    Defaults,
    OverflowPolicy,
    Settings,
    SpotServiceConfig,
    TimelineConfig,
    load_settings,
)


class TestDefaults:
    """Defaults class values."""

    def test_timeline_defaults(self):
        assert Defaults.TIMELINE_PRE_ROLL_SECONDS == 1.5
        assert Defaults.TIMELINE_POST_ROLL_SECONDS == 1.5
        assert Defaults.TIMELINE_MAX_TOTAL_SECONDS == 25.0
        assert Defaults.TIMELINE_BGM_PRE_POST_VOLUME == 0.55
        assert Defaults.TIMELINE_BGM_DURING_VOLUME == 0.80
        assert Defaults.TIMELINE_VOICE_VOLUME == 0.80
        assert Defaults.TIMELINE_OVERFLOW_POLICY == "truncate"

    def test_provider_defaults(self):
        assert Defaults.PROVIDER_MODEL_ID == "eleven_multilingual_v2"
        assert Defaults.PROVIDER_API_KEY_ENV == "ELEVENLABS_API_KEY"
        assert Defaults.PROVIDER_STABILITY == 0.45
        assert Defaults.PROVIDER_SIMILARITY_BOOST == 0.85
        assert Defaults.PROVIDER_STYLE == 0.6
        assert Defaults.PROVIDER_USE_SPEAKER_BOOST is True

    def test_engine_defaults(self):
        assert Defaults.ENGINE_AUDIO_CODEC == "libmp3lame"
        assert Defaults.ENGINE_AUDIO_BITRATE == "192k"
        assert Defaults.ENGINE_TIMEOUT_S is None


class TestFromSettings:
    """SpotServiceConfig.from_settings()."""

    def test_empty_settings_use_defaults(self):
        config = SpotServiceConfig.from_settings(Settings(raw={}))
        assert config.timeline == TimelineConfig()
        assert config.provider.voice_settings() == {
            "stability": 0.45,
            "similarity_boost": 0.85,
            "style": 0.6,
            "use_speaker_boost": True,
        }
        assert config.output.filename == "spot.mp3"
        assert config.api.cors_origins == ["*"]

    def test_timeline_section(self):
        config = SpotServiceConfig.from_settings(Settings(raw={
            "timeline": {"pre_roll_seconds": 2, "max_total_seconds": "30", "overflow_policy": "EXTEND"},
        }))
        assert config.timeline.pre_roll_seconds == 2.0
        assert config.timeline.max_total_seconds == 30.0
        assert config.timeline.overflow_policy is OverflowPolicy.EXTEND

    def test_provider_section(self):
        config = SpotServiceConfig.from_settings(Settings(raw={
            "provider": {"base_url": "http://tts.local/", "voice_settings": {"style": 0.1}},
        }))
        assert config.provider.base_url == "http://tts.local"
        assert config.provider.style == 0.1
        assert config.provider.stability == 0.45

    def test_engine_timeout(self):
        config = SpotServiceConfig.from_settings(Settings(raw={"engine": {"timeout_s": 90}}))
        assert config.engine.timeout_s == 90.0

    def test_string_log_level(self):
        config = SpotServiceConfig.from_settings(Settings(raw={"logging": {"level": "debug"}}))
        assert config.logging.level == 4

    def test_cors_origins_from_string(self):
        config = SpotServiceConfig.from_settings(Settings(raw={
            "api": {"cors_origins": "https://a.example, https://b.example"},
        }))
        assert config.api.cors_origins == ["https://a.example", "https://b.example"]


class TestValidation:
    """Invalid values raise ConfigValidationError."""

    @pytest.mark.parametrize("timeline", [
        {"pre_roll_seconds": -1},
        {"max_total_seconds": 0},
        {"voice_volume": -0.1},
        {"pre_roll_seconds": 12.5, "post_roll_seconds": 12.5},
        {"pre_roll_seconds": 12.45, "post_roll_seconds": 12.5},
        {"overflow_policy": "stretch"},
        {"max_total_seconds": "lots"},
    ])
    def test_bad_timeline(self, timeline):
        with pytest.raises(ConfigValidationError):
            SpotServiceConfig.from_settings(Settings(raw={"timeline": timeline}))

    def test_bad_log_level(self):
        with pytest.raises(ConfigValidationError):
            SpotServiceConfig.from_settings(Settings(raw={"logging": {"level": 9}}))

    def test_bad_provider_timeout(self):
        with pytest.raises(ConfigValidationError):
            SpotServiceConfig.from_settings(Settings(raw={"provider": {"timeout_s": 0}}))


class TestLoadSettings:
    """load_settings() file handling and env overrides."""

    def test_missing_file_gives_defaults(self, tmp_path):
        settings = load_settings(str(tmp_path / "absent.yaml"))
        assert settings.get_service_config().timeline == TimelineConfig()

    def test_missing_file_required(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(str(tmp_path / "absent.yaml"), required=True)

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("timeline:\n  max_total_seconds: 20\nassets:\n  bgm_path: /srv/bed.mp3\n", encoding="utf-8")
        settings = load_settings(str(path))
        assert settings.get_service_config().timeline.max_total_seconds == 20.0
        assert str(settings.bgm_path) == "/srv/bed.mp3"

    def test_env_overrides(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SPOT_MS_BGM_PATH", "/data/bgm.mp3")
        monkeypatch.setenv("SPOT_MS_FFMPEG", "/opt/ffmpeg")
        monkeypatch.setenv("SPOT_MS_MAX_TOTAL_SECONDS", "30")
        monkeypatch.setenv("SPOT_MS_OVERFLOW_POLICY", "extend")
        config = load_settings(str(tmp_path / "absent.yaml")).get_service_config()
        assert config.assets.bgm_path == "/data/bgm.mp3"
        assert config.engine.ffmpeg_bin == "/opt/ffmpeg"
        assert config.timeline.max_total_seconds == 30.0
        assert config.timeline.overflow_policy is OverflowPolicy.EXTEND

    def test_api_key_from_env(self, monkeypatch):
        monkeypatch.setenv("MY_KEY", " secret ")
        settings = Settings(raw={"provider": {"api_key_env": "MY_KEY"}})
        assert settings.api_key_env == "MY_KEY"
        assert settings.api_key == "secret"

    def test_blank_api_key_is_none(self, monkeypatch):
        monkeypatch.setenv("ELEVENLABS_API_KEY", "   ")
        assert Settings(raw={}).api_key is None

    def test_shipped_settings_are_valid(self):
        config = load_settings("config/settings.yaml", required=True).get_service_config()
        assert config.timeline == TimelineConfig()

    def test_missing_file_is_logged(self, tmp_path):
        with patch("spot_ms.core.logging.warn") as warn_mock:
            load_settings(str(tmp_path / "absent.yaml"))
        assert warn_mock.call_count == 1
        assert warn_mock.call_args.args[1] == "settings_file_missing"

    def test_missing_file_quiet(self, tmp_path):
        with patch("spot_ms.core.logging.warn") as warn_mock:
            load_settings(str(tmp_path / "absent.yaml"), quiet=True)
        warn_mock.assert_not_called()


class TestEmptySections:
    """Sections left empty in YAML load as None and fall back to defaults."""

    def _write(self, tmp_path, text):
        path = tmp_path / "settings.yaml"
        path.write_text(text, encoding="utf-8")
        return str(path)

    def test_null_sections_use_defaults(self, tmp_path):
        settings = load_settings(self._write(tmp_path, "provider:\nassets:\ntimeline:\n"))
        assert settings.api_key_env == Defaults.PROVIDER_API_KEY_ENV
        assert str(settings.bgm_path) == Defaults.ASSETS_BGM_PATH
        assert settings.get_service_config().timeline == TimelineConfig()

    def test_null_section_with_env_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SPOT_MS_BGM_PATH", "/data/bgm.mp3")
        monkeypatch.setenv("SPOT_MS_OVERFLOW_POLICY", "extend")
        settings = load_settings(self._write(tmp_path, "assets:\ntimeline:\n"))
        assert str(settings.bgm_path) == "/data/bgm.mp3"
        assert settings.get_service_config().timeline.overflow_policy is OverflowPolicy.EXTEND

    def test_null_provider_section_reads_default_key(self, monkeypatch):
        monkeypatch.setenv("ELEVENLABS_API_KEY", "k-1")
        assert Settings(raw={"provider": None, "assets": None}).api_key == "k-1"
