"""
Tests for error classes and input validators.

Tests cover:
- ErrorCode values and HTTP status per exception
- to_dict() serialization
- Engine errors keep diagnostics
- validate_text() / validate_voice_id()
"""
import pytest

from spot_ms.core.errors import (
    ConfigurationError,
    EngineError,
    ErrorCode,
    MixExecutionError,
    ProbeError,
    ProviderError,
    SpotError,
    ValidationError,
)
from spot_ms.services.validators import validate_text, validate_voice_id


class TestErrors:
    """Exception taxonomy."""

    @pytest.mark.parametrize("exc, status, code", [
        (ValidationError("No text provided", field="text"), 400, ErrorCode.INVALID_INPUT),
        (ConfigurationError("Missing ELEVENLABS_API_KEY"), 500, ErrorCode.CONFIGURATION),
        (ProviderError("quota exceeded", status=401), 500, ErrorCode.PROVIDER_FAILED),
        (ProbeError("bad duration"), 500, ErrorCode.PROBE_FAILED),
        (MixExecutionError("ffmpeg failed"), 500, ErrorCode.MIX_FAILED),
    ])
    def test_status_and_code(self, exc, status, code):
        assert isinstance(exc, SpotError)
        assert exc.status_code == status
        assert exc.code == code

    def test_engine_errors_share_base(self):
        assert issubclass(ProbeError, EngineError)
        assert issubclass(MixExecutionError, EngineError)

    def test_to_dict(self):
        d = ValidationError("No voiceId provided", field="voiceId").to_dict()
        assert d == {
            "ok": False,
            "error": "INVALID_INPUT",
            "message": "No voiceId provided",
            "details": {"field": "voiceId"},
        }

    def test_to_dict_without_details(self):
        assert "details" not in SpotError("boom").to_dict()

    def test_provider_status_in_details(self):
        err = ProviderError("Unauthorized", status=401)
        assert err.status == 401
        assert err.details == {"provider_status": 401}
        assert str(err) == "Unauthorized"

    def test_engine_diagnostics(self):
        err = MixExecutionError("Invalid argument", diagnostics="full stderr", returncode=1)
        assert err.diagnostics == "full stderr"
        assert err.returncode == 1
        assert err.details == {"returncode": 1, "diagnostics": "full stderr"}


class TestValidateText:
    """validate_text()."""

    def test_strips(self):
        assert validate_text("  Hallo!  ") == "Hallo!"

    def test_unicode(self):
        text = "Één euro korting, ça va?"
        assert validate_text(text) == text

    @pytest.mark.parametrize("bad", ["", "  \n\t ", None, 42])
    def test_missing(self, bad):
        with pytest.raises(ValidationError) as exc_info:
            validate_text(bad)
        assert exc_info.value.message == "No text provided"
        assert exc_info.value.field == "text"

    def test_too_long(self):
        with pytest.raises(ValidationError, match="maximum length"):
            validate_text("x" * 6, max_length=5)


class TestValidateVoiceId:
    """validate_voice_id()."""

    def test_valid(self):
        assert validate_voice_id(" 21m00Tcm4TlvDq8ikWAM ") == "21m00Tcm4TlvDq8ikWAM"

    @pytest.mark.parametrize("bad", ["", "   ", None])
    def test_missing(self, bad):
        with pytest.raises(ValidationError) as exc_info:
            validate_voice_id(bad)
        assert exc_info.value.message == "No voiceId provided"

    @pytest.mark.parametrize("bad", ["../admin", "a/b", "a\\b"])
    def test_path_characters(self, bad):
        with pytest.raises(ValidationError, match="invalid characters"):
            validate_voice_id(bad)

    def test_too_long(self):
        with pytest.raises(ValidationError, match="maximum length"):
            validate_voice_id("v" * 65)
