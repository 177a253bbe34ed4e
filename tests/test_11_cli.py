"""Tests for the CLI."""
from __future__ import annotations

import json
from unittest.mock import patch

from spot_ms.cli import main
from spot_ms.core.errors import ProviderError
from spot_ms.services.spot_service import SpotService

from conftest import FAKE_MP3, FakeEngine, FakeProvider


def _last_json(out: str) -> dict:
    lines = [line for line in out.splitlines() if line.startswith("{")]
    return json.loads(lines[-1])


class TestPlanMode:
    """--plan needs neither the provider nor ffmpeg."""

    def test_plan_json(self, capsys):
        assert main(["--plan", "--voice-seconds", "30", "--json"]) == 0
        out = capsys.readouterr().out
        assert "PLAN_OK" in out
        payload = _last_json(out)
        assert payload["plan"]["total_seconds"] == 25.0
        assert payload["plan"]["voice_trim_seconds"] == 22.0
        assert payload["plan"]["truncated"] is True
        assert "afade=t=out:st=23.500:d=1.500[out]" in payload["filter_complex"]

    def test_plan_needs_voice_seconds(self, capsys):
        assert main(["--plan"]) == 2
        assert "--voice-seconds" in capsys.readouterr().out

    def test_plan_rejects_bad_duration(self, capsys):
        assert main(["--plan", "--voice-seconds", "-3"]) == 2

    def test_bad_settings_file(self, tmp_path, capsys):
        path = tmp_path / "bad.yaml"
        path.write_text("timeline:\n  max_total_seconds: 2\n", encoding="utf-8")
        assert main(["--settings", str(path), "--plan", "--voice-seconds", "5"]) == 2
        assert "[FAILED]" in capsys.readouterr().out


class TestRenderMode:
    """Rendering through SpotService with fakes."""

    def _patched_service(self, engine, provider):
        original = SpotService.__init__

        def init(self, settings, engine_=None, provider_=None):
            original(self, settings, engine=engine, provider=provider)

        return patch.object(SpotService, "__init__", init)

    def test_render_writes_file(self, tmp_path, bgm_file, api_key, monkeypatch, capsys):
        monkeypatch.setenv("SPOT_MS_BGM_PATH", str(bgm_file))
        out = tmp_path / "out" / "spot.mp3"
        with self._patched_service(FakeEngine(), FakeProvider()):
            code = main(["Hallo!", "--voice-id", "v1", "--out", str(out), "--json"])
        assert code == 0
        assert out.read_bytes() == FAKE_MP3
        stdout = capsys.readouterr().out
        assert "CLI_OK" in stdout
        assert _last_json(stdout)["spot_seconds"] == 13.0

    def test_missing_text_is_usage_error(self, tmp_path, bgm_file, api_key, monkeypatch, capsys):
        monkeypatch.setenv("SPOT_MS_BGM_PATH", str(bgm_file))
        with self._patched_service(FakeEngine(), FakeProvider()):
            code = main(["--voice-id", "v1", "--out", str(tmp_path / "x.mp3")])
        assert code == 2
        assert "No text provided" in capsys.readouterr().out

    def test_missing_credential_is_config_error(self, tmp_path, bgm_file, monkeypatch, capsys):
        monkeypatch.delenv("ELEVENLABS_API_KEY", raising=False)
        monkeypatch.setenv("SPOT_MS_BGM_PATH", str(bgm_file))
        provider = FakeProvider()
        with self._patched_service(FakeEngine(), provider):
            code = main(["Hallo", "--voice-id", "v1", "--out", str(tmp_path / "x.mp3")])
        assert code == 2
        assert "[FAILED] Missing ELEVENLABS_API_KEY" in capsys.readouterr().out
        assert provider.calls == []

    def test_missing_music_bed_is_config_error(self, tmp_path, api_key, monkeypatch, capsys):
        monkeypatch.setenv("SPOT_MS_BGM_PATH", str(tmp_path / "nope.mp3"))
        with self._patched_service(FakeEngine(), FakeProvider()):
            code = main(["Hallo", "--voice-id", "v1", "--out", str(tmp_path / "x.mp3")])
        assert code == 2
        assert "nope.mp3" in capsys.readouterr().out

    def test_provider_failure_is_render_error(self, tmp_path, bgm_file, api_key, monkeypatch, capsys):
        monkeypatch.setenv("SPOT_MS_BGM_PATH", str(bgm_file))
        provider = FakeProvider(error=ProviderError("voice_not_found", status=404))
        with self._patched_service(FakeEngine(), provider):
            code = main(["Hallo", "--voice-id", "v1", "--out", str(tmp_path / "x.mp3")])
        assert code == 1
        assert "[FAILED] voice_not_found" in capsys.readouterr().out

    def test_unwritable_output(self, tmp_path, bgm_file, api_key, monkeypatch, capsys):
        monkeypatch.setenv("SPOT_MS_BGM_PATH", str(bgm_file))
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")
        with self._patched_service(FakeEngine(), FakeProvider()):
            code = main(["Hallo", "--voice-id", "v1", "--out", str(blocker / "spot.mp3")])
        assert code == 1
        out = capsys.readouterr().out
        assert "[FAILED]" in out
        assert "CLI_OK" not in out
