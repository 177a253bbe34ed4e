"""Shared fixtures: fake engine and provider, settings with a music bed."""
from __future__ import annotations

import tempfile
from pathlib import Path
from typing import List, Optional, Sequence

import pytest

from spot_ms.audio.engine import BaseAudioEngine
from spot_ms.audio.graph import MixGraph
from spot_ms.core.config import Settings
from spot_ms.core.errors import MixExecutionError, ProviderError
from spot_ms.providers.elevenlabs import SpeechProvider

FAKE_MP3 = b"ID3\x04\x00\x00\x00\x00\x00\x00" + b"\xff\xfb" * 64


class FakeEngine(BaseAudioEngine):
    """Engine double: fixed probe result, records mix calls."""

    name = "fake"

    def __init__(self, duration="10.0", output: bytes = FAKE_MP3, mix_error: Optional[Exception] = None):
        super().__init__()
        self.duration = duration
        self.output = output
        self.mix_error = mix_error
        self.probed: List[Path] = []
        self.mixed: List[tuple] = []
        self.probed_existing: List[bool] = []

    def available(self) -> bool:
        return True

    def probe_duration(self, path: Path):
        self.probed.append(path)
        self.probed_existing.append(Path(path).exists())
        if isinstance(self.duration, Exception):
            raise self.duration
        return self.duration

    def run_graph(self, inputs: Sequence[Path], graph: MixGraph) -> bytes:
        self.mixed.append((list(inputs), graph))
        if self.mix_error is not None:
            raise self.mix_error
        return self.output


class FakeProvider(SpeechProvider):
    """Provider double: returns canned audio or raises."""

    name = "fake"

    def __init__(self, audio: bytes = FAKE_MP3, error: Optional[ProviderError] = None):
        self.audio = audio
        self.error = error
        self.calls: List[tuple] = []

    def synthesize(self, text: str, voice_id: str, api_key: str) -> bytes:
        self.calls.append((text, voice_id, api_key))
        if self.error is not None:
            raise self.error
        return self.audio


@pytest.fixture
def bgm_file(tmp_path):
    path = tmp_path / "bgm.mp3"
    path.write_bytes(FAKE_MP3)
    return path


@pytest.fixture
def settings(bgm_file):
    return Settings(raw={
        "assets": {"bgm_path": str(bgm_file)},
        "logging": {"level": 1},
    })


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setenv("ELEVENLABS_API_KEY", "test-key")
    return "test-key"


@pytest.fixture
def isolated_tmp(tmp_path, monkeypatch):
    """Point tempfile at an empty directory so request workdirs can be counted."""
    root = tmp_path / "tmp"
    root.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(root))
    return root


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def failing_mix_engine():
    return FakeEngine(mix_error=MixExecutionError("mix failed", diagnostics="boom", returncode=1))
