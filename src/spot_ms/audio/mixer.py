"""
Mix Executor.

Runs a MixGraph over the voice clip and the background bed with one
engine call and returns the encoded spot. The engine either returns the
complete output or raises; there are no partial results.
"""
from __future__ import annotations

from pathlib import Path

from spot_ms.audio.engine import BaseAudioEngine
from spot_ms.audio.graph import MixGraph
from spot_ms.audio.probe import VoiceClip
from spot_ms.core.errors import MixExecutionError
from spot_ms.core.logging import get_logger, verbose

_LOG = get_logger("spot-ms.mixer")


class MixExecutor:
    """Renders mix graphs with an audio engine."""

    def __init__(self, engine: BaseAudioEngine):
        self.engine = engine

    def execute(self, voice: VoiceClip, bgm_path: Path, graph: MixGraph) -> bytes:
        """
        Mix ``voice`` over the bed at ``bgm_path`` and return the encoded bytes.

        Raises:
            MixExecutionError: If the engine fails or returns nothing.
        """
        data = self.engine.run_graph([voice.path, bgm_path], graph)
        if not data:
            raise MixExecutionError("Mix produced an empty file")
        verbose(_LOG, "mixed", bytes=len(data), duration=graph.duration_seconds)
        return data
