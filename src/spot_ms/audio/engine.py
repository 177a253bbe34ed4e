"""
Audio Engine.

This module provides:
    - BaseAudioEngine: Narrow interface to the external media toolchain
    - FfmpegEngine: ffprobe for durations, ffmpeg for mixing and encoding
    - get_engine(): Factory used by the service

The engine is the only place that spawns processes. Everything above it
(probe, mixer, service) works on paths, MixGraph values and exceptions,
so tests swap in a fake engine and never need ffmpeg installed.

Engine Selection:
    Binaries come from settings.engine.ffmpeg_bin / ffprobe_bin, or the
    SPOT_MS_FFMPEG / SPOT_MS_FFPROBE environment variables.

Mix command (default config):
    ffmpeg -y -i voice.mp3 -stream_loop -1 -i bgm.mp3
           -filter_complex <graph> -map [out] -t 13.0
           -c:a libmp3lame -b:a 192k mix.mp3
"""
from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Type

from spot_ms.audio.graph import MixGraph
from spot_ms.audio.probe import parse_duration
from spot_ms.core.config import EngineConfig
from spot_ms.core.errors import EngineError, MixExecutionError, ProbeError
from spot_ms.core.logging import debug, get_logger
from spot_ms.utils.tempfiles import request_workdir


class BaseAudioEngine:
    """
    Base class for audio engines.

    Subclasses implement:
        - available(): Whether the toolchain can run
        - probe_duration(): Duration of a media file in seconds
        - run_graph(): Render a MixGraph and return the encoded bytes

    Attributes:
        name: Engine identifier.
        config: Engine configuration.
    """
    name: str = "base"

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self.logger = get_logger(f"spot-ms.engine.{self.name}")

    def available(self) -> bool:
        raise NotImplementedError

    def probe_duration(self, path: Path) -> float:
        """
        Duration of a media file, in seconds.

        Raises:
            ProbeError: If the file cannot be probed or the report is not
                a positive number.
        """
        raise NotImplementedError

    def run_graph(self, inputs: Sequence[Path], graph: MixGraph) -> bytes:
        """
        Render ``graph`` over ``inputs`` and return the encoded audio.

        Args:
            inputs: One path per graph input, in the graph's input order.
            graph: Filter graph to render.

        Returns:
            The complete encoded output. Nothing is returned on failure.

        Raises:
            MixExecutionError: If rendering fails.
        """
        raise NotImplementedError


class FfmpegEngine(BaseAudioEngine):
    """ffmpeg/ffprobe running as subprocesses."""

    name = "ffmpeg"

    def available(self) -> bool:
        return bool(shutil.which(self.config.ffmpeg_bin) and shutil.which(self.config.ffprobe_bin))

    def probe_command(self, path: Path) -> List[str]:
        return [
            self.config.ffprobe_bin,
            "-v", "error",
            "-show_entries", "format=duration",
            "-of", "default=noprint_wrappers=1:nokey=1",
            str(path),
        ]

    def mix_command(self, inputs: Sequence[Path], graph: MixGraph, output_path: Path) -> List[str]:
        """Build the ffmpeg argument list for a graph."""
        if len(inputs) != len(graph.inputs):
            raise ValueError(f"graph expects {len(graph.inputs)} inputs, got {len(inputs)}")

        cmd = [self.config.ffmpeg_bin, "-y"]
        for spec, path in zip(graph.inputs, inputs):
            if spec.loop:
                cmd += ["-stream_loop", "-1"]
            cmd += ["-i", str(path)]
        cmd += [
            "-filter_complex", graph.render(),
            "-map", f"[{graph.sink}]",
            "-t", str(graph.duration_seconds),
            "-c:a", self.config.audio_codec,
            "-b:a", self.config.audio_bitrate,
            str(output_path),
        ]
        return cmd

    def probe_duration(self, path: Path) -> float:
        result = self._run(self.probe_command(path), ProbeError, "ffprobe")
        return parse_duration(result.stdout)

    def run_graph(self, inputs: Sequence[Path], graph: MixGraph) -> bytes:
        with request_workdir() as workdir:
            output_path = workdir.file("mix" + self.config.output_suffix)
            cmd = self.mix_command(inputs, graph, output_path)
            debug(self.logger, "filter_graph", filter_complex=graph.render(), duration=graph.duration_seconds)
            self._run(cmd, MixExecutionError, "ffmpeg")

            if not output_path.exists() or output_path.stat().st_size == 0:
                raise MixExecutionError("ffmpeg produced no output")
            return output_path.read_bytes()

    def _run(
        self,
        cmd: List[str],
        error_cls: Type[EngineError],
        tool: str,
    ) -> subprocess.CompletedProcess:
        debug(self.logger, "engine_exec", tool=tool, argv=" ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.config.timeout_s,
                check=False,
            )
        except FileNotFoundError as e:
            raise error_cls(f"{tool} not found: {cmd[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise error_cls(f"{tool} timed out after {self.config.timeout_s}s") from e

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise error_cls(
                stderr.splitlines()[-1] if stderr else f"{tool} exited with {result.returncode}",
                diagnostics=stderr,
                returncode=result.returncode,
            )
        return result


def get_engine(config: Optional[EngineConfig] = None) -> BaseAudioEngine:
    """Create the audio engine for a configuration."""
    return FfmpegEngine(config)
