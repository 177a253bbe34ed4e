"""
Duration Probe.

Measures the synthesized voice clip. The result feeds the timeline
planner, so anything that is not a positive finite number of seconds is
rejected here rather than producing a nonsense plan downstream.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from spot_ms.core.errors import ProbeError

if TYPE_CHECKING:
    from spot_ms.audio.engine import BaseAudioEngine


@dataclass(frozen=True)
class VoiceClip:
    """A synthesized voice clip on disk with its measured duration."""
    path: Path
    seconds: float


def parse_duration(output: Any) -> float:
    """
    Parse a duration report, e.g. ffprobe's bare ``12.345000`` output.

    Raises:
        ProbeError: If the report is empty, not a number, or not a
            positive finite duration.
    """
    text = str(output if output is not None else "").strip()
    # some containers report one line per stream; the first is the format
    first = text.splitlines()[0].strip() if text else ""
    try:
        seconds = float(first)
    except ValueError:
        raise ProbeError(f'Could not read duration via ffprobe: "{first}"', diagnostics=text)
    if not math.isfinite(seconds) or seconds <= 0:
        raise ProbeError(f"Invalid voice duration: {first}", diagnostics=text)
    return seconds


def probe_duration(engine: "BaseAudioEngine", path: Path) -> float:
    """Duration of ``path`` in seconds (> 0)."""
    return parse_duration(engine.probe_duration(path))


def probe_clip(engine: "BaseAudioEngine", path: Path) -> VoiceClip:
    return VoiceClip(path=path, seconds=probe_duration(engine, path))
