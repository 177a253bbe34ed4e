"""
Timeline Planner.

Turns a measured voice clip duration into the layout of a spot:

    0          pre              pre+trim            total
    |-- pre ----|---- during ------|----- post --------|
    | bed loud  | bed ducked       | bed loud, fading  |
    |           | voice (delayed)  |                   |

The spot length is capped first and the usable voice length is derived
backwards from the cap, so the pre-roll and post-roll keep their full
length however long the synthesized speech turns out to be. Under the
``extend`` overflow policy the cap is ignored and speech is never cut.

``plan`` is a pure function: same inputs, same plan.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Tuple

from spot_ms.core.config import OverflowPolicy, TimelineConfig


@dataclass(frozen=True)
class BedSegment:
    """One slice of the background music bed, in spot time."""
    name: str
    start: float
    end: float
    volume: float

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass(frozen=True)
class SegmentPlan:
    """
    The timeline of one spot.

    Attributes:
        voice_seconds: Probed duration of the voice clip.
        voice_trim_seconds: Voice duration actually used (>= the config floor).
        total_seconds: Spot length; the three bed segments sum to it.
        pre_roll, during, post_roll: Bed segments with their volumes.
        voice_delay_seconds: Silence prepended to the voice.
        voice_volume: Linear gain applied to the voice.
        fade_out_start_seconds: Where the final fade begins.
        fade_out_duration_seconds: Length of the final fade.
        policy: Overflow policy the plan was made under.
    """
    voice_seconds: float
    voice_trim_seconds: float
    total_seconds: float
    pre_roll: BedSegment
    during: BedSegment
    post_roll: BedSegment
    voice_delay_seconds: float
    voice_volume: float
    fade_out_start_seconds: float
    fade_out_duration_seconds: float
    policy: OverflowPolicy = OverflowPolicy.TRUNCATE

    @property
    def segments(self) -> Tuple[BedSegment, BedSegment, BedSegment]:
        """Bed segments in playback order."""
        return (self.pre_roll, self.during, self.post_roll)

    @property
    def truncated(self) -> bool:
        """True when speech is cut short to respect the length cap."""
        return self.voice_trim_seconds < self.voice_seconds

    @property
    def voice_end_seconds(self) -> float:
        """Where the delayed, trimmed voice stops, in spot time."""
        return self.voice_delay_seconds + self.voice_trim_seconds

    def to_dict(self) -> Dict[str, Any]:
        return {
            "voice_seconds": round(self.voice_seconds, 3),
            "voice_trim_seconds": round(self.voice_trim_seconds, 3),
            "total_seconds": round(self.total_seconds, 3),
            "truncated": self.truncated,
            "policy": self.policy.value,
            "voice_delay_seconds": round(self.voice_delay_seconds, 3),
            "voice_volume": self.voice_volume,
            "fade_out_start_seconds": round(self.fade_out_start_seconds, 3),
            "fade_out_duration_seconds": round(self.fade_out_duration_seconds, 3),
            "segments": [
                {
                    "name": s.name,
                    "start": round(s.start, 3),
                    "end": round(s.end, 3),
                    "volume": s.volume,
                }
                for s in self.segments
            ],
        }


def plan(voice_seconds: float, config: TimelineConfig) -> SegmentPlan:
    """
    Plan the timeline of a spot.

    Args:
        voice_seconds: Measured duration of the voice clip (> 0).
        config: Timeline configuration.

    Returns:
        SegmentPlan for the spot.

    Raises:
        ValueError: If voice_seconds is not a positive finite number. The
            prober rejects such values, so this is a caller bug.

    Example:
        >>> p = plan(30.0, TimelineConfig())
        >>> p.total_seconds, p.voice_trim_seconds, p.fade_out_start_seconds
        (25.0, 22.0, 23.5)
    """
    if not isinstance(voice_seconds, (int, float)) or not math.isfinite(voice_seconds) or voice_seconds <= 0:
        raise ValueError(f"voice_seconds must be a positive finite number, got {voice_seconds!r}")

    pre = config.pre_roll_seconds
    post = config.post_roll_seconds
    voice_seconds = float(voice_seconds)

    raw_total = pre + voice_seconds + post
    if config.overflow_policy is OverflowPolicy.EXTEND or raw_total <= config.max_total_seconds:
        voice_trim = voice_seconds
    else:
        voice_trim = config.max_total_seconds - pre - post
    voice_trim = max(config.min_voice_seconds, voice_trim)

    # recomputed from the parts so the bed segments sum to it exactly
    voice_end = pre + voice_trim
    total = voice_end + post
    if config.overflow_policy is OverflowPolicy.TRUNCATE:
        # absorb float rounding from max - pre - post + pre + post
        total = min(total, config.max_total_seconds)

    return SegmentPlan(
        voice_seconds=voice_seconds,
        voice_trim_seconds=voice_trim,
        total_seconds=total,
        pre_roll=BedSegment("pre", 0.0, pre, config.bgm_pre_post_volume),
        during=BedSegment("during", pre, voice_end, config.bgm_during_volume),
        post_roll=BedSegment("post", voice_end, total, config.bgm_pre_post_volume),
        voice_delay_seconds=pre,
        voice_volume=config.voice_volume,
        fade_out_start_seconds=max(0.0, total - post),
        fade_out_duration_seconds=post,
        policy=config.overflow_policy,
    )
