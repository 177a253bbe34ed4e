"""
Tests for the timeline planner.

Tests cover:
- Short voice: spot grows with the voice
- Long voice: spot capped, voice trimmed, bookends kept
- Segments contiguous and summing to the total
- Extend policy never cuts speech
- Minimum voice floor
- Invalid durations rejected
"""
import math

import pytest

from spot_ms.audio.timeline import plan
from spot_ms.core.config import OverflowPolicy, TimelineConfig


@pytest.fixture
def config():
    return TimelineConfig()


class TestScenarios:
    """Reference layouts for the default configuration."""

    def test_short_voice(self, config):
        p = plan(10.0, config)
        assert p.total_seconds == pytest.approx(13.0)
        assert p.voice_trim_seconds == pytest.approx(10.0)
        assert p.fade_out_start_seconds == pytest.approx(11.5)
        assert p.fade_out_duration_seconds == pytest.approx(1.5)
        assert p.truncated is False

    def test_long_voice_is_capped(self, config):
        p = plan(30.0, config)
        assert p.total_seconds == pytest.approx(25.0)
        assert p.voice_trim_seconds == pytest.approx(22.0)
        assert p.fade_out_start_seconds == pytest.approx(23.5)
        assert p.truncated is True

    def test_voice_exactly_fills_cap(self, config):
        p = plan(22.0, config)
        assert p.total_seconds == pytest.approx(25.0)
        assert p.voice_trim_seconds == pytest.approx(22.0)
        assert p.truncated is False


class TestSegments:
    """Bed segment layout."""

    @pytest.mark.parametrize("voice", [0.3, 4.2, 10.0, 21.99, 22.0, 40.0, 300.0])
    def test_segments_contiguous_and_sum_to_total(self, config, voice):
        p = plan(voice, config)
        pre, during, post = p.segments
        assert pre.start == 0.0
        assert pre.end == during.start
        assert during.end == post.start
        assert post.end == p.total_seconds
        assert pre.duration + during.duration + post.duration == pytest.approx(p.total_seconds)

    @pytest.mark.parametrize("voice", [0.3, 10.0, 22.0, 40.0, 300.0])
    def test_total_never_exceeds_cap(self, config, voice):
        assert plan(voice, config).total_seconds <= config.max_total_seconds

    def test_ducking_volumes(self, config):
        p = plan(10.0, config)
        assert p.pre_roll.volume == 0.55
        assert p.during.volume == 0.80
        assert p.post_roll.volume == 0.55
        assert p.voice_volume == 0.80

    def test_voice_delayed_by_pre_roll(self, config):
        p = plan(10.0, config)
        assert p.voice_delay_seconds == 1.5
        assert p.voice_end_seconds == pytest.approx(11.5)

    def test_trim_never_exceeds_voice(self, config):
        for voice in (0.5, 5.0, 22.0, 60.0):
            p = plan(voice, config)
            assert p.voice_trim_seconds <= voice or p.voice_trim_seconds == config.min_voice_seconds

    def test_plan_is_deterministic(self, config):
        assert plan(17.25, config) == plan(17.25, config)


class TestPolicies:
    """Overflow policy and floor."""

    def test_extend_never_cuts_speech(self):
        config = TimelineConfig(overflow_policy=OverflowPolicy.EXTEND)
        p = plan(30.0, config)
        assert p.voice_trim_seconds == pytest.approx(30.0)
        assert p.total_seconds == pytest.approx(33.0)
        assert p.fade_out_start_seconds == pytest.approx(31.5)
        assert p.truncated is False
        assert p.policy is OverflowPolicy.EXTEND

    def test_policy_accepts_string(self):
        config = TimelineConfig(overflow_policy="extend")
        assert config.overflow_policy is OverflowPolicy.EXTEND

    def test_min_voice_floor(self):
        config = TimelineConfig(min_voice_seconds=0.5)
        p = plan(0.2, config)
        assert p.voice_trim_seconds == pytest.approx(0.5)
        assert p.total_seconds == pytest.approx(3.5)

    def test_custom_bookends(self):
        config = TimelineConfig(pre_roll_seconds=2.0, post_roll_seconds=3.0, max_total_seconds=15.0)
        p = plan(20.0, config)
        assert p.total_seconds == pytest.approx(15.0)
        assert p.voice_trim_seconds == pytest.approx(10.0)
        assert p.fade_out_start_seconds == pytest.approx(12.0)
        assert p.fade_out_duration_seconds == pytest.approx(3.0)


class TestPreconditions:
    """Invalid voice durations are caller bugs."""

    @pytest.mark.parametrize("bad", [0, -1.0, math.nan, math.inf, "10"])
    def test_rejects_invalid_duration(self, config, bad):
        with pytest.raises(ValueError):
            plan(bad, config)


def test_to_dict_shape(config):
    d = plan(30.0, config).to_dict()
    assert d["total_seconds"] == 25.0
    assert d["voice_trim_seconds"] == 22.0
    assert d["truncated"] is True
    assert d["policy"] == "truncate"
    assert [s["name"] for s in d["segments"]] == ["pre", "during", "post"]
