"""
Mix Graph Builder.

Expresses a SegmentPlan as a directed filter graph for ffmpeg. The graph
is a value, an ordered tuple of Stage objects with explicit input and
output labels, so its structure can be inspected and tested without
running ffmpeg. ``MixGraph.render()`` produces the ``-filter_complex``
string.

Graph for the default plan (voice 10s):

    [0:a]atrim=0:10.000,asetpts=N/SR/TB,volume=0.8[v]
    [v]adelay=1500|1500[vdel]
    [1:a]atrim=0.000:1.500,asetpts=N/SR/TB,volume=0.55[bpre]
    [1:a]atrim=1.500:11.500,asetpts=N/SR/TB,volume=0.8[bdur]
    [1:a]atrim=11.500:13.000,asetpts=N/SR/TB,volume=0.55[bpost]
    [bpre][bdur][bpost]concat=n=3:v=0:a=1[bgmfull]
    [bgmfull][vdel]amix=inputs=2:duration=first:dropout_transition=0[m]
    [m]afade=t=out:st=11.500:d=1.500[out]

Input 0 is the voice clip, input 1 the background bed (looped by the
engine). The mixed stream follows the bed (``duration=first``) so the
voice can never lengthen the spot, and the engine hard-caps the output at
``duration_seconds``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from spot_ms.audio.timeline import BedSegment, SegmentPlan

VOICE_INPUT = "0:a"
BED_INPUT = "1:a"
SINK_LABEL = "out"

_BED_LABELS = {"pre": "bpre", "during": "bdur", "post": "bpost"}


def fmt_seconds(value: float) -> str:
    """Seconds with millisecond precision, as ffmpeg filter arguments."""
    return f"{value:.3f}"


def fmt_gain(value: float) -> str:
    return f"{value:g}"


@dataclass(frozen=True)
class Filter:
    """
    A single ffmpeg filter.

    ``args`` holds (key, value) pairs in order; a key of None renders a
    positional argument.
    """
    name: str
    args: Tuple[Tuple[Optional[str], str], ...] = ()

    def arg(self, key: str) -> Optional[str]:
        for k, v in self.args:
            if k == key:
                return v
        return None

    def render(self) -> str:
        if not self.args:
            return self.name
        rendered = ":".join(v if k is None else f"{k}={v}" for k, v in self.args)
        return f"{self.name}={rendered}"


@dataclass(frozen=True)
class Stage:
    """
    A linear chain of filters with labelled inputs and outputs.

    Attributes:
        name: Role of the stage in the spot (voice, voice_delay, bed_pre...).
        inputs: Labels consumed, in pad order.
        filters: Filters applied in order.
        outputs: Labels produced.
    """
    name: str
    inputs: Tuple[str, ...]
    filters: Tuple[Filter, ...]
    outputs: Tuple[str, ...]

    @property
    def filter_names(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.filters)

    def render(self) -> str:
        ins = "".join(f"[{label}]" for label in self.inputs)
        outs = "".join(f"[{label}]" for label in self.outputs)
        return ins + ",".join(f.render() for f in self.filters) + outs


@dataclass(frozen=True)
class GraphInput:
    """An engine input the graph reads from."""
    label: str
    role: str
    loop: bool = False


@dataclass(frozen=True)
class MixGraph:
    """
    Filter graph for one spot.

    Attributes:
        inputs: Engine inputs, in command-line order.
        stages: Stages in build order.
        duration_seconds: Hard cap on the rendered output.
    """
    inputs: Tuple[GraphInput, ...]
    stages: Tuple[Stage, ...]
    duration_seconds: float

    @property
    def stage_names(self) -> Tuple[str, ...]:
        return tuple(s.name for s in self.stages)

    @property
    def filters(self) -> Tuple[Filter, ...]:
        """All filters, flattened in build order."""
        return tuple(f for s in self.stages for f in s.filters)

    @property
    def sink(self) -> str:
        """The label of the final output stream."""
        return self.stages[-1].outputs[-1]

    def stage(self, name: str) -> Stage:
        for s in self.stages:
            if s.name == name:
                return s
        raise KeyError(name)

    def render(self) -> str:
        """The ``-filter_complex`` argument."""
        return ";".join(s.render() for s in self.stages)

    def validate(self) -> None:
        """
        Check that the stages form a DAG with exactly one sink.

        Engine input labels may be read any number of times; every other
        label must be produced before it is consumed, and consumed at most
        once.

        Raises:
            ValueError: On a dangling, reused or duplicated label, or when
                the graph has no single sink.
        """
        engine_labels = {i.label for i in self.inputs}
        produced: Dict[str, str] = {}
        consumed: Dict[str, str] = {}

        for stage in self.stages:
            if not stage.filters:
                raise ValueError(f"stage {stage.name!r} has no filters")
            for label in stage.inputs:
                if label in engine_labels:
                    continue
                if label not in produced:
                    raise ValueError(f"stage {stage.name!r} reads unknown label [{label}]")
                if label in consumed:
                    raise ValueError(
                        f"label [{label}] consumed by both {consumed[label]!r} and {stage.name!r}"
                    )
                consumed[label] = stage.name
            for label in stage.outputs:
                if label in produced or label in engine_labels:
                    raise ValueError(f"label [{label}] produced twice")
                produced[label] = stage.name

        sinks = [label for label in produced if label not in consumed]
        if len(sinks) != 1:
            raise ValueError(f"graph must have exactly one sink, found {sinks}")


def _trim_chain(start: Optional[float], end: float, gain: float) -> Tuple[Filter, ...]:
    # voice trims from 0 and keeps the bare "0", bed slices carry both bounds
    start_arg = "0" if start is None else fmt_seconds(start)
    return (
        Filter("atrim", ((None, start_arg), (None, fmt_seconds(end)))),
        Filter("asetpts", ((None, "N/SR/TB"),)),
        Filter("volume", ((None, fmt_gain(gain)),)),
    )


def _bed_stage(segment: BedSegment) -> Stage:
    return Stage(
        name=f"bed_{segment.name}",
        inputs=(BED_INPUT,),
        filters=_trim_chain(segment.start, segment.end, segment.volume),
        outputs=(_BED_LABELS[segment.name],),
    )


def build(plan: SegmentPlan) -> MixGraph:
    """
    Build the mix graph for a plan.

    Stages, in order:
        1. voice: trim to [0, voice_trim), reset timestamps, apply gain
        2. voice_delay: prepend the pre-roll as silence (both channels)
        3. bed_pre / bed_during / bed_post: slice the looped bed, each
           with its own gain
        4. bed_concat: join the slices into one bed of total length
        5. mix: bed + delayed voice, length governed by the bed
        6. fade: linear fade-out over the post-roll

    Bed slices of zero length (a zero pre-roll or post-roll) are left out,
    as is the fade when the post-roll is zero.

    Args:
        plan: Timeline plan from ``timeline.plan``.

    Returns:
        A validated MixGraph.
    """
    delay_ms = int(round(plan.voice_delay_seconds * 1000))

    stages: List[Stage] = [
        Stage(
            name="voice",
            inputs=(VOICE_INPUT,),
            filters=_trim_chain(None, plan.voice_trim_seconds, plan.voice_volume),
            outputs=("v",),
        ),
        Stage(
            name="voice_delay",
            inputs=("v",),
            filters=(Filter("adelay", ((None, f"{delay_ms}|{delay_ms}"),)),),
            outputs=("vdel",),
        ),
    ]

    beds = [_bed_stage(s) for s in plan.segments if s.duration > 0]
    stages.extend(beds)
    stages.append(Stage(
        name="bed_concat",
        inputs=tuple(b.outputs[0] for b in beds),
        filters=(Filter("concat", (("n", str(len(beds))), ("v", "0"), ("a", "1"))),),
        outputs=("bgmfull",),
    ))

    has_fade = plan.fade_out_duration_seconds > 0
    stages.append(Stage(
        name="mix",
        inputs=("bgmfull", "vdel"),
        filters=(Filter("amix", (
            ("inputs", "2"),
            ("duration", "first"),
            ("dropout_transition", "0"),
        )),),
        outputs=("m" if has_fade else SINK_LABEL,),
    ))

    if has_fade:
        stages.append(Stage(
            name="fade",
            inputs=("m",),
            filters=(Filter("afade", (
                ("t", "out"),
                ("st", fmt_seconds(plan.fade_out_start_seconds)),
                ("d", fmt_seconds(plan.fade_out_duration_seconds)),
            )),),
            outputs=(SINK_LABEL,),
        ))

    graph = MixGraph(
        inputs=(
            GraphInput(VOICE_INPUT, role="voice"),
            GraphInput(BED_INPUT, role="bed", loop=True),
        ),
        stages=tuple(stages),
        duration_seconds=plan.total_seconds,
    )
    graph.validate()
    return graph
