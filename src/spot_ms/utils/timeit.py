"""
Timing Utilities.

Each render stage (provider, probe, plan, build, mix) is wrapped in a
``timeit`` block; the measured seconds end up in the VERBOSE stage logs
and in SpotResult.timings.

Example:
    with timeit("probe") as t:
        seconds = probe_duration(engine, path)
    print(f"Took {t.seconds:.3f}s")
"""
from __future__ import annotations

from dataclasses import dataclass
from time import perf_counter
from typing import Dict, Optional


@dataclass
class Timing:
    """Timing measurement result."""
    name: str
    seconds: float


class timeit:
    """
    Context manager for timing code blocks.

    The timing is recorded even when the block raises, so failed stages
    still report how long they ran. If ``into`` is given, the result is
    also stored there under ``name``.
    """

    def __init__(self, name: str, into: Optional[Dict[str, float]] = None):
        self.name = name
        self._into = into
        self._t0: float | None = None
        self.timing: Timing | None = None

    def __enter__(self) -> "timeit":
        self._t0 = perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        assert self._t0 is not None
        self.timing = Timing(name=self.name, seconds=perf_counter() - self._t0)
        if self._into is not None:
            self._into[self.name] = self.timing.seconds

    @property
    def seconds(self) -> float:
        """Elapsed seconds, or -1.0 if the block has not finished."""
        return self.timing.seconds if self.timing else -1.0
