"""
Prometheus Metrics for spot-ms.

Metrics Exposed:
    spot_requests_total              - Render requests by status
    spot_render_duration_seconds     - End-to-end render latency
    spot_voice_seconds               - Probed voice clip length
    spot_clip_seconds                - Rendered spot length
    spot_voice_truncated_total       - Renders where speech was cut short
    spot_stage_failures_total        - Failures by pipeline stage
    spot_audio_bytes_total           - Encoded audio bytes returned

Usage:
    from spot_ms.core.metrics import metrics

    metrics.record_request(status="success", duration=2.4, audio_bytes=310_000)
    metrics.record_plan(voice_seconds=10.2, clip_seconds=13.2, truncated=False)
    metrics.record_failure(stage="probe")

    content, content_type = metrics.get_metrics_response()

A private CollectorRegistry is used so that tests can create independent
instances without colliding with the process-wide default registry.
"""
from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Spot lengths cluster just under the 25s cap
_SECONDS_BUCKETS = (2.5, 5.0, 7.5, 10.0, 12.5, 15.0, 17.5, 20.0, 22.5, 25.0, 30.0, 60.0)


class SpotMetrics:
    """
    Render metrics collection.

    Thread-safe: prometheus_client metric operations are atomic.
    """

    def __init__(self) -> None:
        self._registry = CollectorRegistry()

        self._requests_total = Counter(
            "spot_requests_total",
            "Total render requests",
            ["status"],
            registry=self._registry,
        )
        self._render_duration = Histogram(
            "spot_render_duration_seconds",
            "Render request duration in seconds",
            buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0),
            registry=self._registry,
        )
        self._voice_seconds = Histogram(
            "spot_voice_seconds",
            "Probed voice clip duration in seconds",
            buckets=_SECONDS_BUCKETS,
            registry=self._registry,
        )
        self._clip_seconds = Histogram(
            "spot_clip_seconds",
            "Rendered spot duration in seconds",
            buckets=_SECONDS_BUCKETS,
            registry=self._registry,
        )
        self._voice_truncated = Counter(
            "spot_voice_truncated_total",
            "Renders where the voice was cut to fit the maximum length",
            registry=self._registry,
        )
        self._stage_failures = Counter(
            "spot_stage_failures_total",
            "Render failures by pipeline stage",
            ["stage"],
            registry=self._registry,
        )
        self._audio_bytes_total = Counter(
            "spot_audio_bytes_total",
            "Total encoded audio bytes returned",
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def record_request(self, status: str, duration: float, audio_bytes: int = 0) -> None:
        """
        Record a finished render request.

        Args:
            status: "success" or "error".
            duration: Wall time in seconds (ignored when negative).
            audio_bytes: Size of the returned audio.
        """
        self._requests_total.labels(status=status).inc()
        if duration >= 0:
            self._render_duration.observe(duration)
        if audio_bytes > 0:
            self._audio_bytes_total.inc(audio_bytes)

    def record_plan(self, voice_seconds: float, clip_seconds: float, truncated: bool) -> None:
        """Record the timeline of a render."""
        self._voice_seconds.observe(voice_seconds)
        self._clip_seconds.observe(clip_seconds)
        if truncated:
            self._voice_truncated.inc()

    def record_failure(self, stage: str) -> None:
        """Record a failure in one pipeline stage (validate, provider, probe, mix...)."""
        self._stage_failures.labels(stage=stage).inc()

    def get_metrics_response(self) -> tuple[bytes, str]:
        """
        Get metrics in Prometheus text format.

        Returns:
            Tuple of (content_bytes, content_type)
        """
        return generate_latest(self._registry), CONTENT_TYPE_LATEST


# Global metrics instance: from spot_ms.core.metrics import metrics
metrics = SpotMetrics()
