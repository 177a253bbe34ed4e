"""
Spot API Routes.

Endpoints:
    POST /render          - Render a spot (returns MP3 audio)
    POST /api/render      - Same, at the path the web front-end uses
    GET  /health          - Health check for load balancers and probes
    GET  /metrics         - Prometheus metrics

Request Flow:
    1. Generate unique request ID for tracing
    2. Call SpotService.render()
    3. Return audio with metadata headers

Error Handling:
    Errors are returned as plain text, which is what the front-end shows
    to the user:

        400  No text provided / No voiceId provided / invalid body
        500  Missing ELEVENLABS_API_KEY, missing music bed, provider
             message, probe or mix failure
        500  "Server error" for anything unexpected

    Full details (engine stderr, provider status) only go to the logs.

Example:
    curl -X POST http://localhost:8000/render \\
        -H "Content-Type: application/json" \\
        -d '{"text": "Hallo!", "voiceId": "21m00Tcm4TlvDq8ikWAM"}' \\
        --output spot.mp3
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Response
from fastapi.responses import PlainTextResponse

from spot_ms.api.dependencies import get_spot_service
from spot_ms.api.schemas import RenderRequest
from spot_ms.core.errors import SpotError
from spot_ms.core.logging import set_request_id
from spot_ms.core.metrics import metrics
from spot_ms.services.spot_service import SpotRequest, SpotService

router = APIRouter()

SERVER_ERROR_MESSAGE = "Server error"


def _error_response(message: str, status_code: int, rid: str) -> PlainTextResponse:
    return PlainTextResponse(message, status_code=status_code, headers={"X-Request-Id": rid})


@router.post("/render", response_class=Response)
@router.post("/api/render", response_class=Response)
def render(
    req: RenderRequest,
    service: SpotService = Depends(get_spot_service),
):
    """
    Render a spot from text.

    Returns:
        Response: MP3 audio with headers:
            - Content-Disposition: inline; filename="spot.mp3"
            - X-Request-Id: Unique request identifier for tracing
            - X-Spot-Seconds: Length of the spot
            - X-Voice-Truncated: "true" if speech was cut to fit
    """
    rid = str(uuid.uuid4())[:12]
    set_request_id(rid)

    try:
        result = service.render(SpotRequest(text=req.text, voice_id=req.voice_id), rid)
    except SpotError as e:
        return _error_response(e.message or SERVER_ERROR_MESSAGE, e.status_code, rid)
    except Exception:
        # already logged with its stage by the service
        return _error_response(SERVER_ERROR_MESSAGE, 500, rid)

    headers = {
        "Content-Disposition": f'inline; filename="{result.filename}"',
        "X-Request-Id": rid,
        "X-Spot-Seconds": f"{result.plan.total_seconds:.3f}",
        "X-Voice-Truncated": "true" if result.plan.truncated else "false",
    }
    return Response(content=result.audio_bytes, media_type=result.media_type, headers=headers)


@router.get("/health")
def health(service: SpotService = Depends(get_spot_service)):
    """Health and readiness information from SpotService."""
    return service.get_health_info()


@router.get("/metrics")
def prometheus_metrics():
    """Prometheus metrics in text exposition format."""
    content, content_type = metrics.get_metrics_response()
    return Response(content=content, media_type=content_type)
