"""
Command-Line Interface for spot-ms.

Renders spots without running the HTTP server, and previews timeline
plans without calling the provider or ffmpeg.

Usage Examples:
    # Render a spot
    spot-ms "Nu bij ons: twee halen, een betalen!" --voice-id 21m00Tcm4TlvDq8ikWAM --out spot.mp3

    # Same, with --text
    spot-ms --text "Hallo" --voice-id 21m00Tcm4TlvDq8ikWAM

    # Preview the plan and filter graph for a 30s voice clip
    spot-ms --plan --voice-seconds 30 --json

    # Check ffmpeg, the music bed and the credential
    spot-ms --health

Environment Variables:
    SPOT_MS_SETTINGS: Settings file (default config/settings.yaml)
    ELEVENLABS_API_KEY: Provider credential
    SPOT_MS_BGM_PATH: Background music bed
"""

from __future__ import annotations

import argparse
import json
import os
from pathlib import Path
from typing import List, Optional
from uuid import uuid4

from spot_ms.audio.graph import build
from spot_ms.audio.timeline import plan
from spot_ms.core.config import ConfigValidationError, load_settings
from spot_ms.core.errors import ConfigurationError, SpotError, ValidationError
from spot_ms.core.logging import configure_logging, get_logger, info, set_request_id

DEFAULT_SETTINGS_PATH = "config/settings.yaml"


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="spot-ms CLI (text to radio spot)")

    parser.add_argument("text_pos", nargs="?", help="Script to speak (positional)")
    parser.add_argument("--text", help="Script to speak")
    parser.add_argument("--voice-id", help="ElevenLabs voice id")
    parser.add_argument("--out", default="spot.mp3", help="Output file (default: spot.mp3)")
    parser.add_argument("--settings", help="Settings file (default: $SPOT_MS_SETTINGS or config/settings.yaml)")

    parser.add_argument("--plan", action="store_true",
                        help="Print the timeline plan and filter graph, render nothing")
    parser.add_argument("--voice-seconds", type=float,
                        help="Voice clip duration for --plan")
    parser.add_argument("--health", action="store_true",
                        help="Print engine, asset and credential status")
    parser.add_argument("--json", action="store_true",
                        help="Output as JSON")

    return parser.parse_args(argv)


def _emit(payload: dict, as_json: bool) -> None:
    if as_json:
        print(json.dumps(payload, ensure_ascii=False))
    else:
        print(payload)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code: 0 for success, 1 when a render stage fails, 2 for
        configuration errors and invalid input (missing text or voice id).
    """
    args = _parse_args(argv)

    configure_logging()
    log = get_logger("spot-ms.cli")
    rid = str(uuid4())[:12]
    set_request_id(rid)

    settings_path = args.settings or os.getenv("SPOT_MS_SETTINGS", DEFAULT_SETTINGS_PATH)
    try:
        settings = load_settings(settings_path, required=bool(args.settings))
        config = settings.get_service_config()
    except (ConfigValidationError, FileNotFoundError) as e:
        print(f"[FAILED] {e}")
        return 2

    # Plan mode: pure, no provider or engine needed
    if args.plan:
        if args.voice_seconds is None:
            print("[FAILED] --plan needs --voice-seconds")
            return 2
        try:
            segment_plan = plan(args.voice_seconds, config.timeline)
        except ValueError as e:
            print(f"[FAILED] {e}")
            return 2
        graph = build(segment_plan)
        payload = {"ok": True, "plan": segment_plan.to_dict(), "filter_complex": graph.render()}
        _emit(payload, args.json)
        print("PLAN_OK")
        return 0

    from spot_ms.services.spot_service import SpotRequest, SpotService
    service = SpotService(settings)

    if args.health:
        _emit(service.get_health_info(), args.json)
        return 0

    text = args.text if args.text is not None else args.text_pos
    out_path = Path(args.out)
    info(log, "cli_render", chars=len(text or ""), voice_id=args.voice_id, out=str(out_path))

    try:
        result = service.render(SpotRequest(text=text, voice_id=args.voice_id), rid)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_bytes(result.audio_bytes)
    except (ConfigurationError, ValidationError) as e:
        print(f"[FAILED] {e.message}")
        return 2
    except SpotError as e:
        print(f"[FAILED] {e.message}")
        return 1
    except Exception as e:
        print(f"[FAILED] {type(e).__name__}: {e}")
        return 1
    finally:
        service.provider.close()

    payload = {
        "ok": True,
        "out": str(out_path),
        "bytes": len(result.audio_bytes),
        "spot_seconds": round(result.plan.total_seconds, 3),
        "voice_truncated": result.plan.truncated,
        "timings": {k: round(v, 4) for k, v in result.timings.items()},
    }
    _emit(payload, args.json)
    print("CLI_OK")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
