"""
FastAPI Dependency Injection Providers.

Architecture:
    1. get_settings() - Loads and caches application configuration
    2. get_spot_service() - Creates/returns the singleton SpotService

Tests replace either one through ``app.dependency_overrides``.

Usage in Route Handlers:
    from fastapi import Depends
    from spot_ms.api.dependencies import get_spot_service

    @router.post("/render")
    def render(req: RenderRequest, service: SpotService = Depends(get_spot_service)):
        ...
"""
from __future__ import annotations

import os
from functools import lru_cache

from spot_ms.core.config import Settings, load_settings
from spot_ms.services.spot_service import SpotService, get_service

SETTINGS_ENV = "SPOT_MS_SETTINGS"
DEFAULT_SETTINGS_PATH = "config/settings.yaml"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load and cache application settings.

    The path comes from SPOT_MS_SETTINGS (default config/settings.yaml).
    If the file doesn't exist, default values are used.
    """
    return load_settings(os.getenv(SETTINGS_ENV, DEFAULT_SETTINGS_PATH))


def get_spot_service() -> SpotService:
    """Get the singleton SpotService instance."""
    return get_service(get_settings())
