"""
Service Layer.

    - spot_service.py: SpotService render pipeline
    - validators.py: Request field validation
"""
from .spot_service import SpotRequest, SpotResult, SpotService, get_service, reset_service

__all__ = ["SpotRequest", "SpotResult", "SpotService", "get_service", "reset_service"]
