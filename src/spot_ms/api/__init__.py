"""
HTTP API.

    - routes.py: /render, /api/render, /health, /metrics
    - schemas.py: Request models
    - dependencies.py: Settings and service providers
"""
