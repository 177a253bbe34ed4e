"""
Core Infrastructure for spot-ms.

This package provides foundational components:
    - config.py: Settings loading, defaults and validation
    - errors.py: Error codes and the request error taxonomy
    - logging/: Structured logging with numeric levels
    - metrics.py: Prometheus metrics collection
"""
