"""
Utility Modules for spot-ms.

    - tempfiles.py: Request-scoped temporary directories
    - timeit.py: Stage timing
"""
