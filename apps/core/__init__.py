"""
Core app - Shared abstractions and utilities.

This app provides:
- The domain error taxonomy (exceptions.py) rendered by the API layer
- Liveness/readiness probes (api.py)
"""
