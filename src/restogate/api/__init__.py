"""
restogate.api

API package.

Responsibilities:
- FastAPI app factory, exception handlers and router modules.
- API-layer dependency wiring and request/response models.
"""

# Package marker.
