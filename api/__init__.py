"""
HTTP API for the order notification system.

This package provides a single FastAPI application that exposes:
- Session start/stop (role resolution + realtime subscription)
- The simulated orders table that drives realtime events
- Notification, modal, toast and preference endpoints
- Image optimization for uploads
"""

from api.main import app

__all__ = ["app"]
