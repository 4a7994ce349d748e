"""
API package for the Clarity Call booking service.

FastAPI application with:
- Separate routers per component
- Dependency injection for sessions and the credential store
- Production-ready error handling
"""

from .app import app

__all__ = ["app"]
