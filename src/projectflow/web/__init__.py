"""Web interface for Projectflow.

This module provides the FastAPI application serving the project and task
REST API.
"""

from __future__ import annotations

from projectflow.web.app import create_app
from projectflow.web.middleware import RequestLoggingMiddleware

__all__ = [
    "create_app",
    "RequestLoggingMiddleware",
]
