"""HTTP API routers."""

from .tournaments_api import get_service, router

__all__ = ["get_service", "router"]
