"""API router package for endpoint composition."""

from .health import api_create_health_router
from .render import api_create_render_router
from .render_output import api_create_render_output_router

__all__ = ["api_create_health_router", "api_create_render_router", "api_create_render_output_router"]
