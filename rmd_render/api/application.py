"""FastAPI application factory for the render service.

This module defines API application composition used by the runtime.
"""

from pathlib import Path

from fastapi import FastAPI

from rmd_render.adapters import InterpreterHealthPort, MathjaxLocatorPort, RendererInstallationPort
from rmd_render.config import AppSettings
from rmd_render.events import InMemoryRenderEventQueue
from rmd_render.jobs import RenderSupervisorPort

from .routers import api_create_health_router, api_create_render_output_router, api_create_render_router


def create_api_application(
    settings: AppSettings,
    render_supervisor: RenderSupervisorPort,
    event_queue: InMemoryRenderEventQueue,
    renderer_runtime: RendererInstallationPort | MathjaxLocatorPort | InterpreterHealthPort,
    home_directory: Path,
) -> FastAPI:
    """Create the FastAPI application instance for the service.

    Args:
        settings: Validated application settings used for runtime metadata.
        render_supervisor: Single-slot render supervisor.
        event_queue: Queue receiving render events.
        renderer_runtime: Adapter providing package check, MathJax location and interpreter health.
        home_directory: Root used to resolve aliased paths.

    Returns:
        FastAPI: Framework application instance.

    Raises:
        RuntimeError: Raised if application initialization fails.
    """
    application = FastAPI(title="R Markdown Render Service")

    @application.get("/", tags=["foundation"])
    def foundation_index() -> dict[str, str]:
        """Return a minimal service response for bootstrap verification.

        Returns:
            dict[str, str]: Minimal response for API framework verification.

        Raises:
            RuntimeError: Raised if route handler cannot produce a response.
        """

        return {
            "service": "rmd-render-service",
            "status": "ready",
            "environment": settings.environment_name,
        }

    application.include_router(
        api_create_health_router(
            interpreter_health=renderer_runtime,
            render_supervisor=render_supervisor,
        )
    )
    application.include_router(
        api_create_render_router(
            settings=settings,
            render_supervisor=render_supervisor,
            event_queue=event_queue,
            renderer_installation=renderer_runtime,
        )
    )
    application.include_router(
        api_create_render_output_router(
            settings=settings,
            mathjax_locator=renderer_runtime,
            home_directory=home_directory,
        )
    )

    return application
