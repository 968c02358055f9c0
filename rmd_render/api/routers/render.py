"""Render API router composition for start, terminate, status and event endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from rmd_render.adapters import RendererInstallationPort
from rmd_render.config import AppSettings
from rmd_render.events import InMemoryRenderEventQueue
from rmd_render.jobs import RenderSupervisorPort


class RenderRequest(BaseModel):
    """Start-render request body.

    Attributes:
        file: Absolute or aliased source document path.
        line: Originating line number, -1 when unknown.
        encoding: Source text encoding.
    """

    file: str = Field(min_length=1)
    line: int = Field(default=-1)
    encoding: str = Field(default="UTF-8", min_length=1)


def api_create_render_router(
    settings: AppSettings,
    render_supervisor: RenderSupervisorPort,
    event_queue: InMemoryRenderEventQueue,
    renderer_installation: RendererInstallationPort,
) -> APIRouter:
    """Create render router with job control and event drain endpoints.

    Args:
        settings: Runtime settings used for pagination defaults.
        render_supervisor: Single-slot render supervisor.
        event_queue: Queue receiving render events.
        renderer_installation: Adapter checking the renderer package version.

    Returns:
        APIRouter: Router exposing render APIs.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if settings is None:
        raise ValueError("settings must not be None")
    if render_supervisor is None:
        raise ValueError("render_supervisor must not be None")
    if event_queue is None:
        raise ValueError("event_queue must not be None")
    if renderer_installation is None:
        raise ValueError("renderer_installation must not be None")

    router = APIRouter(prefix="/rmarkdown", tags=["rmarkdown"])

    @router.get("/context")
    async def api_render_context() -> JSONResponse:
        """Return whether the required rmarkdown version is installed.

        Returns:
            JSONResponse: Context payload.

        Raises:
            RuntimeError: Installation check failures are reported as not installed.
        """

        rmarkdown_installed = await renderer_installation.adapter_has_required_version()
        return JSONResponse(content={"rmarkdown_installed": rmarkdown_installed}, status_code=status.HTTP_200_OK)

    @router.post("/render")
    async def api_render_start(render_request: RenderRequest) -> JSONResponse:
        """Start one render unless a render is already running.

        Args:
            render_request: Document, line and encoding to render.

        Returns:
            JSONResponse: `started` flag; False means try again later.

        Raises:
            RuntimeError: Raised when no event loop is available for the job.
        """

        try:
            started = render_supervisor.render_start(
                file=render_request.file,
                line=render_request.line,
                encoding=render_request.encoding,
            )
        except ValueError as error:
            payload = {
                "status": "error",
                "message": str(error),
            }
            return JSONResponse(content=payload, status_code=status.HTTP_400_BAD_REQUEST)
        return JSONResponse(content={"started": started}, status_code=status.HTTP_200_OK)

    @router.post("/terminate")
    async def api_render_terminate() -> JSONResponse:
        """Request termination of the running render, if any.

        Returns:
            JSONResponse: Acknowledgement payload.

        Raises:
            RuntimeError: This handler does not raise runtime errors.
        """

        render_supervisor.render_terminate()
        return JSONResponse(content={"status": "ok"}, status_code=status.HTTP_200_OK)

    @router.get("/status")
    async def api_render_status() -> JSONResponse:
        """Return whether a render is running."""

        return JSONResponse(content={"running": render_supervisor.render_is_running()}, status_code=status.HTTP_200_OK)

    @router.get("/events")
    async def api_render_events(
        after: int = Query(default=0, ge=0),
        limit: int = Query(default=settings.api_event_default_limit, ge=1),
    ) -> JSONResponse:
        """Return render events published after a known event id.

        Args:
            after: Last event id already seen by the caller.
            limit: Max events to return.

        Returns:
            JSONResponse: Events list payload.

        Raises:
            RuntimeError: This handler does not raise runtime errors.
        """

        applied_limit = min(limit, settings.api_event_max_limit)
        queued_events = event_queue.events_list_after(after_event_id=after, limit=applied_limit)
        payload = {
            "items": [queued_event.to_payload() for queued_event in queued_events],
            "last_event_id": event_queue.events_last_id(),
            "page": {
                "after": after,
                "limit": limit,
                "applied_limit": applied_limit,
                "returned": len(queued_events),
            },
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    return router
