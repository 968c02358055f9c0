"""Rendered-output router serving artifacts and their nested resources.

Requests embed the aliased artifact path as a URL segment that the publisher
encodes twice, e.g. `/rmd_output/~%252Freport.html/`. The handler decodes the
raw request path exactly once, whatever the server already did to `path`, and
the resolver removes the remaining level from the artifact segment.
"""

from __future__ import annotations

import mimetypes
from pathlib import Path
from urllib.parse import unquote

from fastapi import APIRouter, Request, status
from fastapi.responses import FileResponse, JSONResponse, Response, StreamingResponse

from rmd_render.adapters import MathjaxLocatorPort
from rmd_render.config import AppSettings
from rmd_render.output import (
    MathjaxFilter,
    OutputResourceNotFoundError,
    output_is_mathjax_request,
    output_iter_filtered_file,
    output_mathjax_config_required,
    output_resolve_resource,
    output_split_request_path,
)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, max-age=0, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "Fri, 01 Jan 1990 00:00:00 GMT",
}
CACHEABLE_HEADERS = {"Cache-Control": "private"}


def api_create_render_output_router(
    settings: AppSettings,
    mathjax_locator: MathjaxLocatorPort,
    home_directory: Path,
) -> APIRouter:
    """Create router serving rendered output under the configured mount.

    Args:
        settings: Runtime settings providing mount and program mode.
        mathjax_locator: Adapter locating bundled MathJax resources.
        home_directory: Root used to resolve aliased artifact paths.

    Returns:
        APIRouter: Router exposing `/<mount>/{output_path}`.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if settings is None:
        raise ValueError("settings must not be None")
    if mathjax_locator is None:
        raise ValueError("mathjax_locator must not be None")

    router = APIRouter(prefix=f"/{settings.output_mount}", tags=["render-output"])
    emit_config_block = output_mathjax_config_required(settings.program_mode)

    @router.get("/{output_path:path}")
    async def api_render_output(request: Request) -> Response:
        """Serve the artifact (filtered), a MathJax file, or a nested resource.

        Args:
            request: Incoming request; its raw path carries the encoded artifact segment.

        Returns:
            Response: File response, or 404 payload naming the missing file.

        Raises:
            OSError: Raised when a resolved file becomes unreadable while streaming.
        """

        path_after_mount = _api_decoded_path_after_mount(request, settings.output_mount)
        try:
            request_target = output_split_request_path(path_after_mount, home_directory)
            mathjax_directory = None
            if output_is_mathjax_request(request_target.resource_path):
                mathjax_directory = await mathjax_locator.adapter_mathjax_directory()
            resolved_resource = output_resolve_resource(request_target, mathjax_directory)
        except OutputResourceNotFoundError as error:
            payload = {
                "status": "error",
                "message": str(error),
            }
            return JSONResponse(content=payload, status_code=status.HTTP_404_NOT_FOUND)

        if resolved_resource.filtered:
            return StreamingResponse(
                output_iter_filtered_file(resolved_resource.file_path, MathjaxFilter(emit_config_block=emit_config_block)),
                media_type=_api_guess_media_type(resolved_resource.file_path),
                headers=NO_CACHE_HEADERS,
            )
        return FileResponse(
            resolved_resource.file_path,
            media_type=_api_guess_media_type(resolved_resource.file_path),
            headers=CACHEABLE_HEADERS,
        )

    return router


def _api_decoded_path_after_mount(request: Request, output_mount: str) -> str:
    """Return the request path after the mount prefix, decoded exactly once.

    Args:
        request: Incoming request.
        output_mount: Mount segment.

    Returns:
        str: Singly-decoded path without the leading `/<mount>/`.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    raw_path = request.scope.get("raw_path")
    if raw_path:
        request_path = unquote(raw_path.decode("latin-1"))
    else:
        request_path = request.scope["path"]

    prefix = f"/{output_mount}/"
    if request_path.startswith(prefix):
        return request_path[len(prefix) :]
    return ""


def _api_guess_media_type(file_path: Path) -> str:
    """Return media type by file extension with a binary fallback."""

    media_type, _ = mimetypes.guess_type(file_path.name)
    return media_type or "application/octet-stream"
