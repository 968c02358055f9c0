"""Health endpoint router composition for app and interpreter checks."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from rmd_render.adapters import InterpreterHealthPort, ProcessLaunchError
from rmd_render.jobs import RenderSupervisorPort


def api_create_health_router(
    interpreter_health: InterpreterHealthPort,
    render_supervisor: RenderSupervisorPort,
) -> APIRouter:
    """Create health-check router with app and interpreter availability status.

    Args:
        interpreter_health: Adapter-layer interpreter health service.
        render_supervisor: Supervisor queried for the running render state.

    Returns:
        APIRouter: Router exposing `/health` endpoint.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if interpreter_health is None:
        raise ValueError("interpreter_health must not be None")
    if render_supervisor is None:
        raise ValueError("render_supervisor must not be None")

    router = APIRouter(tags=["health"])

    @router.get("/health")
    def api_health_status() -> JSONResponse:
        """Return application and interpreter health state.

        Returns:
            JSONResponse: Deterministic health payload for operational checks.

        Raises:
            RuntimeError: This handler reports interpreter failures as degraded.
        """

        try:
            interpreter_health_status = interpreter_health.adapter_check_health()
            payload = {
                "status": "ok",
                "app": "up",
                "interpreter": interpreter_health_status.status,
                "detail": interpreter_health_status.detail,
                "target": interpreter_health.adapter_interpreter_label(),
                "render_running": render_supervisor.render_is_running(),
            }
            return JSONResponse(content=payload, status_code=status.HTTP_200_OK)
        except ProcessLaunchError as error:
            payload = {
                "status": "degraded",
                "app": "up",
                "interpreter": "down",
                "detail": error.summary,
                "target": interpreter_health.adapter_interpreter_label(),
                "render_running": render_supervisor.render_is_running(),
            }
            return JSONResponse(content=payload, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)

    return router
