"""Application bootstrap wiring for startup validation and dependency assembly."""

from pathlib import Path

from fastapi import FastAPI

from rmd_render.adapters import AsyncioProcessRunner, JsonPublishRecordStore, RscriptRuntime
from rmd_render.api import create_api_application
from rmd_render.config import AppSettings, config_load_settings
from rmd_render.events import InMemoryRenderEventQueue, RenderEventSinkPort
from rmd_render.jobs import RenderJob, RenderJobConfig, RenderJobFactory, RenderSupervisor


def bootstrap_create_application() -> FastAPI:
    """Assemble the runtime application after validating startup configuration.

    Returns:
        FastAPI: Fully initialized FastAPI application instance.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    settings = config_load_settings()
    home_directory = bootstrap_resolve_home_directory(settings)
    renderer_runtime = bootstrap_create_renderer_runtime(settings)
    event_queue = InMemoryRenderEventQueue(max_events=settings.event_queue_max_events)
    render_supervisor = RenderSupervisor(
        job_factory=bootstrap_create_render_job_factory(
            settings=settings,
            renderer_runtime=renderer_runtime,
            event_sink=event_queue,
        ),
        home_directory=home_directory,
    )
    return create_api_application(
        settings=settings,
        render_supervisor=render_supervisor,
        event_queue=event_queue,
        renderer_runtime=renderer_runtime,
        home_directory=home_directory,
    )


def bootstrap_resolve_home_directory(settings: AppSettings) -> Path:
    """Return the aliased-path root from settings or the user home directory."""

    if settings.home_directory:
        return Path(settings.home_directory).expanduser()
    return Path.home()


def bootstrap_create_renderer_runtime(settings: AppSettings) -> RscriptRuntime:
    """Build the Rscript adapter from settings.

    Args:
        settings: Validated runtime settings.

    Returns:
        RscriptRuntime: Renderer capability adapter.

    Raises:
        ValueError: Raised when interpreter settings are invalid.
    """

    return RscriptRuntime(
        interpreter_path=settings.interpreter_path,
        interpreter_args=settings.interpreter_args,
        required_version=settings.rmarkdown_required_version,
        query_timeout_seconds=settings.interpreter_query_timeout_seconds,
        termination_grace_seconds=settings.process_termination_grace_seconds,
        mathjax_directory=Path(settings.mathjax_directory) if settings.mathjax_directory else None,
    )


def bootstrap_create_render_job_factory(
    settings: AppSettings,
    renderer_runtime: RscriptRuntime,
    event_sink: RenderEventSinkPort,
) -> RenderJobFactory:
    """Build the factory the supervisor uses to create render jobs.

    Args:
        settings: Validated runtime settings.
        renderer_runtime: Adapter used for output format discovery.
        event_sink: Outward event delivery.

    Returns:
        RenderJobFactory: Callable building unstarted jobs.

    Raises:
        ValueError: Raised when process settings are invalid.
    """

    process_runner = AsyncioProcessRunner(
        poll_interval_seconds=settings.process_poll_interval_seconds,
        read_chunk_bytes=settings.process_read_chunk_bytes,
        termination_grace_seconds=settings.process_termination_grace_seconds,
    )
    publish_records = JsonPublishRecordStore(
        Path(settings.publish_records_path).expanduser() if settings.publish_records_path else None
    )
    job_config = RenderJobConfig(
        interpreter_path=settings.interpreter_path,
        home_directory=bootstrap_resolve_home_directory(settings),
        interpreter_args=tuple(settings.interpreter_args),
        render_command_template=settings.render_command_template,
        output_mount=settings.output_mount,
        pandoc_path=settings.pandoc_path,
    )

    def bootstrap_build_render_job(target_file: Path, source_line: int, encoding: str) -> RenderJob:
        return RenderJob(
            target_file=target_file,
            source_line=source_line,
            encoding=encoding,
            config=job_config,
            process_adapter=process_runner,
            format_resolver=renderer_runtime,
            event_sink=event_sink,
            publish_records=publish_records,
        )

    return bootstrap_build_render_job
