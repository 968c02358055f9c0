"""Main module entrypoint for local runtime execution.

This module validates startup configuration and launches the FastAPI service,
or runs one render to completion from the command line.
"""

import argparse
import asyncio
import logging
from pathlib import Path

import uvicorn

from rmd_render.bootstrap import (
    bootstrap_create_application,
    bootstrap_create_render_job_factory,
    bootstrap_create_renderer_runtime,
    bootstrap_resolve_home_directory,
)
from rmd_render.config import AppSettings, config_load_settings
from rmd_render.domain import domain_resolve_aliased_path
from rmd_render.events import ConsoleRenderEventSink


def main() -> None:
    """Run selected runtime command with validated startup configuration.

    Returns:
        None: This function does not return a runtime value.

    Raises:
        SettingsLoadError: Raised when configuration validation fails.
    """

    argument_parser = argparse.ArgumentParser(description="R Markdown render service entrypoint")
    argument_parser.add_argument(
        "command",
        nargs="?",
        default="api",
        choices=("api", "render"),
        help="Runtime command: `api` starts server, `render` renders one document and exits",
        type=str,
    )
    argument_parser.add_argument("file", nargs="?", type=str, help="Source document for `render`")
    argument_parser.add_argument("--line", dest="line", type=int, default=-1, help="Originating source line")
    argument_parser.add_argument("--encoding", dest="encoding", type=str, default="UTF-8", help="Source encoding")
    parsed_arguments = argument_parser.parse_args()

    settings = config_load_settings()
    main_configure_logging(settings)

    if parsed_arguments.command == "render":
        if not parsed_arguments.file:
            argument_parser.error("`render` requires a file argument")
        succeeded = asyncio.run(
            main_run_single_render(
                settings=settings,
                file=parsed_arguments.file,
                line=parsed_arguments.line,
                encoding=parsed_arguments.encoding,
            )
        )
        if not succeeded:
            raise SystemExit(1)
        return

    application = bootstrap_create_application()
    uvicorn.run(
        application,
        host=settings.application_host,
        port=settings.application_port,
        log_level=settings.log_level.lower(),
    )


def main_configure_logging(settings: AppSettings) -> None:
    """Configure root logging from settings."""

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def main_run_single_render(settings: AppSettings, file: str, line: int, encoding: str) -> bool:
    """Render one document, echoing events to stdout.

    Args:
        settings: Validated runtime settings.
        file: Absolute, relative or aliased source document path.
        line: Originating source line.
        encoding: Source text encoding.

    Returns:
        bool: Whether the render succeeded.

    Raises:
        ValueError: Raised when the file argument is blank.
    """

    home_directory = bootstrap_resolve_home_directory(settings)
    target_file = domain_resolve_aliased_path(file, home_directory)
    if not target_file.is_absolute():
        target_file = Path.cwd() / target_file

    event_sink = ConsoleRenderEventSink()
    job_factory = bootstrap_create_render_job_factory(
        settings=settings,
        renderer_runtime=bootstrap_create_renderer_runtime(settings),
        event_sink=event_sink,
    )
    render_job = job_factory(target_file, line, encoding)
    await render_job.job_start()
    return render_job.succeeded


if __name__ == "__main__":
    main()
