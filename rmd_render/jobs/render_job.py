"""Render job driving one asynchronous rmarkdown render to completion."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from rmd_render.adapters import (
    InterpreterQueryError,
    OutputFormatResolverPort,
    ProcessAdapterError,
    ProcessAdapterPort,
    ProcessCallbacks,
    ProcessOptions,
    PublishRecordPort,
    adapter_quote_r_string,
)
from rmd_render.domain import (
    UNKNOWN_OUTPUT_FORMAT,
    OutputFormat,
    RenderCompletedEvent,
    RenderJobState,
    RenderOutputEvent,
    RenderOutputType,
    RenderStartedEvent,
    domain_build_output_url,
    domain_create_aliased_path,
)
from rmd_render.events import RenderEventSinkPort

from .completion import RenderOutputBuffer, job_render_succeeded
from .format_results import FormatResultAmender, job_collect_format_details

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderJobConfig:
    """Configuration values for render job execution.

    Attributes:
        interpreter_path: Rscript binary name or path.
        home_directory: Root used for aliased paths.
        interpreter_args: Arguments placed before `-e`.
        render_command_template: R expression with `{filename}` and `{encoding}` fields.
        output_mount: URL segment serving rendered output.
        pandoc_path: Optional pandoc binary exported as `RSTUDIO_PANDOC`.
        terminate_children: Whether termination signals the whole process group.
    """

    interpreter_path: str
    home_directory: Path
    interpreter_args: tuple[str, ...] = ("--slave", "--no-save", "--no-restore")
    render_command_template: str = "rmarkdown::render('{filename}', encoding='{encoding}');"
    output_mount: str = "rmd_output"
    pandoc_path: str | None = None
    terminate_children: bool = True


class RenderJob:
    """One render execution: spawn, stream, detect completion, publish.

    The job is created in the running state so that a supervisor observes it
    as running from the moment it is installed, before the process starts.
    """

    def __init__(
        self,
        target_file: Path,
        source_line: int,
        encoding: str,
        config: RenderJobConfig,
        process_adapter: ProcessAdapterPort,
        format_resolver: OutputFormatResolverPort,
        event_sink: RenderEventSinkPort,
        publish_records: PublishRecordPort | None = None,
        format_amenders: Mapping[str, FormatResultAmender] | None = None,
    ):
        """Initialize render job.

        Args:
            target_file: Absolute source document path.
            source_line: Originating line number, -1 when unknown.
            encoding: Source text encoding passed to the renderer.
            config: Render execution configuration.
            process_adapter: Adapter running the interpreter.
            format_resolver: Adapter discovering the output format.
            event_sink: Outward event delivery.
            publish_records: Optional previous-publish lookup.
            format_amenders: Optional completion post-processors keyed by format name.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when dependencies or values are invalid.
        """

        if not target_file.is_absolute():
            raise ValueError("target_file must be an absolute path")
        if not encoding.strip():
            raise ValueError("encoding must not be blank")
        if not config.interpreter_path.strip():
            raise ValueError("config.interpreter_path must not be blank")
        if process_adapter is None:
            raise ValueError("process_adapter must not be None")
        if format_resolver is None:
            raise ValueError("format_resolver must not be None")
        if event_sink is None:
            raise ValueError("event_sink must not be None")

        self._target_file = target_file
        self._source_line = source_line
        self._encoding = encoding.strip()
        self._config = config
        self._process_adapter = process_adapter
        self._format_resolver = format_resolver
        self._event_sink = event_sink
        self._publish_records = publish_records
        self._format_amenders = dict(format_amenders or {})

        self._state = RenderJobState.RUNNING
        self._succeeded = False
        self._termination_requested = False
        self._started_published = False
        self._output_buffer = RenderOutputBuffer()
        self._output_file: Path | None = None
        self._output_format: OutputFormat = UNKNOWN_OUTPUT_FORMAT
        self._task: asyncio.Task | None = None

    @property
    def target_file(self) -> Path:
        return self._target_file

    @property
    def source_line(self) -> int:
        return self._source_line

    @property
    def encoding(self) -> str:
        return self._encoding

    @property
    def state(self) -> RenderJobState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is RenderJobState.RUNNING

    @property
    def succeeded(self) -> bool:
        return self._succeeded

    @property
    def output_file(self) -> Path | None:
        return self._output_file

    @property
    def output_format(self) -> OutputFormat:
        return self._output_format

    @property
    def termination_requested(self) -> bool:
        return self._termination_requested

    def job_start(self) -> asyncio.Task:
        """Schedule the render on the running event loop.

        Returns:
            asyncio.Task: Task driving the job to completion.

        Raises:
            RuntimeError: Raised when already started or no event loop is running.
        """

        if self._task is not None:
            raise RuntimeError("render job already started")
        self._task = asyncio.get_running_loop().create_task(
            self.job_run(),
            name=f"render:{self._target_file.name}",
        )
        return self._task

    def job_request_termination(self) -> None:
        """Ask the running process to stop at its next continuation check."""

        if not self.is_running:
            return
        logger.info("Termination requested for render of %s", self._target_file)
        self._termination_requested = True

    async def job_run(self) -> None:
        """Run start, streaming and completion sequences.

        Any failure inside the pipeline ends the job with an error output and
        a failed completion, so the job always leaves the running state.

        Returns:
            None: Outcomes are published as events.

        Raises:
            RuntimeError: This method reports failures as events.
        """

        try:
            await self._job_execute()
        except ProcessAdapterError as error:
            logger.error("Render launch failed for %s: %s", self._target_file, error)
            if self.is_running:
                self._job_terminate_with_error(error.summary)
        except Exception as error:
            logger.exception("Render supervision failed for %s", self._target_file)
            if self.is_running:
                self._job_terminate_with_error(str(error) or type(error).__name__)

        if self.is_running:
            logger.error("Render of %s ended without an exit status", self._target_file)
            self._job_finish(succeeded=False, output_file=None)

    async def _job_execute(self) -> None:
        """Resolve the format, publish start, then run the interpreter to exit."""

        self._output_format = await self._job_resolve_output_format()
        self._job_publish_started()

        render_command = self._config.render_command_template.format(
            filename=adapter_quote_r_string(self._target_file.name),
            encoding=adapter_quote_r_string(self._encoding),
        )
        environment: dict[str, str] = {}
        if self._config.pandoc_path:
            environment["RSTUDIO_PANDOC"] = self._config.pandoc_path

        await self._process_adapter.adapter_run_program(
            executable=self._config.interpreter_path,
            args=[*self._config.interpreter_args, "-e", render_command],
            options=ProcessOptions(
                working_dir=self._target_file.parent,
                environment=environment,
                terminate_children=self._config.terminate_children,
            ),
            callbacks=ProcessCallbacks(
                on_continue=self._job_on_continue,
                on_stdout=self._job_on_stdout,
                on_stderr=self._job_on_stderr,
                on_exit=self._job_on_exit,
            ),
        )

    def _job_publish_started(self) -> None:
        if self._started_published:
            return
        self._started_published = True
        self._event_sink.events_publish(
            RenderStartedEvent(output_format=self._output_format, target_file=self._job_aliased_target())
        )

    async def _job_resolve_output_format(self) -> OutputFormat:
        """Best-effort output format discovery; failures degrade to the unknown format."""

        try:
            return await self._format_resolver.adapter_resolve_output_format(
                path=self._target_file,
                encoding=self._encoding,
            )
        except (InterpreterQueryError, OSError) as error:
            logger.error("Output format discovery failed for %s: %s", self._target_file, error)
            return UNKNOWN_OUTPUT_FORMAT

    def _job_on_continue(self) -> bool:
        return not self._termination_requested

    def _job_on_stdout(self, text: str) -> None:
        self._job_on_output(output_type=RenderOutputType.NORMAL, text=text)

    def _job_on_stderr(self, text: str) -> None:
        self._job_on_output(output_type=RenderOutputType.ERROR, text=text)

    def _job_on_output(self, output_type: RenderOutputType, text: str) -> None:
        self._output_buffer.buffer_append(text)
        self._event_sink.events_publish(RenderOutputEvent(output_type=output_type, text=text))

    def _job_on_exit(self, exit_status: int) -> None:
        """Scan captured output for the artifact and finish the job.

        Args:
            exit_status: Interpreter exit status.

        Returns:
            None: Completion is published as side effect.

        Raises:
            RuntimeError: Raised when the job already finished.
        """

        output_file = self._output_buffer.buffer_resolve_output_file(self._target_file)
        succeeded = job_render_succeeded(exit_status=exit_status, output_file=output_file)
        self._job_finish(succeeded=succeeded and not self._termination_requested, output_file=output_file)

    def _job_terminate_with_error(self, summary: str) -> None:
        """Publish one error output event and a failed completion."""

        self._job_publish_started()
        message = f"Error rendering R Markdown for {self._job_aliased_target()} {summary}"
        self._event_sink.events_publish(RenderOutputEvent(output_type=RenderOutputType.ERROR, text=message))
        self._job_finish(succeeded=False, output_file=None)

    def _job_finish(self, succeeded: bool, output_file: Path | None) -> None:
        """Transition out of running exactly once and publish completion.

        Args:
            succeeded: Whether the artifact was produced.
            output_file: Artifact path reported by the completion marker.

        Returns:
            None: Completion is published as side effect.

        Raises:
            RuntimeError: Raised when the job is not running.
        """

        if not self.is_running:
            raise RuntimeError(f"render job already finished with state={self._state.value}")

        self._state = RenderJobState.TERMINATED if self._termination_requested else RenderJobState.COMPLETED
        self._succeeded = succeeded
        self._output_file = output_file if succeeded else None
        logger.info(
            "Render of %s finished: state=%s succeeded=%s output=%s",
            self._target_file,
            self._state.value,
            succeeded,
            self._output_file,
        )
        self._event_sink.events_publish(self._job_build_completed_event())

    def _job_build_completed_event(self) -> RenderCompletedEvent:
        """Build completion payload from final job state."""

        aliased_output_file = None
        output_url = None
        rpubs_published = False
        if self._output_file is not None:
            aliased_output_file = domain_create_aliased_path(self._output_file, self._config.home_directory)
            output_url = domain_build_output_url(self._config.output_mount, aliased_output_file)
            if self._output_file.suffix.lower() == ".html" and self._publish_records is not None:
                rpubs_published = self._publish_records.adapter_previous_upload_id(self._output_file) is not None

        return RenderCompletedEvent(
            succeeded=self._succeeded,
            target_file=self._job_aliased_target(),
            output_file=aliased_output_file,
            output_url=output_url,
            output_format=self._output_format,
            preview_slide=-1,
            slide_navigation=None,
            rpubs_published=rpubs_published,
            format_details=job_collect_format_details(
                amenders=self._format_amenders,
                output_format=self._output_format,
                target_file=self._target_file,
                source_line=self._source_line,
            ),
        )

    def _job_aliased_target(self) -> str:
        return domain_create_aliased_path(self._target_file, self._config.home_directory)
