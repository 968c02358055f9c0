"""Single-slot render supervisor enforcing at most one running render."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable

from rmd_render.domain import domain_resolve_aliased_path

from .interfaces import RenderSupervisorPort
from .render_job import RenderJob

logger = logging.getLogger(__name__)

# Builds an unstarted job from (absolute target file, source line, encoding).
RenderJobFactory = Callable[[Path, int, str], RenderJob]


class RenderSupervisor(RenderSupervisorPort):
    """Own the current render job slot.

    Concurrent start requests are rejected rather than queued. The
    check-running-then-replace step runs under one lock so a terminate or
    query never observes a half-installed job.
    """

    def __init__(self, job_factory: RenderJobFactory, home_directory: Path):
        """Initialize render supervisor.

        Args:
            job_factory: Factory building unstarted render jobs.
            home_directory: Root used to resolve aliased request paths.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when dependencies are invalid.
        """

        if job_factory is None:
            raise ValueError("job_factory must not be None")
        self._job_factory = job_factory
        self._home_directory = home_directory
        self._current_job: RenderJob | None = None
        self._lock = threading.Lock()

    @property
    def current_job(self) -> RenderJob | None:
        with self._lock:
            return self._current_job

    def render_start(self, file: str, line: int, encoding: str) -> bool:
        """Start a render unless one is already running.

        Must be called from a running event loop; the job is scheduled on it.

        Args:
            file: Absolute or aliased source document path.
            line: Originating line number, -1 when unknown.
            encoding: Source text encoding.

        Returns:
            bool: True when a new job started, False when one is already running.

        Raises:
            ValueError: Raised when file is blank or not absolute after alias resolution.
            RuntimeError: Raised when no event loop is running.
        """

        target_file = domain_resolve_aliased_path(file, self._home_directory)
        if not target_file.is_absolute():
            raise ValueError("file must be an absolute or aliased path")

        with self._lock:
            if self._current_job is not None and self._current_job.is_running:
                logger.info("Rejected render of %s: a render is already running", target_file)
                return False

            render_job = self._job_factory(target_file, line, encoding)
            render_job.job_start()
            self._current_job = render_job

        logger.info("Started render of %s", target_file)
        return True

    def render_terminate(self) -> None:
        """Set the termination flag of the running job, if any."""

        with self._lock:
            if self._current_job is not None and self._current_job.is_running:
                self._current_job.job_request_termination()

    def render_is_running(self) -> bool:
        """Return whether the current job exists and is running."""

        with self._lock:
            return self._current_job is not None and self._current_job.is_running
