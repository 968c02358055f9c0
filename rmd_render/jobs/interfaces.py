"""Typed interfaces for job-layer render supervision."""

from typing import Protocol


class RenderSupervisorPort(Protocol):
    """Port definition for the single-slot render supervisor."""

    def render_start(self, file: str, line: int, encoding: str) -> bool:
        """Start a render unless one is already running.

        Args:
            file: Absolute or aliased source document path.
            line: Originating line number, -1 when unknown.
            encoding: Source text encoding.

        Returns:
            bool: True when a new job started, False when one is already running.

        Raises:
            ValueError: Raised when the request values are invalid.
        """

    def render_terminate(self) -> None:
        """Request termination of the running job; no-op when idle.

        Returns:
            None: Does not wait for the job to stop.

        Raises:
            RuntimeError: This operation does not raise runtime errors.
        """

    def render_is_running(self) -> bool:
        """Return whether a render job is currently running.

        Returns:
            bool: True while the current job is running.

        Raises:
            RuntimeError: This operation does not raise runtime errors.
        """
