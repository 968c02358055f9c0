"""Typed interfaces for adapter-layer responsibilities."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Protocol, Sequence

from rmd_render.domain import HealthStatus, OutputFormat


@dataclass(frozen=True)
class ProcessOptions:
    """Launch options for one supervised interpreter process.

    Attributes:
        working_dir: Working directory of the child process.
        environment: Variables added on top of the current environment.
        terminate_children: Whether termination signals the whole process group.
    """

    working_dir: Path
    environment: dict[str, str] = field(default_factory=dict)
    terminate_children: bool = True


@dataclass(frozen=True)
class ProcessCallbacks:
    """Callbacks invoked while a supervised process runs.

    Attributes:
        on_continue: Polled on every I/O iteration; False requests the process stop.
        on_stdout: Receives decoded stdout chunks in read order.
        on_stderr: Receives decoded stderr chunks in read order.
        on_exit: Receives the exit status after the last output callback.
    """

    on_continue: Callable[[], bool]
    on_stdout: Callable[[str], None]
    on_stderr: Callable[[str], None]
    on_exit: Callable[[int], None]


class ProcessAdapterPort(Protocol):
    """Port definition for running an external program with streamed output."""

    async def adapter_run_program(
        self,
        executable: str,
        args: Sequence[str],
        options: ProcessOptions,
        callbacks: ProcessCallbacks,
    ) -> None:
        """Run one program to exit while dispatching callbacks.

        Args:
            executable: Program name or path.
            args: Program arguments.
            options: Launch options.
            callbacks: Output, continuation and exit callbacks.

        Returns:
            None: Results are delivered through callbacks.

        Raises:
            ProcessLaunchError: Raised when the program cannot be started.
        """


class OutputFormatResolverPort(Protocol):
    """Port definition for renderer output-format discovery."""

    async def adapter_resolve_output_format(self, path: Path, encoding: str) -> OutputFormat:
        """Return the output format declared by a source document.

        Args:
            path: Absolute source document path.
            encoding: Source text encoding.

        Returns:
            OutputFormat: Resolved output format.

        Raises:
            InterpreterQueryError: Raised when discovery fails.
        """


class RendererInstallationPort(Protocol):
    """Port definition for renderer package availability checks."""

    async def adapter_has_required_version(self) -> bool:
        """Return whether the required renderer package version is installed.

        Returns:
            bool: True when the renderer can be used.

        Raises:
            RuntimeError: Implementations report failures as False.
        """


class MathjaxLocatorPort(Protocol):
    """Port definition for locating the bundled MathJax resources."""

    async def adapter_mathjax_directory(self) -> Path | None:
        """Return the local MathJax directory, or None when unavailable.

        Returns:
            Path | None: MathJax directory.

        Raises:
            RuntimeError: Implementations report failures as None.
        """


class InterpreterHealthPort(Protocol):
    """Port definition for interpreter availability checks."""

    def adapter_interpreter_label(self) -> str:
        """Return a stable label for the configured interpreter.

        Returns:
            str: Interpreter label for diagnostics.

        Raises:
            RuntimeError: Raised when interpreter metadata is unavailable.
        """

    def adapter_check_health(self) -> HealthStatus:
        """Check that the interpreter can be launched.

        Returns:
            HealthStatus: Interpreter health payload.

        Raises:
            ProcessLaunchError: Raised when the interpreter cannot be resolved.
        """


class PublishRecordPort(Protocol):
    """Port definition for previous external-publish records."""

    def adapter_previous_upload_id(self, output_file: Path) -> str | None:
        """Return the previous upload id recorded for an artifact.

        Args:
            output_file: Absolute artifact path.

        Returns:
            str | None: Upload id, or None when the artifact was never published.

        Raises:
            RuntimeError: Implementations report unreadable records as None.
        """
