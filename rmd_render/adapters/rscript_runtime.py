"""Rscript-backed renderer capabilities: format discovery, package check, MathJax location."""

from __future__ import annotations

import asyncio
import json
import logging
import shutil
from pathlib import Path
from typing import Final, Sequence

from rmd_render.domain import HealthStatus, OutputFormat

from .interfaces import InterpreterHealthPort, MathjaxLocatorPort, OutputFormatResolverPort, RendererInstallationPort
from .process_errors import InterpreterQueryError, InterpreterQueryTimeoutError, ProcessLaunchError

logger = logging.getLogger(__name__)


def adapter_quote_r_string(value: str) -> str:
    """Escape a value for use inside a single-quoted R string literal.

    Args:
        value: Raw string value.

    Returns:
        str: Escaped value without surrounding quotes.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return value.replace("\\", "\\\\").replace("'", "\\'")


class RscriptRuntime(OutputFormatResolverPort, RendererInstallationPort, MathjaxLocatorPort, InterpreterHealthPort):
    """Adapter evaluating short R expressions through the configured Rscript binary."""

    _FORMAT_EXPRESSION: Final[str] = (
        "format <- rmarkdown:::default_output_format('{path}', encoding = '{encoding}'); "
        "cat(jsonlite::toJSON(list(name = format$name, options = format$options), "
        "auto_unbox = TRUE, null = 'null', force = TRUE))"
    )
    _VERSION_EXPRESSION: Final[str] = (
        "cat(requireNamespace('rmarkdown', quietly = TRUE) && "
        "utils::packageVersion('rmarkdown') >= '{version}')"
    )
    _MATHJAX_EXPRESSION: Final[str] = "cat(system.file('rmd/h/m', package = 'rmarkdown'))"

    def __init__(
        self,
        interpreter_path: str = "Rscript",
        interpreter_args: Sequence[str] = ("--slave", "--no-save", "--no-restore"),
        required_version: str = "0.2",
        query_timeout_seconds: float = 30.0,
        termination_grace_seconds: float = 5.0,
        mathjax_directory: Path | None = None,
    ):
        """Initialize Rscript runtime adapter.

        Args:
            interpreter_path: Rscript binary name or path.
            interpreter_args: Arguments placed before `-e`.
            required_version: Minimum rmarkdown package version.
            query_timeout_seconds: Timeout for one expression evaluation.
            termination_grace_seconds: Delay between terminate and kill on timeout.
            mathjax_directory: Optional MathJax directory override.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when required config values are invalid.
        """

        normalized_interpreter_path = interpreter_path.strip()
        normalized_required_version = required_version.strip()
        if not normalized_interpreter_path:
            raise ValueError("interpreter_path must not be blank")
        if not normalized_required_version:
            raise ValueError("required_version must not be blank")
        if query_timeout_seconds <= 0:
            raise ValueError("query_timeout_seconds must be > 0")

        self._interpreter_path = normalized_interpreter_path
        self._interpreter_args = tuple(interpreter_args)
        self._required_version = normalized_required_version
        self._query_timeout_seconds = query_timeout_seconds
        self._termination_grace_seconds = termination_grace_seconds
        self._configured_mathjax_directory = mathjax_directory
        self._cached_mathjax_directory: Path | None = None

    async def adapter_resolve_output_format(self, path: Path, encoding: str) -> OutputFormat:
        """Evaluate `rmarkdown:::default_output_format` for a document.

        Args:
            path: Absolute source document path.
            encoding: Source text encoding.

        Returns:
            OutputFormat: Format name and options declared by the document.

        Raises:
            InterpreterQueryError: Raised when evaluation fails or output is not a format payload.
        """

        expression = self._FORMAT_EXPRESSION.format(
            path=adapter_quote_r_string(str(path)),
            encoding=adapter_quote_r_string(encoding),
        )
        stdout_text = await self._adapter_evaluate(expression=expression, working_dir=path.parent)
        return adapter_parse_output_format(stdout_text)

    async def adapter_has_required_version(self) -> bool:
        """Return whether rmarkdown is installed at the required version.

        Returns:
            bool: True when the package is available.

        Raises:
            RuntimeError: Failures are logged and reported as False.
        """

        expression = self._VERSION_EXPRESSION.format(version=adapter_quote_r_string(self._required_version))
        try:
            stdout_text = await self._adapter_evaluate(expression=expression)
        except InterpreterQueryError as error:
            logger.warning("rmarkdown version check failed: %s", error.summary)
            return False
        return stdout_text.strip().upper() == "TRUE"

    async def adapter_mathjax_directory(self) -> Path | None:
        """Return the MathJax directory bundled with rmarkdown.

        Returns:
            Path | None: Configured or discovered directory, None when unavailable.

        Raises:
            RuntimeError: Failures are logged and reported as None.
        """

        if self._configured_mathjax_directory is not None:
            return self._configured_mathjax_directory
        if self._cached_mathjax_directory is not None:
            return self._cached_mathjax_directory

        try:
            stdout_text = await self._adapter_evaluate(expression=self._MATHJAX_EXPRESSION)
        except InterpreterQueryError as error:
            logger.error("MathJax directory lookup failed: %s", error.summary)
            return None

        directory_text = stdout_text.strip()
        if not directory_text:
            logger.error("MathJax directory lookup returned no path; is rmarkdown installed?")
            return None
        self._cached_mathjax_directory = Path(directory_text)
        return self._cached_mathjax_directory

    def adapter_interpreter_label(self) -> str:
        """Return configured interpreter path."""

        return self._interpreter_path

    def adapter_check_health(self) -> HealthStatus:
        """Verify the interpreter binary can be resolved.

        Returns:
            HealthStatus: Healthy status with resolved interpreter path.

        Raises:
            ProcessLaunchError: Raised when the interpreter is not on PATH.
        """

        resolved_path = shutil.which(self._interpreter_path)
        if resolved_path is None:
            raise ProcessLaunchError(
                f"unable to locate interpreter={self._interpreter_path}",
                summary=f"{self._interpreter_path} not found",
            )
        return HealthStatus(status="ok", detail=f"interpreter resolved at {resolved_path}")

    async def _adapter_evaluate(self, expression: str, working_dir: Path | None = None) -> str:
        """Evaluate one R expression and return its stdout.

        Args:
            expression: R expression passed with `-e`.
            working_dir: Optional working directory.

        Returns:
            str: Decoded stdout text.

        Raises:
            InterpreterQueryError: Raised for launch failure or non-zero exit.
            InterpreterQueryTimeoutError: Raised when evaluation exceeds the timeout.
        """

        resolved_path = shutil.which(self._interpreter_path)
        if resolved_path is None:
            raise InterpreterQueryError(
                f"unable to locate interpreter={self._interpreter_path}",
                summary=f"{self._interpreter_path} not found",
            )

        try:
            process = await asyncio.create_subprocess_exec(
                resolved_path,
                *self._interpreter_args,
                "-e",
                expression,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(working_dir) if working_dir is not None else None,
            )
        except (OSError, ValueError) as error:
            raise InterpreterQueryError(
                f"failed to start interpreter={resolved_path}: {error}",
                summary=str(error),
            ) from error

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                process.communicate(),
                timeout=self._query_timeout_seconds,
            )
        except asyncio.TimeoutError as error:
            process.terminate()
            try:
                await asyncio.wait_for(process.communicate(), timeout=self._termination_grace_seconds)
            except asyncio.TimeoutError:
                process.kill()
                await process.communicate()
            raise InterpreterQueryTimeoutError(
                f"interpreter query timed out after {self._query_timeout_seconds}s",
            ) from error

        if process.returncode != 0:
            stderr_text = stderr_bytes.decode("utf-8", errors="replace").strip()
            raise InterpreterQueryError(
                f"interpreter query failed: exit={process.returncode}, stderr={stderr_text[:500]}",
                summary=stderr_text.splitlines()[-1] if stderr_text else f"exit status {process.returncode}",
            )
        return stdout_bytes.decode("utf-8", errors="replace")


def adapter_parse_output_format(stdout_text: str) -> OutputFormat:
    """Parse the JSON format payload printed by the format expression.

    Args:
        stdout_text: Interpreter stdout.

    Returns:
        OutputFormat: Parsed format.

    Raises:
        InterpreterQueryError: Raised when the payload is not a format object.
    """

    try:
        payload = json.loads(stdout_text)
    except json.JSONDecodeError as error:
        raise InterpreterQueryError(
            "output format payload is not valid JSON",
            summary="invalid output format payload",
        ) from error

    if not isinstance(payload, dict):
        raise InterpreterQueryError("output format payload must be a JSON object")
    format_name = payload.get("name")
    if not isinstance(format_name, str) or not format_name.strip():
        raise InterpreterQueryError("output format payload is missing a format name")
    return OutputFormat(format_name=format_name.strip(), format_options=payload.get("options"))
