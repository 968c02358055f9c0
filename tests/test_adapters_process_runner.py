"""Integration tests for asyncio process supervision using the Python interpreter."""

from __future__ import annotations

import sys
import time
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from rmd_render.adapters import AsyncioProcessRunner, ProcessCallbacks, ProcessLaunchError, ProcessOptions


class _CallbackRecorder:
    """Collect callback invocations in arrival order."""

    def __init__(self, stop_after_calls: int | None = None):
        """Initialize recorder.

        Args:
            stop_after_calls: Continuation calls answered True before requesting stop.

        Returns:
            None: Initializer does not return values.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        self.records: list[tuple[str, object]] = []
        self._stop_after_calls = stop_after_calls
        self._continue_calls = 0

    def on_continue(self) -> bool:
        self._continue_calls += 1
        return self._stop_after_calls is None or self._continue_calls <= self._stop_after_calls

    def on_stdout(self, text: str) -> None:
        self.records.append(("stdout", text))

    def on_stderr(self, text: str) -> None:
        self.records.append(("stderr", text))

    def on_exit(self, exit_status: int) -> None:
        self.records.append(("exit", exit_status))

    def build_callbacks(self) -> ProcessCallbacks:
        return ProcessCallbacks(
            on_continue=self.on_continue,
            on_stdout=self.on_stdout,
            on_stderr=self.on_stderr,
            on_exit=self.on_exit,
        )

    def joined_text(self, stream_name: str) -> str:
        return "".join(str(value) for name, value in self.records if name == stream_name)


@pytest.mark.asyncio
async def test_adapters_process_runner_streams_output_then_exit(tmp_path: Path) -> None:
    """Deliver both streams and report exit status after the last output.

    Returns:
        None: Assertions validate behavior.

    Raises:
        AssertionError: Raised when output or exit ordering is unexpected.
    """

    recorder = _CallbackRecorder()
    script = (
        "import sys\n"
        "sys.stdout.write('processing file: abc.Rmd\\n'); sys.stdout.flush()\n"
        "sys.stderr.write('Output created: abc.html\\n'); sys.stderr.flush()\n"
        "sys.exit(3)\n"
    )

    await AsyncioProcessRunner(poll_interval_seconds=0.05).adapter_run_program(
        executable=sys.executable,
        args=["-c", script],
        options=ProcessOptions(working_dir=tmp_path),
        callbacks=recorder.build_callbacks(),
    )

    assert recorder.joined_text("stdout") == "processing file: abc.Rmd\n"
    assert recorder.joined_text("stderr") == "Output created: abc.html\n"
    assert recorder.records[-1] == ("exit", 3)
    assert [name for name, _ in recorder.records].count("exit") == 1


@pytest.mark.asyncio
async def test_adapters_process_runner_applies_working_dir_and_environment(tmp_path: Path) -> None:
    """Run in the requested directory with extra environment variables.

    Returns:
        None: Assertions validate behavior.

    Raises:
        AssertionError: Raised when launch options are ignored.
    """

    recorder = _CallbackRecorder()
    script = "import os\nprint(os.getcwd())\nprint(os.environ['RSTUDIO_PANDOC'])\n"

    await AsyncioProcessRunner(poll_interval_seconds=0.05).adapter_run_program(
        executable=sys.executable,
        args=["-c", script],
        options=ProcessOptions(working_dir=tmp_path, environment={"RSTUDIO_PANDOC": "/opt/pandoc"}),
        callbacks=recorder.build_callbacks(),
    )

    printed_lines = recorder.joined_text("stdout").splitlines()
    assert Path(printed_lines[0]).resolve() == tmp_path.resolve()
    assert printed_lines[1] == "/opt/pandoc"
    assert recorder.records[-1] == ("exit", 0)


@pytest.mark.asyncio
async def test_adapters_process_runner_terminates_when_continuation_stops(tmp_path: Path) -> None:
    """Terminate a long-running process once continuation returns False.

    Returns:
        None: Assertions validate behavior.

    Raises:
        AssertionError: Raised when the process is not stopped promptly.
    """

    recorder = _CallbackRecorder(stop_after_calls=2)
    started_at = time.monotonic()

    await AsyncioProcessRunner(poll_interval_seconds=0.05, termination_grace_seconds=2.0).adapter_run_program(
        executable=sys.executable,
        args=["-c", "import time\ntime.sleep(30)\n"],
        options=ProcessOptions(working_dir=tmp_path),
        callbacks=recorder.build_callbacks(),
    )

    assert time.monotonic() - started_at < 10
    assert recorder.records[-1][0] == "exit"
    assert recorder.records[-1][1] != 0


@pytest.mark.asyncio
async def test_adapters_process_runner_raises_launch_error_for_missing_binary(tmp_path: Path) -> None:
    """Raise a launch error when the executable cannot be resolved.

    Returns:
        None: Assertions validate behavior.

    Raises:
        AssertionError: Raised when the missing binary is not reported.
    """

    recorder = _CallbackRecorder()

    with pytest.raises(ProcessLaunchError) as error_info:
        await AsyncioProcessRunner().adapter_run_program(
            executable="definitely-not-an-rscript-binary",
            args=[],
            options=ProcessOptions(working_dir=tmp_path),
            callbacks=recorder.build_callbacks(),
        )

    assert error_info.value.summary == "definitely-not-an-rscript-binary not found"
    assert recorder.records == []

@pytest.mark.asyncio
async def test_adapters_process_runner_raises_launch_error_for_null_byte_argument(tmp_path: Path) -> None:
    """Report arguments the operating system cannot accept as launch errors.

    Returns:
        None: Assertions validate behavior.

    Raises:
        AssertionError: Raised when the spawn error escapes unconverted.
    """

    recorder = _CallbackRecorder()

    with pytest.raises(ProcessLaunchError) as error_info:
        await AsyncioProcessRunner().adapter_run_program(
            executable=sys.executable,
            args=["-c", "print('a\x00b')"],
            options=ProcessOptions(working_dir=tmp_path),
            callbacks=recorder.build_callbacks(),
        )

    assert "null" in error_info.value.summary
    assert recorder.records == []


@pytest.mark.asyncio
async def test_adapters_process_runner_rejects_child_without_pipes(tmp_path: Path) -> None:
    """Raise a launch error when the spawned child exposes no output pipes.

    Returns:
        None: Assertions validate behavior.

    Raises:
        AssertionError: Raised when missing pipes are not reported.
    """

    process = MagicMock()
    process.pid = 4242
    process.stdout = None
    process.stderr = None
    recorder = _CallbackRecorder()

    with patch("rmd_render.adapters.process_runner.asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
        with pytest.raises(ProcessLaunchError) as error_info:
            await AsyncioProcessRunner().adapter_run_program(
                executable=sys.executable,
                args=["-c", "pass"],
                options=ProcessOptions(working_dir=tmp_path),
                callbacks=recorder.build_callbacks(),
            )

    assert error_info.value.summary == "output pipes unavailable"
    assert recorder.records == []



def test_adapters_process_runner_rejects_invalid_config() -> None:
    """Reject non-positive poll interval and chunk size.

    Returns:
        None: Assertions validate behavior.

    Raises:
        AssertionError: Raised when invalid config is accepted.
    """

    with pytest.raises(ValueError):
        AsyncioProcessRunner(poll_interval_seconds=0)
    with pytest.raises(ValueError):
        AsyncioProcessRunner(read_chunk_bytes=0)
