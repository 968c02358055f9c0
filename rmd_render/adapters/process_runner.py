"""Asyncio-based supervised process execution with streamed output callbacks."""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import shutil
import signal
from typing import Callable, Sequence

from .interfaces import ProcessAdapterPort, ProcessCallbacks, ProcessOptions
from .process_errors import ProcessLaunchError

logger = logging.getLogger(__name__)

_STDOUT = "stdout"
_STDERR = "stderr"


class AsyncioProcessRunner(ProcessAdapterPort):
    """Run one external program without blocking the event loop.

    Output is read from both pipes concurrently. The continuation callback is
    polled on every loop iteration, including while waiting for exit after
    the pipes closed. When it returns False the runner stops reading and
    terminates the process (and its process group when configured).
    """

    def __init__(
        self,
        poll_interval_seconds: float = 0.1,
        read_chunk_bytes: int = 4096,
        termination_grace_seconds: float = 5.0,
        output_encoding: str = "utf-8",
    ):
        """Initialize process runner.

        Args:
            poll_interval_seconds: Max wait between continuation checks.
            read_chunk_bytes: Max bytes read per pipe read.
            termination_grace_seconds: Delay between terminate and kill.
            output_encoding: Encoding used to decode child output.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when config values are invalid.
        """

        if poll_interval_seconds <= 0:
            raise ValueError("poll_interval_seconds must be > 0")
        if read_chunk_bytes < 1:
            raise ValueError("read_chunk_bytes must be >= 1")
        if termination_grace_seconds < 0:
            raise ValueError("termination_grace_seconds must be >= 0")
        codecs.lookup(output_encoding)

        self._poll_interval_seconds = poll_interval_seconds
        self._read_chunk_bytes = read_chunk_bytes
        self._termination_grace_seconds = termination_grace_seconds
        self._output_encoding = output_encoding

    async def adapter_run_program(
        self,
        executable: str,
        args: Sequence[str],
        options: ProcessOptions,
        callbacks: ProcessCallbacks,
    ) -> None:
        """Spawn the program and supervise it until exit.

        Args:
            executable: Program name or path.
            args: Program arguments.
            options: Launch options.
            callbacks: Output, continuation and exit callbacks.

        Returns:
            None: Results are delivered through callbacks.

        Raises:
            ProcessLaunchError: Raised when the program cannot be resolved or spawned.
        """

        resolved_executable = shutil.which(executable)
        if resolved_executable is None:
            raise ProcessLaunchError(
                f"unable to locate executable={executable}",
                summary=f"{executable} not found",
            )

        environment = None
        if options.environment:
            environment = {**os.environ, **options.environment}

        try:
            process = await asyncio.create_subprocess_exec(
                resolved_executable,
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(options.working_dir),
                env=environment,
                start_new_session=options.terminate_children,
            )
        except (OSError, ValueError) as error:
            raise ProcessLaunchError(
                f"failed to start executable={resolved_executable}: {error}",
                summary=str(error),
            ) from error

        logger.debug("Started pid=%s executable=%s", process.pid, resolved_executable)
        exit_status = await self._adapter_supervise(process=process, options=options, callbacks=callbacks)
        logger.debug("Process pid=%s exited with status=%s", process.pid, exit_status)
        callbacks.on_exit(exit_status)

    async def _adapter_supervise(
        self,
        process: asyncio.subprocess.Process,
        options: ProcessOptions,
        callbacks: ProcessCallbacks,
    ) -> int:
        """Pump both pipes and wait for exit, polling continuation each iteration.

        Args:
            process: Running child process.
            options: Launch options.
            callbacks: Output and continuation callbacks.

        Returns:
            int: Process exit status.

        Raises:
            ProcessLaunchError: Raised when the child was spawned without output pipes.
        """

        if process.stdout is None or process.stderr is None:
            raise ProcessLaunchError(
                f"output pipes unavailable for pid={process.pid}",
                summary="output pipes unavailable",
            )
        readers = {_STDOUT: process.stdout, _STDERR: process.stderr}
        handlers: dict[str, Callable[[str], None]] = {_STDOUT: callbacks.on_stdout, _STDERR: callbacks.on_stderr}
        decoders = {
            stream_name: codecs.getincrementaldecoder(self._output_encoding)(errors="replace")
            for stream_name in readers
        }
        pending: dict[asyncio.Task, str] = {
            asyncio.ensure_future(reader.read(self._read_chunk_bytes)): stream_name
            for stream_name, reader in readers.items()
        }

        try:
            while pending:
                if not callbacks.on_continue():
                    await self._adapter_cancel_reads(pending)
                    return await self._adapter_terminate(process=process, options=options)

                done, _ = await asyncio.wait(
                    pending.keys(),
                    timeout=self._poll_interval_seconds,
                    return_when=asyncio.FIRST_COMPLETED,
                )
                for task in sorted(done, key=lambda finished: pending[finished]):
                    stream_name = pending.pop(task)
                    chunk = task.result()
                    if not chunk:
                        tail = decoders[stream_name].decode(b"", final=True)
                        if tail:
                            handlers[stream_name](tail)
                        continue
                    text = decoders[stream_name].decode(chunk)
                    if text:
                        handlers[stream_name](text)
                    pending[asyncio.ensure_future(readers[stream_name].read(self._read_chunk_bytes))] = stream_name
        finally:
            await self._adapter_cancel_reads(pending)

        wait_task = asyncio.ensure_future(process.wait())
        while True:
            done, _ = await asyncio.wait({wait_task}, timeout=self._poll_interval_seconds)
            if done:
                return wait_task.result()
            if not callbacks.on_continue():
                wait_task.cancel()
                return await self._adapter_terminate(process=process, options=options)

    async def _adapter_cancel_reads(self, pending: dict[asyncio.Task, str]) -> None:
        """Cancel outstanding pipe reads and wait for them to settle."""

        for task in pending:
            task.cancel()
        await asyncio.gather(*pending.keys(), return_exceptions=True)
        pending.clear()

    async def _adapter_terminate(self, process: asyncio.subprocess.Process, options: ProcessOptions) -> int:
        """Terminate the process, escalating to kill after the grace period.

        Args:
            process: Running child process.
            options: Launch options.

        Returns:
            int: Exit status after termination.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        logger.info("Terminating pid=%s", process.pid)
        self._adapter_send_signal(process=process, options=options, signal_number=signal.SIGTERM)
        try:
            return await asyncio.wait_for(process.wait(), timeout=self._termination_grace_seconds)
        except asyncio.TimeoutError:
            logger.warning("Process pid=%s did not exit after SIGTERM, killing", process.pid)

        self._adapter_send_signal(process=process, options=options, signal_number=getattr(signal, "SIGKILL", signal.SIGTERM))
        return await process.wait()

    def _adapter_send_signal(
        self,
        process: asyncio.subprocess.Process,
        options: ProcessOptions,
        signal_number: int,
    ) -> None:
        """Signal the process group when children are owned, else the process only."""

        if process.returncode is not None:
            return
        try:
            if options.terminate_children and hasattr(os, "killpg"):
                os.killpg(process.pid, signal_number)
            else:
                process.send_signal(signal_number)
        except ProcessLookupError:
            logger.debug("Process pid=%s already exited", process.pid)
