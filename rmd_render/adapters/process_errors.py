"""Project-native typed exceptions for interpreter process failures."""

from __future__ import annotations


class ProcessAdapterError(Exception):
    """Base exception for interpreter process failures.

    Attributes:
        summary: Short human-readable failure summary.
    """

    def __init__(self, message: str, summary: str | None = None):
        super().__init__(message)
        self.summary = summary or message


class ProcessLaunchError(ProcessAdapterError, OSError):
    """Interpreter binary could not be resolved or spawned."""


class InterpreterQueryError(ProcessAdapterError, RuntimeError):
    """Short interpreter query failed or returned an unusable result."""


class InterpreterQueryTimeoutError(InterpreterQueryError, TimeoutError):
    """Short interpreter query did not finish within its timeout."""
