"""Format-specific additions to render completion results."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Mapping

from rmd_render.domain import OutputFormat

logger = logging.getLogger(__name__)

# Receives the source document and originating line; returns extra result fields.
FormatResultAmender = Callable[[Path, int], Mapping[str, Any]]


def job_collect_format_details(
    amenders: Mapping[str, FormatResultAmender],
    output_format: OutputFormat,
    target_file: Path,
    source_line: int,
) -> dict[str, Any]:
    """Run the amender registered for the resolved format name.

    Args:
        amenders: Amenders keyed by format name.
        output_format: Format resolved at job start.
        target_file: Absolute source document path.
        source_line: Originating line number, -1 when unknown.

    Returns:
        dict[str, Any]: Extra completion fields; empty for unknown or unregistered formats.

    Raises:
        RuntimeError: Amender failures are logged and yield no extra fields.
    """

    if output_format.is_unknown:
        return {}
    amender = amenders.get(output_format.format_name)
    if amender is None:
        return {}

    try:
        return dict(amender(target_file, source_line))
    except (OSError, ValueError, KeyError, RuntimeError) as error:
        logger.error("Result amender for format=%s failed: %s", output_format.format_name, error)
        return {}
