"""Event sink writing render events to a text stream for one-shot CLI renders."""

from __future__ import annotations

import sys
from typing import TextIO

from rmd_render.domain import RenderCompletedEvent, RenderEvent, RenderOutputEvent, RenderStartedEvent

from .interfaces import RenderEventSinkPort


class ConsoleRenderEventSink(RenderEventSinkPort):
    """Echo render output verbatim and summarize lifecycle events."""

    def __init__(self, stream: TextIO | None = None):
        self._stream = stream or sys.stdout
        self.completed_event: RenderCompletedEvent | None = None

    def events_publish(self, event: RenderEvent) -> None:
        if isinstance(event, RenderStartedEvent):
            format_name = event.output_format.format_name or "unknown format"
            self._stream.write(f"Rendering {event.target_file} ({format_name})\n")
        elif isinstance(event, RenderOutputEvent):
            self._stream.write(event.text)
        elif isinstance(event, RenderCompletedEvent):
            self.completed_event = event
            if event.succeeded:
                self._stream.write(f"Render succeeded: {event.output_file}\n")
            else:
                self._stream.write(f"Render failed: {event.target_file}\n")
        self._stream.flush()
