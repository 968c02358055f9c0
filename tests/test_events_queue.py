"""Tests for the in-memory render event queue and console sink."""

from __future__ import annotations

import io

import pytest

from rmd_render.domain import (
    UNKNOWN_OUTPUT_FORMAT,
    OutputFormat,
    RenderCompletedEvent,
    RenderOutputEvent,
    RenderOutputType,
    RenderStartedEvent,
)
from rmd_render.events import ConsoleRenderEventSink, InMemoryRenderEventQueue


def _build_output_event(text: str) -> RenderOutputEvent:
    """Build one normal output event.

    Args:
        text: Output text.

    Returns:
        RenderOutputEvent: Event instance.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return RenderOutputEvent(output_type=RenderOutputType.NORMAL, text=text)


def test_events_queue_lists_events_after_known_id() -> None:
    """Assign sequential ids and page through events after a known id.

    Returns:
        None: Assertions validate behavior.

    Raises:
        AssertionError: Raised when ids or ordering are unexpected.
    """

    event_queue = InMemoryRenderEventQueue()
    for index in range(5):
        event_queue.events_publish(_build_output_event(f"line {index}\n"))

    queued_events = event_queue.events_list_after(after_event_id=2, limit=2)

    assert [queued.event_id for queued in queued_events] == [3, 4]
    assert queued_events[0].to_payload() == {
        "id": 3,
        "type": "rmd_render_output",
        "data": {"type": "normal", "output": "line 2\n"},
    }
    assert event_queue.events_last_id() == 5


def test_events_queue_drops_oldest_events_beyond_capacity() -> None:
    """Retain only the newest events while ids keep increasing.

    Returns:
        None: Assertions validate behavior.

    Raises:
        AssertionError: Raised when retention is unexpected.
    """

    event_queue = InMemoryRenderEventQueue(max_events=2)
    for index in range(4):
        event_queue.events_publish(_build_output_event(str(index)))

    assert [queued.event_id for queued in event_queue.events_list_after(0, 10)] == [3, 4]


def test_events_queue_rejects_invalid_limits() -> None:
    """Reject non-positive capacity and page limits.

    Returns:
        None: Assertions validate behavior.

    Raises:
        AssertionError: Raised when invalid values are accepted.
    """

    with pytest.raises(ValueError):
        InMemoryRenderEventQueue(max_events=0)
    with pytest.raises(ValueError):
        InMemoryRenderEventQueue().events_list_after(after_event_id=0, limit=0)


def test_events_console_sink_summarizes_lifecycle() -> None:
    """Write lifecycle summaries and raw output to the stream.

    Returns:
        None: Assertions validate behavior.

    Raises:
        AssertionError: Raised when console text is unexpected.
    """

    stream = io.StringIO()
    console_sink = ConsoleRenderEventSink(stream=stream)
    completed_event = RenderCompletedEvent(
        succeeded=True,
        target_file="~/abc.Rmd",
        output_file="~/abc.html",
        output_url="rmd_output/~%252Fabc.html/",
        output_format=OutputFormat(format_name="html_document"),
    )

    console_sink.events_publish(RenderStartedEvent(output_format=UNKNOWN_OUTPUT_FORMAT, target_file="~/abc.Rmd"))
    console_sink.events_publish(_build_output_event("processing\n"))
    console_sink.events_publish(completed_event)

    assert stream.getvalue() == (
        "Rendering ~/abc.Rmd (unknown format)\n"
        "processing\n"
        "Render succeeded: ~/abc.html\n"
    )
    assert console_sink.completed_event is completed_event
