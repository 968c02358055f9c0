"""Event delivery package for outward render notifications."""

from .console import ConsoleRenderEventSink
from .interfaces import RenderEventSinkPort
from .queue import InMemoryRenderEventQueue, QueuedRenderEvent

__all__ = [
	"ConsoleRenderEventSink",
	"InMemoryRenderEventQueue",
	"QueuedRenderEvent",
	"RenderEventSinkPort",
]
