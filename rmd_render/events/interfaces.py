"""Typed interfaces for outward render event delivery."""

from typing import Protocol

from rmd_render.domain import RenderEvent


class RenderEventSinkPort(Protocol):
    """Port definition for publishing render events to observers."""

    def events_publish(self, event: RenderEvent) -> None:
        """Publish one render event.

        Args:
            event: Started, output or completed event.

        Returns:
            None: Event is delivered as side effect.

        Raises:
            RuntimeError: Raised when delivery fails.
        """
