"""Typed domain models shared across runtime layers.

This module provides the data contracts exchanged between the render job,
its collaborators, and the outward event delivery surface.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class HealthStatus:
    """Health response contract used by health-check surfaces.

    Attributes:
        status: Overall status text for service health.
        detail: Additional message suitable for operational diagnostics.
    """

    status: str
    detail: str


@dataclass(frozen=True)
class OutputFormat:
    """Output format declared by a source document.

    A `format_name` of None is the explicit unknown variant used when format
    discovery fails.

    Attributes:
        format_name: Resolved rmarkdown format name, e.g. `html_document`.
        format_options: Format-specific options payload.
    """

    format_name: str | None
    format_options: Any = None

    @property
    def is_unknown(self) -> bool:
        """Return whether format discovery produced no usable format name."""

        return self.format_name is None

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the wire shape used by render events."""

        return {"format_name": self.format_name, "format_options": self.format_options}


UNKNOWN_OUTPUT_FORMAT = OutputFormat(format_name=None, format_options=None)


class RenderJobState(str, Enum):
    """Lifecycle states of one render job."""

    RUNNING = "running"
    COMPLETED = "completed"
    TERMINATED = "terminated"


class RenderOutputType(str, Enum):
    """Source stream tag of one render output chunk."""

    NORMAL = "normal"
    ERROR = "error"


@dataclass(frozen=True)
class RenderStartedEvent:
    """Published once per job before any output.

    Attributes:
        output_format: Resolved output format.
        target_file: Aliased source document path.
    """

    output_format: OutputFormat
    target_file: str

    event_type = "rmd_render_started"

    def to_payload(self) -> dict[str, Any]:
        return {
            "output_format": self.output_format.to_payload(),
            "target_file": self.target_file,
        }


@dataclass(frozen=True)
class RenderOutputEvent:
    """One chunk of captured render output.

    Attributes:
        output_type: Source stream tag.
        text: Decoded output text.
    """

    output_type: RenderOutputType
    text: str

    event_type = "rmd_render_output"

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.output_type.value, "output": self.text}


@dataclass(frozen=True)
class RenderCompletedEvent:
    """Published exactly once per job, after its last output event.

    Attributes:
        succeeded: Whether an output artifact was produced.
        target_file: Aliased source document path.
        output_file: Aliased artifact path; None unless succeeded.
        output_url: Relative URL serving the artifact; None unless succeeded.
        output_format: Output format resolved at job start.
        preview_slide: Slide to preview; -1 when not applicable.
        slide_navigation: Slide navigation payload; None when not applicable.
        rpubs_published: Whether an HTML artifact has a prior publish record.
        format_details: Extra fields appended by format-specific post-processors.
    """

    succeeded: bool
    target_file: str
    output_file: str | None
    output_url: str | None
    output_format: OutputFormat
    preview_slide: int = -1
    slide_navigation: Any = None
    rpubs_published: bool = False
    format_details: dict[str, Any] = field(default_factory=dict)

    event_type = "rmd_render_completed"

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "succeeded": self.succeeded,
            "target_file": self.target_file,
            "output_file": self.output_file,
            "output_url": self.output_url,
            "output_format": self.output_format.to_payload(),
            "preview_slide": self.preview_slide,
            "slide_navigation": self.slide_navigation,
            "rpubs_published": self.rpubs_published,
        }
        payload.update(self.format_details)
        return payload


RenderEvent = RenderStartedEvent | RenderOutputEvent | RenderCompletedEvent
