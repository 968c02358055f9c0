"""Domain models used across application layer boundaries."""

from .models import (
	UNKNOWN_OUTPUT_FORMAT,
	HealthStatus,
	OutputFormat,
	RenderCompletedEvent,
	RenderEvent,
	RenderJobState,
	RenderOutputEvent,
	RenderOutputType,
	RenderStartedEvent,
)
from .paths import (
	domain_build_output_url,
	domain_create_aliased_path,
	domain_decode_output_segment,
	domain_double_url_encode,
	domain_resolve_aliased_path,
)

__all__ = [
	"HealthStatus",
	"OutputFormat",
	"UNKNOWN_OUTPUT_FORMAT",
	"RenderJobState",
	"RenderOutputType",
	"RenderStartedEvent",
	"RenderOutputEvent",
	"RenderCompletedEvent",
	"RenderEvent",
	"domain_create_aliased_path",
	"domain_resolve_aliased_path",
	"domain_double_url_encode",
	"domain_build_output_url",
	"domain_decode_output_segment",
]
