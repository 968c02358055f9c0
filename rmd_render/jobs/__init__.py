"""Job layer package for render execution and supervision."""

from .completion import OUTPUT_CREATED_MARKER, RenderOutputBuffer, job_render_succeeded
from .format_results import FormatResultAmender, job_collect_format_details
from .interfaces import RenderSupervisorPort
from .render_job import RenderJob, RenderJobConfig
from .render_supervisor import RenderJobFactory, RenderSupervisor

__all__ = [
	"OUTPUT_CREATED_MARKER",
	"FormatResultAmender",
	"RenderJob",
	"RenderJobConfig",
	"RenderJobFactory",
	"RenderOutputBuffer",
	"RenderSupervisor",
	"RenderSupervisorPort",
	"job_collect_format_details",
	"job_render_succeeded",
]
