"""Rendered-output serving package: request resolution and content rewriting."""

from .mathjax_filter import (
	DESKTOP_MATHJAX_CONFIG_SCRIPT,
	MATHJAX_BEGIN_COMMENT,
	MATHJAX_SEGMENT,
	MathjaxFilter,
	output_iter_filtered_file,
	output_mathjax_config_required,
)
from .resource_resolver import (
	OutputRequestTarget,
	OutputResourceKind,
	OutputResourceNotFoundError,
	ResolvedOutputResource,
	output_is_mathjax_request,
	output_resolve_resource,
	output_split_request_path,
)

__all__ = [
	"DESKTOP_MATHJAX_CONFIG_SCRIPT",
	"MATHJAX_BEGIN_COMMENT",
	"MATHJAX_SEGMENT",
	"MathjaxFilter",
	"OutputRequestTarget",
	"OutputResourceKind",
	"OutputResourceNotFoundError",
	"ResolvedOutputResource",
	"output_is_mathjax_request",
	"output_iter_filtered_file",
	"output_mathjax_config_required",
	"output_resolve_resource",
	"output_split_request_path",
]
