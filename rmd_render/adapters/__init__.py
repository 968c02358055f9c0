"""Adapter layer package for interpreter and filesystem integration boundaries."""

from .interfaces import (
	InterpreterHealthPort,
	MathjaxLocatorPort,
	OutputFormatResolverPort,
	ProcessAdapterPort,
	ProcessCallbacks,
	ProcessOptions,
	PublishRecordPort,
	RendererInstallationPort,
)
from .process_errors import (
	InterpreterQueryError,
	InterpreterQueryTimeoutError,
	ProcessAdapterError,
	ProcessLaunchError,
)
from .process_runner import AsyncioProcessRunner
from .publish_records import JsonPublishRecordStore
from .rscript_runtime import RscriptRuntime, adapter_parse_output_format, adapter_quote_r_string

__all__ = [
	"AsyncioProcessRunner",
	"InterpreterHealthPort",
	"InterpreterQueryError",
	"InterpreterQueryTimeoutError",
	"JsonPublishRecordStore",
	"MathjaxLocatorPort",
	"OutputFormatResolverPort",
	"ProcessAdapterError",
	"ProcessAdapterPort",
	"ProcessCallbacks",
	"ProcessLaunchError",
	"ProcessOptions",
	"PublishRecordPort",
	"RendererInstallationPort",
	"RscriptRuntime",
	"adapter_parse_output_format",
	"adapter_quote_r_string",
]
