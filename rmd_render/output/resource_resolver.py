"""Resolution of rendered-output request paths to files on disk.

Request paths under the output mount look like

    <double-encoded aliased artifact path>/<relative resource path>

after the whole request path has been decoded once, e.g.
`~%2Freports%2Fabc.html/img/plot.png`. The first segment is decoded a second
time here to recover the artifact path.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from rmd_render.domain import domain_decode_output_segment, domain_resolve_aliased_path

from .mathjax_filter import MATHJAX_SEGMENT


class OutputResourceNotFoundError(LookupError):
    """Requested artifact or nested resource does not exist."""


class OutputResourceKind(str, Enum):
    """What a resolved output request serves."""

    ARTIFACT = "artifact"
    MATHJAX = "mathjax"
    RESOURCE = "resource"


@dataclass(frozen=True)
class OutputRequestTarget:
    """Output request split into artifact and remaining resource path.

    Attributes:
        output_file_reference: Fully decoded aliased artifact path from the URL.
        artifact_path: Absolute artifact path.
        resource_path: Path after the artifact segment; empty for the artifact itself.
    """

    output_file_reference: str
    artifact_path: Path
    resource_path: str


@dataclass(frozen=True)
class ResolvedOutputResource:
    """File to serve and how to serve it.

    Attributes:
        kind: Artifact, MathJax or nested resource.
        file_path: Absolute file path.
        cacheable: Whether caching headers allow reuse.
        filtered: Whether content passes through the MathJax filter.
    """

    kind: OutputResourceKind
    file_path: Path
    cacheable: bool
    filtered: bool


def output_split_request_path(path_after_mount: str, home_directory: Path) -> OutputRequestTarget:
    """Split a singly-decoded request path and locate its artifact.

    Args:
        path_after_mount: Request path with the mount prefix removed.
        home_directory: Root used to resolve aliased paths.

    Returns:
        OutputRequestTarget: Artifact and remaining resource path.

    Raises:
        OutputResourceNotFoundError: Raised when no artifact segment is present or the artifact is missing.
    """

    separator_index = path_after_mount.find("/", 1)
    if separator_index == -1:
        raise OutputResourceNotFoundError("No output file found")

    output_file_reference = domain_decode_output_segment(path_after_mount[:separator_index])
    if not output_file_reference.strip():
        raise OutputResourceNotFoundError("No output file found")

    artifact_path = domain_resolve_aliased_path(output_file_reference, home_directory)
    if not artifact_path.is_file():
        raise OutputResourceNotFoundError(f"{output_file_reference} not found")

    return OutputRequestTarget(
        output_file_reference=output_file_reference,
        artifact_path=artifact_path,
        resource_path=path_after_mount[separator_index + 1 :],
    )


def output_is_mathjax_request(resource_path: str) -> bool:
    """Return whether a resource path addresses the bundled MathJax tree."""

    return resource_path.startswith(f"{MATHJAX_SEGMENT}/")


def output_resolve_resource(target: OutputRequestTarget, mathjax_directory: Path | None) -> ResolvedOutputResource:
    """Resolve the file served for a split output request.

    Args:
        target: Split output request.
        mathjax_directory: Local MathJax directory, None when unavailable.

    Returns:
        ResolvedOutputResource: File and serving mode.

    Raises:
        OutputResourceNotFoundError: Raised when the resource is missing or escapes its root directory.
    """

    if not target.resource_path:
        return ResolvedOutputResource(
            kind=OutputResourceKind.ARTIFACT,
            file_path=target.artifact_path,
            cacheable=False,
            filtered=True,
        )

    if output_is_mathjax_request(target.resource_path):
        if mathjax_directory is None:
            raise OutputResourceNotFoundError("MathJax resources are not available")
        kind = OutputResourceKind.MATHJAX
        file_path = _output_confine_path(mathjax_directory, target.resource_path[len(MATHJAX_SEGMENT) + 1 :])
    else:
        kind = OutputResourceKind.RESOURCE
        file_path = _output_confine_path(target.artifact_path.parent, target.resource_path)

    if file_path is None or not file_path.is_file():
        raise OutputResourceNotFoundError(f"{target.resource_path} not found")
    return ResolvedOutputResource(kind=kind, file_path=file_path, cacheable=True, filtered=False)


def _output_confine_path(root_directory: Path, relative_path: str) -> Path | None:
    """Join a relative path under a root; None when it escapes the root."""

    normalized_root = Path(os.path.normpath(root_directory))
    candidate_path = Path(os.path.normpath(normalized_root / relative_path))
    if not candidate_path.is_relative_to(normalized_root):
        return None
    return candidate_path
