"""Aliased path and output URL helpers.

Aliased paths replace the home directory prefix of an absolute path with `~`
so that events and URLs never carry the raw filesystem root.

Output URLs embed the aliased artifact path as one URL segment encoded twice:
the HTTP layer decodes the whole request path once before routing, and the
output handler decodes the segment a second time to recover the path.
"""

from __future__ import annotations

from pathlib import Path
from urllib.parse import quote, unquote

ALIAS_PREFIX = "~"


def domain_create_aliased_path(path: Path, home_directory: Path) -> str:
    """Return the display-safe aliased form of an absolute path.

    Args:
        path: Absolute filesystem path.
        home_directory: Root replaced by `~`.

    Returns:
        str: `~/relative` when under the home directory, otherwise the posix path.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    try:
        relative_path = path.relative_to(home_directory)
    except ValueError:
        return path.as_posix()

    relative_text = relative_path.as_posix()
    if relative_text in ("", "."):
        return ALIAS_PREFIX
    return f"{ALIAS_PREFIX}/{relative_text}"


def domain_resolve_aliased_path(aliased_path: str, home_directory: Path) -> Path:
    """Resolve an aliased path back to an absolute filesystem path.

    Args:
        aliased_path: Aliased or absolute path text.
        home_directory: Root substituted for `~`.

    Returns:
        Path: Absolute path.

    Raises:
        ValueError: Raised when the path is blank.
    """

    normalized_path = aliased_path.strip()
    if not normalized_path:
        raise ValueError("aliased_path must not be blank")

    if normalized_path == ALIAS_PREFIX:
        return home_directory
    if normalized_path.startswith(f"{ALIAS_PREFIX}/"):
        return home_directory / normalized_path[len(ALIAS_PREFIX) + 1 :]
    return Path(normalized_path)


def domain_double_url_encode(value: str) -> str:
    """URL-encode a value twice with no characters treated as safe."""

    return quote(quote(value, safe=""), safe="")


def domain_build_output_url(output_mount: str, aliased_output_file: str) -> str:
    """Build the relative URL under which a rendered artifact is served.

    Args:
        output_mount: Mount segment, e.g. `rmd_output`.
        aliased_output_file: Aliased artifact path.

    Returns:
        str: `<mount>/<double-encoded path>/`.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return f"{output_mount}/{domain_double_url_encode(aliased_output_file)}/"


def domain_decode_output_segment(segment: str) -> str:
    """Apply the second decoding pass to a singly-decoded output segment."""

    return unquote(segment)
