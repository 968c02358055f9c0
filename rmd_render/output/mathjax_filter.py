"""Streaming rewriter for MathJax references in rendered HTML.

The loader script line

    script.src = "https://cdn.example/mathjax/MathJax.js?config=TeX-AMS"

is rewritten to load from the local MathJax mount

    script.src = "mathjax/MathJax.js?config=TeX-AMS"

when the document contains math markup earlier in the stream, and removed
entirely otherwise so previews of math-free documents never fetch MathJax.
"""

from __future__ import annotations

import re
import sys
from pathlib import Path
from typing import Final, Iterable, Iterator

MATHJAX_SEGMENT: Final[str] = "mathjax"
MATHJAX_BEGIN_COMMENT: Final[bytes] = b"<!-- dynamically load mathjax"
DESKTOP_MATHJAX_CONFIG_SCRIPT: Final[bytes] = (
    b'<script type="text/x-mathjax-config">'
    b'MathJax.Hub.Config({"HTML-CSS": { availableFonts: ["TeX"] }});'
    b"</script>"
)

_MATH_START_TOKENS: Final[frozenset[bytes]] = frozenset({b"\\[", b"\\(", b"<math"})
_MATHJAX_PATTERN: Final[re.Pattern[bytes]] = re.compile(
    rb"<!-- dynamically load mathjax"
    rb"|\\\[|\\\(|<math"
    rb'|^(\s*script.src\s*=\s*)"http.*?(MathJax.js[^"]*)"',
    re.MULTILINE,
)
_MATH_TOKEN_PATTERN: Final[re.Pattern[bytes]] = re.compile(rb"<!-- dynamically load mathjax|\\\[|\\\(|<math")
_MAX_PENDING_BYTES: Final[int] = 256 * 1024
_READ_CHUNK_BYTES: Final[int] = 64 * 1024


def output_mathjax_config_required(program_mode: str, platform: str = sys.platform) -> bool:
    """Return whether served documents need the inline MathJax config block.

    Args:
        program_mode: `server` or `desktop`.
        platform: Platform identifier, defaults to the running platform.

    Returns:
        bool: True for desktop hosting on non-Apple platforms.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return program_mode == "desktop" and platform != "darwin"


class MathjaxFilter:
    """Single-pass line-oriented filter; one instance per served document."""

    def __init__(self, emit_config_block: bool = False, max_pending_bytes: int = _MAX_PENDING_BYTES):
        self._emit_config_block = emit_config_block
        self._max_pending_bytes = max(max_pending_bytes, len(MATHJAX_BEGIN_COMMENT))
        self._uses_math = False

    @property
    def uses_math(self) -> bool:
        return self._uses_math

    def filter_line(self, line: bytes) -> bytes:
        """Rewrite one line, updating the math-usage state."""

        return _MATHJAX_PATTERN.sub(self._filter_substitute, line)

    def filter_stream(self, chunks: Iterable[bytes]) -> Iterator[bytes]:
        """Rewrite an arbitrary chunked byte stream line by line.

        Lines longer than the pending-bytes cap, such as inlined base64 images,
        are flushed in slices. The bytes after a flush point are only scanned
        for math tokens since the loader rule matches at line start.

        Args:
            chunks: Byte chunks in document order; line breaks may fall anywhere.

        Returns:
            Iterator[bytes]: Rewritten chunks, one per input line or per flushed
            slice of a line longer than the pending-bytes cap.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        pending = b""
        continuing_line = False
        for chunk in chunks:
            pending += chunk
            lines = pending.split(b"\n")
            pending = lines.pop()
            for line in lines:
                yield self._filter_line_part(line + b"\n", continuing_line)
                continuing_line = False
            if len(pending) > self._max_pending_bytes:
                flushed, flushed_end = self._filter_line_prefix(pending, len(pending) - len(MATHJAX_BEGIN_COMMENT))
                yield flushed
                pending = pending[flushed_end:]
                continuing_line = True
        if pending:
            yield self._filter_line_part(pending, continuing_line)

    def _filter_line_part(self, data: bytes, continuing_line: bool) -> bytes:
        if not continuing_line:
            return self.filter_line(data)
        return _MATH_TOKEN_PATTERN.sub(self._filter_substitute, data)

    def _filter_line_prefix(self, data: bytes, cut: int) -> tuple[bytes, int]:
        # Tokens starting before the cut are rewritten whole; the kept tail is
        # at least one token long so no token straddles the returned end.
        pieces: list[bytes] = []
        position = 0
        for match in _MATH_TOKEN_PATTERN.finditer(data):
            if match.start() >= cut:
                break
            pieces.append(data[position : match.start()])
            pieces.append(self._filter_substitute(match))
            position = match.end()
        end = max(cut, position)
        pieces.append(data[position:end])
        return b"".join(pieces), end

    def _filter_substitute(self, match: re.Match[bytes]) -> bytes:
        token = match.group(0)
        if token in _MATH_START_TOKENS:
            self._uses_math = True
            return token

        if token == MATHJAX_BEGIN_COMMENT:
            if self._emit_config_block:
                return DESKTOP_MATHJAX_CONFIG_SCRIPT + b"\n" + token
            return token

        if not self._uses_math:
            return b""
        return match.group(1) + b'"' + MATHJAX_SEGMENT.encode("ascii") + b"/" + match.group(2) + b'"'


def output_iter_filtered_file(file_path: Path, mathjax_filter: MathjaxFilter) -> Iterator[bytes]:
    """Stream a file through a MathJax filter.

    Args:
        file_path: Artifact path.
        mathjax_filter: Fresh filter instance.

    Returns:
        Iterator[bytes]: Rewritten content.

    Raises:
        OSError: Raised when the file cannot be read.
    """

    with file_path.open("rb") as handle:
        yield from mathjax_filter.filter_stream(iter(lambda: handle.read(_READ_CHUNK_BYTES), b""))
