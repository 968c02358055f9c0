"""Tests for MathJax reference rewriting in served HTML."""

from __future__ import annotations

from pathlib import Path

from rmd_render.output import (
    DESKTOP_MATHJAX_CONFIG_SCRIPT,
    MathjaxFilter,
    output_iter_filtered_file,
    output_mathjax_config_required,
)

_LOADER_BLOCK = (
    b"<!-- dynamically load mathjax for compatibility with self-contained -->\n"
    b"<script>\n"
    b"  (function () {\n"
    b'    var script = document.createElement("script");\n'
    b'    script.type = "text/javascript";\n'
    b'    script.src  = "https://mathjax.rstudio.com/latest/MathJax.js?config=TeX-AMS-MML_HTMLorMML";\n'
    b'    document.getElementsByTagName("head")[0].appendChild(script);\n'
    b"  })();\n"
    b"</script>\n"
)


def _filter_document(document: bytes, chunk_size: int, emit_config_block: bool = False) -> bytes:
    """Run a document through a fresh filter in fixed-size chunks.

    Args:
        document: Document bytes.
        chunk_size: Chunk size.
        emit_config_block: Whether the config block is inserted.

    Returns:
        bytes: Filtered document.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    chunks = [document[index : index + chunk_size] for index in range(0, len(document), chunk_size)]
    return b"".join(MathjaxFilter(emit_config_block=emit_config_block).filter_stream(chunks))


def test_output_mathjax_filter_rewrites_loader_after_math() -> None:
    """Point the loader at the local MathJax mount when math appears first.

    Returns:
        None: Assertions validate behavior.

    Raises:
        AssertionError: Raised when the loader is not rewritten.
    """

    document = b"<p>Inline \\(x^2\\) math.</p>\n" + _LOADER_BLOCK

    filtered_document = _filter_document(document, chunk_size=7)

    assert b'    script.src  = "mathjax/MathJax.js?config=TeX-AMS-MML_HTMLorMML";\n' in filtered_document
    assert b"https://mathjax.rstudio.com" not in filtered_document
    assert filtered_document.count(b"\n") == document.count(b"\n")


def test_output_mathjax_filter_removes_loader_without_math() -> None:
    """Drop the loader source when no math markup preceded it.

    Returns:
        None: Assertions validate behavior.

    Raises:
        AssertionError: Raised when the loader survives.
    """

    filtered_document = _filter_document(b"<p>No math here.</p>\n" + _LOADER_BLOCK, chunk_size=64)

    assert b"MathJax.js" not in filtered_document
    assert b"\n;\n" in filtered_document
    assert b'script.type = "text/javascript";' in filtered_document


def test_output_mathjax_filter_detects_math_element_and_display_math() -> None:
    """Treat `<math` and `\\[` as math markup.

    Returns:
        None: Assertions validate behavior.

    Raises:
        AssertionError: Raised when math markup is not detected.
    """

    for math_line in (b"<math><mi>x</mi></math>\n", b"\\[ a + b \\]\n"):
        mathjax_filter = MathjaxFilter()
        filtered_lines = b"".join(mathjax_filter.filter_stream([math_line, _LOADER_BLOCK]))

        assert mathjax_filter.uses_math is True
        assert b'"mathjax/MathJax.js?config=TeX-AMS-MML_HTMLorMML"' in filtered_lines


def test_output_mathjax_filter_inserts_config_block_on_request() -> None:
    """Insert the config block before the loader comment only when requested.

    Returns:
        None: Assertions validate behavior.

    Raises:
        AssertionError: Raised when config block placement is unexpected.
    """

    with_block = _filter_document(_LOADER_BLOCK, chunk_size=5, emit_config_block=True)
    without_block = _filter_document(_LOADER_BLOCK, chunk_size=5)

    assert with_block.startswith(DESKTOP_MATHJAX_CONFIG_SCRIPT + b"\n<!-- dynamically load mathjax")
    assert DESKTOP_MATHJAX_CONFIG_SCRIPT not in without_block


def test_output_mathjax_config_required_for_desktop_only() -> None:
    """Require the config block for desktop hosting outside macOS.

    Returns:
        None: Assertions validate behavior.

    Raises:
        AssertionError: Raised when the hosting rule is unexpected.
    """

    assert output_mathjax_config_required("desktop", platform="linux") is True
    assert output_mathjax_config_required("desktop", platform="win32") is True
    assert output_mathjax_config_required("desktop", platform="darwin") is False
    assert output_mathjax_config_required("server", platform="linux") is False


def test_output_iter_filtered_file_streams_file_content(tmp_path: Path) -> None:
    """Stream a file through the filter without a trailing newline loss.

    Returns:
        None: Assertions validate behavior.

    Raises:
        AssertionError: Raised when streamed bytes are unexpected.
    """

    artifact_path = tmp_path / "abc.html"
    artifact_path.write_bytes(b"<html>\n<body>plain</body>\n</html>")

    streamed_bytes = b"".join(output_iter_filtered_file(artifact_path, MathjaxFilter()))

    assert streamed_bytes == b"<html>\n<body>plain</body>\n</html>"


def test_output_mathjax_filter_flushes_long_lines_in_slices() -> None:
    """Emit output for a long line before its end arrives.

    Returns:
        None: Assertions validate behavior.

    Raises:
        AssertionError: Raised when the line is buffered whole or altered.
    """

    image_line = b'<img src="data:image/png;base64,' + b"iVBORw0KGgo" * 100_000 + b'">\n'
    chunks = [image_line[index : index + 64 * 1024] for index in range(0, len(image_line), 64 * 1024)]
    consumed_chunks = 0

    def _count_chunks():
        nonlocal consumed_chunks
        for chunk in chunks:
            consumed_chunks += 1
            yield chunk

    filtered_stream = MathjaxFilter().filter_stream(_count_chunks())
    first_piece = next(filtered_stream)
    consumed_before_first_piece = consumed_chunks
    filtered_line = first_piece + b"".join(filtered_stream)

    assert consumed_before_first_piece < len(chunks)
    assert filtered_line == image_line


def test_output_mathjax_filter_detects_math_across_flush_points() -> None:
    """Detect math tokens that straddle a flush point inside a long line.

    Returns:
        None: Assertions validate behavior.

    Raises:
        AssertionError: Raised when a split token is missed or bytes change.
    """

    for offset in range(100, 200):
        long_line = b"x" * offset + b"\\(x^2\\)" + b"y" * 200 + b"\n"
        document = long_line + _LOADER_BLOCK
        chunks = [document[index : index + 16] for index in range(0, len(document), 16)]
        mathjax_filter = MathjaxFilter(max_pending_bytes=128)

        filtered_document = b"".join(mathjax_filter.filter_stream(chunks))

        assert mathjax_filter.uses_math is True
        assert filtered_document.startswith(long_line)
        assert b'"mathjax/MathJax.js?config=TeX-AMS-MML_HTMLorMML"' in filtered_document
