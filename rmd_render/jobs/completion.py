"""Render output buffering and completion-marker detection."""

from __future__ import annotations

from pathlib import Path

OUTPUT_CREATED_MARKER = "Output created: "


class RenderOutputBuffer:
    """Append-only buffer of interleaved stdout and stderr text for one render."""

    def __init__(self):
        self._chunks: list[str] = []

    def buffer_append(self, text: str) -> None:
        """Append one output chunk in arrival order."""

        self._chunks.append(text)

    def buffer_find_output_file_name(self) -> str | None:
        """Return the file name printed on the first completion-marker line.

        Returns:
            str | None: Trimmed file name, or None when no marker line was emitted.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        for output_line in "".join(self._chunks).split("\n"):
            if not output_line.startswith(OUTPUT_CREATED_MARKER):
                continue
            # strip also drops the CR left over from CRLF line endings
            file_name = output_line[len(OUTPUT_CREATED_MARKER) :].strip()
            return file_name or None
        return None

    def buffer_resolve_output_file(self, target_file: Path) -> Path | None:
        """Resolve the rendered file against the source document directory.

        Args:
            target_file: Absolute source document path.

        Returns:
            Path | None: Absolute path of the reported artifact, None without a marker.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        file_name = self.buffer_find_output_file_name()
        if file_name is None:
            return None
        candidate_path = Path(file_name)
        if candidate_path.is_absolute():
            return candidate_path
        return target_file.parent / candidate_path


def job_render_succeeded(exit_status: int, output_file: Path | None) -> bool:
    """Return whether a finished render produced its artifact.

    Args:
        exit_status: Interpreter exit status.
        output_file: Artifact path reported by the completion marker.

    Returns:
        bool: True only for exit status zero and an artifact present on disk.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return exit_status == 0 and output_file is not None and output_file.exists()
