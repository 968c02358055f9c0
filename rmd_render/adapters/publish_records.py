"""JSON-file store of previous external-publish upload ids."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from .interfaces import PublishRecordPort

logger = logging.getLogger(__name__)


class JsonPublishRecordStore(PublishRecordPort):
    """Read publish records from a JSON object keyed by absolute artifact path.

    Example file content: `{"/home/me/report.html": "a1b2c3"}`.
    """

    def __init__(self, records_path: Path | None):
        """Initialize publish record store.

        Args:
            records_path: JSON records file; None disables lookups.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: This initializer does not raise value errors.
        """

        self._records_path = records_path

    def adapter_previous_upload_id(self, output_file: Path) -> str | None:
        """Return the recorded upload id for an artifact.

        Args:
            output_file: Absolute artifact path.

        Returns:
            str | None: Non-empty upload id, or None when absent or unreadable.

        Raises:
            RuntimeError: This implementation does not raise runtime errors.
        """

        if self._records_path is None or not self._records_path.is_file():
            return None

        try:
            records = json.loads(self._records_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as error:
            logger.warning("Ignoring unreadable publish records file=%s: %s", self._records_path, error)
            return None

        if not isinstance(records, dict):
            logger.warning("Ignoring publish records file=%s: expected a JSON object", self._records_path)
            return None

        upload_id = records.get(str(output_file))
        if not isinstance(upload_id, str) or not upload_id.strip():
            return None
        return upload_id.strip()
