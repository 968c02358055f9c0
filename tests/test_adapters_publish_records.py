"""Tests for JSON publish record lookups."""

from __future__ import annotations

import json
from pathlib import Path

from rmd_render.adapters import JsonPublishRecordStore


def test_adapters_publish_records_returns_recorded_upload_id(tmp_path: Path) -> None:
    """Return the upload id recorded for an artifact path.

    Returns:
        None: Assertions validate behavior.

    Raises:
        AssertionError: Raised when lookups are unexpected.
    """

    records_path = tmp_path / "publish.json"
    artifact_path = tmp_path / "abc.html"
    records_path.write_text(json.dumps({str(artifact_path): " a1b2 ", str(tmp_path / "blank.html"): ""}), encoding="utf-8")
    record_store = JsonPublishRecordStore(records_path)

    assert record_store.adapter_previous_upload_id(artifact_path) == "a1b2"
    assert record_store.adapter_previous_upload_id(tmp_path / "blank.html") is None
    assert record_store.adapter_previous_upload_id(tmp_path / "other.html") is None


def test_adapters_publish_records_ignores_missing_or_malformed_files(tmp_path: Path) -> None:
    """Treat absent, disabled or malformed record files as no records.

    Returns:
        None: Assertions validate behavior.

    Raises:
        AssertionError: Raised when bad record files raise or return ids.
    """

    artifact_path = tmp_path / "abc.html"
    malformed_path = tmp_path / "malformed.json"
    malformed_path.write_text("{not json", encoding="utf-8")
    list_path = tmp_path / "list.json"
    list_path.write_text("[]", encoding="utf-8")

    assert JsonPublishRecordStore(None).adapter_previous_upload_id(artifact_path) is None
    assert JsonPublishRecordStore(tmp_path / "missing.json").adapter_previous_upload_id(artifact_path) is None
    assert JsonPublishRecordStore(malformed_path).adapter_previous_upload_id(artifact_path) is None
    assert JsonPublishRecordStore(list_path).adapter_previous_upload_id(artifact_path) is None
