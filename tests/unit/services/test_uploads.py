"""Compensation protocol around blob uploads."""

from __future__ import annotations

import pytest

from src.vintage.exceptions import BlobStorageError, ConflictError
from src.vintage.services.uploads import CompensatingUploader
from tests.mocks.blob_storage import RecordingBlobStorage, image

pytestmark = pytest.mark.unit


def _fail(_: object) -> None:
    raise ConflictError("duplicate entry")


def test_create_success_keeps_uploads() -> None:
    storage = RecordingBlobStorage()
    uploader = CompensatingUploader(storage)

    result = uploader.create_with_upload([image("a.png"), image("b.png")], "products", lambda refs: refs)

    assert result == storage.uploads
    assert storage.deletes == []


def test_create_failure_deletes_every_upload_once() -> None:
    storage = RecordingBlobStorage()
    uploader = CompensatingUploader(storage)

    with pytest.raises(ConflictError):
        uploader.create_with_upload([image("a.png"), image("b.png")], "products", _fail)

    assert storage.deletes == storage.uploads
    assert len(storage.deletes) == 2


def test_upload_failure_aborts_before_persist() -> None:
    storage = RecordingBlobStorage(fail_upload_at=1)
    uploader = CompensatingUploader(storage)
    persisted: list[object] = []

    with pytest.raises(BlobStorageError):
        uploader.create_with_upload([image()], "brands", persisted.append)

    assert persisted == []
    assert storage.deletes == []


def test_partial_upload_failure_removes_earlier_uploads() -> None:
    storage = RecordingBlobStorage(fail_upload_at=3)
    uploader = CompensatingUploader(storage)

    with pytest.raises(BlobStorageError):
        uploader.create_with_upload([image("1.png"), image("2.png"), image("3.png")], "products", lambda r: r)

    assert storage.deletes == storage.uploads
    assert len(storage.uploads) == 2


def test_compensation_failure_is_swallowed_and_original_error_wins() -> None:
    storage = RecordingBlobStorage(fail_deletes=True)
    uploader = CompensatingUploader(storage)

    with pytest.raises(ConflictError):
        uploader.create_with_upload([image()], "brands", _fail)

    assert storage.deletes == storage.uploads


def test_replacement_deletes_superseded_reference_only() -> None:
    storage = RecordingBlobStorage()
    uploader = CompensatingUploader(storage)

    result = uploader.update_with_replacement(
        old_reference="https://blobs.test/brands/old.png",
        new_file=image(),
        destination_hint="brands",
        persist=lambda new_ref: new_ref,
    )

    assert result == storage.uploads[0]
    assert storage.deletes == ["https://blobs.test/brands/old.png"]


def test_replacement_failure_deletes_new_reference_and_keeps_old() -> None:
    storage = RecordingBlobStorage()
    uploader = CompensatingUploader(storage)

    with pytest.raises(ConflictError):
        uploader.update_with_replacement(
            old_reference="https://blobs.test/brands/old.png",
            new_file=image(),
            destination_hint="brands",
            persist=_fail,
        )

    assert storage.deletes == storage.uploads


def test_replacement_without_file_issues_no_blob_calls() -> None:
    storage = RecordingBlobStorage()
    uploader = CompensatingUploader(storage)

    result = uploader.update_with_replacement(
        old_reference="https://blobs.test/brands/old.png",
        new_file=None,
        destination_hint="brands",
        persist=lambda new_ref: new_ref,
    )

    assert result is None
    assert storage.uploads == [] and storage.deletes == []


def test_replacement_with_identical_reference_deletes_nothing() -> None:
    storage = RecordingBlobStorage()
    uploader = CompensatingUploader(storage)
    same = "https://blobs.test/brands/1-logo.png"

    uploader.update_with_replacement(
        old_reference=same, new_file=image(), destination_hint="brands", persist=lambda ref: ref
    )

    assert storage.uploads == [same]
    assert storage.deletes == []


def test_replacement_without_previous_reference_deletes_nothing() -> None:
    storage = RecordingBlobStorage()
    uploader = CompensatingUploader(storage)

    uploader.update_with_replacement(
        old_reference=None, new_file=image(), destination_hint="avatars", persist=lambda ref: ref
    )

    assert storage.deletes == []


def test_delete_with_cleanup_runs_only_after_success() -> None:
    storage = RecordingBlobStorage()
    uploader = CompensatingUploader(storage)

    with pytest.raises(ConflictError):
        uploader.delete_with_cleanup(reference="https://blobs.test/brands/x.png", persist=lambda: _fail(None))
    assert storage.deletes == []

    uploader.delete_with_cleanup(reference="https://blobs.test/brands/x.png", persist=lambda: None)
    assert storage.deletes == ["https://blobs.test/brands/x.png"]
