"""In-memory blob storage double recording every call."""

from __future__ import annotations

import io
from typing import BinaryIO

from src.vintage.exceptions import BlobStorageError
from src.vintage.services.uploads import UploadedFile


class RecordingBlobStorage:
    def __init__(self, *, fail_upload_at: int | None = None, fail_deletes: bool = False) -> None:
        self.fail_upload_at = fail_upload_at
        self.fail_deletes = fail_deletes
        self.uploads: list[str] = []
        self.deletes: list[str] = []
        self.blobs: dict[str, bytes] = {}
        self._attempts = 0

    def upload(self, stream: BinaryIO, destination_hint: str, *, filename: str | None = None) -> str:
        self._attempts += 1
        if self.fail_upload_at is not None and self._attempts >= self.fail_upload_at:
            raise BlobStorageError("upload rejected")
        reference = f"https://blobs.test/{destination_hint}/{self._attempts}-{filename}"
        self.blobs[reference] = stream.read()
        self.uploads.append(reference)
        return reference

    def delete_by_reference(self, reference: str) -> None:
        self.deletes.append(reference)
        if self.fail_deletes:
            raise BlobStorageError("delete rejected")
        self.blobs.pop(reference, None)


def image(name: str = "logo.png", payload: bytes = b"\x89PNG\r\n") -> UploadedFile:
    return UploadedFile(stream=io.BytesIO(payload), filename=name, content_type="image/png")
