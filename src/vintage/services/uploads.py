"""Coordinate blob uploads with database transactions.

Blob storage cannot join a SQL transaction, so uploads always happen first
and are undone by deleting them when the transaction fails. After a
successful replacement the superseded blob is deleted. Those deletes are
best-effort: a failure is logged and the outcome of the database
transaction stands. Blobs left behind this way are collected by
``scripts/sweep_orphan_blobs.py``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO, Callable, Iterable, Sequence, TypeVar

import structlog

from ..domain.deadlines import detached_deadline
from ..exceptions import BlobStorageError
from ..infrastructure.blob_storage import BlobStorage

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class UploadedFile:
    """A file received from a client, not yet stored."""

    stream: BinaryIO
    filename: str
    content_type: str | None = None


@dataclass(slots=True)
class CompensatingUploader:
    storage: BlobStorage
    cleanup_timeout_seconds: float | None = 10.0

    def upload(self, file: UploadedFile, destination_hint: str) -> str:
        try:
            return self.storage.upload(file.stream, destination_hint, filename=file.filename)
        except BlobStorageError:
            raise
        except Exception as exc:
            raise BlobStorageError(f"failed to upload {file.filename}") from exc

    def upload_all(self, files: Sequence[UploadedFile], destination_hint: str) -> list[str]:
        """Upload ``files`` in order; a failure removes the ones already stored."""

        references: list[str] = []
        for file in files:
            try:
                references.append(self.upload(file, destination_hint))
            except BlobStorageError:
                self.discard(references, reason="partial_upload")
                raise
        return references

    def discard(self, references: Iterable[str | None], *, reason: str) -> None:
        """Delete ``references`` best-effort; failures are only logged."""

        with detached_deadline(self.cleanup_timeout_seconds):
            for reference in references:
                if not reference:
                    continue
                try:
                    self.storage.delete_by_reference(reference)
                except Exception as exc:
                    logger.error(
                        "uploads.compensation.failed",
                        reference=reference,
                        reason=reason,
                        error=str(exc),
                    )
                else:
                    logger.info("uploads.compensation.deleted", reference=reference, reason=reason)

    def create_with_upload(
        self,
        files: Sequence[UploadedFile],
        destination_hint: str,
        persist: Callable[[list[str]], T],
    ) -> T:
        """Upload ``files`` then run ``persist``; its failure deletes every upload."""

        references = self.upload_all(files, destination_hint)
        try:
            return persist(references)
        except BaseException:
            self.discard(references, reason="transaction_failed")
            raise

    def update_with_replacement(
        self,
        *,
        old_reference: str | None,
        new_file: UploadedFile | None,
        destination_hint: str,
        persist: Callable[[str | None], T],
    ) -> T:
        """Swap the blob behind an entity.

        ``persist`` receives the new reference, or ``None`` when no file was
        supplied and the stored reference stays as it is.
        """

        if new_file is None:
            return persist(None)

        new_reference = self.upload(new_file, destination_hint)
        try:
            result = persist(new_reference)
        except BaseException:
            self.discard([new_reference], reason="transaction_failed")
            raise
        if old_reference and old_reference != new_reference:
            self.discard([old_reference], reason="superseded")
        return result

    def delete_with_cleanup(self, *, reference: str | None, persist: Callable[[], T]) -> T:
        """Run ``persist`` and delete ``reference`` once it succeeded."""

        result = persist()
        if reference:
            self.discard([reference], reason="owner_deleted")
        return result


__all__ = ["CompensatingUploader", "UploadedFile"]
