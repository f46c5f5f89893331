"""Blob storage used for logos, avatars and product images."""

from __future__ import annotations

import re
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator, Protocol
from uuid import uuid4

import structlog

from ..domain.deadlines import check_deadline
from ..exceptions import BlobStorageError

logger = structlog.get_logger(__name__)

_HINT_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_-]*(/[a-z0-9][a-z0-9_-]*)*$")


class BlobStorage(Protocol):
    """Upload and delete-by-reference; never part of a database transaction."""

    def upload(self, stream: BinaryIO, destination_hint: str, *, filename: str | None = None) -> str:
        """Store ``stream`` and return its public reference."""
        ...

    def delete_by_reference(self, reference: str) -> None:
        ...


@dataclass(slots=True)
class LocalBlobStorage:
    """Keep blobs on the local filesystem and hand out URLs under ``public_base_url``."""

    root: Path
    public_base_url: str
    chunk_size: int = 1024 * 1024

    def __post_init__(self) -> None:
        self.public_base_url = self.public_base_url.rstrip("/")

    def upload(self, stream: BinaryIO, destination_hint: str, *, filename: str | None = None) -> str:
        check_deadline("blob upload")
        if not _HINT_PATTERN.match(destination_hint):
            raise BlobStorageError(f"invalid destination hint: {destination_hint!r}")
        suffix = Path(filename).suffix.lower() if filename else ""
        name = f"{uuid4().hex}{suffix}"
        directory = self.root / destination_hint
        path = directory / name
        try:
            directory.mkdir(parents=True, exist_ok=True)
            with path.open("wb") as handle:
                shutil.copyfileobj(stream, handle, self.chunk_size)
        except OSError as exc:
            path.unlink(missing_ok=True)
            raise BlobStorageError(f"failed to store blob under {destination_hint}") from exc
        reference = f"{self.public_base_url}/{destination_hint}/{name}"
        logger.info("blob.uploaded", reference=reference, bytes=path.stat().st_size)
        return reference

    def delete_by_reference(self, reference: str) -> None:
        """Remove the blob behind ``reference``; a missing blob is not an error."""
        check_deadline("blob delete")
        path = self.path_for(reference)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise BlobStorageError(f"failed to delete blob {reference}") from exc
        logger.info("blob.deleted", reference=reference)

    def path_for(self, reference: str) -> Path:
        prefix = f"{self.public_base_url}/"
        if not reference.startswith(prefix):
            raise BlobStorageError(f"reference is not managed by this storage: {reference}")
        root = self.root.resolve()
        path = (root / reference[len(prefix):]).resolve()
        if root not in path.parents:
            raise BlobStorageError(f"reference escapes storage root: {reference}")
        return path

    def iter_references(self) -> Iterator[str]:
        """Yield a reference for every stored blob."""
        if not self.root.exists():
            return
        root = self.root.resolve()
        for path in sorted(root.rglob("*")):
            if path.is_file():
                yield f"{self.public_base_url}/{path.relative_to(root).as_posix()}"


__all__ = ["BlobStorage", "LocalBlobStorage"]
