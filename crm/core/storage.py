"""
File storage for uploaded signatures and proof-of-payment documents.

Files are written under ``settings.MEDIA_ROOT/<folder>/`` and exposed by the
application under ``settings.MEDIA_URL``.
"""

import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from crm.config.config import settings
from crm.core.utils import LoggerMixin


IMAGE_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
}
DOCUMENT_TYPES = {
    **IMAGE_TYPES,
    "application/pdf": ".pdf",
}


class StorageError(Exception):
    """Raised when an upload is rejected or cannot be persisted."""


@dataclass
class StoredFile:
    url: str
    name: str
    path: Path


class FileStorage(LoggerMixin):
    """Local filesystem storage."""

    def __init__(self, root: Optional[Path] = None, base_url: Optional[str] = None):
        super().__init__()
        self.root = Path(root or settings.MEDIA_ROOT)
        self.base_url = (base_url or settings.MEDIA_URL).rstrip("/")

    async def save_upload(
        self,
        upload: UploadFile,
        folder: str,
        prefix: str,
        allowed_types: Iterable[str] = DOCUMENT_TYPES,
    ) -> StoredFile:
        """
        Validate and persist an uploaded file.

        Args:
            upload: Incoming multipart file
            folder: Sub-folder of the media root
            prefix: File name prefix (usually the patient id)
            allowed_types: Accepted content types

        Returns:
            StoredFile: Public URL, original file name and disk path

        Raises:
            StorageError: Unsupported type, empty or oversized file, or write failure
        """
        content_type = (upload.content_type or "").split(";")[0].strip().lower()
        allowed = {t: DOCUMENT_TYPES.get(t, "") for t in allowed_types}
        if content_type not in allowed:
            raise StorageError(
                f"Unsupported file type '{content_type or 'unknown'}'. "
                f"Allowed: {', '.join(sorted(allowed))}"
            )

        data = await upload.read()
        if not data:
            raise StorageError("Uploaded file is empty")
        if len(data) > settings.MAX_UPLOAD_BYTES:
            raise StorageError(
                f"File exceeds the maximum size of {settings.MAX_UPLOAD_BYTES} bytes"
            )

        file_name = (
            f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"
            f"{allowed[content_type]}"
        )
        target_dir = self.root / folder
        target = target_dir / file_name

        try:
            await run_in_threadpool(target_dir.mkdir, parents=True, exist_ok=True)
            await run_in_threadpool(target.write_bytes, data)
        except OSError as e:
            self.log_error(
                {"event": "file_write_failed", "path": str(target), "error": str(e)},
                exc_info=True,
            )
            raise StorageError(f"Could not store file: {e.strerror or e}") from e

        self.log_info(
            {"event": "file_stored", "folder": folder, "file": file_name, "bytes": len(data)}
        )
        return StoredFile(
            url=f"{self.base_url}/{folder}/{file_name}",
            name=upload.filename or file_name,
            path=target,
        )

    async def delete_url(self, url: Optional[str]) -> None:
        """Remove a previously stored file. Unknown or foreign URLs are ignored."""
        if not url or not url.startswith(f"{self.base_url}/"):
            return
        relative = url[len(self.base_url) + 1:]
        target = (self.root / relative).resolve()
        if self.root.resolve() not in target.parents:
            return
        try:
            await run_in_threadpool(target.unlink, missing_ok=True)
        except OSError as e:
            self.log_warning(
                {"event": "file_delete_failed", "path": str(target), "error": str(e)}
            )


def get_storage() -> FileStorage:
    """Dependency returning storage bound to the current settings."""
    return FileStorage()
