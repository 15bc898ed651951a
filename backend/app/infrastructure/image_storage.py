"""Image Storage — persists uploaded place images on local disk.

Invariants:
    - Only png/jpeg uploads accepted; anything else is a ValidationFailedError (422)
    - Uploads above max_bytes rejected before anything is written
    - Stored file name is a fresh UUID, never the client-supplied name
    - remove() never raises: a leftover file is preferable to failing a committed delete
    - Disk IO runs in the threadpool, never on the event loop

Design Decisions:
    - Returned path is relative to the process working directory and is what
      Place.image stores; the same directory is mounted at /uploads/images
"""

import logging
import os
import uuid

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from app.core.errors import ValidationFailedError

logger = logging.getLogger(__name__)

MIME_TYPE_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpeg",
    "image/jpg": "jpg",
}


class ImageStorage:
    """Local-disk storage for place images."""

    def __init__(self, upload_dir: str, max_bytes: int = 500_000):
        self.upload_dir = upload_dir
        self.max_bytes = max_bytes

    async def save(self, upload: UploadFile) -> str:
        """Validate and write upload, returning its stored path."""
        extension = MIME_TYPE_EXTENSIONS.get(upload.content_type or "")
        if extension is None:
            raise ValidationFailedError("Invalid mime type!")

        content = await upload.read(self.max_bytes + 1)
        if len(content) > self.max_bytes:
            raise ValidationFailedError(
                f"Image exceeds the {self.max_bytes} byte limit.",
            )

        path = os.path.join(self.upload_dir, f"{uuid.uuid4()}.{extension}")
        await run_in_threadpool(self._write, path, content)
        logger.info("Stored uploaded image", extra={"image_path": path})
        return path

    async def remove(self, path: str) -> bool:
        """Best-effort delete. Returns False (and logs) when the file cannot be removed."""
        try:
            await run_in_threadpool(os.remove, path)
        except OSError as e:
            logger.warning(
                f"Could not remove image: {e}", extra={"image_path": path},
            )
            return False
        return True

    def _write(self, path: str, content: bytes) -> None:
        os.makedirs(self.upload_dir, exist_ok=True)
        with open(path, "wb") as f:
            f.write(content)
