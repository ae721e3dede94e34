"""
DroneSpot Backend: Upload Service
===================================

What:  Validates uploaded images and keeps them on disk only while they are
       being analyzed.
How:   Extension, declared content type and size checks, then an async write
       to `upload_dir` under a UUID filename. The route removes the file in a
       `finally` block once the vision provider has answered.
Who:   Called by POST /api/analyze-image; the vision providers read the
       stored file back.

Lifecycle of an uploaded image:
    1. validate_and_store()  → checks, writes uploads/<uuid>.<ext>
    2. vision provider       → reads the file (base64 data URI or SDK upload)
    3. cleanup_file()        → always, success or failure
"""

import logging
import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import aiofiles

from dronespot.config import settings
from dronespot.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

# Image formats the vision providers accept
ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif"}

EXTENSION_MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
}


@dataclass(frozen=True)
class StoredUpload:
    path: Path
    original_filename: str
    mime_type: str
    size: int


class UploadService:
    """Validation and temporary storage for uploaded images."""

    def __init__(self, upload_dir: Optional[str] = None, max_file_size: Optional[int] = None):
        """
        Args:
            upload_dir: Override settings.upload_dir (used in tests).
            max_file_size: Override settings.max_file_size in bytes.
        """
        self.upload_dir = Path(upload_dir or settings.upload_dir).resolve()
        self.max_file_size = max_file_size or settings.max_file_size

    def validate_extension(self, filename: str) -> str:
        """
        Checks the extension against ALLOWED_EXTENSIONS.

        Returns the normalized (lowercase) extension.
        Raises ValidationError for anything else.
        """
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext or filename}' is not supported. "
                    f"Only image files are allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="image",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_content_type(self, content_type: Optional[str], extension: str) -> str:
        """
        Resolves the MIME type sent to the vision provider.

        A declared type must be an image/* type; a missing or generic
        declaration falls back to the type implied by the extension.
        """
        if content_type and content_type != "application/octet-stream":
            if not content_type.startswith("image/"):
                raise ValidationError(
                    message=f"Content type '{content_type}' is not an image.",
                    field="image",
                    context={"content_type": content_type},
                )
            return content_type
        return EXTENSION_MIME_TYPES[extension]

    def validate_size(self, size: int) -> None:
        max_mb = self.max_file_size / (1024 * 1024)
        if size == 0:
            raise ValidationError(message="Uploaded image is empty.", field="image")
        if size > self.max_file_size:
            raise ValidationError(
                message=f"Image is too large ({size / (1024 * 1024):.1f}MB). Maximum is {max_mb:.0f}MB.",
                field="image",
                context={"max_size_mb": max_mb, "actual_size": size},
            )

    async def store(self, content: bytes, extension: str) -> Path:
        """
        Write validated bytes to `upload_dir/<uuid><ext>`.

        Raises FileStorageError on OS-level failures (disk full, permissions).
        """
        path = self.upload_dir / f"{uuid.uuid4()}{extension}"
        try:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store upload at %s: %s", path, e)
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"os_error": str(e)},
            )
        logger.debug("Stored upload %s (%d bytes)", path.name, len(content))
        return path

    async def validate_and_store(
        self,
        filename: str,
        content: bytes,
        content_type: Optional[str] = None,
    ) -> StoredUpload:
        """Runs every check, cheapest first, then stores the image."""
        ext = self.validate_extension(filename)
        mime_type = self.validate_content_type(content_type, ext)
        self.validate_size(len(content))
        path = await self.store(content, ext)
        return StoredUpload(
            path=path,
            original_filename=filename,
            mime_type=mime_type,
            size=len(content),
        )

    async def read(self, path: Path) -> bytes:
        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except OSError as e:
            raise FileStorageError(
                message="Failed to read uploaded image.",
                context={"os_error": str(e)},
            )

    async def cleanup_file(self, path: Path) -> None:
        """
        Remove a stored upload. Missing files are ignored; other failures are
        logged and not raised, since the analysis result is already decided.
        """
        try:
            os.remove(path)
            logger.debug("Cleaned up upload %s", Path(path).name)
        except FileNotFoundError:
            logger.debug("Cleanup: upload already gone: %s", Path(path).name)
        except OSError as e:
            logger.warning("Failed to delete temporary upload %s: %s", path, e)


def get_upload_service() -> UploadService:
    return UploadService()
