"""
Product image upload handling.

Accepts a single image per request under a fixed multipart field,
checks its extension, declared MIME type and size, and stores it on local
disk under a generated, collision-resistant name. Stored images are served
back by the static mount configured in ``api.src.main``.
"""

import os
import random
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import structlog
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import FormData, UploadFile

from api.src.config import Settings
from api.src.errors import UploadError

logger = structlog.get_logger(__name__)

INVALID_TYPE_MESSAGE = "Invalid file type. Only images are allowed."
TOO_MANY_FILES_MESSAGE = "Only one image may be uploaded per request."

RANDOM_SUFFIX_MAX = 10 ** 9


@dataclass(frozen=True)
class StoredImage:
    """An image written to the upload directory."""
    filename: str
    path: Path
    relative_path: str
    size: int


class ImageUploadService:
    """Validates and stores product images."""

    def __init__(self, settings: Settings):
        """
        Initialize upload service.

        Args:
            settings: Application settings (directory, limits, allowed types)
        """
        self.settings = settings
        self.upload_dir = Path(settings.upload_dir)
        self.field_name = settings.upload_field_name
        self.max_bytes = settings.upload_max_bytes
        self.allowed_extensions = set(settings.upload_allowed_extensions)
        self.allowed_mime_types = {m.lower() for m in settings.upload_allowed_mime_types}

    @property
    def too_large_message(self) -> str:
        """Error shown for oversized files."""
        megabytes = self.max_bytes / (1024 * 1024)
        return f"File too large. Maximum size is {megabytes:g} MB."

    def extract_image(self, form: FormData) -> Optional[UploadFile]:
        """
        Pick the product image out of a parsed multipart form.

        Args:
            form: Parsed form data

        Returns:
            The uploaded image, or None when no file was sent

        Raises:
            UploadError: If files arrive under another field or more than one is sent
        """
        image: Optional[UploadFile] = None

        for key, value in form.multi_items():
            if not isinstance(value, UploadFile) or not value.filename:
                continue
            if key != self.field_name:
                logger.warning("upload_unexpected_field", field=key)
                raise UploadError(f"Unexpected file field '{key}'.")
            if image is not None:
                logger.warning("upload_too_many_files", field=key)
                raise UploadError(TOO_MANY_FILES_MESSAGE)
            image = value

        return image

    def check_type(self, filename: str, content_type: Optional[str]) -> None:
        """
        Require both an image extension and an image MIME type.

        Raises:
            UploadError: If either check fails
        """
        extension = os.path.splitext(filename)[1].lower()
        mime_type = (content_type or "").split(";")[0].strip().lower()

        if extension not in self.allowed_extensions or mime_type not in self.allowed_mime_types:
            logger.warning(
                "upload_invalid_type",
                filename=filename,
                extension=extension,
                content_type=content_type
            )
            raise UploadError(INVALID_TYPE_MESSAGE)

    @staticmethod
    def generate_filename(original_filename: str) -> str:
        """Build ``<epoch-ms>-<random>-<original basename>``."""
        basename = os.path.basename(original_filename.replace("\\", "/"))
        timestamp = int(time.time() * 1000)
        suffix = random.randint(0, RANDOM_SUFFIX_MAX)
        return f"{timestamp}-{suffix}-{basename}"

    async def save(self, upload: UploadFile) -> StoredImage:
        """
        Validate and store an uploaded image.

        Args:
            upload: Uploaded file

        Returns:
            Stored image details

        Raises:
            UploadError: If the type is not an allowed image or the file is too large
        """
        filename = upload.filename or ""
        self.check_type(filename, upload.content_type)

        content = await upload.read(self.max_bytes + 1)
        if len(content) > self.max_bytes:
            logger.warning("upload_too_large", filename=filename, max_bytes=self.max_bytes)
            raise UploadError(self.too_large_message)

        stored_name = self.generate_filename(filename)
        path = self.upload_dir / stored_name

        await run_in_threadpool(self._write, path, content)

        image = StoredImage(
            filename=stored_name,
            path=path,
            relative_path=f"{self.settings.upload_path_prefix}/{stored_name}",
            size=len(content),
        )
        logger.info("upload_stored", path=image.relative_path, size=image.size)
        return image

    def _write(self, path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)

    async def discard(self, image: StoredImage) -> None:
        """Remove a stored image whose product was never saved."""
        try:
            await run_in_threadpool(image.path.unlink, missing_ok=True)
            logger.info("upload_discarded", path=image.relative_path)
        except OSError as e:
            logger.warning("upload_discard_failed", path=image.relative_path, error=str(e))
