"""
File storage for property images and documents.

Validates uploads, writes them to disk with aiofiles, and removes them
again through an idempotent, retryable cleanup queue.
"""

import io
import uuid
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import aiofiles
import aiofiles.os
from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

from property_portal.config import Settings, get_settings
from property_portal.utils.exceptions import (
    FileUploadError,
    FileSizeExceededError,
    UnsupportedFileTypeError,
)


@dataclass(frozen=True)
class StoredFile:
    """A file already written to storage, ready to be recorded in the database."""

    file_name: str
    original_name: str
    file_path: str
    file_size: int
    mime_type: str


class FileValidator:
    """Checks uploaded content before it is written."""

    IMAGE_EXTENSIONS = {
        'image/jpeg': ['.jpg', '.jpeg'],
        'image/png': ['.png'],
        'image/webp': ['.webp'],
    }

    DOCUMENT_EXTENSIONS = {
        'application/pdf': ['.pdf'],
        'application/msword': ['.doc'],
        'application/vnd.openxmlformats-officedocument.wordprocessingml.document': ['.docx'],
        'image/jpeg': ['.jpg', '.jpeg'],
        'image/png': ['.png'],
    }

    PIL_FORMATS = {
        'image/jpeg': 'JPEG',
        'image/png': 'PNG',
        'image/webp': 'WEBP',
    }

    MIN_WIDTH = 100
    MIN_HEIGHT = 100

    @classmethod
    def validate_type(
        cls,
        filename: Optional[str],
        mime_type: Optional[str],
        allowed_types: List[str],
        extensions: Dict[str, List[str]]
    ) -> str:
        """
        Check the declared MIME type and that the extension agrees with it.

        Returns:
            Lowercase file extension
        """
        if not filename:
            raise FileUploadError("Filename is required")

        mime_type = mime_type or ""
        if mime_type not in allowed_types or mime_type not in extensions:
            raise UnsupportedFileTypeError(mime_type or "unknown", allowed_types)

        extension = Path(filename).suffix.lower()
        if extension not in extensions[mime_type]:
            raise FileUploadError(
                f"File extension '{extension or 'none'}' doesn't match MIME type '{mime_type}'"
            )
        return extension

    @staticmethod
    def validate_size(size: int, max_size: int) -> int:
        if size <= 0:
            raise FileUploadError("File is empty")
        if size > max_size:
            raise FileSizeExceededError(size, max_size)
        return size

    @classmethod
    def validate_image_content(cls, content: bytes, mime_type: str) -> None:
        """Decode the image with Pillow and check its format and minimum size."""
        try:
            with Image.open(io.BytesIO(content)) as img:
                width, height = img.size
                pil_format = img.format
                img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise FileUploadError(f"Invalid image file: {e}")

        expected_format = cls.PIL_FORMATS.get(mime_type)
        if expected_format and pil_format != expected_format:
            raise FileUploadError(f"Image format '{pil_format}' doesn't match MIME type '{mime_type}'")

        if width < cls.MIN_WIDTH or height < cls.MIN_HEIGHT:
            raise FileUploadError(
                f"Image is {width}x{height}px; minimum is {cls.MIN_WIDTH}x{cls.MIN_HEIGHT}px"
            )


class FileStorage:
    """Writes and deletes property files below ``base_dir``."""

    def __init__(
        self,
        base_dir: Optional[Path] = None,
        config: Optional[Settings] = None,
        logger: Optional[logging.Logger] = None,
        cleanup_queue: Optional["FileCleanupQueue"] = None
    ):
        self.config = config or get_settings()
        self.base_dir = Path(base_dir or self.config.upload_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.logger = logger or logging.getLogger("property_portal.storage")
        self.cleanup_queue = cleanup_queue or FileCleanupQueue(
            self,
            max_attempts=self.config.file_cleanup_max_attempts,
            logger=self.logger
        )

    def get_property_directory(self, property_id: uuid.UUID, kind: str) -> Path:
        property_dir = self.base_dir / "properties" / str(property_id) / kind
        property_dir.mkdir(parents=True, exist_ok=True)
        return property_dir

    async def save_image(self, property_id: uuid.UUID, upload: UploadFile) -> StoredFile:
        """
        Validate and store an uploaded image.

        Raises:
            FileUploadError: If the content is not a usable image or cannot be written
            UnsupportedFileTypeError: If the MIME type is not allowed
            FileSizeExceededError: If the file is too large
        """
        extension = FileValidator.validate_type(
            upload.filename,
            upload.content_type,
            self.config.allowed_image_types,
            FileValidator.IMAGE_EXTENSIONS
        )
        content = await self._read(upload)
        FileValidator.validate_size(len(content), self.config.max_image_size)
        FileValidator.validate_image_content(content, upload.content_type)
        return await self._write(property_id, "images", upload, content, extension)

    async def save_document(self, property_id: uuid.UUID, upload: UploadFile) -> StoredFile:
        """Validate and store an uploaded document."""
        extension = FileValidator.validate_type(
            upload.filename,
            upload.content_type,
            self.config.allowed_document_types,
            FileValidator.DOCUMENT_EXTENSIONS
        )
        content = await self._read(upload)
        FileValidator.validate_size(len(content), self.config.max_document_size)
        return await self._write(property_id, "documents", upload, content, extension)

    async def delete(self, file_path: str) -> bool:
        """
        Remove a stored file. A file that is already gone counts as removed.

        Returns:
            True once the file no longer exists

        Raises:
            OSError: If the file exists but cannot be removed
        """
        path = Path(file_path)
        try:
            await aiofiles.os.remove(path)
            self.logger.debug(f"Deleted file {path}")
        except FileNotFoundError:
            self.logger.debug(f"File already absent: {path}")
        self._remove_empty_parents(path.parent)
        return True

    def _remove_empty_parents(self, directory: Path) -> None:
        """Drop empty per-property directories up to the ``properties`` root."""
        root = (self.base_dir / "properties").resolve()
        current = directory.resolve()
        while current != root and root in current.parents:
            try:
                current.rmdir()
            except OSError:
                return
            current = current.parent

    async def _read(self, upload: UploadFile) -> bytes:
        try:
            await upload.seek(0)
            return await upload.read()
        except Exception as e:
            raise FileUploadError(f"Could not read '{upload.filename}': {e}")

    async def _write(
        self,
        property_id: uuid.UUID,
        kind: str,
        upload: UploadFile,
        content: bytes,
        extension: str
    ) -> StoredFile:
        file_name = f"{uuid.uuid4()}{extension}"
        file_path = self.get_property_directory(property_id, kind) / file_name
        try:
            async with aiofiles.open(file_path, 'wb') as f:
                await f.write(content)
        except OSError as e:
            self.logger.error(f"Failed to write {file_path}: {e}")
            raise FileUploadError(f"Failed to save '{upload.filename}'")

        self.logger.info(f"Stored {kind[:-1]} {file_name} ({len(content)} bytes) for property {property_id}")
        return StoredFile(
            file_name=file_name,
            original_name=upload.filename,
            file_path=str(file_path),
            file_size=len(content),
            mime_type=upload.content_type,
        )


@dataclass
class CleanupReport:
    deleted: List[str] = field(default_factory=list)
    retrying: List[str] = field(default_factory=list)
    abandoned: List[str] = field(default_factory=list)


class FileCleanupQueue:
    """
    Pending file deletions, processed separately from the request that caused them.

    Paths are enqueued only after the owning rows are committed. ``process``
    may run any number of times; each failed path is retried on later runs
    until ``max_attempts`` is reached, then logged and dropped.
    """

    def __init__(self, storage: FileStorage, max_attempts: int = 3, logger: Optional[logging.Logger] = None):
        self.storage = storage
        self.max_attempts = max_attempts
        self.logger = logger or logging.getLogger("property_portal.storage.cleanup")
        self._attempts: Dict[str, int] = {}

    @property
    def pending(self) -> List[str]:
        return list(self._attempts)

    def enqueue(self, paths: Iterable[str]) -> None:
        for path in paths:
            if path:
                self._attempts.setdefault(path, 0)

    async def process(self) -> CleanupReport:
        report = CleanupReport()
        batch, self._attempts = self._attempts, {}

        for path, attempts in batch.items():
            try:
                await self.storage.delete(path)
                report.deleted.append(path)
            except OSError as e:
                attempts += 1
                if attempts >= self.max_attempts:
                    self.logger.warning(f"Giving up on deleting {path} after {attempts} attempts: {e}")
                    report.abandoned.append(path)
                else:
                    self.logger.warning(f"Failed to delete {path} (attempt {attempts}): {e}")
                    self._attempts[path] = max(attempts, self._attempts.get(path, 0))
                    report.retrying.append(path)

        return report
