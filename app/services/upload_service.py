"""Upload pipeline: validate incoming image files and persist them under the storage root."""
import asyncio
import os
import shutil
import uuid
from typing import BinaryIO, List, Optional, Sequence
from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool
from app.core.config import settings
from app.core.exceptions import ValidationError
from app.core.logging import get_logger

ALLOWED_MIME_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")
PUBLIC_PREFIX = "/uploads"


class IncomingFile:
    """
    A received file awaiting validation.

    The bytes come from an in-memory buffer (content), an open binary file
    object (stream) or a temporary file on disk (path). Streams and paths are
    only read once validation has passed; a path source is removed once handled.
    """

    def __init__(
        self,
        original_name: str,
        mime_type: str,
        size: int,
        content: Optional[bytes] = None,
        stream: Optional[BinaryIO] = None,
        path: Optional[str] = None,
    ):
        self.original_name = original_name
        self.mime_type = mime_type
        self.size = size
        self.content = content
        self.stream = stream
        self.path = path

    @classmethod
    def from_upload(cls, upload: UploadFile) -> "IncomingFile":
        """Wrap a multipart part without reading it; the size comes from the spooled file."""
        size = upload.size
        if size is None:
            upload.file.seek(0, os.SEEK_END)
            size = upload.file.tell()
        upload.file.seek(0)
        return cls(
            original_name=upload.filename or "",
            mime_type=upload.content_type or "",
            size=size,
            stream=upload.file,
        )


class UploadService:
    def __init__(self, upload_dir: str, max_file_size: int = settings.MAX_UPLOAD_SIZE, log=None):
        self.upload_dir = os.path.abspath(upload_dir)
        self.max_file_size = max_file_size
        self.log = log or get_logger("uploads")
        # Concurrent creators are fine: exist_ok makes the race benign
        os.makedirs(self.upload_dir, exist_ok=True)

    def validate(self, file: Optional[IncomingFile]) -> None:
        """
        Check presence, mime type and size. Nothing is written here.

        Raises:
            ValidationError: If the file is absent, of a disallowed type or too large
        """
        if file is None or not file.original_name:
            raise ValidationError("No file provided")

        if file.mime_type not in ALLOWED_MIME_TYPES:
            self.log.warning(f"Rejected upload {file.original_name!r}: type {file.mime_type}")
            raise ValidationError(
                f"File type {file.mime_type} is not allowed. "
                f"Allowed types: {', '.join(ALLOWED_MIME_TYPES)}"
            )

        if file.size > self.max_file_size:
            self.log.warning(f"Rejected upload {file.original_name!r}: {file.size} bytes")
            raise ValidationError(
                f"File size {file.size} bytes exceeds maximum allowed size of {self.max_file_size} bytes"
            )

    async def handle_file_upload(self, file: Optional[IncomingFile]) -> str:
        """
        Validate and persist one file.

        Returns:
            The stored name, "{uuid}-{original name}"

        Raises:
            ValidationError: On rejection, or when copying fails (after cleanup)
        """
        self.validate(file)

        stored_name = f"{uuid.uuid4()}-{os.path.basename(file.original_name)}"
        destination = self.get_path(stored_name)

        try:
            await run_in_threadpool(self._copy, file, destination)
        except OSError as e:
            self.log.error(f"Failed to store {file.original_name!r}: {e}")
            self._remove_quietly(file.path)
            self._remove_quietly(destination)
            raise ValidationError(f"Failed to upload file: {e}")

        self._remove_quietly(file.path)
        self.log.info(f"Stored upload {stored_name} ({file.size} bytes)")
        return stored_name

    async def handle_file_uploads(self, files: Sequence[IncomingFile]) -> List[str]:
        """
        Persist several files independently.

        Every file is settled before the first failure is raised, so files
        already stored stay stored if a sibling fails.
        """
        results = await asyncio.gather(
            *(self.handle_file_upload(f) for f in files),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, Exception):
                raise result
        return list(results)

    @staticmethod
    def _copy(file: IncomingFile, destination: str) -> None:
        with open(destination, "wb") as dst:
            if file.content is not None:
                dst.write(file.content)
            elif file.stream is not None:
                shutil.copyfileobj(file.stream, dst)
            else:
                with open(file.path, "rb") as src:
                    shutil.copyfileobj(src, dst)

    def _remove_quietly(self, path: Optional[str]) -> None:
        if not path:
            return
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            self.log.warning(f"Could not remove {path}: {e}")

    def get_path(self, stored_name: str) -> str:
        return os.path.join(self.upload_dir, stored_name)

    @staticmethod
    def get_url(stored_name: str) -> str:
        return f"{PUBLIC_PREFIX}/{stored_name}"

    def delete(self, stored_name: str) -> bool:
        """Remove a stored file. Returns False when there was nothing to remove."""
        if not stored_name or os.path.basename(stored_name) != stored_name:
            return False
        path = self.get_path(stored_name)
        if not os.path.isfile(path):
            return False
        os.remove(path)
        self.log.info(f"Deleted upload {stored_name}")
        return True
