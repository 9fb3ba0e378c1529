"""
Dependency providers wiring services to their collaborators.
"""
from functools import lru_cache
from typing import List, Optional
from fastapi import Depends, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.config import settings
from app.core.exceptions import ValidationError
from app.db.session import get_session
from app.services.auth_service import AuthService
from app.services.event_service import EventService
from app.services.upload_service import UploadService, IncomingFile


@lru_cache
def get_upload_service() -> UploadService:
    return UploadService(settings.UPLOAD_DIR, max_file_size=settings.MAX_UPLOAD_SIZE)


def get_auth_service(session: AsyncSession = Depends(get_session)) -> AuthService:
    return AuthService(session)


def get_event_service(
    session: AsyncSession = Depends(get_session),
    uploads: UploadService = Depends(get_upload_service),
) -> EventService:
    return EventService(session, uploads)


def read_images(images: Optional[List[UploadFile]]) -> List[IncomingFile]:
    """Wrap the uploaded parts of a multipart request, enforcing the per-request file limit."""
    files = [f for f in (images or []) if f.filename]
    if len(files) > settings.MAX_UPLOAD_FILES:
        raise ValidationError(f"Too many files: at most {settings.MAX_UPLOAD_FILES} per request")
    return [IncomingFile.from_upload(f) for f in files]
