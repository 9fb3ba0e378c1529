from fastapi import APIRouter, Depends, File, UploadFile, status
from app.schemas import UploadResponse
from app.services.upload_service import UploadService
from app.api.deps import get_upload_service, read_images
from app.auth import get_current_user
from app.core.exceptions import ValidationError
from typing import List, Optional

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.post("", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_files(
    files: Optional[List[UploadFile]] = File(None, description="Image files (JPEG, PNG, GIF, WebP)"),
    user=Depends(get_current_user),
    uploads: UploadService = Depends(get_upload_service)
):
    """
    Upload one or more image files. Maximum 10 files per request, 5MB per file.
    """
    incoming = read_images(files)
    if not incoming:
        raise ValidationError("No files provided")

    stored = await uploads.handle_file_uploads(incoming)
    return UploadResponse(
        files=[{"filename": name, "url": uploads.get_url(name)} for name in stored],
    )
