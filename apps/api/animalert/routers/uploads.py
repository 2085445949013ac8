"""Uploads router - evidence upload URLs for the petition form."""

from fastapi import APIRouter, HTTPException, Request, status

from animalert.core.config import settings
from animalert.core.rate_limit import API_LIMIT, limiter
from animalert.db.enums import StorageBackend
from animalert.schemas.complaint import UploadUrlRequest, UploadUrlResponse
from animalert.services import document_storage_service

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.post("/presign", response_model=UploadUrlResponse)
@limiter.limit(API_LIMIT)
def create_upload_url(request: Request, data: UploadUrlRequest) -> UploadUrlResponse:
    """
    Issue a short-lived upload URL for one evidence file.

    The returned key is what the form later sends in `attachments`.
    """
    try:
        ticket = document_storage_service.create_upload_url(
            data.file_name, data.file_type, data.file_size
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return UploadUrlResponse(key=ticket.key, url=ticket.url)


@router.put("/local/{key:path}", status_code=status.HTTP_204_NO_CONTENT)
async def put_local_upload(key: str, request: Request) -> None:
    """Receive an evidence upload when running with the local storage backend."""
    if settings.STORAGE_BACKEND.lower() != StorageBackend.LOCAL.value:
        raise HTTPException(status_code=404, detail="Not found")
    body = await request.body()
    content_type = request.headers.get("content-type", "")
    try:
        document_storage_service.validate_upload(content_type, len(body))
        document_storage_service.store_local_upload(key, body)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
