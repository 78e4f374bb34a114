import logging
import mimetypes
from typing import Any, List, Optional

from fastapi import (
    APIRouter,
    Body,
    Depends,
    File,
    Form,
    HTTPException,
    Query,
    Response,
    UploadFile,
    status,
)
from fastapi.responses import RedirectResponse
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from docvault.api.routes.auth import get_current_user
from docvault.core.config import settings
from docvault.core.errors import utc_timestamp
from docvault.db.session import get_db
from docvault.models.document import Document, DocumentVisibility
from docvault.models.document_share import DocumentShare
from docvault.models.user import User
from docvault.schemas.document import DocumentRead, DocumentShareRead
from docvault.services.media import MediaStorageClient, MediaStorageError, get_media_client
from docvault.services.permissions import active_share_filter, get_document_for_user
from docvault.services.sharing import share_document_request

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])

PAGE_SIZE = 10


@router.post("/upload", response_model=DocumentRead, status_code=status.HTTP_201_CREATED)
def upload_document(
    file: UploadFile = File(...),
    visibility: DocumentVisibility = Form(DocumentVisibility.PRIVATE),
    tags: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    media: MediaStorageClient = Depends(get_media_client),
):
    data = file.file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    if len(data) > settings.MAX_UPLOAD_SIZE:
        raise HTTPException(status_code=400, detail="File exceeds maximum upload size")

    filename = file.filename or "upload"
    mime_type = file.content_type or mimetypes.guess_type(filename)[0]
    file_type = filename.rsplit(".", 1)[-1].lower() if "." in filename else None

    try:
        asset = media.upload(data, filename, folder=f"documents/{current_user.id}")
    except MediaStorageError as e:
        logger.error("Document upload failed for %s: %s", filename, e)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    document = Document(
        filename=filename,
        mime_type=mime_type,
        file_type=file_type,
        size_bytes=asset.bytes,
        tags=[tag.strip() for tag in tags.split(",") if tag.strip()] if tags else [],
        visibility=visibility,
        media_url=asset.secure_url,
        media_public_id=asset.public_id,
        media_resource_type=asset.resource_type,
        owner_id=current_user.id,
    )
    db.add(document)
    db.commit()
    db.refresh(document)
    return document


@router.get("", response_model=List[DocumentRead])
def list_documents(
    page: int = Query(1, ge=1, description="Page number (starting from 1)"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    skip = (page - 1) * PAGE_SIZE

    shared_ids = select(DocumentShare.document_id).where(
        DocumentShare.shared_with_id == current_user.id,
        active_share_filter(),
    )

    return (
        db.query(Document)
        .filter(
            or_(
                Document.owner_id == current_user.id,
                Document.id.in_(shared_ids),
            )
        )
        .order_by(Document.created_at.desc(), Document.id)
        .offset(skip)
        .limit(PAGE_SIZE)
        .all()
    )


@router.get("/{document_id}", response_model=DocumentRead)
def get_document(
    document_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_document_for_user(
        db=db, document_id=document_id, user_id=current_user.id, required="read"
    )


@router.get("/{document_id}/download")
def download_document(
    document_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    media: MediaStorageClient = Depends(get_media_client),
):
    document = get_document_for_user(
        db=db, document_id=document_id, user_id=current_user.id, required="read"
    )
    if not document.media_public_id:
        raise HTTPException(status_code=404, detail="File not available")

    url = media.download_url(
        document.media_public_id,
        resource_type=document.media_resource_type or "raw",
        filename=document.filename,
    )
    return RedirectResponse(url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_document(
    document_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    media: MediaStorageClient = Depends(get_media_client),
):
    document = get_document_for_user(
        db=db, document_id=document_id, user_id=current_user.id, required="owner"
    )

    try:
        media.delete(document.media_public_id, document.media_resource_type)
    except MediaStorageError as e:
        logger.warning("Failed to delete media asset %s: %s", document.media_public_id, e)

    db.delete(document)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{document_id}/shares", response_model=List[DocumentShareRead])
def list_document_shares(
    document_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    get_document_for_user(
        db=db, document_id=document_id, user_id=current_user.id, required="edit"
    )
    return (
        db.query(DocumentShare)
        .filter(DocumentShare.document_id == document_id)
        .order_by(DocumentShare.created_at.asc())
        .all()
    )


@router.post("/{document_id}/share")
def share_document_with_users(
    document_id: str,
    body: Any = Body(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = share_document_request(db, current_user, document_id, body)
    return {
        "success": True,
        "message": result["message"],
        "data": result["data"],
        "timestamp": utc_timestamp(),
    }
