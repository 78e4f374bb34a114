from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from docvault.models.document import Document, DocumentVisibility
from docvault.models.document_share import DocumentShare, SharePermission

EDIT_PERMISSIONS = {SharePermission.WRITE, SharePermission.ADMIN}


def active_share_filter(now: Optional[datetime] = None):
    now = now or datetime.now(timezone.utc)
    return or_(DocumentShare.expires_at.is_(None), DocumentShare.expires_at > now)


def get_active_share(
    db: Session, user_id: str, document_id: str
) -> Optional[DocumentShare]:
    return (
        db.query(DocumentShare)
        .filter(
            DocumentShare.document_id == document_id,
            DocumentShare.shared_with_id == user_id,
            active_share_filter(),
        )
        .first()
    )


def can_access_document(db: Session, user_id: str, document_id: str) -> bool:
    document = db.query(Document).filter(Document.id == document_id).first()
    if not document:
        return False

    if document.owner_id == user_id:
        return True

    if document.visibility == DocumentVisibility.PUBLIC:
        return True

    return get_active_share(db, user_id, document_id) is not None


def can_edit_document(db: Session, user_id: str, document_id: str) -> bool:
    document = db.query(Document).filter(Document.id == document_id).first()
    if not document:
        return False

    if document.owner_id == user_id:
        return True

    share = get_active_share(db, user_id, document_id)
    return share is not None and share.permission in EDIT_PERMISSIONS


ACCESS_CHECKS = {
    "read": can_access_document,
    "edit": can_edit_document,
}


def get_document_for_user(
    *,
    db: Session,
    document_id: str,
    user_id: str,
    required: str,
) -> Document:
    """
    Fetch a document if the user has the required access.

    ``required`` is one of ``"read"``, ``"edit"`` or ``"owner"``.
    Raises 404 when the document does not exist and 403 when access is denied.
    """
    document = db.query(Document).filter(Document.id == document_id).first()
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")

    if required == "owner":
        allowed = document.owner_id == user_id
    else:
        allowed = ACCESS_CHECKS[required](db, user_id, document_id)

    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Requires {required} access to this document",
        )

    return document
