"""
Document sharing.

``share_document_request`` validates an incoming share request, checks that the
caller may share the document and hands the grant over to ``share_document``,
which resolves recipients and writes one ``DocumentShare`` row per recipient.
Validation is fail-fast: the first violated rule decides the response.
"""
import logging
import re
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import func
from sqlalchemy.orm import Session

from docvault.core.errors import Forbidden, InternalError, InvalidInput, NotFound
from docvault.models.document_share import DocumentShare, SharePermission
from docvault.models.user import User
from docvault.schemas.share import ShareParams
from docvault.services.permissions import can_edit_document

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
PERMISSION_VALUES = [permission.value for permission in SharePermission]
USERS_NOT_FOUND = "Some users not found"

_datetime_adapter = TypeAdapter(datetime)
# ISO-8601: calendar date, optional time part
ISO_DATETIME_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}(?:[T ].*)?")
INVALID_EXPIRY = "Invalid expiration date. Must be a future date."


class UsersNotFoundError(LookupError):
    def __init__(self, missing: Optional[list[str]] = None):
        super().__init__(USERS_NOT_FOUND)
        self.missing = missing or []


def to_iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_expiry(value: Any, now: Optional[datetime] = None) -> datetime:
    """Parse ``expiresAt`` into an aware UTC datetime strictly after ``now``."""
    now = now or datetime.now(timezone.utc)
    if not isinstance(value, str) or not ISO_DATETIME_PATTERN.fullmatch(value.strip()):
        raise InvalidInput(INVALID_EXPIRY)
    try:
        expires_at = _datetime_adapter.validate_python(value.strip())
    except ValidationError:
        raise InvalidInput(INVALID_EXPIRY)

    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    expires_at = expires_at.astimezone(timezone.utc)

    if expires_at <= now:
        raise InvalidInput(INVALID_EXPIRY)
    return expires_at


def is_expired(share: DocumentShare, now: Optional[datetime] = None) -> bool:
    if share.expires_at is None:
        return False
    expires_at = share.expires_at
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at <= (now or datetime.now(timezone.utc))


def share_document(db: Session, params: ShareParams) -> list[DocumentShare]:
    """
    Persist grants for every recipient of ``params``.

    Raises UsersNotFoundError if any recipient email has no account. Recipients
    who already hold an active grant on the document are skipped; an expired
    grant is renewed with the new permission and expiry.
    """
    if not can_edit_document(db, params.shared_by, params.document_id):
        raise PermissionError("Access denied: Cannot share this document")

    wanted = {email.lower() for email in params.user_emails}
    users = db.query(User).filter(func.lower(User.email).in_(wanted)).all()

    if len(users) != len(wanted):
        found = {user.email.lower() for user in users}
        raise UsersNotFoundError(sorted(wanted - found))

    existing = {
        share.shared_with_id: share
        for share in db.query(DocumentShare).filter(
            DocumentShare.document_id == params.document_id,
            DocumentShare.shared_with_id.in_([user.id for user in users]),
        )
    }

    created = []
    renewed = 0
    for user in users:
        share = existing.get(user.id)
        if share is not None:
            if is_expired(share):
                share.permission = params.permission
                share.expires_at = params.expires_at
                share.shared_by_id = params.shared_by
                renewed += 1
            continue
        share = DocumentShare(
            document_id=params.document_id,
            shared_with_id=user.id,
            shared_by_id=params.shared_by,
            permission=params.permission,
            expires_at=params.expires_at,
        )
        db.add(share)
        created.append(share)

    db.commit()
    logger.info(
        "Document %s shared by %s: %d new grant(s), %d renewed, %d already active",
        params.document_id,
        params.shared_by,
        len(created),
        renewed,
        len(existing) - renewed,
    )
    return created


def share_document_request(
    db: Session,
    caller: User,
    document_id: str,
    body: Any,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    if not isinstance(body, dict):
        raise InvalidInput("Request body must be a JSON object")

    user_emails = body.get("userEmails")
    if (
        not isinstance(user_emails, list)
        or not user_emails
        or not all(isinstance(email, str) for email in user_emails)
    ):
        raise InvalidInput(
            "userEmails array is required and must contain at least one email"
        )

    permission = body.get("permission")
    if permission not in PERMISSION_VALUES:
        raise InvalidInput("Valid permission is required (READ, WRITE, or ADMIN)")

    invalid_emails = [email for email in user_emails if not EMAIL_PATTERN.fullmatch(email)]
    if invalid_emails:
        raise InvalidInput("Invalid email addresses found", invalidEmails=invalid_emails)

    if not can_edit_document(db, caller.id, document_id):
        raise Forbidden(
            "Access denied: You do not have permission to share this document"
        )

    expires_at = None
    if body.get("expiresAt"):
        expires_at = parse_expiry(body["expiresAt"], now)

    params = ShareParams(
        document_id=document_id,
        shared_by=caller.id,
        user_emails=user_emails,
        permission=permission,
        expires_at=expires_at,
    )

    try:
        share_document(db, params)
    except Exception as exc:
        db.rollback()
        logger.error("Document sharing error: %s", exc, exc_info=True)
        if USERS_NOT_FOUND in str(exc):
            raise NotFound(
                "Some users were not found. "
                "All users must have accounts to share documents."
            )
        raise InternalError("Failed to share document", details=str(exc))

    recipient_count = len({email.lower() for email in user_emails})
    data: dict[str, Any] = {
        "documentId": document_id,
        "sharedWith": user_emails,
        "permission": permission,
    }
    if expires_at is not None:
        data["expiresAt"] = to_iso(expires_at)
    data["sharedBy"] = caller.email

    return {
        "message": f"Document shared with {recipient_count} user(s)",
        "data": data,
    }
