from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from docvault.models.document import DocumentVisibility
from docvault.models.document_share import SharePermission


class DocumentRead(BaseModel):
    id: str
    filename: str
    mime_type: Optional[str]
    file_type: Optional[str]
    size_bytes: int
    tags: list[str] = []
    visibility: DocumentVisibility
    media_url: str
    owner_id: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DocumentShareRead(BaseModel):
    id: str
    document_id: str
    shared_with_id: str
    shared_by_id: str
    permission: SharePermission
    expires_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True
