from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from docvault.models.document_share import SharePermission


class ShareParams(BaseModel):
    """Normalized share request handed to the persistence layer."""

    document_id: str
    shared_by: str
    user_emails: list[str]
    permission: SharePermission
    expires_at: Optional[datetime] = None
