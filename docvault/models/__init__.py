from docvault.db.base import Base
from docvault.models.user import User
from docvault.models.document import Document, DocumentVisibility
from docvault.models.document_share import DocumentShare, SharePermission
