import enum
import uuid

from sqlalchemy import (
    JSON,
    BigInteger,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    String,
    func,
)
from sqlalchemy.orm import relationship

from docvault.db.base import Base


class DocumentVisibility(str, enum.Enum):
    PRIVATE = "PRIVATE"
    SHARED = "SHARED"
    PUBLIC = "PUBLIC"


class Document(Base):
    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    filename = Column(String, nullable=False)
    mime_type = Column(String, nullable=True)
    file_type = Column(String, nullable=True)
    size_bytes = Column(BigInteger, nullable=False, default=0)
    tags = Column(JSON, nullable=False, default=list)
    visibility = Column(
        Enum(DocumentVisibility),
        nullable=False,
        default=DocumentVisibility.PRIVATE,
    )

    # The asset as stored on the media host
    media_url = Column(String, nullable=False)
    media_public_id = Column(String, nullable=False, index=True)
    media_resource_type = Column(String, nullable=False, default="raw")

    owner_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    owner = relationship("User", back_populates="documents")
    shares = relationship(
        "DocumentShare",
        back_populates="document",
        cascade="all, delete-orphan",
    )
