import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from docvault.core.security import hash_password
from docvault.db.base import Base
from docvault.db.session import get_db
from docvault.main import app
from docvault.models.document import Document, DocumentVisibility
from docvault.models.document_share import DocumentShare, SharePermission
from docvault.models.user import User
from docvault.services.media import get_media_client
from tests.fixtures.factories import FakeMediaClient


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def media():
    return FakeMediaClient()


@pytest.fixture
def client(db, media):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_media_client] = lambda: media
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make_user(email, password="password123", name=None):
        user = User(email=email, name=name, hashed_password=hash_password(password))
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_document(db):
    def _make_document(owner, filename="report.pdf", visibility=DocumentVisibility.PRIVATE):
        document = Document(
            filename=filename,
            mime_type="application/pdf",
            file_type="pdf",
            size_bytes=10,
            visibility=visibility,
            media_url=f"https://media.test/{filename}",
            media_public_id=f"documents/{filename}",
            media_resource_type="raw",
            owner_id=owner.id,
        )
        db.add(document)
        db.commit()
        db.refresh(document)
        return document

    return _make_document


@pytest.fixture
def grant(db):
    def _grant(document, user, permission, expires_at=None):
        share = DocumentShare(
            document_id=document.id,
            shared_with_id=user.id,
            shared_by_id=document.owner_id,
            permission=SharePermission(permission),
            expires_at=expires_at,
        )
        db.add(share)
        db.commit()
        return share

    return _grant

