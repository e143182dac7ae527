"""Shared pytest fixtures: in-memory database, API client and a seeded church"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BACKGROUND_JOBS_ENABLED"] = "false"
os.environ["STRIPE_SECRET_KEY"] = ""
os.environ["STRIPE_WEBHOOK_SECRET"] = ""
os.environ["RESEND_API_KEY"] = ""
os.environ["SMTP_HOST"] = ""

from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from platesync import email_service, storage  # noqa: E402
from platesync.auth import create_access_token  # noqa: E402
from platesync.database import Base, get_db  # noqa: E402
from platesync.domain.churches.service import ChurchService  # noqa: E402
from platesync.domain.email_templates import service as template_service  # noqa: E402
from platesync.domain.users.repository import UserRepository  # noqa: E402
from platesync.main import app  # noqa: E402
from platesync.models import UserRole  # noqa: E402
from platesync.security_utils import hash_password  # noqa: E402

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "correct-horse-battery"


@pytest.fixture()
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    """Capture outgoing email instead of calling a provider"""
    outbox = []

    async def fake_send_email(to, subject, html_content=None, mjml_content=None, text_content=None,
                              from_address=None, attachments=None):
        outbox.append(
            {
                "to": to,
                "subject": subject,
                "html": html_content or mjml_content,
                "text": text_content,
                "attachments": attachments or [],
            }
        )
        return {"id": f"test-{len(outbox)}"}

    monkeypatch.setattr(email_service, "send_email", fake_send_email)
    monkeypatch.setattr(email_service, "compile_mjml_to_html", lambda mjml: mjml)
    monkeypatch.setattr(template_service, "compile_mjml_to_html", lambda mjml: mjml)
    return outbox


@pytest.fixture(autouse=True)
def fake_storage(monkeypatch):
    uploaded = []

    def fake_upload(content, prefix, extension, content_type):
        url = f"https://cdn.test/{prefix}/image-{len(uploaded) + 1}.{extension}"
        uploaded.append(url)
        return url

    monkeypatch.setattr(storage, "upload_image", fake_upload)
    monkeypatch.setattr(storage, "delete_object", lambda url: None)
    return uploaded


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture()
def seed(db):
    """A church with an account owner, an admin and an usher"""
    church, owner = ChurchService(db).create_church_with_owner(
        church_name="Grace Community Church",
        owner_email="owner@grace.test",
        first_name="Olivia",
        last_name="Owner",
        password=PASSWORD,
        is_verified=True,
    )
    admin = UserRepository.create_user(
        db,
        church.id,
        email="admin@grace.test",
        first_name="Adam",
        last_name="Admin",
        role=UserRole.ADMIN,
        password_hash=hash_password(PASSWORD),
        is_verified=True,
    )
    usher = UserRepository.create_user(
        db,
        church.id,
        email="usher@grace.test",
        first_name="Uma",
        last_name="Usher",
        role=UserRole.USHER,
        password_hash=hash_password(PASSWORD),
        is_verified=True,
    )
    return SimpleNamespace(
        church=church,
        owner=owner,
        admin=admin,
        usher=usher,
        owner_headers=auth_headers(owner),
        admin_headers=auth_headers(admin),
        usher_headers=auth_headers(usher),
    )
