import os
import tempfile

# Settings are read once at import time, so configure the environment first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "false"
os.environ["MAIL_SUPPRESS_SEND"] = "true"
os.environ["SECURITY_ACCESS_PIN"] = "4321"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["SUPERADMIN_EMAIL"] = ""
os.environ["SUPERADMIN_PASSWORD"] = ""
os.environ["MEDIA_DIR"] = tempfile.mkdtemp(prefix="vms-media-")

import pytest
from fastapi.testclient import TestClient

from vms.core.rate_limit import rate_limiter
from vms.core.security import create_access_token, hash_password
from vms.db.base import Base
from vms.db.models import Profile, UserRole, VisitStatus, VisitorRequest
from vms.db.session import SessionLocal, engine
from vms.main import app
from vms.services.email_service import get_mailer

API = "/api/v1"
PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def fresh_state():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    rate_limiter.reset()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def outbox():
    with get_mailer().record_messages() as messages:
        yield messages


def make_user(role: UserRole, email: str, department: str | None = None, password: str = PASSWORD) -> Profile:
    session = SessionLocal()
    try:
        user = Profile(email=email, password_hash=hash_password(password), role=role, department=department)
        session.add(user)
        session.commit()
        session.refresh(user)
        session.expunge(user)
        return user
    finally:
        session.close()


def make_visitor(
    department: str = "CSE",
    status: VisitStatus = VisitStatus.pending,
    visitor_uid: str | None = None,
    email: str = "guest@example.com",
    **fields,
) -> str:
    session = SessionLocal()
    try:
        row = VisitorRequest(
            name=fields.pop("name", "Ravi Kumar"),
            designation="Professor",
            organization="IIT Madras",
            phone="9876543210",
            email=email,
            purpose=fields.pop("purpose", "Guest lecture"),
            department=department,
            status=status,
            visitor_uid=visitor_uid,
            **fields,
        )
        session.add(row)
        session.commit()
        return row.id
    finally:
        session.close()


def fetch_visitor(request_id: str) -> VisitorRequest:
    session = SessionLocal()
    try:
        row = session.get(VisitorRequest, request_id)
        session.expunge(row)
        return row
    finally:
        session.close()


def auth_header(user: Profile) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role.value)}"}


@pytest.fixture
def super_admin() -> Profile:
    return make_user(UserRole.super_admin, "root@scsvmv.ac.in")


@pytest.fixture
def cse_admin() -> Profile:
    return make_user(UserRole.department_admin, "cse.admin@scsvmv.ac.in", department="CSE")


@pytest.fixture
def ece_admin() -> Profile:
    return make_user(UserRole.department_admin, "ece.admin@scsvmv.ac.in", department="ECE")


@pytest.fixture
def guard() -> Profile:
    return make_user(UserRole.security, "gate@scsvmv.ac.in")
