"""
Shared fixtures.

The app runs against a throwaway SQLite file: DATABASE_URL is set before
anything imports jobportal, and the schema is recreated for every test.
"""

import os
import smtplib
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="jobportal-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_DB_DIR, "portal.db")
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["MEMBERSHIP_PREFIX"] = "JG"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text

from jobportal.db.postgres import create_tables, drop_tables, get_db_session
from jobportal.services import restriction_notice

PASSWORD = "password123"


@pytest.fixture(autouse=True)
def fresh_database():
    """Empty schema for every test."""
    drop_tables()
    create_tables()
    restriction_notice._notifier = None
    yield


@pytest.fixture
def client():
    from jobportal.main import app

    with TestClient(app) as c:
        yield c


def register_and_login(client, email: str, role: str) -> dict:
    """Register through the API and return Authorization headers."""
    response = client.post("/api/auth/register", json={
        "email": email, "password": PASSWORD, "confirm_password": PASSWORD, "role": role
    })
    assert response.status_code == 201, response.text
    return login(client, email)


def login(client, email: str) -> dict:
    response = client.post("/api/auth/login", json={"email": email, "password": PASSWORD})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def mis_headers(client):
    from jobportal.services.user_service import create_user

    create_user("mis@jobportal.io", PASSWORD, "mis")
    return login(client, "mis@jobportal.io")


@pytest.fixture
def mis_user_id():
    return insert_user("reviewer@jobportal.io", "mis")


def insert_user(email: str, role: str) -> int:
    """Fast user insert for service tests (no bcrypt)."""
    with get_db_session() as db:
        db.execute(
            text("INSERT INTO users (email, password_hash, role) VALUES (:email, 'x', :role)"),
            {"email": email, "role": role}
        )
        return db.execute(text("SELECT user_id FROM users WHERE email = :email"), {"email": email}).fetchone()[0]


def insert_candidate(name: str, approval_status: str = "pending", membership_no: str = None) -> int:
    user_id = insert_user(f"{name}@jobportal.io", "candidate")
    with get_db_session() as db:
        db.execute(
            text("""
                INSERT INTO candidates (user_id, first_name, last_name, email, approval_status, membership_no)
                VALUES (:user_id, :name, 'Test', :email, :status, :membership_no)
            """),
            {"user_id": user_id, "name": name, "email": f"{name}@jobportal.io",
             "status": approval_status, "membership_no": membership_no}
        )
        return db.execute(
            text("SELECT candidate_id FROM candidates WHERE user_id = :id"), {"id": user_id}
        ).fetchone()[0]


def insert_company(name: str, approval_status: str = "pending") -> int:
    with get_db_session() as db:
        db.execute(
            text("""
                INSERT INTO companies (company_name, business_registration_no, approval_status)
                VALUES (:name, :brn, :status)
            """),
            {"name": name, "brn": f"BR-{name}", "status": approval_status}
        )
        return db.execute(
            text("SELECT company_id FROM companies WHERE business_registration_no = :brn"), {"brn": f"BR-{name}"}
        ).fetchone()[0]


def insert_employer(company_id: int, email: str, first_name: str = "Ravi", super_admin: bool = True) -> int:
    user_id = insert_user(email, "employer")
    with get_db_session() as db:
        db.execute(
            text("""
                INSERT INTO employers (user_id, company_id, first_name, last_name, email, is_super_admin)
                VALUES (:user_id, :company_id, :first_name, 'Test', :email, :super_admin)
            """),
            {"user_id": user_id, "company_id": company_id, "first_name": first_name,
             "email": email, "super_admin": super_admin}
        )
    return user_id


def fetch_candidate(candidate_id: int) -> dict:
    with get_db_session() as db:
        row = db.execute(
            text("SELECT * FROM candidates WHERE candidate_id = :id"), {"id": candidate_id}
        ).mappings().fetchone()
    return dict(row)


def fetch_company(company_id: int) -> dict:
    with get_db_session() as db:
        row = db.execute(
            text("SELECT * FROM companies WHERE company_id = :id"), {"id": company_id}
        ).mappings().fetchone()
    return dict(row)


class RecordingSender:
    """Stands in for the SMTP sender; keeps every message."""

    def __init__(self):
        self.messages = []

    def send(self, message):
        self.messages.append(message)


class FailingSender:
    def send(self, message):
        raise smtplib.SMTPServerDisconnected("connection closed")
