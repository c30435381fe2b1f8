"""
User accounts - creation and approval-status lookup.
"""

from typing import Optional

import structlog
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from jobportal.core.auth import hash_password
from jobportal.core.exceptions import AlreadyExists
from jobportal.db.postgres import get_db_session
from jobportal.schemas.schemas import ApprovalStatus, UserRole

log = structlog.get_logger(__name__)


def create_user(email: str, password: str, role: UserRole, db=None) -> int:
    """
    Insert a user and return its id.
    Pass db to take part in the caller's transaction.
    """
    params = {"email": email.lower(), "password_hash": hash_password(password), "role": UserRole(role).value}

    def _insert(session) -> int:
        exists = session.execute(
            text("SELECT user_id FROM users WHERE email = :email"), {"email": params["email"]}
        ).fetchone()
        if exists:
            raise AlreadyExists("Email already registered")
        session.execute(
            text("""
                INSERT INTO users (email, password_hash, role)
                VALUES (:email, :password_hash, :role)
            """),
            params
        )
        return session.execute(
            text("SELECT user_id FROM users WHERE email = :email"), {"email": params["email"]}
        ).fetchone()[0]

    try:
        if db is not None:
            user_id = _insert(db)
        else:
            with get_db_session() as session:
                user_id = _insert(session)
    except IntegrityError as e:
        raise AlreadyExists("Email already registered") from e

    log.info("user_created", user_id=user_id, role=params["role"])
    return user_id


def lookup_approval_status(user_id: int, role: str) -> Optional[ApprovalStatus]:
    """
    Approval status of the subject behind a user: the candidate profile for
    candidates, the company for employers. None when there is no record yet
    (gating treats that as pending) or the role is not gated.
    """
    if role == UserRole.candidate.value:
        sql = "SELECT approval_status FROM candidates WHERE user_id = :id"
    elif role == UserRole.employer.value:
        sql = """
            SELECT c.approval_status FROM employers e
            JOIN companies c ON e.company_id = c.company_id
            WHERE e.user_id = :id
        """
    else:
        return None

    with get_db_session() as db:
        row = db.execute(text(sql), {"id": user_id}).fetchone()
    return ApprovalStatus.classify(row[0]) if row else None
