"""
Authentication Utility - JWT and Password handling.

Provides:
- Password hashing with bcrypt
- JWT token creation/verification
- FastAPI dependencies for protected routes, one per role
"""

from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import text

from jobportal.core.config import get_settings
from jobportal.core.exceptions import Unauthorized
from jobportal.db.postgres import get_db_session

settings = get_settings()

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer token extractor
bearer_scheme = HTTPBearer()


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token."""
    to_encode = data.copy()
    now = datetime.utcnow()
    expire = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode.update({"exp": expire, "iat": now})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify JWT token."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)) -> dict:
    """
    FastAPI dependency - Get current authenticated user.

    Usage:
        @app.get("/protected")
        async def route(user: dict = Depends(get_current_user)):
            return user
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_token(credentials.credentials)
    if not payload:
        raise credentials_exception

    user_id = payload.get("sub")
    if not user_id:
        raise credentials_exception

    # Verify user exists
    with get_db_session() as db:
        result = db.execute(
            text("SELECT user_id, email, role, is_active FROM users WHERE user_id = :id"),
            {"id": int(user_id)}
        )
        user = result.fetchone()

    if not user:
        raise credentials_exception

    if not user[3]:  # is_active
        raise HTTPException(status_code=403, detail="Account deactivated")

    return {"user_id": user[0], "email": user[1], "role": user[2]}


async def get_current_candidate(user: dict = Depends(get_current_user)) -> dict:
    """Dependency - Require candidate role and get candidate_id + approval state."""
    if user["role"] != "candidate":
        raise Unauthorized("Candidates only")

    with get_db_session() as db:
        result = db.execute(
            text("SELECT candidate_id, approval_status FROM candidates WHERE user_id = :id"),
            {"id": user["user_id"]}
        )
        row = result.fetchone()

    if not row:
        raise HTTPException(status_code=404, detail="Candidate profile not found. Create profile first.")

    user["candidate_id"] = row[0]
    user["approval_status"] = row[1]
    return user


async def get_current_employer(user: dict = Depends(get_current_user)) -> dict:
    """Dependency - Require employer role and get employer/company ids + company approval state."""
    if user["role"] != "employer":
        raise Unauthorized("Employers only")

    with get_db_session() as db:
        result = db.execute(
            text("""
                SELECT e.employer_id, e.company_id, e.is_super_admin, c.approval_status
                FROM employers e JOIN companies c ON e.company_id = c.company_id
                WHERE e.user_id = :id
            """),
            {"id": user["user_id"]}
        )
        row = result.fetchone()

    if not row:
        raise HTTPException(status_code=404, detail="Company profile not found. Create profile first.")

    user["employer_id"] = row[0]
    user["company_id"] = row[1]
    user["is_super_admin"] = bool(row[2])
    user["approval_status"] = row[3]
    return user


async def get_current_mis(user: dict = Depends(get_current_user)) -> dict:
    """Dependency - Require MIS admin role."""
    if user["role"] != "mis":
        raise Unauthorized("MIS admins only")
    return user
