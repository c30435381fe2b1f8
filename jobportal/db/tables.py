"""
Relational schema.

Queries elsewhere are plain SQL through sqlalchemy.text(); these table
definitions exist so the schema (constraints included) can be created on
PostgreSQL in production and on SQLite in tests from one place.

Constraints that matter:
- approval_status is one of pending/approved/rejected (CHECK)
- candidates.membership_no is UNIQUE - last line of defence against
  duplicate membership numbers (see services.membership_service)
"""

from sqlalchemy import (
    MetaData, Table, Column, Integer, String, Text, Boolean, DateTime,
    ForeignKey, CheckConstraint, func, true, false
)

metadata = MetaData()

APPROVAL_STATUS_CHECK = "approval_status IN ('pending', 'approved', 'rejected')"


users = Table(
    "users", metadata,
    Column("user_id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", String(255), nullable=False),
    Column("role", String(20), nullable=False),
    Column("is_active", Boolean, nullable=False, server_default=true()),
    Column("created_at", DateTime, nullable=False, server_default=func.current_timestamp()),
    CheckConstraint("role IN ('candidate', 'employer', 'mis')", name="ck_users_role"),
)


candidates = Table(
    "candidates", metadata,
    Column("candidate_id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.user_id"), nullable=False, unique=True),
    Column("first_name", String(100), nullable=False),
    Column("last_name", String(100), nullable=False),
    Column("email", String(255)),
    Column("phone", String(30)),
    Column("industry", String(100)),
    Column("current_position", String(150)),
    Column("years_of_experience", Integer),
    Column("professional_summary", Text),
    Column("approval_status", String(20), nullable=False, server_default="pending"),
    Column("rejection_reason", Text),
    Column("membership_no", String(20), unique=True),
    Column("approved_at", DateTime),
    Column("rejected_at", DateTime),
    Column("reviewed_by", Integer, ForeignKey("users.user_id")),
    Column("approval_status_message_seen", Boolean, nullable=False, server_default=false()),
    Column("created_at", DateTime, nullable=False, server_default=func.current_timestamp()),
    Column("updated_at", DateTime, nullable=False, server_default=func.current_timestamp()),
    CheckConstraint(APPROVAL_STATUS_CHECK, name="ck_candidates_approval_status"),
)


companies = Table(
    "companies", metadata,
    Column("company_id", Integer, primary_key=True, autoincrement=True),
    Column("company_name", String(200), nullable=False),
    Column("business_registration_no", String(50), nullable=False, unique=True),
    Column("industry", String(100)),
    Column("website", String(255)),
    Column("address", Text),
    Column("approval_status", String(20), nullable=False, server_default="pending"),
    Column("rejection_reason", Text),
    Column("approved_at", DateTime),
    Column("rejected_at", DateTime),
    Column("reviewed_by", Integer, ForeignKey("users.user_id")),
    Column("approval_status_message_seen", Boolean, nullable=False, server_default=false()),
    Column("created_at", DateTime, nullable=False, server_default=func.current_timestamp()),
    Column("updated_at", DateTime, nullable=False, server_default=func.current_timestamp()),
    CheckConstraint(APPROVAL_STATUS_CHECK, name="ck_companies_approval_status"),
)


employers = Table(
    "employers", metadata,
    Column("employer_id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.user_id"), nullable=False, unique=True),
    Column("company_id", Integer, ForeignKey("companies.company_id"), nullable=False),
    Column("first_name", String(100), nullable=False),
    Column("last_name", String(100), nullable=False),
    Column("email", String(255)),
    Column("is_super_admin", Boolean, nullable=False, server_default=false()),
    Column("created_at", DateTime, nullable=False, server_default=func.current_timestamp()),
)
