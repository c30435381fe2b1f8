"""
Approval Service - MIS review of candidates and companies.

Status transitions (performed by MIS admins only):

    pending  -> approved | rejected
    rejected -> approved | rejected (new reason)
    approved -> approved (no-op)

Reversing an approval is not supported. A subject resubmitting its
profile after rejection goes back to pending (see reset_to_pending).

Approving a candidate also assigns a membership number. Both writes
happen in one transaction: if allocation fails the candidate stays in
its previous status.

Company decisions are e-mailed to the company super admin once committed
(best effort, see services.email_service).
"""

from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, IntegrityError

from jobportal.core.config import get_settings
from jobportal.core.exceptions import (
    AllocationConflict, AllocationError, AllocatorStoreUnavailable, InvalidTransition, NotFound,
    StoreUnavailable
)
from jobportal.db.postgres import get_db_session, dialect_name, execute_raw_sql
from jobportal.schemas.schemas import ApprovalStatus
from jobportal.services.email_service import EmployerMailer, get_employer_mailer
from jobportal.services.membership_service import MembershipNumberAllocator, get_membership_allocator

log = structlog.get_logger(__name__)

DEFAULT_REJECTION_REASON = "Profile needs improvement. Please update and resubmit."

ALLOWED_TRANSITIONS = {
    (ApprovalStatus.pending, ApprovalStatus.approved),
    (ApprovalStatus.pending, ApprovalStatus.rejected),
    (ApprovalStatus.rejected, ApprovalStatus.approved),
    (ApprovalStatus.rejected, ApprovalStatus.rejected),
    (ApprovalStatus.approved, ApprovalStatus.approved),
}


# ============================================================
# STATUS HELPERS
# subject: a row/dict with "approval_status", or None if missing
# ============================================================

def status_of(subject) -> ApprovalStatus:
    if subject is None:
        return ApprovalStatus.pending
    return ApprovalStatus.classify(subject.get("approval_status"))


def is_approved(subject) -> bool:
    return status_of(subject) is ApprovalStatus.approved


def is_rejected(subject) -> bool:
    return status_of(subject) is ApprovalStatus.rejected


def is_pending(subject) -> bool:
    return status_of(subject) is ApprovalStatus.pending


def check_transition(current: ApprovalStatus, target: ApprovalStatus) -> None:
    if (current, target) not in ALLOWED_TRANSITIONS:
        raise InvalidTransition(current.value, target.value)


# ============================================================
# SUBJECT TABLES
# ============================================================

SUBJECT_TABLES = {
    "candidate": ("candidates", "candidate_id"),
    "company": ("companies", "company_id"),
}


def _fetch_subject(db, kind: str, subject_id: int) -> dict:
    table, key = SUBJECT_TABLES[kind]
    extra = ", membership_no" if kind == "candidate" else ""
    sql = f"SELECT {key}, approval_status{extra} FROM {table} WHERE {key} = :id"
    if dialect_name(db) == "postgresql":
        sql += " FOR UPDATE"
    row = db.execute(text(sql), {"id": subject_id}).mappings().fetchone()
    if row is None:
        raise NotFound(f"{kind.capitalize()} {subject_id} not found")
    return dict(row)


class ApprovalService:
    """
    Approve / reject candidates and companies.

    Usage:
        service = get_approval_service()
        result = service.approve_candidate(candidate_id=7, reviewer_id=mis_user_id)
        result["membership_no"]  # "JG-26-000001"
    """

    def __init__(self, allocator: MembershipNumberAllocator = None, max_attempts: int = None,
                 mailer: EmployerMailer = None):
        self.allocator = allocator or get_membership_allocator()
        self.mailer = mailer or get_employer_mailer()
        self.max_attempts = max_attempts or get_settings().membership_max_attempts

    # --------------------------------------------------------
    # Candidates
    # --------------------------------------------------------

    def approve_candidate(self, candidate_id: int, reviewer_id: int, now: datetime = None) -> dict:
        """
        Approve a candidate and assign a membership number if it has none.

        Retries the whole transaction when the UNIQUE constraint on
        membership_no rejects the number (another worker took it first).

        Raises:
            NotFound, InvalidTransition, MalformedIdentifier,
            AllocationError, AllocationConflict (retries exhausted),
            StoreUnavailable
        """
        now = now or datetime.utcnow()
        prefix = self.allocator.prefix_for(now)

        for attempt in range(1, self.max_attempts + 1):
            try:
                with self.allocator.partition_lock(prefix):
                    with get_db_session() as db:
                        result = self._approve_candidate_once(db, candidate_id, reviewer_id, prefix, now)
                log.info("candidate_approved", candidate_id=candidate_id, membership_no=result["membership_no"],
                         reviewer_id=reviewer_id, attempt=attempt)
                return result
            except IntegrityError as e:
                if "membership_no" not in str(e.orig):
                    log.error("candidate_approval_integrity_error", candidate_id=candidate_id, error=str(e.orig))
                    raise AllocationError("Candidate record rejected the approval update") from e
                log.warning(
                    "allocation_conflict", candidate_id=candidate_id, prefix=prefix,
                    attempt=attempt, error=str(e.orig)
                )
            except DBAPIError as e:
                log.error("candidate_approval_store_error", candidate_id=candidate_id, error=str(e))
                raise AllocatorStoreUnavailable("Database error while approving candidate") from e

        raise AllocationConflict(
            f"Could not assign a unique membership number after {self.max_attempts} attempts"
        )

    def _approve_candidate_once(self, db, candidate_id, reviewer_id, prefix, now) -> dict:
        self.allocator.lock_partition_in_db(db, prefix)
        candidate = _fetch_subject(db, "candidate", candidate_id)
        current = status_of(candidate)
        check_transition(current, ApprovalStatus.approved)

        if current is ApprovalStatus.approved and candidate["membership_no"]:
            log.info("candidate_already_approved", candidate_id=candidate_id)
            return {
                "subject_id": candidate_id,
                "approval_status": ApprovalStatus.approved,
                "membership_no": candidate["membership_no"],
                "message": "Candidate is already approved.",
            }

        membership_no = candidate["membership_no"] or self.allocator.allocate_next(db, now)

        db.execute(
            text("""
                UPDATE candidates SET
                    approval_status = 'approved',
                    membership_no = :membership_no,
                    approved_at = :now,
                    rejected_at = NULL,
                    rejection_reason = NULL,
                    reviewed_by = :reviewer,
                    approval_status_message_seen = :seen,
                    updated_at = :now
                WHERE candidate_id = :id
            """),
            {"membership_no": membership_no, "now": now, "reviewer": reviewer_id,
             "seen": False, "id": candidate_id}
        )
        log.debug("candidate_approval_staged", candidate_id=candidate_id, membership_no=membership_no,
                  previous_status=current.value)
        return {
            "subject_id": candidate_id,
            "approval_status": ApprovalStatus.approved,
            "membership_no": membership_no,
            "message": "Candidate approved successfully!",
        }

    def reject_candidate(self, candidate_id: int, reviewer_id: int, reason: Optional[str] = None,
                         now: datetime = None) -> dict:
        return self._reject("candidate", candidate_id, reviewer_id, reason, now)

    # --------------------------------------------------------
    # Companies
    # --------------------------------------------------------

    def approve_company(self, company_id: int, reviewer_id: int, now: datetime = None) -> dict:
        now = now or datetime.utcnow()
        try:
            with get_db_session() as db:
                company = _fetch_subject(db, "company", company_id)
                current = status_of(company)
                check_transition(current, ApprovalStatus.approved)

                if current is not ApprovalStatus.approved:
                    db.execute(
                        text("""
                            UPDATE companies SET
                                approval_status = 'approved',
                                approved_at = :now,
                                rejected_at = NULL,
                                rejection_reason = NULL,
                                reviewed_by = :reviewer,
                                approval_status_message_seen = :seen,
                                updated_at = :now
                            WHERE company_id = :id
                        """),
                        {"now": now, "reviewer": reviewer_id, "seen": False, "id": company_id}
                    )
        except DBAPIError as e:
            log.error("company_approval_store_error", company_id=company_id, error=str(e))
            raise StoreUnavailable("Database error while approving company") from e

        log.info("company_approved", company_id=company_id, reviewer_id=reviewer_id,
                 previous_status=current.value)
        if current is not ApprovalStatus.approved:
            self._notify_company(company_id, ApprovalStatus.approved)
        return {
            "subject_id": company_id,
            "approval_status": ApprovalStatus.approved,
            "membership_no": None,
            "message": "Company approved successfully!",
        }

    def reject_company(self, company_id: int, reviewer_id: int, reason: Optional[str] = None,
                       now: datetime = None) -> dict:
        return self._reject("company", company_id, reviewer_id, reason, now)

    # --------------------------------------------------------
    # Shared
    # --------------------------------------------------------

    def _reject(self, kind: str, subject_id: int, reviewer_id: int, reason: Optional[str],
                now: Optional[datetime]) -> dict:
        now = now or datetime.utcnow()
        reason = (reason or "").strip() or DEFAULT_REJECTION_REASON
        table, key = SUBJECT_TABLES[kind]

        try:
            with get_db_session() as db:
                subject = _fetch_subject(db, kind, subject_id)
                current = status_of(subject)
                check_transition(current, ApprovalStatus.rejected)

                db.execute(
                    text(f"""
                        UPDATE {table} SET
                            approval_status = 'rejected',
                            rejected_at = :now,
                            approved_at = NULL,
                            rejection_reason = :reason,
                            reviewed_by = :reviewer,
                            approval_status_message_seen = :seen,
                            updated_at = :now
                        WHERE {key} = :id
                    """),
                    {"now": now, "reason": reason, "reviewer": reviewer_id, "seen": False, "id": subject_id}
                )
        except DBAPIError as e:
            log.error("rejection_store_error", kind=kind, subject_id=subject_id, error=str(e))
            raise StoreUnavailable(f"Database error while rejecting {kind}") from e

        log.info(f"{kind}_rejected", subject_id=subject_id, reviewer_id=reviewer_id,
                 previous_status=current.value)
        if kind == "company":
            self._notify_company(subject_id, ApprovalStatus.rejected, reason)
        return {
            "subject_id": subject_id,
            "approval_status": ApprovalStatus.rejected,
            "membership_no": None,
            "message": f"{kind.capitalize()} rejected successfully.",
        }

    def _notify_company(self, company_id: int, status: ApprovalStatus, reason: Optional[str] = None) -> None:
        """E-mail the company super admin about a committed decision. Never raises."""
        try:
            rows = execute_raw_sql("""
                SELECT e.email, e.first_name, c.company_name
                FROM employers e JOIN companies c ON e.company_id = c.company_id
                WHERE e.company_id = :id AND e.is_super_admin = :super_admin
                ORDER BY e.employer_id
            """, {"id": company_id, "super_admin": True})
        except StoreUnavailable as e:
            log.warning("employer_email_lookup_failed", company_id=company_id, error=e.message)
            return

        if not rows:
            log.info("employer_email_no_recipient", company_id=company_id)
            return

        admin = rows[0]
        if status is ApprovalStatus.approved:
            self.mailer.send_company_approved(admin["email"], admin["company_name"], admin["first_name"])
        else:
            self.mailer.send_company_rejected(admin["email"], admin["company_name"], admin["first_name"], reason)


def reset_to_pending(db, kind: str, subject_id: int) -> bool:
    """
    Resubmission after rejection: a rejected subject that updates its
    profile goes back to the review queue. Returns True if the status changed.
    Runs inside the caller's transaction.
    """
    table, key = SUBJECT_TABLES[kind]
    result = db.execute(
        text(f"""
            UPDATE {table} SET
                approval_status = 'pending',
                rejected_at = NULL,
                rejection_reason = NULL,
                approval_status_message_seen = :seen
            WHERE {key} = :id AND approval_status = 'rejected'
        """),
        {"seen": False, "id": subject_id}
    )
    if result.rowcount:
        log.info(f"{kind}_resubmitted", subject_id=subject_id)
    return result.rowcount > 0


def mark_message_seen(kind: str, subject_id: int) -> None:
    table, key = SUBJECT_TABLES[kind]
    with get_db_session() as db:
        db.execute(
            text(f"UPDATE {table} SET approval_status_message_seen = :seen WHERE {key} = :id"),
            {"seen": True, "id": subject_id}
        )


_service: Optional[ApprovalService] = None


def get_approval_service() -> ApprovalService:
    global _service
    if _service is None:
        _service = ApprovalService()
    return _service
