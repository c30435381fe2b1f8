"""
Membership Number Allocator

Candidates receive a membership number when an MIS admin approves them:

    JG-26-000042
    |  |  +-- 6-digit sequence, zero padded, starts at 000001 every year
    |  +----- last two digits of the year of issue
    +-------- organization code (settings.membership_prefix)

Sequence numbers within a year are dense: the set issued in a year is
exactly {1..k}. Allocation reads the greatest number of the year and adds
one, so it is only correct when serialized per year:

- partition_lock() holds a per-year lock inside this process and, on
  PostgreSQL, a transaction-scoped advisory lock keyed by the year prefix
  (covers several app workers);
- candidates.membership_no is UNIQUE, so a duplicate that slips through
  fails the insert and the caller retries (see ApprovalService).

Because fixed-width zero padding makes string order equal numeric order,
"greatest number of the year" is a plain ORDER BY ... DESC LIMIT 1.
"""

import re
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Dict, Optional

import structlog
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError

from jobportal.core.config import get_settings
from jobportal.core.exceptions import AllocationError, AllocatorStoreUnavailable, MalformedIdentifier
from jobportal.db.postgres import dialect_name

log = structlog.get_logger(__name__)

SEQUENCE_WIDTH = 6
MAX_SEQUENCE = 10 ** SEQUENCE_WIDTH - 1


def year_prefix(now: datetime, org_code: str = None) -> str:
    """'JG-26-' for any instant in 2026."""
    org_code = org_code or get_settings().membership_prefix
    return f"{org_code}-{now.year % 100:02d}-"


def format_membership_number(prefix: str, sequence: int) -> str:
    if sequence < 1 or sequence > MAX_SEQUENCE:
        raise AllocationError(f"Sequence {sequence} is outside 1..{MAX_SEQUENCE} for '{prefix}'")
    return f"{prefix}{sequence:0{SEQUENCE_WIDTH}d}"


def parse_sequence(membership_no: str, prefix: str) -> int:
    """
    Sequence number of a membership number issued under prefix.
    Raises MalformedIdentifier for anything but prefix + exactly 6 digits.
    """
    match = re.fullmatch(re.escape(prefix) + r"(\d{%d})" % SEQUENCE_WIDTH, membership_no or "")
    if not match:
        raise MalformedIdentifier(membership_no)
    return int(match.group(1))


class MembershipNumberAllocator:
    """
    Computes the next membership number of the current year.

    allocate_next() only reads; the caller writes the number to the
    candidate row in the same transaction that approves the candidate.
    """

    _partition_locks: Dict[str, threading.Lock] = {}
    _partition_locks_guard = threading.Lock()

    def __init__(self, org_code: str = None):
        self.org_code = org_code or get_settings().membership_prefix

    def prefix_for(self, now: datetime) -> str:
        return year_prefix(now, self.org_code)

    def find_last(self, db, prefix: str) -> Optional[str]:
        """Greatest membership number starting with prefix (case-sensitive), or None."""
        result = db.execute(
            text("""
                SELECT membership_no FROM candidates
                WHERE membership_no IS NOT NULL
                  AND substr(membership_no, 1, :prefix_len) = :prefix
                ORDER BY membership_no DESC
                LIMIT 1
            """),
            {"prefix": prefix, "prefix_len": len(prefix)}
        )
        row = result.fetchone()
        return row[0] if row else None

    def allocate_next(self, db, now: datetime = None) -> str:
        """
        Next membership number for the year of `now`.

        Raises:
            MalformedIdentifier: the year's greatest number cannot be parsed
            AllocationError: the year's sequence is exhausted
            AllocatorStoreUnavailable: the read failed
        """
        now = now or datetime.utcnow()
        prefix = self.prefix_for(now)

        try:
            last = self.find_last(db, prefix)
        except DBAPIError as e:
            log.error("membership_lookup_failed", prefix=prefix, error=str(e))
            raise AllocatorStoreUnavailable("Could not read the last membership number") from e

        if last is None:
            next_sequence = 1
        else:
            try:
                next_sequence = parse_sequence(last, prefix) + 1
            except MalformedIdentifier:
                log.error("malformed_membership_number", prefix=prefix, value=last)
                raise

        if next_sequence > MAX_SEQUENCE:
            log.error("membership_sequence_exhausted", prefix=prefix)
            raise AllocationError(f"Membership numbers for '{prefix}' are exhausted")

        membership_no = format_membership_number(prefix, next_sequence)
        log.debug("membership_number_computed", prefix=prefix, membership_no=membership_no)
        return membership_no

    @classmethod
    def _local_lock(cls, prefix: str) -> threading.Lock:
        with cls._partition_locks_guard:
            lock = cls._partition_locks.get(prefix)
            if lock is None:
                lock = cls._partition_locks[prefix] = threading.Lock()
            return lock

    @contextmanager
    def partition_lock(self, prefix: str):
        """Serialize allocations for one year within this process."""
        with self._local_lock(prefix):
            yield

    def lock_partition_in_db(self, db, prefix: str) -> None:
        """
        PostgreSQL advisory lock for the year, released at commit/rollback.
        Other databases rely on partition_lock() and the UNIQUE constraint.
        """
        if dialect_name(db) != "postgresql":
            return
        db.execute(text("SELECT pg_advisory_xact_lock(hashtext(:key))"), {"key": f"membership:{prefix}"})


_allocator: Optional[MembershipNumberAllocator] = None


def get_membership_allocator() -> MembershipNumberAllocator:
    global _allocator
    if _allocator is None:
        _allocator = MembershipNumberAllocator()
    return _allocator
