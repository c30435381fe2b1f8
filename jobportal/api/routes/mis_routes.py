"""
MIS Routes - internal administrators review candidates and companies.

GET /mis/candidates - List candidates (filter by approval status)
GET /mis/candidates/{id} - Candidate detail
POST /mis/candidates/{id}/approve - Approve candidate and assign membership number
POST /mis/candidates/{id}/reject - Reject candidate with reason
GET /mis/companies - List companies (filter by approval status)
GET /mis/companies/{id} - Company detail
POST /mis/companies/{id}/approve - Approve company
POST /mis/companies/{id}/reject - Reject company with reason
POST /mis/users - Add another MIS admin
"""

from fastapi import APIRouter, HTTPException, Depends, Query
from typing import List, Optional

from jobportal.db.postgres import execute_raw_sql
from jobportal.core.auth import get_current_mis
from jobportal.services.approval_service import get_approval_service
from jobportal.services.user_service import create_user
from jobportal.schemas.schemas import (
    ApprovalStatus, CandidateReviewItem, CandidateResponse, CompanyReviewItem, CompanyResponse,
    RejectRequest, ApprovalResult, MISUserCreate, MessageResponse
)

router = APIRouter(prefix="/mis", tags=["MIS"])


# ============================================================
# CANDIDATES
# ============================================================

@router.get("/candidates", response_model=List[CandidateReviewItem])
async def list_candidates(
    status: Optional[ApprovalStatus] = Query(None, description="pending / approved / rejected"),
    mis: dict = Depends(get_current_mis)
):
    """List candidate profiles, newest first."""
    sql = """
        SELECT candidate_id, first_name, last_name, email, industry, current_position,
               years_of_experience, approval_status, membership_no, created_at
        FROM candidates
    """
    params = {}
    if status:
        sql += " WHERE approval_status = :status"
        params["status"] = status.value
    sql += " ORDER BY created_at DESC, candidate_id DESC"

    return [CandidateReviewItem(**r) for r in execute_raw_sql(sql, params)]


@router.get("/candidates/{candidate_id}", response_model=CandidateResponse)
async def get_candidate(candidate_id: int, mis: dict = Depends(get_current_mis)):
    """Full candidate profile for review."""
    results = execute_raw_sql("""
        SELECT candidate_id, user_id, first_name, last_name, email, phone, industry,
               current_position, years_of_experience, professional_summary,
               approval_status, rejection_reason, membership_no, created_at
        FROM candidates WHERE candidate_id = :id
    """, {"id": candidate_id})

    if not results:
        raise HTTPException(status_code=404, detail="Candidate not found")
    return CandidateResponse(**results[0])


@router.post("/candidates/{candidate_id}/approve", response_model=ApprovalResult)
def approve_candidate(candidate_id: int, mis: dict = Depends(get_current_mis)):
    """
    Approve a candidate.

    Assigns the next membership number (JG-YY-NNNNNN) in the same
    transaction; if that fails the candidate keeps its current status.
    Plain def: runs in the threadpool while waiting on the year's allocation lock.
    """
    result = get_approval_service().approve_candidate(candidate_id, reviewer_id=mis["user_id"])
    return ApprovalResult(**result)


@router.post("/candidates/{candidate_id}/reject", response_model=ApprovalResult)
def reject_candidate(candidate_id: int, data: RejectRequest, mis: dict = Depends(get_current_mis)):
    """Reject a candidate. A default reason is used when none is given."""
    result = get_approval_service().reject_candidate(candidate_id, reviewer_id=mis["user_id"], reason=data.reason)
    return ApprovalResult(**result)


# ============================================================
# COMPANIES
# ============================================================

@router.get("/companies", response_model=List[CompanyReviewItem])
async def list_companies(
    status: Optional[ApprovalStatus] = Query(None, description="pending / approved / rejected"),
    mis: dict = Depends(get_current_mis)
):
    """List companies, newest first."""
    sql = """
        SELECT company_id, company_name, business_registration_no, industry, approval_status, created_at
        FROM companies
    """
    params = {}
    if status:
        sql += " WHERE approval_status = :status"
        params["status"] = status.value
    sql += " ORDER BY created_at DESC, company_id DESC"

    return [CompanyReviewItem(**r) for r in execute_raw_sql(sql, params)]


@router.get("/companies/{company_id}", response_model=CompanyResponse)
async def get_company(company_id: int, mis: dict = Depends(get_current_mis)):
    """Company detail for review."""
    results = execute_raw_sql("""
        SELECT company_id, company_name, business_registration_no, industry, website, address,
               approval_status, rejection_reason, created_at
        FROM companies WHERE company_id = :id
    """, {"id": company_id})

    if not results:
        raise HTTPException(status_code=404, detail="Company not found")
    return CompanyResponse(**results[0])


@router.post("/companies/{company_id}/approve", response_model=ApprovalResult)
def approve_company(company_id: int, mis: dict = Depends(get_current_mis)):
    """Approve a company - lifts the approval gate for all of its admins."""
    result = get_approval_service().approve_company(company_id, reviewer_id=mis["user_id"])
    return ApprovalResult(**result)


@router.post("/companies/{company_id}/reject", response_model=ApprovalResult)
def reject_company(company_id: int, data: RejectRequest, mis: dict = Depends(get_current_mis)):
    """Reject a company. A default reason is used when none is given."""
    result = get_approval_service().reject_company(company_id, reviewer_id=mis["user_id"], reason=data.reason)
    return ApprovalResult(**result)


# ============================================================
# MIS USERS
# ============================================================

@router.post("/users", response_model=MessageResponse, status_code=201)
async def add_mis_user(data: MISUserCreate, mis: dict = Depends(get_current_mis)):
    """Create another MIS admin account."""
    create_user(data.email, data.password, "mis")
    return MessageResponse(message=f"MIS user {data.email} created")
