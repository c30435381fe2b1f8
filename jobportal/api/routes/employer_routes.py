"""
Employer Routes

POST /employers/company - Register company (caller becomes its super admin, company pending)
GET /employers/company - Get own company
PUT /employers/company - Update company (resubmits a rejected company)
GET /employers/approval-status - Company approval status
POST /employers/approval-status/seen - Dismiss the approval banner
GET /employers/admins - List company admins (requires approved company)
POST /employers/admins - Add sub-admin (super admin, approved company)
"""

from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy import text
from typing import List

from jobportal.db.postgres import get_db_session, execute_raw_sql
from jobportal.core.auth import get_current_user, get_current_employer
from jobportal.core.exceptions import Unauthorized
from jobportal.services.approval_gate import EMPLOYER_POLICY, is_restricted
from jobportal.services.approval_service import reset_to_pending, mark_message_seen
from jobportal.services.user_service import create_user
from jobportal.schemas.schemas import (
    CompanyCreate, CompanyUpdate, CompanyResponse, SubAdminCreate, EmployerResponse,
    ApprovalStatusResponse, MessageResponse
)

router = APIRouter(prefix="/employers", tags=["Employers"])


def require_page_access(page_path: str):
    """
    Dependency factory - enforce the approval gate server-side for the API
    behind a portal page. Non-approved companies get 403 approval_pending.
    """
    async def dependency(employer: dict = Depends(get_current_employer)) -> dict:
        if is_restricted(page_path, employer["approval_status"], EMPLOYER_POLICY):
            raise HTTPException(status_code=403, detail="approval_pending")
        return employer
    return dependency


@router.post("/company", response_model=MessageResponse, status_code=201)
async def create_company(data: CompanyCreate, user: dict = Depends(get_current_user)):
    """Create company profile. User must be registered as employer."""
    if user["role"] != "employer":
        raise Unauthorized("Only employer accounts can create company profiles")

    with get_db_session() as db:
        result = db.execute(
            text("SELECT employer_id FROM employers WHERE user_id = :id"),
            {"id": user["user_id"]}
        )
        if result.fetchone():
            raise HTTPException(status_code=400, detail="Company profile already exists")

        result = db.execute(
            text("SELECT company_id FROM companies WHERE business_registration_no = :brn"),
            {"brn": data.business_registration_no}
        )
        if result.fetchone():
            raise HTTPException(status_code=400, detail="Business registration number already registered")

        db.execute(
            text("""
                INSERT INTO companies (company_name, business_registration_no, industry, website, address, approval_status)
                VALUES (:company_name, :brn, :industry, :website, :address, 'pending')
            """),
            {
                "company_name": data.company_name,
                "brn": data.business_registration_no,
                "industry": data.industry,
                "website": data.website,
                "address": data.address
            }
        )
        company_id = db.execute(
            text("SELECT company_id FROM companies WHERE business_registration_no = :brn"),
            {"brn": data.business_registration_no}
        ).fetchone()[0]

        db.execute(
            text("""
                INSERT INTO employers (user_id, company_id, first_name, last_name, email, is_super_admin)
                VALUES (:user_id, :company_id, :first_name, :last_name, :email, :super_admin)
            """),
            {
                "user_id": user["user_id"],
                "company_id": company_id,
                "first_name": data.first_name,
                "last_name": data.last_name,
                "email": user["email"],
                "super_admin": True
            }
        )

    return MessageResponse(message="Company profile created. It is now pending MIS approval.")


@router.get("/company", response_model=CompanyResponse)
async def get_company(employer: dict = Depends(get_current_employer)):
    """Get current employer's company."""
    results = execute_raw_sql("""
        SELECT company_id, company_name, business_registration_no, industry, website, address,
               approval_status, rejection_reason, created_at
        FROM companies WHERE company_id = :id
    """, {"id": employer["company_id"]})
    return CompanyResponse(**results[0])


@router.put("/company", response_model=MessageResponse)
async def update_company(data: CompanyUpdate, employer: dict = Depends(get_current_employer)):
    """Update company. Super admins only."""
    if not employer["is_super_admin"]:
        raise Unauthorized("Only the company super admin can update the company")

    updates = []
    params = {"id": employer["company_id"]}

    for field in ["company_name", "industry", "website", "address"]:
        value = getattr(data, field)
        if value is not None:
            updates.append(f"{field} = :{field}")
            params[field] = value

    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    with get_db_session() as db:
        db.execute(
            text(f"UPDATE companies SET {', '.join(updates)}, updated_at = CURRENT_TIMESTAMP WHERE company_id = :id"),
            params
        )
        resubmitted = reset_to_pending(db, "company", employer["company_id"])

    if resubmitted:
        return MessageResponse(message="Company updated and resubmitted for approval")
    return MessageResponse(message="Company updated successfully")


@router.get("/approval-status", response_model=ApprovalStatusResponse)
async def get_approval_status(employer: dict = Depends(get_current_employer)):
    """Company approval state - drives the approval banner."""
    results = execute_raw_sql("""
        SELECT approval_status, rejection_reason, approval_status_message_seen
        FROM companies WHERE company_id = :id
    """, {"id": employer["company_id"]})
    r = results[0]
    return ApprovalStatusResponse(
        approval_status=r["approval_status"], rejection_reason=r["rejection_reason"],
        message_seen=bool(r["approval_status_message_seen"])
    )


@router.post("/approval-status/seen", response_model=MessageResponse)
async def mark_approval_message_seen(employer: dict = Depends(get_current_employer)):
    """Mark the company approval banner as seen."""
    mark_message_seen("company", employer["company_id"])
    return MessageResponse(message="Message marked as seen.")


@router.get("/admins", response_model=List[EmployerResponse])
async def list_admins(employer: dict = Depends(require_page_access("/employer/admins"))):
    """List all admins of the company."""
    results = execute_raw_sql("""
        SELECT employer_id, user_id, company_id, first_name, last_name, email, is_super_admin
        FROM employers WHERE company_id = :cid ORDER BY employer_id
    """, {"cid": employer["company_id"]})
    return [EmployerResponse(**{**r, "is_super_admin": bool(r["is_super_admin"])}) for r in results]


@router.post("/admins", response_model=MessageResponse, status_code=201)
async def add_sub_admin(data: SubAdminCreate, employer: dict = Depends(require_page_access("/employer/admins"))):
    """Add a sub-admin account to the company. Super admins only."""
    if not employer["is_super_admin"]:
        raise Unauthorized("Only the company super admin can add admins")

    with get_db_session() as db:
        user_id = create_user(data.email, data.password, "employer", db=db)
        db.execute(
            text("""
                INSERT INTO employers (user_id, company_id, first_name, last_name, email, is_super_admin)
                VALUES (:user_id, :company_id, :first_name, :last_name, :email, :super_admin)
            """),
            {
                "user_id": user_id,
                "company_id": employer["company_id"],
                "first_name": data.first_name,
                "last_name": data.last_name,
                "email": data.email.lower(),
                "super_admin": False
            }
        )

    return MessageResponse(message=f"Sub-admin {data.email} added")
