"""
Candidate Routes

POST /candidates/profile - Create candidate profile (enters MIS review as pending)
GET /candidates/profile - Get own profile
PUT /candidates/profile - Update profile (resubmits a rejected profile)
GET /candidates/approval-status - Approval status, rejection reason, membership number
POST /candidates/approval-status/seen - Dismiss the approval status message
"""

from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy import text

from jobportal.db.postgres import get_db_session
from jobportal.core.auth import get_current_user, get_current_candidate
from jobportal.core.exceptions import Unauthorized
from jobportal.services.approval_service import reset_to_pending, mark_message_seen
from jobportal.schemas.schemas import (
    CandidateCreate, CandidateUpdate, CandidateResponse, ApprovalStatusResponse, MessageResponse
)

router = APIRouter(prefix="/candidates", tags=["Candidates"])

PROFILE_FIELDS = [
    "first_name", "last_name", "phone", "industry",
    "current_position", "years_of_experience", "professional_summary"
]


@router.post("/profile", response_model=MessageResponse, status_code=201)
async def create_profile(data: CandidateCreate, user: dict = Depends(get_current_user)):
    """Create candidate profile. User must be registered as candidate."""
    if user["role"] != "candidate":
        raise Unauthorized("Only candidate accounts can create candidate profiles")

    with get_db_session() as db:
        result = db.execute(
            text("SELECT candidate_id FROM candidates WHERE user_id = :id"),
            {"id": user["user_id"]}
        )
        if result.fetchone():
            raise HTTPException(status_code=400, detail="Profile already exists. Use PUT to update.")

        db.execute(
            text("""
                INSERT INTO candidates (user_id, email, first_name, last_name, phone, industry,
                    current_position, years_of_experience, professional_summary, approval_status)
                VALUES (:user_id, :email, :first_name, :last_name, :phone, :industry,
                    :current_position, :years_of_experience, :professional_summary, 'pending')
            """),
            {"user_id": user["user_id"], "email": user["email"], **data.model_dump(include=set(PROFILE_FIELDS))}
        )

    return MessageResponse(message="Candidate profile created. It is now pending MIS approval.")


@router.get("/profile", response_model=CandidateResponse)
async def get_profile(candidate: dict = Depends(get_current_candidate)):
    """Get current candidate's profile."""
    with get_db_session() as db:
        result = db.execute(
            text("""
                SELECT candidate_id, user_id, first_name, last_name, email, phone, industry,
                       current_position, years_of_experience, professional_summary,
                       approval_status, rejection_reason, membership_no, created_at
                FROM candidates WHERE candidate_id = :id
            """),
            {"id": candidate["candidate_id"]}
        )
        row = result.mappings().fetchone()

    return CandidateResponse(**row)


@router.put("/profile", response_model=MessageResponse)
async def update_profile(data: CandidateUpdate, candidate: dict = Depends(get_current_candidate)):
    """Update candidate profile. Only provided fields are updated."""
    updates = []
    params = {"id": candidate["candidate_id"]}

    for field in PROFILE_FIELDS:
        value = getattr(data, field)
        if value is not None:
            updates.append(f"{field} = :{field}")
            params[field] = value

    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    with get_db_session() as db:
        db.execute(
            text(f"UPDATE candidates SET {', '.join(updates)}, updated_at = CURRENT_TIMESTAMP WHERE candidate_id = :id"),
            params
        )
        resubmitted = reset_to_pending(db, "candidate", candidate["candidate_id"])

    if resubmitted:
        return MessageResponse(message="Profile updated and resubmitted for approval")
    return MessageResponse(message="Profile updated successfully")


@router.get("/approval-status", response_model=ApprovalStatusResponse)
async def get_approval_status(candidate: dict = Depends(get_current_candidate)):
    """Current approval state - drives the approved / rejected message on the dashboard."""
    with get_db_session() as db:
        result = db.execute(
            text("""
                SELECT approval_status, rejection_reason, membership_no, approval_status_message_seen
                FROM candidates WHERE candidate_id = :id
            """),
            {"id": candidate["candidate_id"]}
        )
        row = result.fetchone()

    return ApprovalStatusResponse(
        approval_status=row[0], rejection_reason=row[1], membership_no=row[2], message_seen=bool(row[3])
    )


@router.post("/approval-status/seen", response_model=MessageResponse)
async def mark_approval_message_seen(candidate: dict = Depends(get_current_candidate)):
    """Mark the approval status message as seen."""
    mark_message_seen("candidate", candidate["candidate_id"])
    return MessageResponse(message="Message marked as seen.")
