"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
"""

from pydantic import BaseModel, EmailStr, Field, model_validator
from typing import Optional, List
from datetime import datetime
from enum import Enum


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    candidate = "candidate"
    employer = "employer"
    mis = "mis"


class ApprovalStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"

    @classmethod
    def classify(cls, value) -> "ApprovalStatus":
        """
        Map a stored status to the enum.
        Missing records (None) and unknown strings count as pending.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.pending


class RegistrableRole(str, Enum):
    candidate = "candidate"
    employer = "employer"


# ============================================================
# AUTH SCHEMAS
# ============================================================

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    confirm_password: str
    role: RegistrableRole

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: int
    role: str

class UserResponse(BaseModel):
    user_id: int
    email: str
    role: str
    is_active: bool
    created_at: datetime

class MISUserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)


# ============================================================
# CANDIDATE SCHEMAS
# ============================================================

class CandidateCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    industry: Optional[str] = None
    current_position: Optional[str] = None
    years_of_experience: Optional[int] = Field(None, ge=0, le=70)
    professional_summary: Optional[str] = Field(None, max_length=2000)

class CandidateUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    industry: Optional[str] = None
    current_position: Optional[str] = None
    years_of_experience: Optional[int] = Field(None, ge=0, le=70)
    professional_summary: Optional[str] = Field(None, max_length=2000)

class CandidateResponse(BaseModel):
    candidate_id: int
    user_id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    industry: Optional[str] = None
    current_position: Optional[str] = None
    years_of_experience: Optional[int] = None
    professional_summary: Optional[str] = None
    approval_status: ApprovalStatus
    rejection_reason: Optional[str] = None
    membership_no: Optional[str] = None
    created_at: datetime


# ============================================================
# COMPANY / EMPLOYER SCHEMAS
# ============================================================

class CompanyCreate(BaseModel):
    company_name: str = Field(..., min_length=2, max_length=200)
    business_registration_no: str = Field(..., min_length=2, max_length=50)
    industry: Optional[str] = None
    website: Optional[str] = None
    address: Optional[str] = None
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)

class CompanyUpdate(BaseModel):
    company_name: Optional[str] = Field(None, min_length=2, max_length=200)
    industry: Optional[str] = None
    website: Optional[str] = None
    address: Optional[str] = None

class CompanyResponse(BaseModel):
    company_id: int
    company_name: str
    business_registration_no: str
    industry: Optional[str] = None
    website: Optional[str] = None
    address: Optional[str] = None
    approval_status: ApprovalStatus
    rejection_reason: Optional[str] = None
    created_at: datetime

class SubAdminCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)

class EmployerResponse(BaseModel):
    employer_id: int
    user_id: int
    company_id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    is_super_admin: bool


# ============================================================
# APPROVAL SCHEMAS
# ============================================================

class ApprovalStatusResponse(BaseModel):
    approval_status: ApprovalStatus
    rejection_reason: Optional[str] = None
    membership_no: Optional[str] = None
    message_seen: bool = False

class RejectRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)

class ApprovalResult(BaseModel):
    subject_id: int
    approval_status: ApprovalStatus
    membership_no: Optional[str] = None
    message: str

class CandidateReviewItem(BaseModel):
    candidate_id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    industry: Optional[str] = None
    current_position: Optional[str] = None
    years_of_experience: Optional[int] = None
    approval_status: ApprovalStatus
    membership_no: Optional[str] = None
    created_at: datetime

class CompanyReviewItem(BaseModel):
    company_id: int
    company_name: str
    business_registration_no: str
    industry: Optional[str] = None
    approval_status: ApprovalStatus
    created_at: datetime


# ============================================================
# ACCESS (APPROVAL GATE) SCHEMAS
# ============================================================

class AccessCheckResponse(BaseModel):
    path: str
    approval_status: ApprovalStatus
    restricted: bool
    redirect_to: Optional[str] = None

class NotificationResponse(BaseModel):
    kind: str
    title: str
    description: str

class RestrictionNoticeResponse(BaseModel):
    notification: Optional[NotificationResponse] = None
    clean_url: str


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True

class ErrorResponse(BaseModel):
    detail: str
