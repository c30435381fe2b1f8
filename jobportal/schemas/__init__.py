"""
Schemas module - Request/Response schemas for API endpoints.
"""
from jobportal.schemas.schemas import ApprovalStatus, UserRole

__all__ = ["ApprovalStatus", "UserRole"]
