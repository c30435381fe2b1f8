"""
Access Routes - approval gate for the portal's navigation layer.

GET /access/check?path=/employer/jobs - Should this navigation be redirected?
GET /access/notice?url=/employer/dashboard?info=approval_pending - One-shot restriction notice
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, Query

from jobportal.core.auth import get_current_user
from jobportal.services.approval_gate import check_navigation
from jobportal.services.restriction_notice import get_restriction_notifier
from jobportal.services.user_service import lookup_approval_status
from jobportal.schemas.schemas import (
    AccessCheckResponse, NotificationResponse, RestrictionNoticeResponse
)

router = APIRouter(prefix="/access", tags=["Access"])


@router.get("/check", response_model=AccessCheckResponse)
async def check_access(
    path: str = Query(..., pattern=r"^/", description="Absolute portal route, e.g. /employer/jobs"),
    user: dict = Depends(get_current_user)
):
    """
    Called on every route change. When restricted is true the client
    redirects to redirect_to (the area's dashboard with info=approval_pending).
    """
    status = lookup_approval_status(user["user_id"], user["role"])
    decision = check_navigation(path, status, user["role"])
    return AccessCheckResponse(
        path=decision.path,
        approval_status=decision.approval_status,
        restricted=decision.restricted,
        redirect_to=decision.redirect_to
    )


@router.get("/notice", response_model=RestrictionNoticeResponse)
async def restriction_notice(
    url: str = Query(..., description="Current page URL including its query string"),
    user: dict = Depends(get_current_user)
):
    """
    Notification to show after a gate redirect, at most once per debounce
    window, plus the URL to replace the current one with (info removed).
    """
    notification, clean_url = get_restriction_notifier().consume(str(user["user_id"]), url)
    return RestrictionNoticeResponse(
        notification=NotificationResponse(**asdict(notification)) if notification else None,
        clean_url=clean_url
    )
