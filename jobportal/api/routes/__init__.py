"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from jobportal.api.routes.auth_routes import router as auth_router
from jobportal.api.routes.candidate_routes import router as candidate_router
from jobportal.api.routes.employer_routes import router as employer_router
from jobportal.api.routes.mis_routes import router as mis_router
from jobportal.api.routes.access_routes import router as access_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(auth_router)
api_router.include_router(candidate_router)
api_router.include_router(employer_router)
api_router.include_router(mis_router)
api_router.include_router(access_router)
