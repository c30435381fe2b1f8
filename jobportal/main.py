"""
Job Portal Access Service - Main Application

FastAPI backend with:
- PostgreSQL for candidates, companies, employers and membership numbers
- JWT authentication for candidates, employers and MIS admins
- Approval gate for non-approved accounts
- Membership number allocation on candidate approval

Run: uvicorn jobportal.main:app --reload
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError

from jobportal import __version__
from jobportal.api.routes import api_router
from jobportal.core.config import get_settings
from jobportal.core.exceptions import PortalError, status_code_for
from jobportal.core.logging import configure_logging
from jobportal.db.postgres import create_tables, check_database_connection

settings = get_settings()
configure_logging()
log = structlog.get_logger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Job Portal Access Service",
    description="""
    Approval-gated access control and membership numbering for the job portal.

    ## Features
    - **Authentication**: JWT-based auth for candidates, employers and MIS admins
    - **Candidates / Employers**: Profiles that enter MIS review as pending
    - **MIS**: Approve / reject candidates and companies
    - **Membership numbers**: JG-YY-NNNNNN, issued on candidate approval
    - **Approval gate**: Route restriction checks for the portal front end
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware (allow all for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    """Domain errors -> JSON {"detail": ...} with the mapped status code."""
    status_code = status_code_for(exc)
    if status_code >= 500:
        log.error("request_failed", path=request.url.path, error=exc.message, error_type=type(exc).__name__)
    else:
        log.info("request_rejected", path=request.url.path, error=exc.message, error_type=type(exc).__name__)
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


@app.exception_handler(DBAPIError)
async def database_error_handler(request: Request, exc: DBAPIError):
    log.error("database_error", path=request.url.path, error=str(exc.orig))
    return JSONResponse(status_code=503, content={"detail": "Database is unavailable"})


# Startup event
@app.on_event("startup")
async def startup_event():
    """Create tables that do not exist yet."""
    try:
        create_tables()
        log.info("database_schema_ready")
    except DBAPIError as e:
        log.warning("database_schema_init_failed", error=str(e))


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "database": "connected" if check_database_connection() else "disconnected"
    }
