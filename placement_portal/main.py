"""
Campus Placement Portal - Main Application

FastAPI backend for the application lifecycle:
- Students apply to companies
- Placement officers review, approve and reject applications
- Approving one application places the student and closes the rest
- MongoDB for users, companies and applications
- JWT authentication (tokens issued by the auth service)

Run: uvicorn placement_portal.main:app --reload
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from placement_portal import __version__
from placement_portal.api.routes import api_router
from placement_portal.core.config import get_settings
from placement_portal.core.errors import PlacementError
from placement_portal.core.logging import setup_logging
from placement_portal.db.mongodb import init_mongo_indexes

settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Campus Placement Portal",
    description="""
    Application lifecycle and placement-exclusivity engine.

    ## Features
    - **Applications**: Students apply, officers review and decide
    - **Placement cascade**: Approval places the student and rejects their other open applications
    - **Eligibility**: GPA gate and deadlines enforced server-side
    - **Stats**: Placement counters for dashboards
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


# ============================================================
# ERROR HANDLERS - everything leaves as {success: false, message}
# ============================================================

@app.exception_handler(PlacementError)
async def placement_error_handler(request: Request, exc: PlacementError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message}
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.detail},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = f"{field}: {first.get('msg')}" if field else first.get("msg", "Invalid request")
    return JSONResponse(status_code=400, content={"success": False, "message": message})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": str(exc) if settings.debug else "Server error. Please try again later."
        }
    )


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize MongoDB indexes on startup."""
    try:
        init_mongo_indexes()
    except PyMongoError as e:
        logger.error("MongoDB index initialization failed: %s", e)


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    from placement_portal.db.mongodb import test_mongo_connection

    return {
        "status": "healthy",
        "mongodb": "connected" if test_mongo_connection() else "disconnected"
    }
