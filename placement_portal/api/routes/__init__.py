"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from placement_portal.api.routes.application_routes import router as application_router
from placement_portal.api.routes.stats_routes import router as stats_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(application_router)
api_router.include_router(stats_router)
