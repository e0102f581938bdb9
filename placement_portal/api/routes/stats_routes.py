"""
Stats Routes

GET /stats - Placement statistics (own breakdown for students, campus-wide for officers)
"""

from fastapi import APIRouter, Depends
from pymongo.database import Database

from placement_portal.db.mongodb import get_database
from placement_portal.core.auth import get_current_actor
from placement_portal.services.stats_service import StatsService
from placement_portal.schemas.schemas import Actor, ApiResponse

router = APIRouter(prefix="/stats", tags=["Stats"])


@router.get("", response_model=ApiResponse)
async def get_stats(actor: Actor = Depends(get_current_actor), db: Database = Depends(get_database)):
    """Get placement statistics for the current user."""
    return ApiResponse(data=StatsService(db).for_actor(actor))
