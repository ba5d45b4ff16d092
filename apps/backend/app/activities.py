"""
Activity trail and dashboard endpoints.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from app.db_config import require_db
from core.activity_logger import ACTIVITY_TYPES, list_activities, log_activity
from pipeline.admin_store import AdminStore, get_admin_store
from security.admin_auth import admin_required

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["activities"])

RECENT_JOBS = 10
RECENT_ACTIVITIES = 20


class LogActivityRequest(BaseModel):
    activity_type: str
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    metadata: Dict[str, Any] = Field(default_factory=dict)


@router.get("/activities", dependencies=[Depends(require_db)])
async def get_activities(
    activity_type: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    admin: str = Depends(admin_required),
):
    if activity_type and activity_type not in ACTIVITY_TYPES:
        raise HTTPException(status_code=400, detail=f"Unknown activity type: {activity_type}")
    return {
        "status": "ok",
        "data": list_activities(user_id=admin, activity_type=activity_type, limit=limit),
    }


@router.post("/log-activity", dependencies=[Depends(require_db)])
async def post_activity(
    body: LogActivityRequest,
    admin: str = Depends(admin_required),
):
    """Record a client-side event (e.g. a UI action) in the trail."""
    if body.activity_type not in ACTIVITY_TYPES:
        raise HTTPException(status_code=400, detail=f"Unknown activity type: {body.activity_type}")

    if not log_activity(admin, body.activity_type, body.title, body.description, body.metadata):
        raise HTTPException(status_code=500, detail="Failed to log activity")
    return {"status": "ok"}


@router.get("/dashboard/stats")
async def dashboard_stats(
    admin: str = Depends(admin_required),
    store: AdminStore = Depends(get_admin_store),
):
    return {"status": "ok", "data": store.dashboard_stats(admin)}


@router.get("/analytics/dashboard")
async def analytics_dashboard(
    admin: str = Depends(admin_required),
    store: AdminStore = Depends(get_admin_store),
):
    """Counts, 30-day fetch chart, salary/company breakdowns, recent rows."""
    return {
        "status": "ok",
        "data": {
            "analytics": store.analytics(),
            "recent_jobs": store.recent_jobs(RECENT_JOBS),
            "recent_activities": list_activities(limit=RECENT_ACTIVITIES),
        },
    }
