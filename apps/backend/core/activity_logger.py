"""
Activity audit trail.

log_activity writes one row to the activities table and never raises:
a failed audit write must not break the operation being audited.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from psycopg2.extras import Json, RealDictCursor

from app.db_config import db_config

logger = logging.getLogger(__name__)

ACTIVITY_TYPES = (
    "login",
    "logout",
    "job_fetch",
    "job_approved",
    "job_rejected",
    "job_posted",
    "content_generated",
    "settings_updated",
    "api_error",
)

DEFAULT_ACTIVITY_LIMIT = 50


def _json(value: Any) -> Json:
    return Json(value, dumps=lambda obj: json.dumps(obj, default=str))


def log_activity(
    user_id: str,
    activity_type: str,
    title: str,
    description: str,
    metadata: Optional[Dict[str, Any]] = None,
) -> bool:
    """
    Insert an activity row.

    Returns:
        True when written, False when the write failed (error is logged)
    """
    try:
        with db_config.connection() as conn:
            with conn.cursor() as cursor:
                cursor.execute(
                    """
                    INSERT INTO activities (user_id, activity_type, title, description, metadata)
                    VALUES (%s, %s, %s, %s, %s)
                    """,
                    (user_id, activity_type, title, description, _json(metadata or {})),
                )
        return True
    except Exception as e:
        logger.error(f"[activity_logger] Failed to log {activity_type} activity: {e}")
        return False


def log_login(user_id: str, user_agent: Optional[str] = None) -> bool:
    return log_activity(
        user_id,
        "login",
        "User Login",
        "User logged into OrbitJobs dashboard",
        {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "user_agent": user_agent or "Server",
        },
    )


def log_logout(user_id: str) -> bool:
    return log_activity(
        user_id,
        "logout",
        "User Logout",
        "User logged out of OrbitJobs dashboard",
        {"timestamp": datetime.now(timezone.utc).isoformat()},
    )


def log_job_fetch(
    user_id: str,
    query: str,
    filters: Dict[str, Any],
    total_fetched: int,
    new_jobs: int,
    duplicates: int,
    api_response_time: int,
) -> bool:
    """Record a fetch run; metadata feeds the analytics fetch chart."""
    return log_activity(
        user_id,
        "job_fetch",
        "Job Fetch Completed",
        f"Fetched {total_fetched} jobs ({new_jobs} new, {duplicates} duplicates)",
        {
            "query": query,
            "filters": filters,
            "totalFetched": total_fetched,
            "newJobs": new_jobs,
            "duplicates": duplicates,
            "apiResponseTime": api_response_time,
        },
    )


def log_job_approved(user_id: str, job_id: str, job_title: str) -> bool:
    return log_activity(
        user_id, "job_approved", "Job Approved", f"Approved job: {job_title}", {"job_id": job_id}
    )


def log_job_rejected(user_id: str, job_id: str, job_title: str) -> bool:
    return log_activity(
        user_id, "job_rejected", "Job Rejected", f"Rejected job: {job_title}", {"job_id": job_id}
    )


def log_content_generated(
    user_id: str,
    job_id: str,
    model_used: str,
    tokens_used: int,
    generation_time: int,
) -> bool:
    return log_activity(
        user_id,
        "content_generated",
        "AI Content Generated",
        f"Generated content using {model_used}",
        {
            "jobId": job_id,
            "modelUsed": model_used,
            "tokensUsed": tokens_used,
            "generationTime": generation_time,
        },
    )


def log_job_posted(user_id: str, job_id: str, tweet_id: str) -> bool:
    return log_activity(
        user_id,
        "job_posted",
        "Job Posted to X",
        "Successfully posted job thread to @TheOrbitJobs",
        {"jobId": job_id, "tweetId": tweet_id},
    )


def log_settings_updated(user_id: str, setting_key: str) -> bool:
    return log_activity(
        user_id,
        "settings_updated",
        "Settings Updated",
        f"Updated setting: {setting_key}",
        {"setting_key": setting_key},
    )


def log_api_error(
    user_id: str,
    endpoint: str,
    error: str,
    status_code: Optional[int] = None,
    **extra: Any,
) -> bool:
    metadata: Dict[str, Any] = {"endpoint": endpoint, "error": error}
    if status_code is not None:
        metadata["statusCode"] = status_code
    metadata.update(extra)
    return log_activity(
        user_id,
        "api_error",
        "API Error",
        f"Error calling {endpoint}: {error}",
        metadata,
    )


def list_activities(
    user_id: Optional[str] = None,
    activity_type: Optional[str] = None,
    limit: int = DEFAULT_ACTIVITY_LIMIT,
) -> List[Dict[str, Any]]:
    """Most recent activities first, optionally scoped to a user and type."""
    where_clauses = []
    params: List[Any] = []
    if user_id:
        where_clauses.append("user_id = %s")
        params.append(user_id)
    if activity_type:
        where_clauses.append("activity_type = %s")
        params.append(activity_type)
    where_clause = f"WHERE {' AND '.join(where_clauses)}" if where_clauses else ""

    with db_config.connection() as conn:
        with conn.cursor(cursor_factory=RealDictCursor) as cursor:
            cursor.execute(
                f"SELECT * FROM activities {where_clause} ORDER BY created_at DESC LIMIT %s",
                params + [limit],
            )
            return [dict(row) for row in cursor.fetchall()]
