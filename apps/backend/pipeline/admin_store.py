"""
PostgreSQL access for settings, X posting quota, and dashboard analytics.
"""
import json
import logging
from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from fastapi import HTTPException
from psycopg2.extras import Json, RealDictCursor

from app.db_config import DBConfig, db_config as default_db_config

logger = logging.getLogger(__name__)

MONTHLY_POST_LIMIT = 500
FETCH_CHART_DAYS = 30
TOP_COMPANIES = 5

SALARY_BUCKETS = (
    ("< $50k", 50000),
    ("$50k - $80k", 80000),
    ("$80k - $120k", 120000),
    ("$120k - $160k", 160000),
    ("$160k+", None),
)


def salary_distribution(salaries: Iterable[Optional[int]]) -> Dict[str, List[Any]]:
    """Bucket salary_min values; rows without a salary are ignored."""
    counts = {label: 0 for label, _ in SALARY_BUCKETS}
    for salary in salaries:
        if not salary:
            continue
        for label, upper in SALARY_BUCKETS:
            if upper is None or salary < upper:
                counts[label] += 1
                break
    return {"labels": list(counts.keys()), "counts": list(counts.values())}


def top_companies(companies: Iterable[Optional[str]], limit: int = TOP_COMPANIES) -> Dict[str, List[Any]]:
    ranked = Counter(c for c in companies if c).most_common(limit)
    return {"labels": [name for name, _ in ranked], "counts": [count for _, count in ranked]}


def fetch_chart(
    activities: Iterable[Dict[str, Any]],
    today: Optional[date] = None,
    days: int = FETCH_CHART_DAYS,
) -> Dict[str, List[Any]]:
    """
    Daily new/duplicate totals from job_fetch activity metadata.

    One bucket per day for the last `days` days, oldest first; labels
    look like "Oct 19".
    """
    today = today or datetime.now(timezone.utc).date()
    buckets = {today - timedelta(days=offset): [0, 0] for offset in range(days - 1, -1, -1)}

    for activity in activities:
        created_at = activity.get("created_at")
        if not created_at:
            continue
        day = created_at.date() if isinstance(created_at, datetime) else created_at
        if day not in buckets:
            continue
        metadata = activity.get("metadata") or {}
        buckets[day][0] += int(metadata.get("newJobs") or 0)
        buckets[day][1] += int(metadata.get("duplicates") or 0)

    return {
        "labels": [f"{day:%b} {day.day}" for day in buckets],
        "newJobs": [values[0] for values in buckets.values()],
        "duplicates": [values[1] for values in buckets.values()],
    }


def approval_rate(approved: int, posted: int, total: int) -> int:
    if not total:
        return 0
    return round((approved + posted) / total * 100)


class AdminStore:
    """Settings, twitter_posts and dashboard queries."""

    def __init__(self, config: Optional[DBConfig] = None):
        self.db = config or default_db_config

    # --- Settings ---

    def get_settings(self, user_id: str) -> Dict[str, Any]:
        with self.db.connection() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(
                    "SELECT setting_key, setting_value FROM settings WHERE user_id = %s",
                    (user_id,),
                )
                return {row["setting_key"]: row["setting_value"] for row in cursor.fetchall()}

    def get_setting(self, user_id: str, key: str) -> Optional[Any]:
        with self.db.connection() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(
                    "SELECT setting_value FROM settings WHERE user_id = %s AND setting_key = %s",
                    (user_id, key),
                )
                row = cursor.fetchone()
                return row["setting_value"] if row else None

    def upsert_setting(self, user_id: str, key: str, value: Any) -> None:
        with self.db.connection() as conn:
            with conn.cursor() as cursor:
                cursor.execute(
                    """
                    INSERT INTO settings (user_id, setting_key, setting_value, updated_at)
                    VALUES (%s, %s, %s, NOW())
                    ON CONFLICT (user_id, setting_key)
                    DO UPDATE SET setting_value = EXCLUDED.setting_value, updated_at = NOW()
                    """,
                    (user_id, key, Json(value, dumps=lambda obj: json.dumps(obj, default=str))),
                )

    def reset_settings(self, user_id: str) -> int:
        with self.db.connection() as conn:
            with conn.cursor() as cursor:
                cursor.execute("DELETE FROM settings WHERE user_id = %s", (user_id,))
                return cursor.rowcount

    # --- X posting quota ---

    def record_twitter_post(
        self,
        job_pk: str,
        status: str,
        tweet_id: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> None:
        with self.db.connection() as conn:
            with conn.cursor() as cursor:
                cursor.execute(
                    """
                    INSERT INTO twitter_posts (job_id, tweet_id, status, error_message)
                    VALUES (%s, %s, %s, %s)
                    """,
                    (job_pk, tweet_id, status, error_message),
                )

    def monthly_post_count(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.now(timezone.utc)
        start_of_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        with self.db.connection() as conn:
            with conn.cursor() as cursor:
                cursor.execute(
                    "SELECT COUNT(*) FROM twitter_posts WHERE posted_at >= %s AND status = 'success'",
                    (start_of_month,),
                )
                return int(cursor.fetchone()[0])

    def remaining_posts(self) -> int:
        return max(0, MONTHLY_POST_LIMIT - self.monthly_post_count())

    def twitter_analytics(self) -> Dict[str, Any]:
        posts_this_month = self.monthly_post_count()
        with self.db.connection() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute("SELECT * FROM twitter_posts ORDER BY posted_at DESC LIMIT 5")
                recent = [dict(row) for row in cursor.fetchall()]
        return {
            "posts_this_month": posts_this_month,
            "remaining_posts": max(0, MONTHLY_POST_LIMIT - posts_this_month),
            "limit": MONTHLY_POST_LIMIT,
            "recent_posts": recent,
        }

    # --- Dashboard ---

    def status_counts(self) -> Dict[str, int]:
        with self.db.connection() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(
                    """
                    SELECT
                        COUNT(*) AS total,
                        COUNT(*) FILTER (WHERE status = 'pending') AS pending,
                        COUNT(*) FILTER (WHERE status = 'approved') AS approved,
                        COUNT(*) FILTER (WHERE status = 'approved' AND ai_content_generated) AS post_ready,
                        COUNT(*) FILTER (WHERE status = 'rejected') AS rejected,
                        COUNT(*) FILTER (WHERE status = 'posted') AS posted,
                        COUNT(*) FILTER (WHERE posted_to_x) AS posted_to_x
                    FROM jobs
                    """
                )
                row = cursor.fetchone() or {}
                return {key: int(value or 0) for key, value in dict(row).items()}

    def dashboard_stats(self, user_id: str) -> Dict[str, Any]:
        counts = self.status_counts()
        with self.db.connection() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(
                    """
                    SELECT created_at, metadata FROM activities
                    WHERE activity_type = 'job_fetch' AND user_id = %s
                    ORDER BY created_at DESC LIMIT 1
                    """,
                    (user_id,),
                )
                last_fetch = cursor.fetchone()
        return {
            "total_jobs": counts.get("total", 0),
            "pending_jobs": counts.get("pending", 0),
            "approved_jobs": counts.get("approved", 0),
            "posted_jobs": counts.get("posted", 0),
            "rejected_jobs": counts.get("rejected", 0),
            "last_fetch": dict(last_fetch) if last_fetch else None,
        }

    def analytics(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.now(timezone.utc)
        counts = self.status_counts()
        since = now - timedelta(days=FETCH_CHART_DAYS)

        with self.db.connection() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(
                    """
                    SELECT created_at, metadata FROM activities
                    WHERE activity_type = 'job_fetch' AND created_at >= %s
                    ORDER BY created_at ASC
                    """,
                    (since,),
                )
                fetch_activities = [dict(row) for row in cursor.fetchall()]

                cursor.execute("SELECT salary_min, company FROM jobs WHERE company IS NOT NULL")
                jobs = [dict(row) for row in cursor.fetchall()]

        total = counts.get("total", 0)
        posted_to_x = counts.get("posted_to_x", 0)
        return {
            "stats": {
                "total_fetched": total,
                "pending": counts.get("pending", 0),
                "approved": counts.get("approved", 0),
                "post_ready": counts.get("post_ready", 0),
                "rejected": counts.get("rejected", 0),
                "posted": posted_to_x,
                "approval_rate": approval_rate(counts.get("approved", 0), counts.get("posted", 0), total),
            },
            "charts": {
                "jobs": fetch_chart(fetch_activities, today=now.date()),
                "status": {
                    "pending": counts.get("pending", 0),
                    "approved": counts.get("approved", 0),
                    "rejected": counts.get("rejected", 0),
                    "posted": posted_to_x,
                },
                "salary": salary_distribution(job["salary_min"] for job in jobs),
                "companies": top_companies(job["company"] for job in jobs),
            },
        }

    def recent_jobs(self, limit: int = 10) -> List[Dict[str, Any]]:
        with self.db.connection() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute("SELECT * FROM jobs ORDER BY created_at DESC LIMIT %s", (limit,))
                return [dict(row) for row in cursor.fetchall()]


admin_store = AdminStore()


def get_admin_store() -> AdminStore:
    """FastAPI dependency; 503 when DATABASE_URL is not set."""
    if not admin_store.db.is_db_enabled:
        raise HTTPException(status_code=503, detail="Database not configured")
    return admin_store
