"""
PostgreSQL access for the jobs and job_fetch_config tables.

Used by the fetch pipeline (existence check, batch insert, run stats) and by
the job management API (list, read, update, delete).
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from fastapi import HTTPException
from psycopg2.extras import Json, RealDictCursor, execute_values

from app.db_config import DBConfig, db_config as default_db_config
from core.models import CanonicalJob, FetchRunStats

logger = logging.getLogger(__name__)

# Insert column order: CanonicalJob field -> jobs column (same names)
INSERT_COLUMNS = (
    "job_id",
    "title",
    "company",
    "location",
    "salary_min",
    "salary_max",
    "salary_currency",
    "employment_type",
    "remote_allowed",
    "description",
    "required_skills",
    "apply_url",
    "source",
    "raw_data",
    "status",
)

# Columns an operator may edit directly through PATCH /api/jobs/{id}
EDITABLE_COLUMNS = {
    "status",
    "ai_thread_primary",
    "ai_thread_reply",
    "ai_content_generated",
    "ai_model_used",
    "posted_to_x",
    "posted_at",
    "x_tweet_id",
}

SORT_MAP = {
    "date_desc": ("created_at", "DESC"),
    "date_asc": ("created_at", "ASC"),
    "salary_desc": ("salary_max", "DESC"),
    "salary_asc": ("salary_min", "ASC"),
    "company_asc": ("company", "ASC"),
    "company_desc": ("company", "DESC"),
    "title_asc": ("title", "ASC"),
    "title_desc": ("title", "DESC"),
}

DATE_ADDED_DAYS = {
    "7days": 7,
    "30days": 30,
    "90days": 90,
}

FETCH_CONFIG_COLUMNS = (
    "search_query",
    "location",
    "remote_only",
    "employment_types",
    "salary_min",
    "date_posted",
    "num_results",
    "provider",
)


def job_to_row(job: CanonicalJob) -> Tuple[Any, ...]:
    """Convert a CanonicalJob into an insert tuple in INSERT_COLUMNS order."""
    data = job.model_dump()
    row = []
    for column in INSERT_COLUMNS:
        value = data[column]
        if column == "raw_data":
            value = Json(value, dumps=lambda obj: json.dumps(obj, default=str))
        row.append(value)
    return tuple(row)


def parse_sort(sort_by: Optional[str]) -> Tuple[str, str]:
    return SORT_MAP.get(sort_by or "date_desc", SORT_MAP["date_desc"])


def build_job_filters(
    search: Optional[str] = None,
    status: Optional[Sequence[str]] = None,
    remote: Optional[str] = None,
    salary_min: Optional[int] = None,
    salary_max: Optional[int] = None,
    date_added: Optional[str] = None,
    employment_types: Optional[Sequence[str]] = None,
    now: Optional[datetime] = None,
) -> Tuple[str, List[Any]]:
    """
    Build the WHERE clause for the jobs list.

    Returns:
        (where_clause, params); where_clause is "" when nothing filters
    """
    where_clauses: List[str] = []
    params: List[Any] = []

    if search and search.strip():
        where_clauses.append("(title ILIKE %s OR company ILIKE %s)")
        term = f"%{search.strip()}%"
        params.extend([term, term])

    if status:
        where_clauses.append("status = ANY(%s)")
        params.append(list(status))

    if remote == "remote":
        where_clauses.append("remote_allowed = TRUE")
    elif remote == "onsite":
        where_clauses.append("remote_allowed = FALSE")

    if salary_min is not None and salary_min > 0:
        where_clauses.append("salary_min >= %s")
        params.append(salary_min)

    if salary_max is not None and salary_max > 0:
        where_clauses.append("salary_max <= %s")
        params.append(salary_max)

    if date_added and date_added != "all":
        now = now or datetime.now(timezone.utc)
        if date_added == "today":
            threshold = now.replace(hour=0, minute=0, second=0, microsecond=0)
        elif date_added in DATE_ADDED_DAYS:
            threshold = now - timedelta(days=DATE_ADDED_DAYS[date_added])
        else:
            threshold = None
        if threshold is not None:
            where_clauses.append("created_at >= %s")
            params.append(threshold)

    if employment_types:
        where_clauses.append("employment_type = ANY(%s)")
        params.append(list(employment_types))

    where_clause = f"WHERE {' AND '.join(where_clauses)}" if where_clauses else ""
    return where_clause, params


class JobStore:
    """Jobs table access through the shared connection pool."""

    def __init__(self, config: Optional[DBConfig] = None):
        self.db = config or default_db_config

    # --- Fetch pipeline ---

    def existing_job_ids(self, job_ids: Iterable[str]) -> Set[str]:
        """Return the subset of job_ids already stored."""
        ids = list(dict.fromkeys(job_ids))
        if not ids:
            return set()
        with self.db.connection() as conn:
            with conn.cursor() as cursor:
                cursor.execute("SELECT job_id FROM jobs WHERE job_id = ANY(%s)", (ids,))
                return {row[0] for row in cursor.fetchall()}

    def insert_jobs(self, jobs: List[CanonicalJob]) -> List[Dict[str, Any]]:
        """
        Batch-insert normalized jobs.

        Returns:
            Inserted rows including server-generated id and timestamps
        """
        if not jobs:
            return []

        columns = ", ".join(INSERT_COLUMNS)
        query = f"INSERT INTO jobs ({columns}) VALUES %s RETURNING *"
        rows = [job_to_row(job) for job in jobs]

        with self.db.connection() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                inserted = execute_values(cursor, query, rows, page_size=100, fetch=True)

        logger.info(f"[job_store] Inserted {len(inserted)} jobs")
        return [dict(row) for row in inserted]

    def update_last_run_stats(self, user_id: str, stats: FetchRunStats) -> int:
        """Overwrite last-run stats on the operator's default fetch config."""
        with self.db.connection() as conn:
            with conn.cursor() as cursor:
                cursor.execute(
                    """
                    UPDATE job_fetch_config
                    SET last_run_at = %s,
                        last_run_results_count = %s,
                        last_run_new_jobs = %s,
                        last_run_duplicates = %s
                    WHERE user_id = %s AND is_default = TRUE
                    """,
                    (stats.last_run_at, stats.total_fetched, stats.new_jobs, stats.duplicates, user_id),
                )
                return cursor.rowcount

    # --- Fetch configuration ---

    def get_fetch_config(self, user_id: str) -> Optional[Dict[str, Any]]:
        with self.db.connection() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(
                    "SELECT * FROM job_fetch_config WHERE user_id = %s AND is_default = TRUE",
                    (user_id,),
                )
                row = cursor.fetchone()
                return dict(row) if row else None

    def save_fetch_config(self, user_id: str, config: Dict[str, Any]) -> Dict[str, Any]:
        """Insert or update the operator's default fetch config."""
        values = [config.get(column) for column in FETCH_CONFIG_COLUMNS]
        set_clause = ", ".join(f"{column} = %s" for column in FETCH_CONFIG_COLUMNS)
        columns = ", ".join(FETCH_CONFIG_COLUMNS)
        placeholders = ", ".join(["%s"] * len(FETCH_CONFIG_COLUMNS))

        with self.db.connection() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(
                    "SELECT id FROM job_fetch_config WHERE user_id = %s AND is_default = TRUE",
                    (user_id,),
                )
                existing = cursor.fetchone()
                if existing:
                    cursor.execute(
                        f"UPDATE job_fetch_config SET {set_clause}, updated_at = NOW() "
                        f"WHERE id = %s RETURNING *",
                        values + [existing["id"]],
                    )
                else:
                    cursor.execute(
                        f"INSERT INTO job_fetch_config (user_id, {columns}, is_default, updated_at) "
                        f"VALUES (%s, {placeholders}, TRUE, NOW()) RETURNING *",
                        [user_id] + values,
                    )
                return dict(cursor.fetchone())

    # --- Job management ---

    def list_jobs(
        self,
        page: int = 1,
        size: int = 25,
        sort_by: Optional[str] = None,
        **filters: Any,
    ) -> Tuple[List[Dict[str, Any]], int]:
        where_clause, params = build_job_filters(**filters)
        sort_field, sort_dir = parse_sort(sort_by)
        offset = (page - 1) * size

        with self.db.connection() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(f"SELECT COUNT(*) AS count FROM jobs {where_clause}", params)
                total = cursor.fetchone()["count"]

                cursor.execute(
                    f"SELECT * FROM jobs {where_clause} "
                    f"ORDER BY {sort_field} {sort_dir} NULLS LAST "
                    f"LIMIT %s OFFSET %s",
                    params + [size, offset],
                )
                jobs = [dict(row) for row in cursor.fetchall()]

        return jobs, total

    def get_job(self, job_pk: str) -> Optional[Dict[str, Any]]:
        with self.db.connection() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute("SELECT * FROM jobs WHERE id::text = %s", (job_pk,))
                row = cursor.fetchone()
                return dict(row) if row else None

    def update_job(self, job_pk: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Update editable columns; returns the updated row or None when missing."""
        unknown = set(fields) - EDITABLE_COLUMNS
        if unknown:
            raise ValueError(f"Non-editable job fields: {', '.join(sorted(unknown))}")

        assignments = ["updated_at = NOW()"]
        params: List[Any] = []
        for column, value in fields.items():
            assignments.append(f"{column} = %s")
            params.append(value)

        with self.db.connection() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(
                    f"UPDATE jobs SET {', '.join(assignments)} WHERE id::text = %s RETURNING *",
                    params + [job_pk],
                )
                row = cursor.fetchone()
                return dict(row) if row else None

    def update_status_bulk(self, job_pks: List[str], status: str) -> int:
        if not job_pks:
            return 0
        with self.db.connection() as conn:
            with conn.cursor() as cursor:
                cursor.execute(
                    "UPDATE jobs SET status = %s, updated_at = NOW() WHERE id::text = ANY(%s)",
                    (status, list(job_pks)),
                )
                return cursor.rowcount

    def delete_jobs(self, job_pks: List[str]) -> int:
        if not job_pks:
            return 0
        with self.db.connection() as conn:
            with conn.cursor() as cursor:
                cursor.execute("DELETE FROM jobs WHERE id::text = ANY(%s)", (list(job_pks),))
                return cursor.rowcount

    def delete_posted_jobs(self) -> int:
        """Remove every job already published to X."""
        with self.db.connection() as conn:
            with conn.cursor() as cursor:
                cursor.execute("DELETE FROM jobs WHERE posted_to_x = TRUE")
                return cursor.rowcount


job_store = JobStore()


def get_job_store() -> JobStore:
    """FastAPI dependency; 503 when DATABASE_URL is not set."""
    if not job_store.db.is_db_enabled:
        raise HTTPException(status_code=503, detail="Database not configured")
    return job_store
