"""
Job Management API

Review queue operations: list/filter/sort/paginate, read, edit thread
content, status transitions, single and bulk deletion, clearing posted jobs.
"""
import logging
from typing import Optional, List, Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from core.activity_logger import log_job_approved, log_job_rejected
from core.models import JOB_STATUSES
from pipeline.job_store import JobStore, SORT_MAP, get_job_store
from security.admin_auth import admin_required

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/jobs", tags=["job_management"])

DEFAULT_PAGE_SIZE = 25


# Request Models
class JobUpdateRequest(BaseModel):
    ai_thread_primary: Optional[str] = None
    ai_thread_reply: Optional[str] = None


class StatusUpdateRequest(BaseModel):
    status: str


class BulkStatusRequest(BaseModel):
    job_ids: List[str] = Field(min_length=1)
    status: str


class BulkDeleteRequest(BaseModel):
    job_ids: List[str] = Field(min_length=1)


def validate_status(status: str) -> str:
    if status not in JOB_STATUSES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid status. Must be one of: {', '.join(JOB_STATUSES)}",
        )
    return status


def log_status_change(user_id: str, job: dict, status: str):
    """approved/rejected transitions go to the activity trail"""
    if status == "approved":
        log_job_approved(user_id, str(job["id"]), job.get("title", ""))
    elif status == "rejected":
        log_job_rejected(user_id, str(job["id"]), job.get("title", ""))


# Endpoints

@router.get("")
async def list_jobs(
    search: Optional[str] = Query(None),
    status: Optional[List[str]] = Query(None),
    remote: Literal["all", "remote", "onsite"] = Query("all"),
    salary_min: Optional[int] = Query(None, ge=0),
    salary_max: Optional[int] = Query(None, ge=0),
    date_added: Literal["all", "today", "7days", "30days", "90days"] = Query("all"),
    employment_types: Optional[List[str]] = Query(None),
    sort_by: Optional[str] = Query("date_desc"),
    page: int = Query(1, ge=1),
    size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
    admin: str = Depends(admin_required),
    store: JobStore = Depends(get_job_store),
):
    """
    Filter, sort and paginate the jobs table.
    Unknown sort keys fall back to newest first.
    """
    if status:
        for value in status:
            validate_status(value)

    jobs, total = store.list_jobs(
        page=page,
        size=size,
        sort_by=sort_by if sort_by in SORT_MAP else None,
        search=search,
        status=status,
        remote=remote,
        salary_min=salary_min,
        salary_max=salary_max,
        date_added=date_added,
        employment_types=employment_types,
    )

    return {
        "status": "ok",
        "data": {
            "items": jobs,
            "total": total,
            "page": page,
            "size": size,
            "pages": (total + size - 1) // size,
        },
    }


@router.post("/bulk/status")
async def bulk_update_status(
    request: BulkStatusRequest,
    admin: str = Depends(admin_required),
    store: JobStore = Depends(get_job_store),
):
    validate_status(request.status)
    updated = store.update_status_bulk(request.job_ids, request.status)
    logger.info(f"[job_management] {admin} set {updated} jobs to {request.status}")
    return {"status": "ok", "data": {"updated": updated}}


@router.post("/bulk/delete")
async def bulk_delete_jobs(
    request: BulkDeleteRequest,
    admin: str = Depends(admin_required),
    store: JobStore = Depends(get_job_store),
):
    deleted = store.delete_jobs(request.job_ids)
    logger.info(f"[job_management] {admin} deleted {deleted} jobs")
    return {"status": "ok", "data": {"deleted": deleted}}


@router.post("/clear-posted")
async def clear_posted_jobs(
    admin: str = Depends(admin_required),
    store: JobStore = Depends(get_job_store),
):
    """Delete every job already posted to X."""
    deleted = store.delete_posted_jobs()
    logger.info(f"[job_management] {admin} cleared {deleted} posted jobs")
    return {"status": "ok", "data": {"deleted": deleted}}


@router.get("/{job_id}")
async def get_job(
    job_id: str,
    admin: str = Depends(admin_required),
    store: JobStore = Depends(get_job_store),
):
    job = store.get_job(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return {"status": "ok", "data": job}


@router.patch("/{job_id}")
async def update_job(
    job_id: str,
    request: JobUpdateRequest,
    admin: str = Depends(admin_required),
    store: JobStore = Depends(get_job_store),
):
    """Edit the drafted thread."""
    fields = request.model_dump(exclude_unset=True)
    if not fields:
        raise HTTPException(status_code=400, detail="No fields to update")

    job = store.update_job(job_id, fields)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return {"status": "ok", "data": job}


@router.delete("/{job_id}")
async def delete_job(
    job_id: str,
    admin: str = Depends(admin_required),
    store: JobStore = Depends(get_job_store),
):
    deleted = store.delete_jobs([job_id])
    if not deleted:
        raise HTTPException(status_code=404, detail="Job not found")
    logger.info(f"[job_management] {admin} deleted job {job_id}")
    return {"status": "ok", "data": {"deleted": deleted}}


@router.patch("/{job_id}/status")
async def update_job_status(
    job_id: str,
    request: StatusUpdateRequest,
    admin: str = Depends(admin_required),
    store: JobStore = Depends(get_job_store),
):
    validate_status(request.status)

    job = store.update_job(job_id, {"status": request.status})
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")

    log_status_change(admin, job, request.status)
    return {"status": "ok", "data": job}
