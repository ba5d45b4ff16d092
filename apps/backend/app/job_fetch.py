"""
Fetch pipeline endpoints: run a fetch, read/save the default fetch config.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from app.rate_limit import limiter, RATE_LIMIT_FETCH
from core.models import DatePosted, EmploymentType, JobFilters, ProviderName
from pipeline.job_service import fetch_and_store_jobs
from pipeline.job_store import JobStore, get_job_store
from providers.base import ProviderError
from security.admin_auth import admin_required

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/jobs", tags=["job_fetch"])


class FetchConfigRequest(BaseModel):
    search_query: str = Field(min_length=1)
    location: Optional[str] = None
    remote_only: bool = False
    employment_types: List[EmploymentType] = Field(default_factory=list)
    salary_min: Optional[int] = Field(default=None, ge=0)
    date_posted: DatePosted = "all"
    num_results: int = Field(default=10, ge=1, le=100)
    provider: ProviderName = "jsearch"


@router.post("/fetch")
@limiter.limit(RATE_LIMIT_FETCH)
async def fetch_jobs(
    request: Request,
    filters: JobFilters,
    admin: str = Depends(admin_required),
    store: JobStore = Depends(get_job_store),
):
    """
    Run the fetch-and-store pipeline.
    Provider failures come back as 502 with the provider-naming message.
    """
    try:
        result = await fetch_and_store_jobs(admin, filters, store=store)
    except ProviderError as e:
        logger.error(f"[job_fetch] {e.provider} fetch failed: {e}")
        return JSONResponse(status_code=502, content={"status": "error", "error": str(e)})

    return {"status": "ok", "data": result.model_dump()}


@router.get("/fetch-config")
async def get_fetch_config(
    admin: str = Depends(admin_required),
    store: JobStore = Depends(get_job_store),
):
    return {"status": "ok", "data": store.get_fetch_config(admin)}


@router.put("/fetch-config")
async def save_fetch_config(
    config: FetchConfigRequest,
    admin: str = Depends(admin_required),
    store: JobStore = Depends(get_job_store),
):
    saved = store.save_fetch_config(admin, config.model_dump())
    logger.info(f"[job_fetch] Saved fetch config for {admin} (provider={config.provider})")
    return {"status": "ok", "data": saved}
