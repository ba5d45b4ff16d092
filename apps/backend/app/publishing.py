"""
Content generation and X posting endpoints.
"""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from app.content_generator import UnsupportedModelError, generate_job_thread, list_models
from app.rate_limit import limiter, RATE_LIMIT_GENERATE
from core.activity_logger import log_api_error, log_content_generated, log_job_posted
from core.x_api import XConfigError, XPostError, post_thread, tweet_url
from pipeline.admin_store import AdminStore, MONTHLY_POST_LIMIT, get_admin_store
from pipeline.job_store import JobStore, get_job_store
from security.admin_auth import admin_required

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["publishing"])


class GenerateContentRequest(BaseModel):
    provider: str = "google"
    model: str = "gemini-2.5-flash"


@router.get("/ai/models")
async def ai_models(admin: str = Depends(admin_required)):
    return {"status": "ok", "data": list_models()}


@router.post("/jobs/{job_id}/generate-content")
@limiter.limit(RATE_LIMIT_GENERATE)
async def generate_content(
    request: Request,
    job_id: str,
    body: GenerateContentRequest,
    admin: str = Depends(admin_required),
    store: JobStore = Depends(get_job_store),
):
    """Draft the two-tweet thread and store it on the job."""
    job = store.get_job(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")

    try:
        result = await generate_job_thread(job, body.provider, body.model)
    except UnsupportedModelError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        log_api_error(admin, endpoint=f"{body.provider}/generate", error=str(e), jobId=job_id)
        raise HTTPException(status_code=500, detail=str(e))

    store.update_job(job_id, {
        "ai_content_generated": True,
        "ai_thread_primary": result.content.primary_tweet,
        "ai_thread_reply": result.content.reply_tweet,
        "ai_model_used": result.model_used,
    })

    log_content_generated(
        admin,
        job_id=job_id,
        model_used=result.model_used,
        tokens_used=result.tokens_used,
        generation_time=result.generation_time,
    )

    return {"status": "ok", "data": result.model_dump()}


@router.post("/jobs/{job_id}/post")
async def post_job(
    job_id: str,
    admin: str = Depends(admin_required),
    store: JobStore = Depends(get_job_store),
    admin_store: AdminStore = Depends(get_admin_store),
):
    """
    Post an approved job's thread to X.
    Requires drafted content, status approved, and monthly quota left.
    """
    job = store.get_job(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")

    if not job.get("ai_thread_primary") or not job.get("ai_thread_reply"):
        raise HTTPException(status_code=400, detail="No content generated for this job")

    if job.get("status") == "posted":
        raise HTTPException(status_code=400, detail="Job already posted")

    if job.get("status") != "approved":
        raise HTTPException(status_code=400, detail="Job must be approved before posting")

    if admin_store.remaining_posts() <= 0:
        raise HTTPException(status_code=429, detail=f"Monthly post limit reached ({MONTHLY_POST_LIMIT}/month)")

    try:
        tweets = await post_thread(job["ai_thread_primary"], job["ai_thread_reply"])
    except XConfigError as e:
        raise HTTPException(status_code=503, detail="X API not configured") from e
    except XPostError as e:
        admin_store.record_twitter_post(job_id, "failed", error_message=str(e))
        log_api_error(admin, endpoint="x/tweets", error=str(e), jobId=job_id)
        raise HTTPException(status_code=500, detail=str(e))

    primary_id = tweets["primary_tweet_id"]
    admin_store.record_twitter_post(job_id, "success", tweet_id=primary_id)
    store.update_job(job_id, {
        "status": "posted",
        "posted_to_x": True,
        "posted_at": datetime.now(timezone.utc),
        "x_tweet_id": primary_id,
    })
    log_job_posted(admin, job_id, primary_id)

    return {
        "status": "ok",
        "data": {
            "tweet_url": tweet_url(primary_id),
            "primary_tweet_id": primary_id,
            "reply_tweet_id": tweets["reply_tweet_id"],
        },
    }


@router.get("/twitter/analytics")
async def twitter_analytics(
    admin: str = Depends(admin_required),
    admin_store: AdminStore = Depends(get_admin_store),
):
    return {"status": "ok", "data": admin_store.twitter_analytics()}
