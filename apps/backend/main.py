from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv
from contextlib import asynccontextmanager
import os
import logging
import traceback

load_dotenv()

from app.config import Capabilities
from app.db_config import db_config
from app.admin_auth_routes import router as admin_auth_router
from app.job_fetch import router as job_fetch_router
from app.job_management import router as job_management_router
from app.publishing import router as publishing_router
from app.settings_routes import router as settings_router
from app.activities import router as activities_router
from app.rate_limit import limiter
from slowapi.errors import RateLimitExceeded
from slowapi import _rate_limit_exceeded_handler

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application lifecycle events."""
    orbitjobs_env = os.getenv("ORBITJOBS_ENV", "production").lower()
    logger.info(f"[orbitjobs] env: ORBITJOBS_ENV={orbitjobs_env}")

    if not db_config.is_db_enabled:
        logger.warning("[orbitjobs] DATABASE_URL not set; job, settings and activity routes will return 503")

    yield

    # Shutdown
    db_config.close()


app = FastAPI(title="OrbitJobs API", version="0.1.0", lifespan=lifespan)

# Add rate limiter state
app.state.limiter = limiter

# Rate limit exceeded handler
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# Error masking middleware
@app.middleware("http")
async def error_masking_middleware(request: Request, call_next):
    """Mask detailed errors in production; show full errors in dev."""
    try:
        response = await call_next(request)
        return response
    except HTTPException:
        # Let HTTPException propagate untouched (proper status codes like 404, 400, 401, etc.)
        raise
    except Exception as e:
        is_dev = os.getenv("ORBITJOBS_ENV", "").lower() == "dev"

        # Log the full error
        logger.error(f"Unhandled error: {str(e)}")
        if is_dev:
            logger.error(traceback.format_exc())

        if is_dev:
            return JSONResponse(
                status_code=500,
                content={
                    "status": "error",
                    "error": str(e),
                    "traceback": traceback.format_exc()
                }
            )
        else:
            return JSONResponse(
                status_code=500,
                content={
                    "status": "error",
                    "error": "An internal error occurred. Please try again later."
                }
            )


app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        os.getenv("APP_URL", "https://orbitjobs.app"),
    ],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(admin_auth_router)
# Fetch routes first: /api/jobs/fetch-config must win over /api/jobs/{job_id}
app.include_router(job_fetch_router)
app.include_router(job_management_router)
app.include_router(publishing_router)
app.include_router(settings_router)
app.include_router(activities_router)


@app.get("/api/healthz")
async def healthz():
    return Capabilities.get_status()


@app.get("/api/capabilities")
async def capabilities():
    return Capabilities.get_capabilities()

