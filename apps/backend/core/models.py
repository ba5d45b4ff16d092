"""
Shared data models for the fetch pipeline and content generation.

CanonicalJob is the provider-agnostic row shape written to the jobs table.
Provider records stay plain dicts until a transform maps them onto it.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

ProviderName = Literal["jsearch", "adzuna", "remotive", "remoteok"]
EmploymentType = Literal["FULLTIME", "CONTRACTOR", "PARTTIME", "INTERN"]
JobRequirement = Literal[
    "under_3_years_experience",
    "more_than_3_years_experience",
    "no_experience",
    "no_degree",
]
DatePosted = Literal["all", "today", "3days", "week", "month"]
JobStatus = Literal["pending", "approved", "rejected", "posted"]

JOB_STATUSES = ("pending", "approved", "rejected", "posted")

# date_posted bucket -> max age in days
DATE_POSTED_DAYS = {
    "today": 1,
    "3days": 3,
    "week": 7,
    "month": 30,
}


class JobFilters(BaseModel):
    """Common filter set understood by every provider adapter."""
    query: str
    location: Optional[str] = None
    remote_jobs_only: bool = False
    employment_types: List[EmploymentType] = Field(default_factory=list)
    job_requirements: List[JobRequirement] = Field(default_factory=list)
    date_posted: DatePosted = "all"
    num_results: Optional[int] = Field(default=None, ge=1, le=100)
    provider: ProviderName = "jsearch"


class CanonicalJob(BaseModel):
    """Normalized job row, ready for insertion."""
    job_id: str
    title: str
    company: str
    location: Optional[str] = None
    salary_min: Optional[int] = None
    salary_max: Optional[int] = None
    salary_currency: Optional[str] = None
    employment_type: Optional[str] = None
    remote_allowed: bool = False
    description: Optional[str] = None
    required_skills: List[str] = Field(default_factory=list)
    apply_url: str
    source: ProviderName
    raw_data: Dict[str, Any] = Field(default_factory=dict)
    status: Literal["pending"] = "pending"


class FetchRunStats(BaseModel):
    total_fetched: int = 0
    new_jobs: int = 0
    duplicates: int = 0
    last_run_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class JobFetchResult(BaseModel):
    total_fetched: int
    new_jobs: int
    duplicates: int
    jobs: List[Dict[str, Any]] = Field(default_factory=list)


class ThreadContent(BaseModel):
    primary_tweet: str  # hook, no link
    reply_tweet: str  # carries the application link


class ContentGenerationResult(BaseModel):
    content: ThreadContent
    model_used: str
    tokens_used: int
    generation_time: int  # milliseconds
