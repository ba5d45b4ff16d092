"""
Adzuna provider.

Docs: https://developer.adzuna.com/docs/search
Adzuna has no remote flag: remote-only searches add "remote" to the query
and post-filter on title, description and location.
"""
import os
from typing import Any, Dict, List

from core.models import DATE_POSTED_DAYS, JobFilters
from core.net import mask_params
from .base import JobProvider, ProviderConfigError

BASE_URL = "https://api.adzuna.com/v1/api/jobs"
DEFAULT_COUNTRY = "us"

EMPLOYMENT_TYPE_FLAGS = {
    "FULLTIME": "full_time",
    "PARTTIME": "part_time",
    "CONTRACTOR": "contract",
}


class AdzunaProvider(JobProvider):
    name = "adzuna"
    display_name = "Adzuna"

    def __init__(self, country: str = DEFAULT_COUNTRY, **kwargs):
        super().__init__(**kwargs)
        self.country = country

    def check_configured(self) -> None:
        if not (os.getenv("ADZUNA_API_ID") and os.getenv("ADZUNA_API_KEY")):
            raise ProviderConfigError(
                self.name, "Adzuna API credentials are not defined in environment variables"
            )

    def build_params(self, filters: JobFilters) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "app_id": os.getenv("ADZUNA_API_ID"),
            "app_key": os.getenv("ADZUNA_API_KEY"),
            "results_per_page": self.num_results(filters),
            "what": self.query_with_remote(filters),
        }
        if filters.location:
            params["where"] = filters.location

        for employment_type in filters.employment_types:
            flag = EMPLOYMENT_TYPE_FLAGS.get(employment_type)
            if flag:
                params[flag] = 1

        days = DATE_POSTED_DAYS.get(filters.date_posted)
        if days:
            params["max_days_old"] = days
        return params

    @staticmethod
    def _mentions_remote(job: Dict[str, Any]) -> bool:
        location = (job.get("location") or {}).get("display_name") or ""
        return any(
            "remote" in (text or "").lower()
            for text in (job.get("title"), job.get("description"), location)
        )

    async def _search(self, filters: JobFilters) -> List[Dict[str, Any]]:
        params = self.build_params(filters)
        payload = await self.http_client.get_json(
            f"{BASE_URL}/{self.country}/search/1",
            params=params,
            log_params=mask_params(params, ("app_id", "app_key")),
        )

        results = list(payload.get("results") or [])
        if filters.remote_jobs_only:
            results = [job for job in results if self._mentions_remote(job)]
        return results
