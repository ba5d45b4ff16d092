"""
JSearch (RapidAPI) provider.

Docs: https://rapidapi.com/letscrape-6bRBa3QguO5/api/jsearch
Every filter maps onto a native query parameter.
"""
import os
from typing import Any, Dict, List

from core.models import JobFilters
from .base import JobProvider, ProviderConfigError

RAPIDAPI_HOST = "jsearch.p.rapidapi.com"
BASE_URL = f"https://{RAPIDAPI_HOST}"


class JSearchProvider(JobProvider):
    name = "jsearch"
    display_name = "JSearch"

    def _api_key(self) -> str:
        return os.getenv("RAPIDAPI_KEY", "")

    def check_configured(self) -> None:
        if not self._api_key():
            raise ProviderConfigError(self.name, "RAPIDAPI_KEY is not defined in environment variables")

    def build_params(self, filters: JobFilters) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "query": filters.query,
            "num_pages": 1,
        }
        if filters.location:
            params["location"] = filters.location
        if filters.remote_jobs_only:
            params["remote_jobs_only"] = "true"
        if filters.employment_types:
            params["employment_types"] = ",".join(filters.employment_types)
        if filters.job_requirements:
            params["job_requirements"] = ",".join(filters.job_requirements)
        if filters.date_posted != "all":
            params["date_posted"] = filters.date_posted
        return params

    async def _search(self, filters: JobFilters) -> List[Dict[str, Any]]:
        payload = await self.http_client.get_json(
            f"{BASE_URL}/search",
            params=self.build_params(filters),
            headers={
                "X-RapidAPI-Key": self._api_key(),
                "X-RapidAPI-Host": RAPIDAPI_HOST,
            },
        )
        return list(payload.get("data") or [])
