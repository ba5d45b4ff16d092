"""
RemoteOK provider.

Docs: https://remoteok.com/api
The feed takes no search parameters: the whole list is fetched and every
filter is applied locally. The first element is a legal notice without an id.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from core.models import JobFilters
from .base import JobProvider

BASE_URL = "https://remoteok.com/api"
REMOTEOK_UA = "OrbitJobs/1.0 (+https://orbitjobs.app)"


class RemoteOKProvider(JobProvider):
    name = "remoteok"
    display_name = "Remote OK"
    default_num_results = 20

    @staticmethod
    def _epoch(job: Dict[str, Any]) -> float:
        try:
            return float(job.get("epoch") or 0)
        except (TypeError, ValueError):
            return 0.0

    @staticmethod
    def _matches_query(job: Dict[str, Any], q: str) -> bool:
        fields = [job.get("position"), job.get("company"), job.get("description")]
        if any(q in (f or "").lower() for f in fields):
            return True
        return any(q in str(tag).lower() for tag in (job.get("tags") or []))

    def filter_results(
        self,
        jobs: List[Dict[str, Any]],
        filters: JobFilters,
        now: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        results = jobs

        q = (filters.query or "").strip().lower()
        if q:
            results = [job for job in results if self._matches_query(job, q)]

        if filters.location:
            loc = filters.location.lower()
            results = [job for job in results if loc in (job.get("location") or "").lower()]

        cutoff = self.posted_cutoff(filters, now)
        if cutoff is not None:
            cutoff_ts = cutoff.timestamp()
            results = [job for job in results if self._epoch(job) >= cutoff_ts]

        return results[: self.num_results(filters)]

    async def _search(self, filters: JobFilters) -> List[Dict[str, Any]]:
        payload = await self.http_client.get_json(BASE_URL, headers={"User-Agent": REMOTEOK_UA})
        if not isinstance(payload, list):
            raise ValueError("Invalid response format from Remote OK API")

        jobs = [item for item in payload if isinstance(item, dict) and item.get("id") is not None]
        return self.filter_results(jobs, filters)
