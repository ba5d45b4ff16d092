"""
Remotive provider.

Docs: https://remotive.com/api/remote-jobs
A remote-only board with keyword search; employment type and posting date
are filtered client-side.
"""
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from core.models import JobFilters
from .base import JobProvider

BASE_URL = "https://remotive.com/api/remote-jobs"


def _parse_publication_date(value: Any) -> Optional[datetime]:
    """Remotive dates look like 2024-01-01T12:34:56 (naive, UTC)."""
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _normalize_type(value: str) -> str:
    # FULLTIME vs "full_time" / "full-time"
    return re.sub(r"[\s_-]", "", value.lower())


class RemotiveProvider(JobProvider):
    name = "remotive"
    display_name = "Remotive"

    def build_params(self, filters: JobFilters) -> Dict[str, Any]:
        return {
            "limit": self.num_results(filters),
            "search": self.query_with_remote(filters),
        }

    def filter_results(
        self,
        jobs: List[Dict[str, Any]],
        filters: JobFilters,
        now: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        results = jobs

        if filters.employment_types:
            allowed = [_normalize_type(t) for t in filters.employment_types]

            def type_matches(job: Dict[str, Any]) -> bool:
                job_type = job.get("job_type")
                if not job_type:
                    return True  # untyped jobs are kept
                job_type = _normalize_type(job_type)
                return any(t in job_type or job_type in t for t in allowed)

            results = [job for job in results if type_matches(job)]

        cutoff = self.posted_cutoff(filters, now)
        if cutoff is not None:
            def recent_enough(job: Dict[str, Any]) -> bool:
                published = _parse_publication_date(job.get("publication_date"))
                return published is None or published >= cutoff

            results = [job for job in results if recent_enough(job)]

        return results[: self.num_results(filters)]

    async def _search(self, filters: JobFilters) -> List[Dict[str, Any]]:
        payload = await self.http_client.get_json(BASE_URL, params=self.build_params(filters))
        return self.filter_results(list(payload.get("jobs") or []), filters)
