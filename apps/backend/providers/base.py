"""
Base provider interface for job-board APIs.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from core.models import DATE_POSTED_DAYS, JobFilters
from core.net import HTTPClient


class ProviderError(RuntimeError):
    """Raised when a provider fetch fails. The message names the provider."""

    def __init__(self, provider: str, message: str):
        super().__init__(message)
        self.provider = provider


class ProviderConfigError(ProviderError):
    """Raised when a provider's credentials are missing."""


class JobProvider(ABC):
    """
    Base class for job-board adapters.

    Subclasses implement _search(); search() turns any failure into a
    ProviderError so callers see one error type per provider.
    """

    name: str = ""
    display_name: str = ""
    default_num_results: int = 10

    def __init__(self, http_client: Optional[HTTPClient] = None):
        self.http_client = http_client or HTTPClient()
        self.logger = logging.getLogger(f"{__name__}.{self.name}")

    @abstractmethod
    async def _search(self, filters: JobFilters) -> List[Dict[str, Any]]:
        """Fetch raw records for the given filters."""
        pass

    def check_configured(self) -> None:
        """Raise ProviderConfigError when credentials are missing."""
        return None

    def is_configured(self) -> bool:
        try:
            self.check_configured()
        except ProviderConfigError:
            return False
        return True

    async def search(self, filters: JobFilters) -> List[Dict[str, Any]]:
        """
        Search the provider.

        Returns:
            Provider-specific job records (never partial on failure)

        Raises:
            ProviderError naming the provider
        """
        self.check_configured()
        try:
            results = await self._search(filters)
        except ProviderError:
            raise
        except Exception as e:
            self.logger.error(f"[{self.name}] API error: {e}")
            raise ProviderError(
                self.name, f"Failed to fetch jobs from {self.display_name} API"
            ) from e

        self.logger.info(f"[{self.name}] {len(results)} results for query={filters.query!r}")
        return results

    def num_results(self, filters: JobFilters) -> int:
        return filters.num_results or self.default_num_results

    @staticmethod
    def posted_cutoff(filters: JobFilters, now: Optional[datetime] = None) -> Optional[datetime]:
        """Oldest acceptable posting time for the date_posted bucket, or None for 'all'."""
        days = DATE_POSTED_DAYS.get(filters.date_posted)
        if not days:
            return None
        now = now or datetime.now(timezone.utc)
        return now - timedelta(days=days)

    @staticmethod
    def query_with_remote(filters: JobFilters) -> str:
        """Append 'remote' to the query for remote-only searches on keyword-only APIs."""
        query = filters.query
        if filters.remote_jobs_only and "remote" not in query.lower():
            query = f"{query} remote"
        return query

    def __repr__(self):
        return f"<{self.__class__.__name__}(name={self.name})>"
