"""
Tests for the job-board provider adapters.

HTTP is served by httpx.MockTransport; no network access.
Failure cases use 4xx responses (non-retryable) so tenacity never sleeps.
"""

import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from core.models import JobFilters
from core.net import HTTPClient, mask_params
from providers import ProviderConfigError, ProviderError, get_provider_registry
from providers.adzuna import AdzunaProvider
from providers.jsearch import JSearchProvider
from providers.remoteok import RemoteOKProvider
from providers.remotive import RemotiveProvider


def _client(handler):
    return HTTPClient(transport=httpx.MockTransport(handler))


def _json_handler(payload, seen=None, status_code=200):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, content=json.dumps(payload).encode(),
                              headers={"Content-Type": "application/json"})
    return handler


class TestRegistry:
    def test_default_is_jsearch(self):
        registry = get_provider_registry()
        assert registry.get(None).name == "jsearch"
        assert set(registry.names()) == {"jsearch", "adzuna", "remotive", "remoteok"}

    def test_unknown_provider_raises(self):
        with pytest.raises(ValueError, match="Unknown provider"):
            get_provider_registry().get("indeed")

    def test_status_reports_missing_credentials(self, monkeypatch):
        monkeypatch.delenv("RAPIDAPI_KEY", raising=False)
        monkeypatch.delenv("ADZUNA_API_ID", raising=False)
        status = get_provider_registry().status()
        assert status["jsearch"] is False
        assert status["adzuna"] is False
        # keyless providers are always available
        assert status["remotive"] is True
        assert status["remoteok"] is True


class TestJSearch:
    def test_build_params_maps_every_filter(self):
        filters = JobFilters(
            query="react developer",
            location="Berlin",
            remote_jobs_only=True,
            employment_types=["FULLTIME", "CONTRACTOR"],
            job_requirements=["no_degree"],
            date_posted="week",
        )
        params = JSearchProvider().build_params(filters)
        assert params == {
            "query": "react developer",
            "num_pages": 1,
            "location": "Berlin",
            "remote_jobs_only": "true",
            "employment_types": "FULLTIME,CONTRACTOR",
            "job_requirements": "no_degree",
            "date_posted": "week",
        }

    def test_all_dates_omits_param(self):
        params = JSearchProvider().build_params(JobFilters(query="python"))
        assert "date_posted" not in params
        assert "remote_jobs_only" not in params

    @pytest.mark.asyncio
    async def test_missing_key_raises_config_error(self, monkeypatch):
        monkeypatch.delenv("RAPIDAPI_KEY", raising=False)
        with pytest.raises(ProviderConfigError):
            await JSearchProvider().search(JobFilters(query="python"))

    @pytest.mark.asyncio
    async def test_search_sends_rapidapi_headers(self, monkeypatch):
        monkeypatch.setenv("RAPIDAPI_KEY", "rk-test")
        seen = []
        provider = JSearchProvider(
            http_client=_client(_json_handler({"data": [{"job_id": "a"}, {"job_id": "b"}]}, seen))
        )

        results = await provider.search(JobFilters(query="python"))

        assert [r["job_id"] for r in results] == ["a", "b"]
        assert seen[0].headers["X-RapidAPI-Key"] == "rk-test"
        assert seen[0].url.path == "/search"

    @pytest.mark.asyncio
    async def test_http_error_names_provider(self, monkeypatch):
        monkeypatch.setenv("RAPIDAPI_KEY", "rk-test")
        provider = JSearchProvider(http_client=_client(_json_handler({"message": "bad"}, status_code=403)))

        with pytest.raises(ProviderError) as exc_info:
            await provider.search(JobFilters(query="python"))

        assert str(exc_info.value) == "Failed to fetch jobs from JSearch API"
        assert exc_info.value.provider == "jsearch"


class TestAdzuna:
    @pytest.fixture(autouse=True)
    def credentials(self, monkeypatch):
        monkeypatch.setenv("ADZUNA_API_ID", "id-123")
        monkeypatch.setenv("ADZUNA_API_KEY", "key-456")

    def test_build_params(self):
        filters = JobFilters(
            query="data engineer",
            location="London",
            remote_jobs_only=True,
            employment_types=["FULLTIME", "INTERN"],
            date_posted="3days",
            num_results=25,
        )
        params = AdzunaProvider().build_params(filters)
        assert params["what"] == "data engineer remote"
        assert params["where"] == "London"
        assert params["full_time"] == 1
        assert "intern" not in params
        assert params["max_days_old"] == 3
        assert params["results_per_page"] == 25

    def test_masked_log_params(self):
        params = AdzunaProvider().build_params(JobFilters(query="x"))
        masked = mask_params(params, ("app_id", "app_key"))
        assert masked["app_id"] == "***"
        assert masked["app_key"] == "***"
        assert masked["what"] == "x"

    @pytest.mark.asyncio
    async def test_remote_only_post_filter(self):
        payload = {"results": [
            {"id": 1, "title": "Remote Engineer", "location": {"display_name": "NYC"}},
            {"id": 2, "title": "Engineer", "description": "Office based", "location": {"display_name": "NYC"}},
            {"id": 3, "title": "Engineer", "location": {"display_name": "Remote, US"}},
        ]}
        seen = []
        provider = AdzunaProvider(country="gb", http_client=_client(_json_handler(payload, seen)))

        results = await provider.search(JobFilters(query="engineer", remote_jobs_only=True))

        assert [r["id"] for r in results] == [1, 3]
        assert seen[0].url.path == "/v1/api/jobs/gb/search/1"


class TestRemotive:
    def test_filter_results_by_type_and_date(self):
        now = datetime(2026, 10, 19, tzinfo=timezone.utc)
        jobs = [
            {"id": 1, "job_type": "full_time", "publication_date": (now - timedelta(days=1)).isoformat()},
            {"id": 2, "job_type": "contract", "publication_date": (now - timedelta(days=1)).isoformat()},
            {"id": 3, "job_type": "full_time", "publication_date": (now - timedelta(days=10)).isoformat()},
            {"id": 4, "job_type": None, "publication_date": None},
        ]
        filters = JobFilters(query="x", employment_types=["FULLTIME"], date_posted="week")

        results = RemotiveProvider().filter_results(jobs, filters, now=now)

        assert [j["id"] for j in results] == [1, 4]

    @pytest.mark.asyncio
    async def test_search_passes_limit_and_query(self):
        seen = []
        provider = RemotiveProvider(http_client=_client(_json_handler({"jobs": [{"id": 1}]}, seen)))

        results = await provider.search(JobFilters(query="python", num_results=5))

        assert results == [{"id": 1}]
        assert seen[0].url.params["limit"] == "5"
        assert seen[0].url.params["search"] == "python"


class TestRemoteOK:
    @pytest.mark.asyncio
    async def test_drops_legal_notice_and_filters(self):
        payload = [
            {"legal": "API terms"},
            {"id": "1", "position": "Python Developer", "company": "A", "tags": []},
            {"id": "2", "position": "Designer", "company": "B", "tags": ["python"]},
            {"id": "3", "position": "Designer", "company": "C", "tags": ["figma"]},
        ]
        provider = RemoteOKProvider(http_client=_client(_json_handler(payload)))

        results = await provider.search(JobFilters(query="python"))

        assert [r["id"] for r in results] == ["1", "2"]

    @pytest.mark.asyncio
    async def test_non_list_payload_is_provider_error(self):
        provider = RemoteOKProvider(http_client=_client(_json_handler({"error": "nope"})))

        with pytest.raises(ProviderError, match="Remote OK"):
            await provider.search(JobFilters(query="python"))

    @pytest.mark.asyncio
    async def test_unparseable_epoch_treated_as_oldest(self):
        payload = [
            {"legal": "API terms"},
            {"id": "1", "position": "Python Developer", "epoch": 9999999999},
            {"id": "2", "position": "Python Developer", "epoch": "n/a"},
            {"id": "3", "position": "Python Developer", "epoch": None},
        ]
        provider = RemoteOKProvider(http_client=_client(_json_handler(payload)))

        results = await provider.search(JobFilters(query="python", date_posted="week"))

        assert [r["id"] for r in results] == ["1"]

    def test_unparseable_epoch_kept_without_date_filter(self):
        jobs = [{"id": "1", "position": "Engineer", "epoch": "n/a"}]
        results = RemoteOKProvider().filter_results(jobs, JobFilters(query="engineer"))
        assert [r["id"] for r in results] == ["1"]

    def test_default_cap_is_twenty(self):
        jobs = [{"id": str(i), "position": "Engineer"} for i in range(30)]
        results = RemoteOKProvider().filter_results(jobs, JobFilters(query="engineer"))
        assert len(results) == 20
