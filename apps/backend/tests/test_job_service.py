"""
Tests for the fetch-and-store pipeline (pipeline/job_service.py).

The provider registry, job store, activity log and notifications are all
mocked; the dedupe and counting logic runs for real.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from core.models import JobFilters
from pipeline.job_service import fetch_and_store_jobs, partition_new_records
from providers import ProviderError


def _remoteok_records(*ids):
    return [
        {"id": str(i), "position": f"Engineer {i}", "company": "Acme",
         "url": f"https://remoteok.com/l/{i}", "salary_min": 85000.4}
        for i in ids
    ]


def _registry(records=None, error=None):
    provider = MagicMock()
    provider.name = "remoteok"
    if error is not None:
        provider.search = AsyncMock(side_effect=error)
    else:
        provider.search = AsyncMock(return_value=records or [])
    registry = MagicMock()
    registry.get.return_value = provider
    return registry


@pytest.fixture
def side_effects():
    """Patch the activity log and notification calls made by the pipeline."""
    with patch("pipeline.job_service.log_job_fetch") as log_fetch, \
            patch("pipeline.job_service.log_api_error") as log_error, \
            patch("pipeline.job_service.notify_batch_new_jobs", new_callable=AsyncMock) as notify_batch, \
            patch("pipeline.job_service.notify_job_fetch_complete", new_callable=AsyncMock) as notify_summary:
        yield {
            "log_job_fetch": log_fetch,
            "log_api_error": log_error,
            "notify_batch_new_jobs": notify_batch,
            "notify_job_fetch_complete": notify_summary,
        }


class TestPartitionNewRecords:
    def test_skips_stored_ids(self):
        records = _remoteok_records(1, 2, 3)
        new = partition_new_records("remoteok", records, {"remoteok-2"})
        assert [r["id"] for r in new] == ["1", "3"]

    def test_repeated_id_in_batch_kept_once(self):
        records = _remoteok_records(1, 1, 2)
        new = partition_new_records("remoteok", records, set())
        assert [r["id"] for r in new] == ["1", "2"]


class TestFetchAndStoreJobs:
    @pytest.mark.asyncio
    async def test_counts_new_and_duplicates(self, job_store, side_effects):
        """5 fetched, 2 already stored -> 3 inserted, 2 duplicates."""
        job_store.existing_job_ids.return_value = {"remoteok-1", "remoteok-2"}
        registry = _registry(_remoteok_records(1, 2, 3, 4, 5))
        filters = JobFilters(query="python", provider="remoteok")

        result = await fetch_and_store_jobs("operator", filters, store=job_store, registry=registry)

        assert result.total_fetched == 5
        assert result.new_jobs == 3
        assert result.duplicates == 2
        assert len(result.jobs) == 3

        inserted = job_store.insert_jobs.call_args[0][0]
        assert [job.job_id for job in inserted] == ["remoteok-3", "remoteok-4", "remoteok-5"]
        assert all(job.status == "pending" and job.source == "remoteok" for job in inserted)
        assert all(job.salary_min == 85000 for job in inserted)

        kwargs = side_effects["log_job_fetch"].call_args.kwargs
        assert kwargs["total_fetched"] == 5
        assert kwargs["new_jobs"] == 3
        assert kwargs["duplicates"] == 2
        side_effects["notify_batch_new_jobs"].assert_awaited_once()
        side_effects["notify_job_fetch_complete"].assert_awaited_once_with(5, 3, 2)
        job_store.update_last_run_stats.assert_called_once()
        user_id, stats = job_store.update_last_run_stats.call_args[0]
        assert user_id == "operator"
        assert (stats.total_fetched, stats.new_jobs, stats.duplicates) == (5, 3, 2)
        assert stats.last_run_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_repeat_fetch_is_idempotent(self, job_store, side_effects):
        job_store.existing_job_ids.return_value = {f"remoteok-{i}" for i in range(1, 4)}
        registry = _registry(_remoteok_records(1, 2, 3))

        result = await fetch_and_store_jobs(
            "operator", JobFilters(query="python", provider="remoteok"),
            store=job_store, registry=registry,
        )

        assert result.new_jobs == 0
        assert result.duplicates == 3
        job_store.insert_jobs.assert_not_called()
        side_effects["notify_batch_new_jobs"].assert_not_awaited()
        side_effects["notify_job_fetch_complete"].assert_awaited_once_with(3, 0, 3)

    @pytest.mark.asyncio
    async def test_zero_results_short_circuits(self, job_store, side_effects):
        registry = _registry([])

        result = await fetch_and_store_jobs(
            "operator", JobFilters(query="cobol", provider="remoteok"),
            store=job_store, registry=registry,
        )

        assert result.total_fetched == 0
        assert result.jobs == []
        job_store.existing_job_ids.assert_not_called()
        job_store.insert_jobs.assert_not_called()
        side_effects["log_job_fetch"].assert_called_once()
        assert side_effects["log_job_fetch"].call_args.kwargs["total_fetched"] == 0
        side_effects["notify_job_fetch_complete"].assert_not_awaited()

    @pytest.mark.asyncio
    async def test_provider_failure_logs_api_error(self, job_store, side_effects):
        registry = _registry(error=ProviderError("remoteok", "Failed to fetch jobs from Remote OK API"))

        with pytest.raises(ProviderError):
            await fetch_and_store_jobs(
                "operator", JobFilters(query="python", provider="remoteok"),
                store=job_store, registry=registry,
            )

        side_effects["log_api_error"].assert_called_once()
        assert side_effects["log_api_error"].call_args.kwargs["endpoint"] == "remoteok/search"
        job_store.insert_jobs.assert_not_called()
        side_effects["log_job_fetch"].assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("failing_call", ["existing_job_ids", "insert_jobs"])
    async def test_storage_failure_logs_api_error_and_propagates(self, job_store, side_effects, failing_call):
        getattr(job_store, failing_call).side_effect = RuntimeError("connection reset")
        registry = _registry(_remoteok_records(1, 2))

        with pytest.raises(RuntimeError, match="connection reset"):
            await fetch_and_store_jobs(
                "operator", JobFilters(query="python", provider="remoteok"),
                store=job_store, registry=registry,
            )

        side_effects["log_api_error"].assert_called_once()
        kwargs = side_effects["log_api_error"].call_args.kwargs
        assert kwargs["endpoint"] == "remoteok/search"
        assert kwargs["error"] == "connection reset"
        side_effects["log_job_fetch"].assert_not_called()
        side_effects["notify_batch_new_jobs"].assert_not_awaited()
        side_effects["notify_job_fetch_complete"].assert_not_awaited()
        job_store.update_last_run_stats.assert_not_called()

    @pytest.mark.asyncio
    async def test_stats_failure_does_not_fail_run(self, job_store, side_effects):
        job_store.update_last_run_stats.side_effect = RuntimeError("db down")
        registry = _registry(_remoteok_records(1))

        result = await fetch_and_store_jobs(
            "operator", JobFilters(query="python", provider="remoteok"),
            store=job_store, registry=registry,
        )

        assert result.new_jobs == 1
