"""
Fetch-and-store pipeline.

One run: provider search -> existence check -> normalize new records ->
batch insert -> activity log -> notifications -> last-run stats.
Dedupe is keyed by the provider-prefixed job_id, so re-running a fetch is
idempotent.
"""
import logging
import time
from typing import Any, Dict, List, Optional

from core.activity_logger import log_api_error, log_job_fetch
from core.models import FetchRunStats, JobFetchResult, JobFilters
from core.normalize import external_job_id, transform_job
from core.notifications import notify_batch_new_jobs, notify_job_fetch_complete
from pipeline.job_store import JobStore, job_store as default_job_store
from providers.registry import ProviderRegistry, get_provider_registry

logger = logging.getLogger(__name__)


def partition_new_records(
    provider: str,
    records: List[Dict[str, Any]],
    existing_ids: set,
) -> List[Dict[str, Any]]:
    """
    Keep records whose job_id is not stored yet.

    An id repeated within the batch is kept only on its first occurrence.
    """
    seen = set(existing_ids)
    new_records = []
    for record in records:
        job_id = external_job_id(provider, record)
        if job_id in seen:
            continue
        seen.add(job_id)
        new_records.append(record)
    return new_records


async def fetch_and_store_jobs(
    user_id: str,
    filters: JobFilters,
    store: Optional[JobStore] = None,
    registry: Optional[ProviderRegistry] = None,
) -> JobFetchResult:
    """
    Run one fetch for the operator.

    Raises:
        ProviderError when the provider call fails; any storage error
        propagates. Both are recorded as an api_error activity first.
    """
    store = store or default_job_store
    registry = registry or get_provider_registry()
    provider_name = filters.provider or "jsearch"
    filters_dump = filters.model_dump()
    start_time = time.time()

    try:
        provider = registry.get(provider_name)
        records = await provider.search(filters)
        total_fetched = len(records)

        if total_fetched == 0:
            log_job_fetch(
                user_id,
                query=filters.query,
                filters=filters_dump,
                total_fetched=0,
                new_jobs=0,
                duplicates=0,
                api_response_time=int((time.time() - start_time) * 1000),
            )
            logger.info(f"[job_service] {provider_name}: no results for query={filters.query!r}")
            return JobFetchResult(total_fetched=0, new_jobs=0, duplicates=0, jobs=[])

        job_ids = [external_job_id(provider_name, record) for record in records]
        existing_ids = store.existing_job_ids(job_ids)

        new_records = partition_new_records(provider_name, records, existing_ids)
        new_jobs = len(new_records)
        duplicates = total_fetched - new_jobs

        canonical_jobs = [transform_job(provider_name, record) for record in new_records]
        inserted = store.insert_jobs(canonical_jobs) if canonical_jobs else []

        api_response_time = int((time.time() - start_time) * 1000)
        logger.info(
            f"[job_service] {provider_name}: fetched={total_fetched} new={new_jobs} "
            f"duplicates={duplicates} ({api_response_time}ms)"
        )

        log_job_fetch(
            user_id,
            query=filters.query,
            filters=filters_dump,
            total_fetched=total_fetched,
            new_jobs=new_jobs,
            duplicates=duplicates,
            api_response_time=api_response_time,
        )
    except Exception as e:
        log_api_error(
            user_id,
            endpoint=f"{provider_name}/search",
            error=str(e),
            filters=filters_dump,
        )
        raise

    if inserted:
        await notify_batch_new_jobs(inserted)
    await notify_job_fetch_complete(total_fetched, new_jobs, duplicates)

    stats = FetchRunStats(total_fetched=total_fetched, new_jobs=new_jobs, duplicates=duplicates)
    try:
        store.update_last_run_stats(user_id, stats)
    except Exception as e:
        logger.error(f"[job_service] Failed to update last run stats: {e}")

    return JobFetchResult(
        total_fetched=total_fetched,
        new_jobs=new_jobs,
        duplicates=duplicates,
        jobs=inserted,
    )
