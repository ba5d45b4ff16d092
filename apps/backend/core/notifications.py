"""
Best-effort Telegram notifications for fetch runs.
Failures are logged and never propagated to the caller.
"""
import logging
from typing import Any, Dict, List

from core.telegram import (
    format_batch_new_jobs,
    format_job_fetch_summary,
    send_telegram_message,
)

logger = logging.getLogger(__name__)


async def notify_batch_new_jobs(jobs: List[Dict[str, Any]]) -> bool:
    if not jobs:
        return False
    try:
        await send_telegram_message(format_batch_new_jobs(jobs))
        return True
    except Exception as e:
        logger.error(f"[notifications] Failed to send batch notification: {e}")
        return False


async def notify_job_fetch_complete(total_fetched: int, new_jobs: int, duplicates: int) -> bool:
    try:
        await send_telegram_message(format_job_fetch_summary(total_fetched, new_jobs, duplicates))
        return True
    except Exception as e:
        logger.error(f"[notifications] Failed to send fetch summary notification: {e}")
        return False
