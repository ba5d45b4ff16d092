"""
Telegram Bot API client and message builders.
"""
import os
import logging
import re
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"
DEFAULT_APP_URL = "http://localhost:3000"
TELEGRAM_TIMEOUT = 10.0

TEST_MESSAGE = "✅ *Test Notification*\n\nYour OrbitJobs Telegram notifications are working correctly!"

# Characters with meaning in legacy Markdown parse mode
_MARKDOWN_SPECIAL = re.compile(r"([_*`\[])")


class TelegramError(RuntimeError):
    """Telegram is not configured or rejected the message."""


def get_app_url() -> str:
    return os.getenv("APP_URL", DEFAULT_APP_URL).rstrip("/")


def is_configured() -> bool:
    return bool(os.getenv("TELEGRAM_BOT_TOKEN") and os.getenv("TELEGRAM_CHAT_ID"))


def escape_markdown(text: str) -> str:
    return _MARKDOWN_SPECIAL.sub(r"\\\1", text or "")


async def send_telegram_message(
    text: str,
    parse_mode: str = "Markdown",
    chat_id: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    """
    Send a message through sendMessage.

    Raises:
        TelegramError when the bot token or chat id is missing, or the API
        answers ok=false. httpx errors propagate.
    """
    token = os.getenv("TELEGRAM_BOT_TOKEN")
    chat_id = chat_id or os.getenv("TELEGRAM_CHAT_ID")
    if not token:
        raise TelegramError("TELEGRAM_BOT_TOKEN not configured")
    if not chat_id:
        raise TelegramError("TELEGRAM_CHAT_ID not configured")

    payload = {
        "chat_id": chat_id,
        "text": text,
        "parse_mode": parse_mode,
        "disable_web_page_preview": True,
    }

    async with httpx.AsyncClient(timeout=TELEGRAM_TIMEOUT, transport=transport) as client:
        response = await client.post(f"{TELEGRAM_API_BASE}/bot{token}/sendMessage", json=payload)

    try:
        data = response.json()
    except ValueError:
        data = {}

    if response.status_code != 200 or not data.get("ok", False):
        description = data.get("description") or f"HTTP {response.status_code}"
        raise TelegramError(f"Telegram API error: {description}")

    logger.info(f"[telegram] Message sent to chat {chat_id}")
    return data.get("result", {})


def format_job_fetch_summary(
    total_fetched: int,
    new_jobs: int,
    duplicates: int,
    app_url: Optional[str] = None,
) -> str:
    app_url = app_url or get_app_url()
    return (
        "📊 *Job Fetch Complete*\n\n"
        f"Fetched: {total_fetched}\n"
        f"New: {new_jobs}\n"
        f"Duplicates: {duplicates}\n\n"
        f"[Open Dashboard]({app_url}/jobs)"
    )


def format_batch_new_jobs(jobs: list, app_url: Optional[str] = None) -> str:
    app_url = app_url or get_app_url()
    count = len(jobs)
    message = f"📦 *{count} New Job{'s' if count > 1 else ''} Added*\n\n"

    for job in jobs[:3]:
        message += f"• {escape_markdown(job.get('title', ''))} @ {escape_markdown(job.get('company', ''))}\n"

    if count > 3:
        message += f"\n...and {count - 3} more\n"

    message += f"\n[Review All Jobs]({app_url}/jobs)"
    return message


async def send_test_notification(
    chat_id: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    """Send the fixed test message. Raises on any failure."""
    return await send_telegram_message(TEST_MESSAGE, chat_id=chat_id, transport=transport)
