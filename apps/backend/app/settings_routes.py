"""
Per-operator settings, X rate limits, and Telegram checks.
"""
import logging
from typing import Any, Dict, Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from core.activity_logger import log_settings_updated
from core.telegram import TEST_MESSAGE, TelegramError, send_telegram_message, send_test_notification
from core.x_api import XConfigError, get_rate_limit_status
from pipeline.admin_store import AdminStore, get_admin_store
from security.admin_auth import admin_required

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["settings"])


class SettingValue(BaseModel):
    value: Any


class SettingsUpdate(BaseModel):
    settings: Dict[str, Any] = Field(min_length=1)


class TelegramTestRequest(BaseModel):
    chat_id: Optional[str] = None


@router.get("/settings")
async def get_settings(
    admin: str = Depends(admin_required),
    store: AdminStore = Depends(get_admin_store),
):
    return {"status": "ok", "data": store.get_settings(admin)}


@router.put("/settings")
async def update_settings(
    body: SettingsUpdate,
    admin: str = Depends(admin_required),
    store: AdminStore = Depends(get_admin_store),
):
    for key, value in body.settings.items():
        store.upsert_setting(admin, key, value)
        log_settings_updated(admin, key)
    return {"status": "ok", "data": store.get_settings(admin)}


@router.delete("/settings")
async def reset_settings(
    admin: str = Depends(admin_required),
    store: AdminStore = Depends(get_admin_store),
):
    """Drop all of the operator's saved settings."""
    deleted = store.reset_settings(admin)
    logger.info(f"[settings] {admin} reset {deleted} settings")
    return {"status": "ok", "data": {"deleted": deleted}}


@router.get("/settings/rate-limits")
async def rate_limits(admin: str = Depends(admin_required)):
    """X tweet rate limit; 503 when X credentials are missing."""
    try:
        return {"status": "ok", "data": await get_rate_limit_status()}
    except XConfigError:
        raise HTTPException(status_code=503, detail="X API not configured")
    except httpx.HTTPError as e:
        logger.error(f"[settings] Failed to fetch rate limits: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch rate limits")


@router.get("/settings/{key}")
async def get_setting(
    key: str,
    admin: str = Depends(admin_required),
    store: AdminStore = Depends(get_admin_store),
):
    value = store.get_setting(admin, key)
    if value is None:
        raise HTTPException(status_code=404, detail="Setting not found")
    return {"status": "ok", "data": {"key": key, "value": value}}


@router.put("/settings/{key}")
async def update_setting(
    key: str,
    body: SettingValue,
    admin: str = Depends(admin_required),
    store: AdminStore = Depends(get_admin_store),
):
    store.upsert_setting(admin, key, body.value)
    log_settings_updated(admin, key)
    return {"status": "ok", "data": {"key": key, "value": body.value}}


@router.post("/notifications/test")
async def test_notification(admin: str = Depends(admin_required)):
    """Send the test message to the configured TELEGRAM_CHAT_ID."""
    try:
        await send_telegram_message(TEST_MESSAGE)
    except TelegramError as e:
        logger.error(f"[settings] Test notification failed: {e}")
        if "not configured" in str(e):
            raise HTTPException(status_code=503, detail=str(e))
        raise HTTPException(status_code=500, detail="Failed to send test notification")
    except httpx.HTTPError as e:
        logger.error(f"[settings] Test notification failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to send test notification")
    return {"status": "ok"}


@router.post("/telegram/test")
async def test_telegram_chat(
    body: TelegramTestRequest,
    admin: str = Depends(admin_required),
):
    """Send the test message to an explicit chat id."""
    if not body.chat_id:
        raise HTTPException(status_code=400, detail="Chat ID is required")
    try:
        await send_test_notification(body.chat_id)
    except (TelegramError, httpx.HTTPError) as e:
        logger.error(f"[settings] Telegram test failed: {e}")
        raise HTTPException(status_code=500, detail=str(e) or "Failed to send test notification")
    return {"status": "ok", "message": "Test notification sent successfully"}
