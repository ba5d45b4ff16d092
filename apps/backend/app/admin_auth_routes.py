"""
Operator authentication endpoints.
Provides login, logout, and session status routes.
"""
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel

from app.rate_limit import limiter, RATE_LIMIT_LOGIN
from core.activity_logger import log_login, log_logout
from security.admin_auth import (
    verify_admin_credentials,
    set_admin_cookie,
    clear_admin_cookie,
    get_current_admin,
    get_admin_username,
    get_cookie_secret,
    check_admin_configured,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin-auth"])


class LoginRequest(BaseModel):
    password: str
    username: Optional[str] = None


@router.post("/login")
@limiter.limit(RATE_LIMIT_LOGIN)
async def admin_login(request: Request, response: Response, body: LoginRequest):
    """
    Operator login with password.
    Sets httpOnly session cookie on success.
    Returns 503 if ADMIN_PASSWORD not configured.
    Returns 401 on invalid credentials.
    """
    client_host = request.client.host if request.client else 'unknown'
    logger.info(f"[admin_login] Login attempt from {client_host}")

    try:
        get_cookie_secret()
    except ValueError as e:
        logger.error(f"[admin_login] COOKIE_SECRET not configured: {e}")
        raise HTTPException(
            status_code=500,
            detail="COOKIE_SECRET not configured. Please set COOKIE_SECRET environment variable."
        )

    if not check_admin_configured():
        logger.warning("[admin_login] Admin not configured (ADMIN_PASSWORD not set)")
        raise HTTPException(
            status_code=503,
            detail="Admin not configured"
        )

    if not verify_admin_credentials(body.password, body.username):
        logger.warning(f"[admin_login] Invalid credentials from {client_host}")
        raise HTTPException(
            status_code=401,
            detail="Invalid credentials"
        )

    username = get_admin_username()
    set_admin_cookie(response, username)
    logger.info(f"[admin_login] Login successful from {client_host}")
    log_login(username, request.headers.get("user-agent"))
    return {"authenticated": True, "username": username}


@router.post("/logout")
async def admin_logout(request: Request, response: Response):
    """Operator logout. Clears session cookie."""
    username = get_current_admin(request)
    clear_admin_cookie(response)
    if username:
        log_logout(username)
    return {"authenticated": False}


@router.get("/session")
async def admin_session(request: Request):
    """Check operator authentication status."""
    admin = get_current_admin(request)
    return {"authenticated": admin is not None, "username": admin}
