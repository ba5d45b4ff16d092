"""
Operator session for the OrbitJobs dashboard.

A single operator signs in with ADMIN_PASSWORD. The session is an httpOnly
cookie holding "<username>|<expiry>|<hmac>"; the username it carries is the
user_id written to activities, settings and fetch configs.
"""
import os
import hmac
import hashlib
import secrets
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import HTTPException, Request, Response

logger = logging.getLogger(__name__)

COOKIE_NAME = "orbitjobs_admin_session"
SESSION_DURATION_HOURS = 8
SESSION_MAX_AGE = SESSION_DURATION_HOURS * 3600
DEFAULT_ADMIN_USERNAME = "admin"
DEV_BYPASS_HEADER = "X-Dev-Bypass"


def get_cookie_secret() -> str:
    secret = os.getenv("COOKIE_SECRET")
    if not secret:
        raise ValueError("COOKIE_SECRET environment variable required")
    return secret


def get_admin_username() -> str:
    return os.getenv("ADMIN_USERNAME") or DEFAULT_ADMIN_USERNAME


def get_admin_password() -> Optional[str]:
    return os.getenv("ADMIN_PASSWORD")


def is_dev_mode() -> bool:
    return os.getenv("ORBITJOBS_ENV", "").lower() == "dev"


def check_admin_configured() -> bool:
    return get_admin_password() is not None


def _sign(payload: str, secret: str) -> str:
    return hmac.new(secret.encode(), payload.encode(), hashlib.sha256).hexdigest()


def create_session_token(username: str, secret: str, now: Optional[datetime] = None) -> str:
    """Signed "<username>|<expiry_ts>|<signature>" valid for SESSION_DURATION_HOURS."""
    now = now or datetime.now(timezone.utc)
    expires_at = int((now + timedelta(hours=SESSION_DURATION_HOURS)).timestamp())
    payload = f"{username}|{expires_at}"
    return f"{payload}|{_sign(payload, secret)}"


def verify_session_token(token: str, secret: str) -> Optional[str]:
    """Username from a valid, unexpired token; None otherwise."""
    payload, _, signature = token.rpartition("|")
    username, sep, expires_at = payload.partition("|")
    if not sep or not username or "|" in expires_at:
        return None

    if not hmac.compare_digest(signature, _sign(payload, secret)):
        return None

    try:
        expired = datetime.now(timezone.utc).timestamp() > int(expires_at)
    except ValueError:
        return None
    return None if expired else username


def set_admin_cookie(response: Response, username: str):
    try:
        secret = get_cookie_secret()
    except ValueError:
        raise HTTPException(status_code=500, detail="Server configuration error")

    response.set_cookie(
        key=COOKIE_NAME,
        value=create_session_token(username, secret),
        httponly=True,
        secure=not is_dev_mode(),
        samesite="lax",
        path="/",
        max_age=SESSION_MAX_AGE,
    )


def clear_admin_cookie(response: Response):
    response.delete_cookie(key=COOKIE_NAME, path="/")


def get_current_admin(request: Request) -> Optional[str]:
    """
    Operator username for the request, or None when not signed in.
    In dev, the X-Dev-Bypass: 1 header signs in as ADMIN_USERNAME.
    """
    if is_dev_mode() and request.headers.get(DEV_BYPASS_HEADER) == "1":
        return get_admin_username()

    token = request.cookies.get(COOKIE_NAME)
    if not token:
        return None

    try:
        return verify_session_token(token, get_cookie_secret())
    except ValueError:
        logger.error("[admin_auth] COOKIE_SECRET not set; rejecting session cookie")
        return None


def admin_required(request: Request) -> str:
    """FastAPI dependency: the operator username, or 401."""
    admin = get_current_admin(request)
    if not admin:
        raise HTTPException(status_code=401, detail="Authentication required")
    return admin


def verify_admin_credentials(password: str, username: Optional[str] = None) -> bool:
    """Constant-time check of the password, and of the username when one is given."""
    expected_password = get_admin_password()
    if not expected_password:
        return False

    username_ok = username is None or secrets.compare_digest(username, get_admin_username())
    password_ok = secrets.compare_digest(password, expected_password)
    return username_ok and password_ok
