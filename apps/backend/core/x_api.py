"""
X (Twitter) API v2 client.

Posts a two-tweet thread with OAuth 1.0a user-context credentials
(X_API_KEY, X_API_SECRET, X_ACCESS_TOKEN, X_ACCESS_SECRET).
"""
import os
import logging
import time
from typing import Any, Dict, Optional

import httpx
from authlib.integrations.httpx_client import AsyncOAuth1Client

logger = logging.getLogger(__name__)

X_API_BASE = "https://api.twitter.com"
X_TIMEOUT = 30.0
DEFAULT_TWEET_LIMIT = 500
TWEET_URL_TEMPLATE = "https://twitter.com/TheOrbitJobs/status/{tweet_id}"


class XConfigError(RuntimeError):
    """X API credentials are missing."""


class XPostError(RuntimeError):
    """X rejected a tweet or could not be reached."""


def get_credentials() -> Dict[str, str]:
    credentials = {
        "client_id": os.getenv("X_API_KEY"),
        "client_secret": os.getenv("X_API_SECRET"),
        "token": os.getenv("X_ACCESS_TOKEN"),
        "token_secret": os.getenv("X_ACCESS_SECRET"),
    }
    if not all(credentials.values()):
        raise XConfigError("Missing X API credentials")
    return credentials


def is_configured() -> bool:
    try:
        get_credentials()
    except XConfigError:
        return False
    return True


def tweet_url(tweet_id: str) -> str:
    return TWEET_URL_TEMPLATE.format(tweet_id=tweet_id)


def _client(transport: Optional[httpx.AsyncBaseTransport] = None) -> AsyncOAuth1Client:
    return AsyncOAuth1Client(timeout=X_TIMEOUT, transport=transport, **get_credentials())


async def _create_tweet(client: AsyncOAuth1Client, payload: Dict[str, Any]) -> str:
    response = await client.post(f"{X_API_BASE}/2/tweets", json=payload)
    if response.status_code not in (200, 201):
        logger.error(f"[x_api] Tweet rejected: HTTP {response.status_code} {response.text[:200]}")
        raise XPostError(f"X API error (HTTP {response.status_code})")
    return str(response.json()["data"]["id"])


async def post_thread(
    primary_tweet: str,
    reply_tweet: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, str]:
    """
    Post the primary tweet, then the reply in its thread.

    Returns:
        {"primary_tweet_id": ..., "reply_tweet_id": ...}

    Raises:
        XConfigError when credentials are missing, XPostError otherwise
    """
    async with _client(transport) as client:
        try:
            primary_id = await _create_tweet(client, {"text": primary_tweet})
            reply_id = await _create_tweet(
                client,
                {"text": reply_tweet, "reply": {"in_reply_to_tweet_id": primary_id}},
            )
        except XPostError:
            raise
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.error(f"[x_api] Failed to post thread: {e}")
            raise XPostError("Failed to post thread to X") from e

    logger.info(f"[x_api] Posted thread primary={primary_id} reply={reply_id}")
    return {"primary_tweet_id": primary_id, "reply_tweet_id": reply_id}


async def get_rate_limit_status(
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, int]:
    """
    Tweet-creation rate limit as {limit, remaining, reset}.

    Falls back to a 500/day window when X does not report one.

    Raises:
        XConfigError when credentials are missing
    """
    fallback = {
        "limit": DEFAULT_TWEET_LIMIT,
        "remaining": DEFAULT_TWEET_LIMIT,
        "reset": int(time.time()) + 86400,
    }

    async with _client(transport) as client:
        response = await client.get(
            f"{X_API_BASE}/1.1/application/rate_limit_status.json",
            params={"resources": "tweets"},
        )
        response.raise_for_status()
        data = response.json()

    tweet_limit = ((data.get("resources") or {}).get("tweets") or {}).get("/tweets")
    if not tweet_limit:
        return fallback

    return {
        "limit": int(tweet_limit.get("limit", fallback["limit"])),
        "remaining": int(tweet_limit.get("remaining", fallback["remaining"])),
        "reset": int(tweet_limit.get("reset", fallback["reset"])),
    }
