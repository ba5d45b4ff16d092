"""
AI Service for OpenRouter integration.
Handles all LLM calls for content generation via OpenRouter.
Includes retry with exponential backoff and circuit breaker for resilience.
"""
import os
import asyncio
import logging
import time
from typing import Any, Optional, Dict, List
from collections import deque
import httpx

logger = logging.getLogger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
OPENROUTER_DEFAULT_MODEL = "openai/gpt-4o-mini"

# Circuit breaker configuration
CIRCUIT_BREAKER_ERROR_THRESHOLD = 0.10  # 10% error rate triggers circuit breaker
CIRCUIT_BREAKER_WINDOW_SECONDS = 300  # 5 minutes
CIRCUIT_BREAKER_RESET_SECONDS = 60  # 1 minute before retry
MAX_RETRIES = 3
INITIAL_RETRY_DELAY = 1.0  # Start with 1 second
MAX_RETRY_DELAY = 10.0  # Max 10 seconds
REQUEST_TIMEOUT = 60.0

# Status codes OpenRouter uses for exhausted credits / rate limiting
QUOTA_STATUS_CODES = {402, 429}


class AIServiceError(RuntimeError):
    """LLM call failed after retries, or was refused."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CircuitBreaker:
    """Simple circuit breaker pattern for API resilience."""

    def __init__(self, error_threshold: float = 0.10, window_seconds: int = 300, reset_seconds: int = 60):
        self.error_threshold = error_threshold
        self.window_seconds = window_seconds
        self.reset_seconds = reset_seconds
        self.error_history = deque()  # (timestamp, is_error)
        self.circuit_open = False
        self.circuit_open_since = None

    def record_call(self, is_error: bool):
        """Record a call result."""
        now = time.time()
        self.error_history.append((now, is_error))

        # Remove old entries outside window
        cutoff = now - self.window_seconds
        while self.error_history and self.error_history[0][0] < cutoff:
            self.error_history.popleft()

        # Need at least 10 calls to evaluate
        if len(self.error_history) >= 10:
            errors = sum(1 for _, is_err in self.error_history if is_err)
            error_rate = errors / len(self.error_history)

            if error_rate >= self.error_threshold and not self.circuit_open:
                self.circuit_open = True
                self.circuit_open_since = now
                logger.warning(f"[ai_service] Circuit breaker OPENED: error rate {error_rate:.1%} >= {self.error_threshold:.1%}")

    def can_make_call(self) -> bool:
        """Check if we can make a call (circuit is closed or reset period passed)."""
        if not self.circuit_open:
            return True

        if self.circuit_open_since:
            elapsed = time.time() - self.circuit_open_since
            if elapsed >= self.reset_seconds:
                # Half-open: let one call through
                self.circuit_open = False
                self.circuit_open_since = None
                logger.info("[ai_service] Circuit breaker CLOSED (half-open state)")
                return True

        return False

    def record_success(self):
        """Record a successful call (helps close circuit)."""
        if self.circuit_open:
            self.circuit_open = False
            self.circuit_open_since = None
            logger.info("[ai_service] Circuit breaker CLOSED after successful call")


class AIService:
    """Service for making AI calls via OpenRouter."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = os.getenv("OPENROUTER_API_KEY")
        self.base_url = OPENROUTER_BASE_URL
        self.enabled = bool(self.api_key)
        self.transport = transport
        self.circuit_breaker = CircuitBreaker(
            error_threshold=CIRCUIT_BREAKER_ERROR_THRESHOLD,
            window_seconds=CIRCUIT_BREAKER_WINDOW_SECONDS,
            reset_seconds=CIRCUIT_BREAKER_RESET_SECONDS
        )

        if not self.enabled:
            logger.warning("[ai_service] OpenRouter API key not configured. AI features disabled.")

    async def complete(
        self,
        messages: List[Dict[str, str]],
        model: str = OPENROUTER_DEFAULT_MODEL,
        temperature: float = 0.0,
        max_tokens: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Chat completion with retry and circuit breaker.

        Returns:
            {"content": str, "tokens_used": int, "raw": dict}

        Raises:
            AIServiceError when disabled, when the circuit is open, on a 4xx
            (quota errors say "quota"), or when every retry failed.
        """
        if not self.enabled:
            raise AIServiceError("OpenRouter API key not configured")

        if not self.circuit_breaker.can_make_call():
            logger.warning("[ai_service] Circuit breaker is OPEN, skipping call")
            raise AIServiceError("AI service temporarily unavailable")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": os.getenv("APP_URL", "https://orbitjobs.app"),
            "X-Title": "OrbitJobs",
        }

        payload = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
        }
        if max_tokens:
            payload["max_tokens"] = max_tokens

        last_error: Optional[Exception] = None
        for attempt in range(MAX_RETRIES):
            try:
                if attempt > 0:
                    delay = min(INITIAL_RETRY_DELAY * (2 ** (attempt - 1)), MAX_RETRY_DELAY)
                    logger.info(f"[ai_service] Retry attempt {attempt + 1}/{MAX_RETRIES} after {delay:.1f}s delay")
                    await asyncio.sleep(delay)

                async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT, transport=self.transport) as client:
                    response = await client.post(
                        f"{self.base_url}/chat/completions",
                        headers=headers,
                        json=payload,
                    )
                    response.raise_for_status()
                    data = response.json()

                if data.get("choices"):
                    content = data["choices"][0]["message"]["content"] or ""
                    usage = data.get("usage") or {}
                    self.circuit_breaker.record_call(False)
                    self.circuit_breaker.record_success()
                    return {
                        "content": content,
                        "tokens_used": int(usage.get("total_tokens") or 0),
                        "raw": data,
                    }

                # OpenRouter reports some upstream failures as 200 with an error body
                error = data.get("error") or {}
                logger.error(f"[ai_service] Unexpected response format: {data}")
                last_error = AIServiceError(error.get("message") or "Unexpected response format")
                self.circuit_breaker.record_call(True)
                continue

            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code
                self.circuit_breaker.record_call(True)
                if status_code >= 500:
                    logger.warning(f"[ai_service] HTTP {status_code} error (attempt {attempt + 1}/{MAX_RETRIES}): {e}")
                    last_error = e
                    continue
                # Client errors (4xx) - don't retry
                logger.error(f"[ai_service] HTTP {status_code} client error: {e}")
                if status_code in QUOTA_STATUS_CODES:
                    raise AIServiceError(
                        f"OpenRouter quota or rate limit exceeded (HTTP {status_code})",
                        status_code=status_code,
                    ) from e
                raise AIServiceError(f"OpenRouter request failed (HTTP {status_code})", status_code=status_code) from e

            except httpx.TimeoutException as e:
                logger.warning(f"[ai_service] Timeout error (attempt {attempt + 1}/{MAX_RETRIES}): {e}")
                last_error = e
                self.circuit_breaker.record_call(True)
                continue

            except httpx.NetworkError as e:
                logger.warning(f"[ai_service] Network error (attempt {attempt + 1}/{MAX_RETRIES}): {e}")
                last_error = e
                self.circuit_breaker.record_call(True)
                continue

            except ValueError as e:
                logger.error(f"[ai_service] JSON decode error (attempt {attempt + 1}/{MAX_RETRIES}): {e}")
                last_error = e
                self.circuit_breaker.record_call(True)
                continue

        logger.error(f"[ai_service] All {MAX_RETRIES} retry attempts failed. Last error: {last_error}")
        raise AIServiceError(str(last_error) if last_error else "AI request failed")


# Singleton instance
_ai_service_instance: Optional[AIService] = None


def get_ai_service() -> AIService:
    """Get or create the singleton AI service instance."""
    global _ai_service_instance
    if _ai_service_instance is None:
        _ai_service_instance = AIService()
    return _ai_service_instance
