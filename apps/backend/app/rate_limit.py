"""
IP-based rate limiting for login, fetch and content generation.
"""
import os
from slowapi import Limiter
from slowapi.util import get_remote_address

_is_dev = os.getenv("ORBITJOBS_ENV") == "dev"

# Provider and LLM calls cost money; keep these tight
RATE_LIMIT_FETCH = os.getenv("RATE_LIMIT_FETCH", "30/minute" if _is_dev else "10/minute")
RATE_LIMIT_GENERATE = os.getenv("RATE_LIMIT_GENERATE", "30/minute" if _is_dev else "20/minute")
RATE_LIMIT_LOGIN = os.getenv("RATE_LIMIT_LOGIN", "20/minute" if _is_dev else "5/minute")

limiter = Limiter(key_func=get_remote_address)
