"""
Job-board provider adapters.

Each adapter wraps one job-search API and maps the common JobFilters onto
that provider's query parameters, post-filtering client-side whatever the
provider cannot filter natively.
"""

from .base import JobProvider, ProviderError, ProviderConfigError
from .registry import ProviderRegistry, get_provider_registry

__all__ = [
    'JobProvider',
    'ProviderError',
    'ProviderConfigError',
    'ProviderRegistry',
    'get_provider_registry',
]
