"""
Provider registry: maps provider names to adapter instances.
"""
import logging
from typing import Dict, List, Optional

from .base import JobProvider

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = "jsearch"

# Global registry instance
_registry: Optional['ProviderRegistry'] = None


class ProviderRegistry:
    """Registry for job-board providers"""

    def __init__(self):
        self._providers: Dict[str, JobProvider] = {}

    def register(self, provider: JobProvider):
        if provider.name in self._providers:
            logger.warning(f"Provider {provider.name} already registered, replacing")
        self._providers[provider.name] = provider
        logger.debug(f"Registered provider: {provider.name}")

    def get(self, name: Optional[str]) -> JobProvider:
        """Get a provider by name (default JSearch). Unknown names raise ValueError."""
        key = (name or DEFAULT_PROVIDER).strip().lower()
        provider = self._providers.get(key)
        if provider is None:
            raise ValueError(
                f"Unknown provider: {name!r}. Use one of: {', '.join(self.names())}"
            )
        return provider

    def names(self) -> List[str]:
        return list(self._providers.keys())

    def status(self) -> Dict[str, bool]:
        """Which providers have their credentials configured."""
        return {name: p.is_configured() for name, p in self._providers.items()}


def get_provider_registry() -> ProviderRegistry:
    """Get the global registry, registering the built-in providers on first use."""
    global _registry

    if _registry is None:
        from .jsearch import JSearchProvider
        from .adzuna import AdzunaProvider
        from .remotive import RemotiveProvider
        from .remoteok import RemoteOKProvider

        _registry = ProviderRegistry()
        _registry.register(JSearchProvider())
        _registry.register(AdzunaProvider())
        _registry.register(RemotiveProvider())
        _registry.register(RemoteOKProvider())

    return _registry
