"""
Provider registry - builds providers from configuration, holds the active one
and performs point-in-time swaps (including the fallback to mock).
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from .api import RemoteApiProvider
from .base import DataProvider, ProviderKind
from .external import ExternalMetadataProvider
from .json_import import JSONImportProvider
from .mock import MockDataProvider
from ..core import config
from ..core.errors import ProviderConfigurationError
from ..util.logging import logger

PROVIDER_CLASSES = {
    ProviderKind.MOCK: MockDataProvider,
    ProviderKind.EXTERNAL: ExternalMetadataProvider,
    ProviderKind.JSON_FILE: JSONImportProvider,
    ProviderKind.API: RemoteApiProvider,
}

SwapListener = Callable[[Optional[DataProvider], DataProvider], None]


def resolve_kind(kind: Any = None) -> ProviderKind:
    """Accepts a ProviderKind, its string value, or None for the configured default."""
    value = kind if kind is not None else config.get_provider_type()
    if value == "remote":
        value = ProviderKind.API
    try:
        return ProviderKind(value)
    except ValueError:
        valid = ", ".join(k.value for k in ProviderKind)
        raise ProviderConfigurationError(f"Unknown provider type '{value}'. Valid types: {valid}")


class ProviderRegistry:
    """
    Owns the active provider. Swaps replace the strategy outright; caches
    of the previous provider are neither shared nor migrated.
    """

    def __init__(self):
        self.active: Optional[DataProvider] = None
        self.provider_creation_log: List[Dict[str, Any]] = []
        self.fallback_active = False
        self._listeners: List[SwapListener] = []

    def create_provider(self, kind: Any = None, **kwargs) -> DataProvider:
        """
        Build a provider without activating it.

        Args:
            kind: ProviderKind or its value; defaults to ADUI_PROVIDER
            **kwargs: passed to the provider constructor

        Returns:
            The new provider instance
        """
        provider_kind = resolve_kind(kind)
        try:
            provider = PROVIDER_CLASSES[provider_kind](**kwargs)
        except TypeError as e:
            raise ProviderConfigurationError(f"Invalid options for {provider_kind.value} provider: {e}") from e

        self.provider_creation_log.append({
            "timestamp": datetime.now().isoformat(),
            "kind": provider_kind.value,
            "provider_class": type(provider).__name__,
            "options": sorted(kwargs.keys())
        })
        logger.log_provider_operation(provider_kind.value, "provider_created")
        return provider

    def initialize(self, kind: Any = None, **kwargs) -> DataProvider:
        """Create a provider from configuration and make it active."""
        provider = self.create_provider(kind, **kwargs)
        self.switch_provider(provider, reason="initialize")
        return provider

    def switch_provider(self, provider: DataProvider, reason: str = "manual") -> DataProvider:
        old = self.active
        self.active = provider
        if reason != "fallback":
            self.fallback_active = False

        logger.log_operation("provider_switch", "success", {
            "from": old.name if old else None,
            "to": provider.name,
            "reason": reason
        })
        for listener in list(self._listeners):
            listener(old, provider)
        return provider

    def fallback_to_mock(self) -> bool:
        """
        Swap the active provider for a fresh mock provider.

        Returns:
            True if a swap happened, False when already in fallback or on mock
        """
        if self.fallback_active or (self.active is not None and self.active.kind == ProviderKind.MOCK):
            return False

        self.switch_provider(MockDataProvider(), reason="fallback")
        self.fallback_active = True
        return True

    def add_listener(self, listener: SwapListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: SwapListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def get_status(self) -> Dict[str, Any]:
        return {
            "active": self.active.get_status() if self.active else None,
            "fallback_active": self.fallback_active,
            "providers_created": len(self.provider_creation_log),
            "timestamp": datetime.now().isoformat()
        }


def create_default_provider(**kwargs) -> DataProvider:
    """One-off provider built from environment configuration."""
    return ProviderRegistry().create_provider(**kwargs)
