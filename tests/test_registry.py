"""
Tests for provider construction, swapping and fallback.
"""

from unittest.mock import Mock, patch

import pytest

from adui.core.errors import ProviderConfigurationError
from adui.providers.api import RemoteApiProvider
from adui.providers.base import ProviderKind
from adui.providers.external import ExternalMetadataProvider
from adui.providers.json_import import JSONImportProvider
from adui.providers.mock import MockDataProvider
from adui.providers.registry import ProviderRegistry, create_default_provider, resolve_kind


class TestProviderRegistry:
    """Test cases for provider registry functionality."""

    @pytest.fixture
    def registry(self):
        return ProviderRegistry()

    def test_registry_initialization(self, registry):
        assert registry.active is None
        assert registry.provider_creation_log == []
        assert registry.fallback_active is False

    @pytest.mark.parametrize("kind,expected_class", [
        ("mock", MockDataProvider),
        ("json-file", JSONImportProvider),
        (ProviderKind.EXTERNAL, ExternalMetadataProvider),
    ])
    def test_create_by_kind(self, registry, kind, expected_class):
        provider = registry.create_provider(kind)

        assert isinstance(provider, expected_class)
        assert registry.provider_creation_log[0]["provider_class"] == expected_class.__name__

    def test_remote_alias_builds_api_provider(self, registry):
        provider = registry.create_provider("remote", api_key="k", base_url="http://erp.local")
        assert isinstance(provider, RemoteApiProvider)

    def test_unknown_kind(self, registry):
        with pytest.raises(ProviderConfigurationError, match="Unknown provider type"):
            registry.create_provider("sqlite")

    def test_bad_options(self, registry):
        with pytest.raises(ProviderConfigurationError):
            registry.create_provider("mock", base_url="http://x")

    def test_configured_default(self):
        with patch('adui.providers.registry.config') as mock_config:
            mock_config.get_provider_type.return_value = "mock"
            assert resolve_kind() == ProviderKind.MOCK
            assert isinstance(create_default_provider(), MockDataProvider)

    def test_switch_notifies_listeners(self, registry):
        listener = Mock()
        registry.add_listener(listener)
        first = registry.initialize("mock")
        second = MockDataProvider()

        registry.switch_provider(second)

        assert registry.active is second
        listener.assert_called_with(first, second)
        assert listener.call_count == 2

    def test_fallback_happens_once(self, registry):
        registry.initialize("json-file")

        assert registry.fallback_to_mock() is True
        fallback_provider = registry.active
        assert isinstance(fallback_provider, MockDataProvider)
        assert registry.fallback_active

        assert registry.fallback_to_mock() is False
        assert registry.active is fallback_provider

    def test_manual_switch_leaves_fallback(self, registry):
        registry.initialize("json-file")
        registry.fallback_to_mock()

        registry.switch_provider(JSONImportProvider())

        assert registry.fallback_active is False

    def test_status(self, registry):
        registry.initialize("mock")
        status = registry.get_status()

        assert status["active"]["kind"] == "mock"
        assert status["providers_created"] == 1
