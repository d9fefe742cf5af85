"""
Tests for environment configuration and log sanitization.
"""

import os
from unittest.mock import patch

from adui.core import config
from adui.util.logging import sanitize_payload


class TestConfig:

    def test_remote_alias(self):
        with patch.dict(os.environ, {"ADUI_PROVIDER": "remote"}):
            assert config.get_provider_type() == "api"

    def test_base_url_trailing_slash_removed(self):
        with patch.dict(os.environ, {"ADUI_METADATA_BASE_URL": "http://10.0.0.5:3001/"}):
            assert config.get_metadata_base_url() == "http://10.0.0.5:3001"

    def test_cache_ttl_per_provider(self):
        assert config.get_cache_ttl("api") == config.API_CACHE_TTL_SEC
        assert config.get_cache_ttl("external") == config.CACHE_TTL_SEC
        assert config.get_cache_ttl("json-file") is None

    def test_invalid_provider_reported(self):
        with patch.dict(os.environ, {"ADUI_PROVIDER": "sqlite"}):
            issues = config.validate_config()
        assert any("Invalid ADUI_PROVIDER" in issue for issue in issues)

    def test_api_provider_needs_key(self):
        with patch.dict(os.environ, {"ADUI_PROVIDER": "api"}), patch.object(config, "API_KEY", ""):
            issues = config.validate_config()
        assert "ADUI_PROVIDER=api requires ADUI_API_KEY" in issues


class TestSanitizePayload:

    def test_form_values_redacted(self):
        payload = {"field_id": "NOTES", "raw": "private", "nested": [{"display": "x"}]}

        assert sanitize_payload(payload) == {
            "field_id": "NOTES",
            "raw": "[REDACTED]",
            "nested": [{"display": "[REDACTED]"}]
        }

    def test_reveal_sensitive(self):
        assert sanitize_payload({"raw": "ok"}, reveal_sensitive=True) == {"raw": "ok"}

    def test_long_strings_truncated(self):
        assert sanitize_payload("x" * 150) == "x" * 100 + "..."
