"""
Runtime configuration - provider selection, cache TTLs and connection monitoring.
Values come from the environment (optionally a .env file).
"""

import os

from dotenv import load_dotenv

load_dotenv()

# Debug flag
DEBUG = os.getenv("DEBUG", "false").lower() == "true"

# Provider selection
PROVIDER_TYPE = os.getenv("ADUI_PROVIDER", "external")  # mock|external|json-file|api
METADATA_BASE_URL = os.getenv("ADUI_METADATA_BASE_URL", "http://localhost:3001")
API_KEY = os.getenv("ADUI_API_KEY", "")
HTTP_TIMEOUT_SEC = float(os.getenv("ADUI_HTTP_TIMEOUT_SEC", "5"))

# Cache configuration
CACHE_TTL_SEC = float(os.getenv("ADUI_CACHE_TTL_SEC", "300"))  # 5 minutes
API_CACHE_TTL_SEC = float(os.getenv("ADUI_API_CACHE_TTL_SEC", "600"))  # 10 minutes

# Connection monitor
MONITOR_INTERVAL_SEC = float(os.getenv("ADUI_MONITOR_INTERVAL_SEC", "30"))
FALLBACK_GRACE_SEC = float(os.getenv("ADUI_FALLBACK_GRACE_SEC", "10"))

# Metadata development server
TEMPLATES_DIR = os.getenv("ADUI_TEMPLATES_DIR")
SERVER_PORT = int(os.getenv("ADUI_SERVER_PORT", "3001"))

VALID_PROVIDER_TYPES = ["mock", "external", "json-file", "api"]

# Version string
VERSION = "1.3.0"


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "false").lower() == "true"


def get_provider_type():
    """Get configured provider type. 'remote' is accepted as an alias for 'api'."""
    provider_type = os.getenv("ADUI_PROVIDER", PROVIDER_TYPE)
    if provider_type == "remote":
        return "api"
    return provider_type


def get_metadata_base_url():
    """Get the base URL of the external metadata server."""
    return os.getenv("ADUI_METADATA_BASE_URL", METADATA_BASE_URL).rstrip("/")


def get_cache_ttl(provider_type: str = None):
    """Get cache TTL in seconds for a provider type."""
    if provider_type == "api":
        return API_CACHE_TTL_SEC
    if provider_type == "json-file":
        return None  # Imported templates never expire
    return CACHE_TTL_SEC


def get_monitor_interval():
    """Get connection polling interval in seconds."""
    return MONITOR_INTERVAL_SEC


def get_fallback_grace_period():
    """Get how long a degraded connection is tolerated before falling back to mock."""
    return FALLBACK_GRACE_SEC


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    if get_provider_type() not in VALID_PROVIDER_TYPES:
        issues.append(f"Invalid ADUI_PROVIDER: {get_provider_type()}")

    if get_provider_type() == "api" and not API_KEY:
        issues.append("ADUI_PROVIDER=api requires ADUI_API_KEY")

    if CACHE_TTL_SEC <= 0:
        issues.append("ADUI_CACHE_TTL_SEC must be > 0")

    if HTTP_TIMEOUT_SEC <= 0:
        issues.append("ADUI_HTTP_TIMEOUT_SEC must be > 0")

    if MONITOR_INTERVAL_SEC < 1:
        issues.append("ADUI_MONITOR_INTERVAL_SEC must be >= 1")

    if FALLBACK_GRACE_SEC < 0:
        issues.append("ADUI_FALLBACK_GRACE_SEC must be >= 0")

    return issues
