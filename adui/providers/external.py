"""
External metadata provider - fetches external-shape window documents over
HTTP, adapts them to the canonical model and caches the result with a TTL.
"""

import time
from typing import Any, Callable, Dict, List, Optional

import httpx

from .base import DataProvider, ProviderKind
from ..core import config
from ..core.adapter import SchemaAdapter, convert_reference_values
from ..core.cache import TTLCache
from ..core.errors import AdaptationError, NetworkError, ReferenceNotFoundError, WindowNotFoundError
from ..core.references import ReferenceResolver, is_embedded_reference
from ..core.schema import (
    FormDataRecord,
    ReferenceValue,
    SaveResult,
    WindowDefinition,
    WindowSummary,
)
from ..util.logging import logger


class ExternalMetadataProvider(DataProvider):
    """
    Provider for a metadata server exposing /health, /windows,
    /windows/{id} and /references/{id}.

    Embedded reference ids are answered from the resolvers of the
    adaptations this instance has run, so they only resolve once the
    owning window has been fetched.
    """

    kind = ProviderKind.EXTERNAL

    def __init__(self, base_url: Optional[str] = None, cache_ttl: Optional[float] = None,
                 client: Optional[httpx.AsyncClient] = None, timeout: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic, adapter: Optional[SchemaAdapter] = None):
        super().__init__()
        self.base_url = (base_url or config.get_metadata_base_url()).rstrip("/")
        self.timeout = timeout if timeout is not None else config.HTTP_TIMEOUT_SEC
        self._cache = TTLCache(cache_ttl if cache_ttl is not None else config.get_cache_ttl("external"), clock)
        self._clock = clock
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.timeout)
        self.adapter = adapter or SchemaAdapter()
        self._resolvers: Dict[str, ReferenceResolver] = {}

        logger.info(f"External metadata provider initialized with base_url: {self.base_url}")

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def _get_json(self, path: str, entity_id: Optional[str] = None) -> Any:
        try:
            response = await self._client.get(self._url(path), headers={"Accept": "application/json"})
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise NetworkError(f"HTTP {e.response.status_code} from {path}", entity_id=entity_id, cause=e) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Request to {path} failed: {e}", entity_id=entity_id, cause=e) from e
        except ValueError as e:
            raise NetworkError(f"Invalid JSON from {path}", entity_id=entity_id, cause=e) from e

    async def get_window_definition(self, window_id: str) -> WindowDefinition:
        cache_key = f"window_{window_id}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            logger.log_cache_event(self.name, cache_key, "hit")
            return cached

        logger.log_cache_event(self.name, cache_key, "miss")
        try:
            document = await self._get_json(f"/windows/{window_id}", entity_id=window_id)
        except NetworkError as e:
            if isinstance(e.cause, httpx.HTTPStatusError) and e.cause.response.status_code == 404:
                raise WindowNotFoundError(window_id) from e
            logger.log_provider_operation(self.name, "get_window_definition", window_id, status="failed",
                                          details={"error": str(e)})
            raise

        resolver = ReferenceResolver()
        try:
            window = self.adapter.adapt(document, resolver=resolver)
        except AdaptationError as e:
            logger.log_provider_operation(self.name, "get_window_definition", window_id, status="failed",
                                          details={"error": str(e)})
            raise

        self._resolvers[window_id] = resolver
        self._cache.set(cache_key, window)
        logger.log_provider_operation(self.name, "get_window_definition", window_id,
                                      details={"tabs": len(window.tabs), "embedded_references": len(resolver)})
        return window

    async def get_available_windows(self) -> List[WindowSummary]:
        payload = await self._get_json("/windows")
        windows = payload.get("windows", []) if isinstance(payload, dict) else payload
        summaries = [WindowSummary.from_dict(w) for w in windows or []]
        logger.log_provider_operation(self.name, "get_available_windows", details={"count": len(summaries)})
        return summaries

    async def get_reference_values(self, reference_id: str) -> List[ReferenceValue]:
        # Embedded values live with the adaptation that produced them, never in the TTL cache
        if is_embedded_reference(reference_id):
            try:
                return list(self._find_embedded(reference_id))
            except ReferenceNotFoundError as e:
                logger.warning(str(e))
                return []

        cache_key = f"ref_{reference_id}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            logger.log_cache_event(self.name, cache_key, "hit")
            return list(cached)

        try:
            payload = await self._get_json(f"/references/{reference_id}", entity_id=reference_id)
        except NetworkError as e:
            logger.warning(f"Reference {reference_id} unavailable, returning empty list: {e}")
            return []

        raw_values = payload.get("values", []) if isinstance(payload, dict) else []
        values = convert_reference_values(raw_values or [])
        self._cache.set(cache_key, values)
        logger.log_provider_operation(self.name, "get_reference_values", reference_id,
                                      details={"count": len(values)})
        return list(values)

    def _find_embedded(self, reference_id: str) -> List[ReferenceValue]:
        for resolver in self._resolvers.values():
            values = resolver.get(reference_id)
            if values is not None:
                return values
        raise ReferenceNotFoundError(f"Embedded reference {reference_id} not found in any adapted window")

    async def save_form_data(self, window_id: str, record: FormDataRecord) -> SaveResult:
        result = self._validate_for_save(self._cache.get(f"window_{window_id}"), record)
        if not result.success:
            return result

        # The metadata server has no data endpoint; records stay in memory
        result = self._store_record(window_id, record, "EXT")
        result.message = "Form data saved successfully to external metadata server"
        return result

    async def get_form_data(self, window_id: str, record_id: Optional[str] = None) -> FormDataRecord:
        return self._load_record(window_id, record_id)

    async def is_connected(self) -> bool:
        try:
            response = await self._client.get(self._url("/health"), timeout=self.timeout)
        except httpx.HTTPError as e:
            logger.debug(f"Health check failed: {e}")
            return False
        return response.is_success

    def has_cached_data(self) -> bool:
        return self._cache.has_valid_entries()

    # Cache management

    def clear_cache(self) -> None:
        self._cache.clear()
        self._resolvers.clear()
        logger.log_cache_event(self.name, "*", "cleared")

    def clear_cache_entry(self, key: str) -> bool:
        removed = self._cache.delete(key)
        if key.startswith("window_"):
            removed = self._resolvers.pop(key[len("window_"):], None) is not None or removed
        logger.log_cache_event(self.name, key, "cleared" if removed else "absent")
        return removed

    def cache_info(self) -> Dict[str, Any]:
        return self._cache.info()

    def set_cache_ttl(self, ttl: Optional[float]) -> None:
        self._cache.ttl = ttl
        logger.info(f"External provider cache TTL set to {ttl}s")

    def set_base_url(self, base_url: str) -> None:
        """Point at another server. Everything cached from the old one is dropped."""
        self.base_url = base_url.rstrip("/")
        self.clear_cache()
        logger.info(f"External provider base URL updated to: {self.base_url}")

    async def test_connection(self) -> Dict[str, Any]:
        """Health check with timing, for diagnostics screens and scripts."""
        started = self._clock()
        try:
            response = await self._client.get(self._url("/health"), timeout=self.timeout * 2)
        except httpx.HTTPError as e:
            return {
                "connected": False,
                "response_time_ms": int((self._clock() - started) * 1000),
                "error": str(e) or type(e).__name__
            }

        result = {
            "connected": response.is_success,
            "response_time_ms": int((self._clock() - started) * 1000),
            "error": None if response.is_success else f"HTTP {response.status_code}"
        }
        logger.log_operation("test_connection", "success" if result["connected"] else "failed", result)
        return result

    def embedded_reference_info(self) -> Dict[str, Any]:
        references = []
        for resolver in self._resolvers.values():
            references.extend(resolver.stats()["references"])
        return {
            "count": len(references),
            "total_values": sum(r["value_count"] for r in references),
            "references": references
        }

    def get_status(self) -> Dict[str, Any]:
        status = super().get_status()
        status.update({
            "base_url": self.base_url,
            "cache": self.cache_info(),
            "embedded_references": self.embedded_reference_info()["count"]
        })
        return status

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
