"""
Remote API provider - client of an /api/v1 application-dictionary server whose
payloads use lowercase column names and Y/N flags.
"""

import time
from typing import Any, Callable, Dict, List, Mapping, Optional

import httpx

from .base import DataProvider, ProviderKind
from ..core import config
from ..core.adapter import convert_reference_values, first_set
from ..core.cache import TTLCache
from ..core.errors import NetworkError, ProviderConfigurationError, WindowNotFoundError
from ..core.schema import (
    DisplayType,
    FieldDefinition,
    FormDataRecord,
    ReferenceDefinition,
    ReferenceValue,
    SaveResult,
    TabDefinition,
    ValidationIssue,
    WindowDefinition,
    WindowMetadata,
    WindowSummary,
)
from ..util.logging import logger

# Reference names used by the dictionary server that differ from canonical display types
API_REFERENCE_TYPES = {
    "Yes-No": DisplayType.YES_NO,
    "Table": DisplayType.LIST,
    "Table Direct": DisplayType.LIST,
    "Number": DisplayType.INTEGER,
    "Text Long": DisplayType.TEXT,
    "Image": DisplayType.CAMERA,
}


def _flag(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).upper() == "Y"


def _id(data: Mapping[str, Any], column: str) -> Optional[str]:
    value = data.get(column)
    if value is None:
        value = data.get("id")
    return str(value) if value is not None else None


def map_display_type(reference: Optional[Mapping[str, Any]]) -> DisplayType:
    name = (reference or {}).get("name")
    if name in API_REFERENCE_TYPES:
        return API_REFERENCE_TYPES[name]
    if name in DisplayType._value2member_map_:
        return DisplayType(name)
    return DisplayType.STRING


def map_field(api_field: Mapping[str, Any]) -> FieldDefinition:
    reference = api_field.get("ad_reference")
    reference_def = None
    if isinstance(reference, Mapping) and reference.get("id") is not None:
        reference_def = ReferenceDefinition(
            id=str(reference["id"]),
            name=reference.get("name") or "Reference",
            validation_type=reference.get("validationtype") or "LIST",
            values=convert_reference_values(reference.get("values") or []),
        )

    # displaylogic is not evaluated from remote payloads
    return FieldDefinition(
        id=_id(api_field, "ad_field_id"),
        name=api_field.get("name") or "",
        display_type=map_display_type(reference),
        sequence=first_set(api_field.get("seqno"), 10),
        is_mandatory=_flag(api_field.get("ismandatory")),
        is_read_only=_flag(api_field.get("isreadonly")),
        is_displayed=_flag(api_field.get("isdisplayed"), default=True),
        field_length=int(api_field.get("fieldlength") or 0),
        help=api_field.get("help"),
        description=api_field.get("description"),
        reference=reference_def,
        default_value=api_field.get("defaultvalue"),
    )


def map_tab(api_tab: Mapping[str, Any]) -> TabDefinition:
    return TabDefinition(
        id=_id(api_tab, "ad_tab_id"),
        name=api_tab.get("name") or "",
        description=api_tab.get("description"),
        sequence=first_set(api_tab.get("seqno"), 10),
        tab_level=first_set(api_tab.get("tablevel"), 0),
        is_read_only=_flag(api_tab.get("isreadonly")),
        is_single_row=_flag(api_tab.get("issinglerow"), default=True),
        fields=[map_field(f) for f in api_tab.get("fields") or []],
    )


def map_window(api_window: Mapping[str, Any]) -> WindowDefinition:
    metadata = WindowMetadata(version=str(api_window.get("version") or "1.0.0"), source="api")
    if api_window.get("updated"):
        metadata.last_modified = api_window["updated"]

    return WindowDefinition(
        id=_id(api_window, "ad_window_id"),
        name=api_window.get("name") or "",
        description=api_window.get("description"),
        window_type=api_window.get("windowtype") or "Transaction",
        tabs=[map_tab(t) for t in api_window.get("tabs") or []],
        metadata=metadata,
    )


def map_summary(api_window: Mapping[str, Any]) -> WindowSummary:
    return WindowSummary(
        id=_id(api_window, "ad_window_id"),
        name=api_window.get("name") or "",
        description=api_window.get("description"),
        category=api_window.get("category") or "General",
        is_available=_flag(api_window.get("isactive"), default=True),
    )


def map_save_result(payload: Mapping[str, Any]) -> SaveResult:
    errors = []
    for error in payload.get("errors") or []:
        if isinstance(error, Mapping):
            errors.append(ValidationIssue(field_id=error.get("field_id", error.get("fieldId", "")),
                                          message=error.get("message", "")))
        else:
            errors.append(ValidationIssue(field_id="", message=str(error)))

    result = SaveResult(
        success=bool(payload.get("success")),
        record_id=payload.get("record_id", payload.get("recordId")),
        errors=errors,
        warnings=list(payload.get("warnings") or []),
        message=payload.get("message", ""),
    )
    if payload.get("timestamp"):
        result.timestamp = payload["timestamp"]
    return result


class RemoteApiProvider(DataProvider):
    """Bearer-authenticated client of the /api/v1 dictionary server."""

    kind = ProviderKind.API

    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None,
                 cache_ttl: Optional[float] = None, client: Optional[httpx.AsyncClient] = None,
                 timeout: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        super().__init__()
        self.base_url = (base_url or config.get_metadata_base_url()).rstrip("/")
        self.api_key = api_key if api_key is not None else config.API_KEY
        if not self.api_key:
            raise ProviderConfigurationError("Remote API provider requires an API key")

        self.timeout = timeout if timeout is not None else config.HTTP_TIMEOUT_SEC
        self._cache = TTLCache(cache_ttl if cache_ttl is not None else config.get_cache_ttl("api"), clock)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.timeout)

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

    async def _request(self, method: str, path: str, entity_id: Optional[str] = None, **kwargs) -> Any:
        try:
            response = await self._client.request(method, f"{self.base_url}/api/v1{path}",
                                                  headers=self.headers, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise NetworkError(f"API Error: {e.response.status_code}", entity_id=entity_id, cause=e) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"API request failed: {e}", entity_id=entity_id, cause=e) from e
        except ValueError as e:
            raise NetworkError(f"Invalid JSON from {path}", entity_id=entity_id, cause=e) from e

    async def get_window_definition(self, window_id: str) -> WindowDefinition:
        cache_key = f"window_{window_id}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            logger.log_cache_event(self.name, cache_key, "hit")
            return cached

        try:
            payload = await self._request("GET", f"/ad/window/{window_id}", entity_id=window_id)
        except NetworkError as e:
            if isinstance(e.cause, httpx.HTTPStatusError) and e.cause.response.status_code == 404:
                raise WindowNotFoundError(window_id) from e
            logger.log_provider_operation(self.name, "get_window_definition", window_id, status="failed",
                                          details={"error": str(e)})
            raise

        window = map_window(payload)
        self._cache.set(cache_key, window)
        logger.log_provider_operation(self.name, "get_window_definition", window_id,
                                      details={"tabs": len(window.tabs)})
        return window

    async def get_available_windows(self) -> List[WindowSummary]:
        payload = await self._request("GET", "/ad/windows")
        windows = payload.get("windows", []) if isinstance(payload, Mapping) else payload
        return [map_summary(w) for w in windows or []]

    async def get_reference_values(self, reference_id: str) -> List[ReferenceValue]:
        cache_key = f"ref_{reference_id}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return list(cached)

        try:
            payload = await self._request("GET", f"/ad/reference/{reference_id}", entity_id=reference_id)
        except NetworkError as e:
            logger.warning(f"Reference {reference_id} unavailable, returning empty list: {e}")
            return []

        values = convert_reference_values(payload.get("values") or [] if isinstance(payload, Mapping) else [])
        self._cache.set(cache_key, values)
        return list(values)

    async def save_form_data(self, window_id: str, record: FormDataRecord) -> SaveResult:
        result = self._validate_for_save(self._cache.get(f"window_{window_id}"), record)
        if not result.success:
            return result

        payload = await self._request("POST", f"/data/{window_id}", entity_id=window_id, json=record.to_dict())
        result = map_save_result(payload)
        logger.log_provider_operation(self.name, "save_form_data", window_id,
                                      status="success" if result.success else "failed",
                                      details={"record_id": result.record_id})
        return result

    async def get_form_data(self, window_id: str, record_id: Optional[str] = None) -> FormDataRecord:
        path = f"/data/{window_id}/{record_id}" if record_id else f"/data/{window_id}/new"
        payload = await self._request("GET", path, entity_id=record_id or window_id)
        record = FormDataRecord.from_dict(payload)
        record.window_id = record.window_id or window_id
        return record

    async def is_connected(self) -> bool:
        try:
            response = await self._client.get(f"{self.base_url}/api/v1/health", headers=self.headers,
                                              timeout=self.timeout)
        except httpx.HTTPError:
            return False
        return response.is_success

    def has_cached_data(self) -> bool:
        return self._cache.has_valid_entries()

    def clear_cache(self) -> None:
        self._cache.clear()

    def cache_info(self) -> Dict[str, Any]:
        return self._cache.info()

    def get_status(self) -> Dict[str, Any]:
        status = super().get_status()
        status.update({
            "base_url": self.base_url,
            "cache": self.cache_info()
        })
        return status

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
