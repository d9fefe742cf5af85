"""
Tests for the remote API provider and its wire-shape mapping.
"""

import json

import httpx
import pytest

from adui.core import config
from adui.core.errors import NetworkError, ProviderConfigurationError, WindowNotFoundError
from adui.core.schema import DisplayType, FieldValue, FormDataRecord, RecordStatus
from adui.providers.api import RemoteApiProvider, map_field, map_tab, map_window

API_WINDOW = {
    "ad_window_id": 143,
    "name": "Work Order",
    "windowtype": "Maintain",
    "updated": "2026-01-05T10:00:00",
    "displaylogic": "@X@=1",
    "tabs": [
        {
            "ad_tab_id": 186,
            "name": "Order",
            "seqno": 10,
            "tablevel": 0,
            "isreadonly": "N",
            "issinglerow": "Y",
            "fields": [
                {
                    "ad_field_id": 1001,
                    "name": "Document No",
                    "seqno": 10,
                    "ismandatory": "Y",
                    "isreadonly": "Y",
                    "isdisplayed": "Y",
                    "fieldlength": 30,
                },
                {
                    "ad_field_id": 1002,
                    "name": "Status",
                    "seqno": 20,
                    "isdisplayed": "N",
                    "displaylogic": "@Processed@='Y'",
                    "ad_reference": {"id": 131, "name": "List", "validationtype": "L"},
                },
            ],
        }
    ],
}


class FakeApiServer:
    """Records requests and answers like the /api/v1 dictionary server."""

    def __init__(self):
        self.requests = []
        self.healthy = True

    def handler(self, request):
        self.requests.append(request)
        if request.headers.get("Authorization") != "Bearer secret-key":
            return httpx.Response(401, json={"detail": "unauthorized"})

        path = request.url.path
        if path == "/api/v1/health":
            return httpx.Response(200 if self.healthy else 503, json={})
        if path == "/api/v1/ad/window/143":
            return httpx.Response(200, json=API_WINDOW)
        if path == "/api/v1/ad/windows":
            return httpx.Response(200, json=[{"ad_window_id": 143, "name": "Work Order", "isactive": "Y"},
                                             {"ad_window_id": 144, "name": "Old", "isactive": "N"}])
        if path == "/api/v1/ad/reference/131":
            return httpx.Response(200, json={"values": [{"key": "DR", "value": "Drafted"}]})
        if path == "/api/v1/data/143" and request.method == "POST":
            return httpx.Response(200, json={"success": True, "recordId": "WO-77", "message": "stored"})
        if path == "/api/v1/data/143/new":
            return httpx.Response(200, json={"windowId": "143", "data": {}, "metadata": {"status": "draft"}})
        return httpx.Response(404, json={"detail": "not found"})


@pytest.fixture
def server():
    return FakeApiServer()


@pytest.fixture
def provider(server):
    client = httpx.AsyncClient(transport=httpx.MockTransport(server.handler))
    return RemoteApiProvider(base_url="http://erp.local", api_key="secret-key", client=client)


class TestMapping:

    def test_window_columns(self):
        window = map_window(API_WINDOW)

        assert window.id == "143"
        assert window.window_type == "Maintain"
        assert window.metadata.source == "api"
        assert window.metadata.last_modified == "2026-01-05T10:00:00"
        assert window.tabs[0].id == "186"
        assert window.tabs[0].is_single_row is True

    def test_field_flags(self):
        doc_no, status = map_window(API_WINDOW).tabs[0].fields

        assert doc_no.is_mandatory is True
        assert doc_no.is_read_only is True
        assert doc_no.field_length == 30
        assert status.is_displayed is False
        assert status.display_type == DisplayType.LIST
        assert status.reference.id == "131"
        assert status.display_logic is None

    def test_missing_flags_use_defaults(self):
        field = map_field({"ad_field_id": 5, "name": "Plain"})

        assert field.is_displayed is True
        assert field.is_mandatory is False
        assert field.display_type == DisplayType.STRING

    def test_zero_seqno_kept(self):
        tab = map_tab({"ad_tab_id": 7, "seqno": 0, "tablevel": 0, "fields": [{"ad_field_id": 8, "seqno": 0}]})

        assert tab.sequence == 0
        assert tab.tab_level == 0
        assert tab.fields[0].sequence == 0


class TestRemoteApiProvider:

    def test_requires_api_key(self):
        with pytest.raises(ProviderConfigurationError):
            RemoteApiProvider(base_url="http://erp.local", api_key="")

    def test_default_ttl_is_api_ttl(self, provider):
        assert provider.cache_info()["ttl_sec"] == config.API_CACHE_TTL_SEC

    @pytest.mark.asyncio
    async def test_bearer_token_sent(self, provider, server):
        await provider.is_connected()
        assert server.requests[-1].headers["Authorization"] == "Bearer secret-key"

    @pytest.mark.asyncio
    async def test_window_fetched_once(self, provider, server):
        first = await provider.get_window_definition("143")
        second = await provider.get_window_definition("143")

        assert first is second
        assert len(server.requests) == 1

    @pytest.mark.asyncio
    async def test_unknown_window(self, provider):
        with pytest.raises(WindowNotFoundError):
            await provider.get_window_definition("999")

    @pytest.mark.asyncio
    async def test_unauthorized_is_network_error(self, server):
        client = httpx.AsyncClient(transport=httpx.MockTransport(server.handler))
        provider = RemoteApiProvider(base_url="http://erp.local", api_key="wrong", client=client)

        with pytest.raises(NetworkError) as exc_info:
            await provider.get_window_definition("143")
        assert exc_info.value.entity_id == "143"

    @pytest.mark.asyncio
    async def test_available_windows(self, provider):
        windows = await provider.get_available_windows()

        assert [w.id for w in windows] == ["143", "144"]
        assert [w.is_available for w in windows] == [True, False]

    @pytest.mark.asyncio
    async def test_reference_values(self, provider):
        values = await provider.get_reference_values("131")
        assert [(v.key, v.value) for v in values] == [("DR", "Drafted")]
        assert await provider.get_reference_values("404") == []

    @pytest.mark.asyncio
    async def test_save_posts_record(self, provider, server):
        record = FormDataRecord.new_draft("143")
        record.data["DOC"] = FieldValue(raw="WO-1")

        result = await provider.save_form_data("143", record)

        assert result.success
        assert result.record_id == "WO-77"
        body = json.loads(server.requests[-1].content)
        assert body["data"]["DOC"]["raw"] == "WO-1"

    @pytest.mark.asyncio
    async def test_submitted_record_validated_against_cached_window(self, provider, server):
        window = await provider.get_window_definition("143")
        record = FormDataRecord.new_draft(window.id)
        record.metadata.status = RecordStatus.SUBMITTED

        result = await provider.save_form_data("143", record)

        # Document No is read-only, so nothing editable is missing
        assert result.success
        assert server.requests[-1].method == "POST"

    @pytest.mark.asyncio
    async def test_new_form_data(self, provider):
        record = await provider.get_form_data("143")
        assert record.window_id == "143"
        assert record.metadata.status == RecordStatus.DRAFT

    @pytest.mark.asyncio
    async def test_unhealthy_server(self, provider, server):
        server.healthy = False
        assert await provider.is_connected() is False
