"""
Tests for the mock provider catalog and in-memory record storage.
"""

import pytest

from adui.core.errors import WindowNotFoundError
from adui.core.schema import DisplayType, FieldValue, FormDataRecord, RecordMetadata, RecordStatus
from adui.providers.base import ProviderKind
from adui.providers.mock import MockDataProvider


def submitted(window_id, **values):
    return FormDataRecord(
        window_id=window_id,
        data={k: v if isinstance(v, FieldValue) else FieldValue(raw=v) for k, v in values.items()},
        metadata=RecordMetadata(status=RecordStatus.SUBMITTED),
    )


class TestMockCatalog:

    @pytest.fixture
    def provider(self):
        return MockDataProvider()

    @pytest.mark.asyncio
    async def test_available_windows(self, provider):
        windows = await provider.get_available_windows()
        assert {w.id for w in windows} == {"EQUIP_INSPECTION", "SAFETY_AUDIT"}

    @pytest.mark.asyncio
    async def test_window_definition(self, provider):
        window = await provider.get_window_definition("EQUIP_INSPECTION")

        assert [t.id for t in window.tabs] == ["TAB_GENERAL", "TAB_PHOTOS"]
        assert window.get_field("ASSET_ID").display_type == DisplayType.QR_CODE
        assert window.get_field("CONDITION").reference.id == "CONDITION_LIST"
        assert window.metadata.source == "mock"

    @pytest.mark.asyncio
    async def test_returned_window_is_a_copy(self, provider):
        window = await provider.get_window_definition("EQUIP_INSPECTION")
        window.tabs.clear()

        again = await provider.get_window_definition("EQUIP_INSPECTION")
        assert len(again.tabs) == 2

    @pytest.mark.asyncio
    async def test_unknown_window(self, provider):
        with pytest.raises(WindowNotFoundError) as exc_info:
            await provider.get_window_definition("NOPE")
        assert "EQUIP_INSPECTION" in exc_info.value.available

    @pytest.mark.asyncio
    async def test_reference_values(self, provider):
        values = await provider.get_reference_values("RISK_LEVELS")
        assert [v.key for v in values] == ["LOW", "MEDIUM", "HIGH", "CRITICAL"]
        assert await provider.get_reference_values("UNKNOWN") == []

    @pytest.mark.asyncio
    async def test_always_connected(self, provider):
        assert await provider.is_connected() is True
        assert provider.kind == ProviderKind.MOCK
        assert not provider.kind.polls


class TestMockRecords:

    @pytest.fixture
    def provider(self):
        return MockDataProvider()

    @pytest.mark.asyncio
    async def test_draft_saved_without_validation(self, provider):
        result = await provider.save_form_data("EQUIP_INSPECTION", FormDataRecord.new_draft("EQUIP_INSPECTION"))

        assert result.success
        assert result.record_id.startswith("REC_")

    @pytest.mark.asyncio
    async def test_saved_record_can_be_loaded(self, provider):
        record = FormDataRecord.new_draft("EQUIP_INSPECTION")
        record.data["NOTES"] = FieldValue(raw="Leaking valve")
        result = await provider.save_form_data("EQUIP_INSPECTION", record)

        loaded = await provider.get_form_data("EQUIP_INSPECTION", result.record_id)
        assert loaded.data["NOTES"].raw == "Leaking valve"

    @pytest.mark.asyncio
    async def test_unknown_record_gives_empty_draft(self, provider):
        loaded = await provider.get_form_data("EQUIP_INSPECTION", "REC_MISSING")

        assert loaded.record_id == "REC_MISSING"
        assert loaded.data == {}
        assert loaded.metadata.status == RecordStatus.DRAFT

    @pytest.mark.asyncio
    async def test_submitted_record_is_validated(self, provider):
        result = await provider.save_form_data("EQUIP_INSPECTION", submitted("EQUIP_INSPECTION", ASSET_ID="A-1"))

        assert not result.success
        assert {e.field_id for e in result.errors} == {"CONDITION", "OPERATIONAL", "OVERVIEW_PHOTO"}

    @pytest.mark.asyncio
    async def test_hidden_field_not_required(self, provider):
        record = submitted(
            "SAFETY_AUDIT",
            AREA_CODE="B2-NORTH",
            PPE_COMPLIANCE=True,
            HAZARD_LEVEL=FieldValue(raw="Low Risk", key="LOW"),
        )
        result = await provider.save_form_data("SAFETY_AUDIT", record)
        assert result.success

        record.data["HAZARD_LEVEL"] = FieldValue(raw="High Risk", key="HIGH")
        result = await provider.save_form_data("SAFETY_AUDIT", record)
        assert not result.success
        assert [e.field_id for e in result.errors] == ["IMMEDIATE_ACTION"]
