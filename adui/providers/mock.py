"""
Mock provider - a fixed in-memory catalog with no external dependencies.
Used for development, tests and as the terminal fallback when a backend is down.
"""

import asyncio
import copy
from typing import Any, Dict, List, Optional

from .base import DataProvider, ProviderKind
from ..core import display_logic
from ..core.errors import WindowNotFoundError
from ..core.schema import (
    DisplayType,
    FieldDefinition,
    FormDataRecord,
    ReferenceDefinition,
    ReferenceValue,
    SaveResult,
    TabDefinition,
    WindowDefinition,
    WindowMetadata,
    WindowSummary,
)
from ..util.logging import logger


MOCK_REFERENCES: Dict[str, List[ReferenceValue]] = {
    "CONDITION_LIST": [
        ReferenceValue("EXCELLENT", "Excellent", "No issues, perfect condition"),
        ReferenceValue("GOOD", "Good", "Minor wear, fully functional"),
        ReferenceValue("FAIR", "Fair", "Some issues, needs attention"),
        ReferenceValue("POOR", "Poor", "Major issues, repair needed"),
        ReferenceValue("CRITICAL", "Critical", "Unsafe, immediate action required"),
    ],
    "RISK_LEVELS": [
        ReferenceValue("LOW", "Low Risk", "Minimal safety concern"),
        ReferenceValue("MEDIUM", "Medium Risk", "Some safety precautions needed"),
        ReferenceValue("HIGH", "High Risk", "Significant safety concern"),
        ReferenceValue("CRITICAL", "Critical Risk", "Immediate action required"),
    ],
}


def _field(field_id, name, display_type, sequence, mandatory=False, length=0, help=None, **kwargs):
    return FieldDefinition(
        id=field_id,
        name=name,
        display_type=display_type,
        sequence=sequence,
        is_mandatory=mandatory,
        field_length=length,
        help=help,
        **kwargs
    )


def _build_catalog() -> Dict[str, WindowDefinition]:
    equipment = WindowDefinition(
        id="EQUIP_INSPECTION",
        name="Equipment Inspection",
        description="Dynamic form for equipment inspections",
        tabs=[
            TabDefinition(id="TAB_GENERAL", name="General", sequence=10, fields=[
                _field("ASSET_ID", "Asset ID", DisplayType.QR_CODE, 10, True, 50, "Scan QR code on equipment"),
                _field("LOCATION_REF", "Location", DisplayType.STRING, 20, False, 100, "Building, floor, room reference"),
                _field("CONDITION", "Condition", DisplayType.LIST, 30, True,
                       reference=ReferenceDefinition("CONDITION_LIST", "Equipment Condition", "LIST",
                                                     list(MOCK_REFERENCES["CONDITION_LIST"]))),
                _field("OPERATIONAL", "Operational", DisplayType.YES_NO, 40, True,
                       help="Is equipment currently operational?"),
                _field("NOTES", "Inspection Notes", DisplayType.TEXT, 50, False, 2000, "Detailed inspection observations"),
            ]),
            TabDefinition(id="TAB_PHOTOS", name="Photos", sequence=20, fields=[
                _field("OVERVIEW_PHOTO", "Overview Photo", DisplayType.CAMERA, 10, True, help="Overall view of equipment"),
                _field("DETAIL_PHOTO", "Detail Photo", DisplayType.CAMERA, 20, help="Close-up of specific components"),
                _field("NAMEPLATE_PHOTO", "Nameplate Photo", DisplayType.CAMERA, 30,
                       help="Equipment nameplate and serial number"),
            ]),
        ],
        metadata=WindowMetadata(source="mock"),
    )

    safety = WindowDefinition(
        id="SAFETY_AUDIT",
        name="Safety Audit",
        description="Workplace safety inspection checklist",
        tabs=[
            TabDefinition(id="TAB_AUDIT", name="Safety Check", sequence=10, fields=[
                _field("AREA_CODE", "Area Code", DisplayType.QR_CODE, 10, True, 50, "Scan area identification code"),
                _field("PPE_COMPLIANCE", "PPE Compliance", DisplayType.YES_NO, 20, True,
                       help="Personal protective equipment properly used?"),
                _field("HAZARD_LEVEL", "Risk Level", DisplayType.LIST, 30, True,
                       reference=ReferenceDefinition("RISK_LEVELS", "Risk Assessment", "LIST",
                                                     list(MOCK_REFERENCES["RISK_LEVELS"]))),
                _field("IMMEDIATE_ACTION", "Immediate Action Required", DisplayType.YES_NO, 40, True,
                       display_logic=display_logic.parse("@HAZARD_LEVEL@='HIGH' | @HAZARD_LEVEL@='CRITICAL'")),
                _field("SAFETY_NOTES", "Safety Observations", DisplayType.TEXT, 50, False, 2000,
                       "Detailed safety observations and recommendations"),
            ]),
        ],
        metadata=WindowMetadata(source="mock"),
    )

    return {equipment.id: equipment, safety.id: safety}


class MockDataProvider(DataProvider):
    """
    Provider backed by static fixtures. Always connected.
    `latency` simulates backend round trips in seconds.
    """

    kind = ProviderKind.MOCK

    def __init__(self, latency: float = 0.0):
        super().__init__()
        self.latency = latency
        self.windows = _build_catalog()

    async def _delay(self, factor: float = 1.0):
        if self.latency > 0:
            await asyncio.sleep(self.latency * factor)

    async def get_window_definition(self, window_id: str) -> WindowDefinition:
        await self._delay()

        window = self.windows.get(window_id)
        if window is None:
            logger.log_provider_operation(self.name, "get_window_definition", window_id, status="failed")
            raise WindowNotFoundError(window_id, list(self.windows.keys()))

        # Callers get their own copy so fixture state never drifts
        return copy.deepcopy(window)

    async def get_available_windows(self) -> List[WindowSummary]:
        await self._delay(0.5)
        return [w.summary(category="Field Operations") for w in self.windows.values()]

    async def get_reference_values(self, reference_id: str) -> List[ReferenceValue]:
        await self._delay(0.5)
        return [copy.copy(v) for v in MOCK_REFERENCES.get(reference_id, [])]

    async def save_form_data(self, window_id: str, record: FormDataRecord) -> SaveResult:
        await self._delay(2)

        result = self._validate_for_save(self.windows.get(window_id), record)
        if not result.success:
            return result
        return self._store_record(window_id, record, "REC")

    async def get_form_data(self, window_id: str, record_id: Optional[str] = None) -> FormDataRecord:
        await self._delay()
        return self._load_record(window_id, record_id)

    async def is_connected(self) -> bool:
        return True  # Mock always connected

    def has_cached_data(self) -> bool:
        return True

    def get_status(self) -> Dict[str, Any]:
        """Get status with mock provider specifics."""
        status = super().get_status()
        status.update({
            "window_count": len(self.windows),
            "reference_count": len(MOCK_REFERENCES),
            "latency_sec": self.latency
        })
        return status
