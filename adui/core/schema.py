"""
Canonical schema model - the window/tab/field/reference/record types every
provider produces and every renderer consumes.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .references import is_embedded_reference


class DisplayType(str, Enum):
    """Closed set of canonical field display types."""
    STRING = "String"
    TEXT = "Text"
    INTEGER = "Integer"
    YES_NO = "YesNo"
    LIST = "List"
    QR_CODE = "QRCode"
    CAMERA = "Camera"
    QR_CHECKLIST = "QRChecklist"
    FLIPPABLE_QR_CHECKLIST = "FlippableQRChecklist"
    TASK_LIST = "TaskList"
    QR_COLLECTOR = "QRCollector"
    MULTI_PHOTO = "MultiPhoto"


class RecordStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"


def _now() -> str:
    return datetime.now().isoformat()


@dataclass
class ReferenceValue:
    """One entry of an enumeration list."""
    key: str
    value: str
    description: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReferenceValue':
        """Build from either the canonical or the external (`display`, camelCase) shape."""
        label = data.get("display")
        if label is None:
            label = data.get("value")
        if label is None:
            label = data.get("key")
        return cls(
            key=str(data.get("key")),
            value=str(label),
            description=data.get("description"),
            color=data.get("color"),
            icon=data.get("icon"),
            sort_order=data.get("sort_order", data.get("sortOrder")),
            is_active=data.get("is_active", data.get("isActive", True)) is not False
        )


@dataclass
class ReferenceDefinition:
    id: str
    name: str = "Reference"
    validation_type: str = "LIST"
    values: List[ReferenceValue] = field(default_factory=list)

    @property
    def is_embedded(self) -> bool:
        return is_embedded_reference(self.id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "validation_type": self.validation_type,
            "values": [v.to_dict() for v in self.values],
            "is_embedded": self.is_embedded
        }


@dataclass
class FieldDefinition:
    id: str
    name: str
    display_type: DisplayType = DisplayType.STRING
    sequence: int = 10
    is_mandatory: bool = False
    is_read_only: bool = False
    is_displayed: bool = True
    field_length: int = 0
    help: Optional[str] = None
    description: Optional[str] = None
    display_logic: Optional[Any] = None  # parsed display_logic.Expression, never a raw string
    reference: Optional[ReferenceDefinition] = None
    data: Optional[Any] = None
    ui: Optional[Any] = None
    default_value: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "display_type": self.display_type.value,
            "sequence": self.sequence,
            "is_mandatory": self.is_mandatory,
            "is_read_only": self.is_read_only,
            "is_displayed": self.is_displayed,
            "field_length": self.field_length,
            "help": self.help,
            "description": self.description,
            "display_logic": self.display_logic.to_dict() if self.display_logic is not None else None,
            "reference": self.reference.to_dict() if self.reference else None,
            "data": self.data,
            "ui": self.ui,
            "default_value": self.default_value
        }


@dataclass
class TabDefinition:
    id: str
    name: str
    sequence: int = 10
    tab_level: int = 0
    is_read_only: bool = False
    is_single_row: bool = True
    fields: List[FieldDefinition] = field(default_factory=list)
    description: Optional[str] = None

    def sorted_fields(self) -> List[FieldDefinition]:
        """Fields in render order. Ties keep declaration order."""
        return sorted(self.fields, key=lambda f: f.sequence)

    def get_field(self, field_id: str) -> Optional[FieldDefinition]:
        for f in self.fields:
            if f.id == field_id:
                return f
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "sequence": self.sequence,
            "tab_level": self.tab_level,
            "is_read_only": self.is_read_only,
            "is_single_row": self.is_single_row,
            "fields": [f.to_dict() for f in self.fields]
        }


@dataclass
class WindowMetadata:
    version: str = "1.0.0"
    last_modified: str = field(default_factory=_now)
    source: str = "mock"
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class WindowDefinition:
    id: str
    name: str
    tabs: List[TabDefinition] = field(default_factory=list)
    description: Optional[str] = None
    window_type: str = "Transaction"
    metadata: WindowMetadata = field(default_factory=WindowMetadata)

    def get_tab(self, tab_id: str) -> Optional[TabDefinition]:
        for tab in self.tabs:
            if tab.id == tab_id:
                return tab
        return None

    def all_fields(self) -> List[FieldDefinition]:
        return [f for tab in self.tabs for f in tab.fields]

    def get_field(self, field_id: str) -> Optional[FieldDefinition]:
        for tab in self.tabs:
            found = tab.get_field(field_id)
            if found:
                return found
        return None

    def summary(self, category: str = "General") -> 'WindowSummary':
        return WindowSummary(
            id=self.id,
            name=self.name,
            description=self.description,
            category=category,
            is_available=True
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "window_type": self.window_type,
            "tabs": [t.to_dict() for t in self.tabs],
            "metadata": self.metadata.to_dict()
        }


@dataclass
class WindowSummary:
    id: str
    name: str
    description: Optional[str] = None
    category: str = "General"
    is_available: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'WindowSummary':
        return cls(
            id=str(data.get("id") or data.get("windowId")),
            name=data.get("name", ""),
            description=data.get("description"),
            category=data.get("category", "General"),
            is_available=data.get("is_available", data.get("isAvailable", True)) is not False
        )


@dataclass
class FieldValue:
    """A collected value. `metadata` carries component annotations (media type, sub-items)."""
    raw: Any = None
    display: Optional[str] = None
    key: Optional[Any] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return self.raw is None or self.raw == "" or self.raw == [] or self.raw == {}

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FieldValue':
        return cls(
            raw=data.get("raw"),
            display=data.get("display"),
            key=data.get("key"),
            metadata=data.get("metadata") or {}
        )


@dataclass
class RecordMetadata:
    created: str = field(default_factory=_now)
    modified: str = field(default_factory=_now)
    status: RecordStatus = RecordStatus.DRAFT

    def to_dict(self) -> Dict[str, Any]:
        return {"created": self.created, "modified": self.modified, "status": self.status.value}


@dataclass
class FormDataRecord:
    window_id: str
    data: Dict[str, FieldValue] = field(default_factory=dict)
    metadata: RecordMetadata = field(default_factory=RecordMetadata)
    record_id: Optional[str] = None

    @classmethod
    def new_draft(cls, window_id: str, record_id: Optional[str] = None) -> 'FormDataRecord':
        return cls(window_id=window_id, record_id=record_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "record_id": self.record_id,
            "window_id": self.window_id,
            "data": {k: v.to_dict() for k, v in self.data.items()},
            "metadata": self.metadata.to_dict()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FormDataRecord':
        meta = data.get("metadata") or {}
        return cls(
            record_id=data.get("record_id", data.get("recordId")),
            window_id=data.get("window_id", data.get("windowId")),
            data={k: FieldValue.from_dict(v) for k, v in (data.get("data") or {}).items()},
            metadata=RecordMetadata(
                created=meta.get("created", _now()),
                modified=meta.get("modified", _now()),
                status=RecordStatus(meta.get("status", "draft"))
            )
        )


@dataclass
class ValidationIssue:
    field_id: str
    message: str
    severity: str = "error"  # error|warning

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SaveResult:
    success: bool
    record_id: Optional[str] = None
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    message: str = ""
    timestamp: str = field(default_factory=_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "record_id": self.record_id,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": list(self.warnings),
            "message": self.message,
            "timestamp": self.timestamp
        }
