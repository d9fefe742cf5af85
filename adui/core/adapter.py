"""
Schema adaptation - converts an external window/tab/field JSON document into
the canonical model, delegating inline enumeration handling to a
ReferenceResolver passed in for the call.
"""

import copy
import re
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from . import display_logic
from .errors import AdaptationError, DisplayLogicError
from .references import ReferenceResolver, is_embedded_reference, reference_id_for
from .schema import (
    DisplayType,
    FieldDefinition,
    ReferenceDefinition,
    ReferenceValue,
    TabDefinition,
    WindowDefinition,
    WindowMetadata,
)
from ..util.logging import logger

INTERNAL_FORMAT = "adui-v1.3"

# External component name -> canonical display type
COMPONENT_TYPE_MAP: Dict[str, DisplayType] = {
    "QRCollectorField": DisplayType.QR_COLLECTOR,
    "MultiPhotoField": DisplayType.MULTI_PHOTO,
    "QRCodeField": DisplayType.QR_CODE,
    "QRChecklistField": DisplayType.QR_CHECKLIST,
    "FlippableQRChecklistField": DisplayType.FLIPPABLE_QR_CHECKLIST,
    "TaskListField": DisplayType.TASK_LIST,
    "TextField": DisplayType.STRING,
    "TextAreaField": DisplayType.TEXT,
    "SelectField": DisplayType.LIST,
    "YesNoField": DisplayType.YES_NO,
    "CameraField": DisplayType.CAMERA,
    "NumberField": DisplayType.INTEGER,
}

DEFAULT_PRIORITY_COLORS = {
    "critical": "#E53E3E",
    "high": "#FF9800",
    "normal": "#3182CE",
    "low": "#38A169",
}

DEFAULT_STATUS_COLORS = {
    "completed": "#48BB78",
    "in_progress": "#ED8936",
    "blocked": "#F56565",
    "not_started": "#90CDF4",
}

DEFAULT_GRAPH_TRANSITION = {
    "enabled": True,
    "minZoom": 0.1,
    "maxZoom": 1.0,
    "snapLevels": [0.1, 0.3, 0.5, 1.0],
}


def _default(data: Mapping[str, Any], key: str, value: Any) -> Any:
    found = data.get(key)
    return copy.deepcopy(value) if found is None else found


def first_set(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def _task_list_data(data):
    return {
        **data,
        "tasks": _default(data, "tasks", []),
        "relationships": _default(data, "relationships", []),
        "layout": _default(data, "layout", {}),
        "projectInfo": _default(data, "projectInfo", {}),
    }


def _checklist_data(data):
    return {
        **data,
        "items": _default(data, "items", []),
        "scanSettings": _default(data, "scanSettings", {}),
    }


def _collector_data(data):
    return {
        **data,
        "maxCodes": _default(data, "maxCodes", 10),
        "allowDuplicates": _default(data, "allowDuplicates", False),
        "scanSettings": _default(data, "scanSettings", {}),
    }


def _multi_photo_data(data):
    return {
        **data,
        "maxPhotos": _default(data, "maxPhotos", 5),
        "requireLocation": data.get("requireLocation") is not False,
        "photoSettings": _default(data, "photoSettings", {}),
    }


def _task_list_ui(ui):
    return {
        **ui,
        "allowZoomGraph": ui.get("allowZoomGraph") is not False,
        "priorityColors": _default(ui, "priorityColors", DEFAULT_PRIORITY_COLORS),
        "statusColors": _default(ui, "statusColors", DEFAULT_STATUS_COLORS),
        "graphTransition": _default(ui, "graphTransition", DEFAULT_GRAPH_TRANSITION),
    }


# Components whose payloads are backfilled; all others pass through untouched
DATA_DEFAULTS: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
    "TaskListField": _task_list_data,
    "QRChecklistField": _checklist_data,
    "FlippableQRChecklistField": _checklist_data,
    "QRCollectorField": _collector_data,
    "MultiPhotoField": _multi_photo_data,
}

UI_DEFAULTS: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
    "TaskListField": _task_list_ui,
}


def slugify_name(name: str) -> str:
    """`Site Audit` -> `SITE_AUDIT`."""
    return re.sub(r"[^A-Z0-9]", "_", str(name).upper())


def resolve_window_id(document: Mapping[str, Any]) -> Tuple[Optional[str], Optional[str]]:
    """Window id and how it was found: windowId field, id field, or generated from name."""
    if document.get("windowId"):
        return str(document["windowId"]), "windowId_field"
    if document.get("id"):
        return str(document["id"]), "id_field"
    if document.get("name"):
        return slugify_name(document["name"]), "generated_from_name"
    return None, None


def resolve_tab_id(tab: Mapping[str, Any]) -> Optional[str]:
    if tab.get("tabId"):
        return str(tab["tabId"])
    if tab.get("id"):
        return str(tab["id"])
    if tab.get("name"):
        return slugify_name(tab["name"])
    return None


def resolve_field_id(field: Mapping[str, Any]) -> Optional[str]:
    field_id = field.get("fieldId") or field.get("id")
    return str(field_id) if field_id else None


def convert_reference_values(values: List[Any]) -> List[ReferenceValue]:
    return [ReferenceValue.from_dict(v) if isinstance(v, Mapping) else ReferenceValue(key=str(v), value=str(v))
            for v in values]


class SchemaAdapter:
    """Converts external window documents to WindowDefinition.

    The component table is copied per instance, so `register_component`
    extends one adapter without affecting others. Display logic is dropped
    unless `evaluate_display_logic` is set, in which case it is parsed by the
    safe evaluator in `display_logic` (never executed as code).
    """

    def __init__(self, component_map: Optional[Dict[str, DisplayType]] = None,
                 evaluate_display_logic: bool = False):
        self.component_map = dict(COMPONENT_TYPE_MAP if component_map is None else component_map)
        self.evaluate_display_logic = evaluate_display_logic

    def register_component(self, component: str, display_type: DisplayType) -> None:
        self.component_map[component] = DisplayType(display_type)

    def component_mapping(self) -> Dict[str, str]:
        return {name: dt.value for name, dt in self.component_map.items()}

    def is_component_supported(self, component: str) -> bool:
        return component in self.component_map

    def adapt(self, document: Mapping[str, Any], resolver: Optional[ReferenceResolver] = None,
              source: str = "external-metadata-server") -> WindowDefinition:
        """Adapt one external window document.

        `resolver` is cleared and then filled with this document's embedded
        references. Pass a fresh instance per call when several adaptations
        may run concurrently.
        """
        if resolver is None:
            resolver = ReferenceResolver()
        resolver.clear()

        if not isinstance(document, Mapping):
            raise AdaptationError(f"window document must be a JSON object, got {type(document).__name__}")

        window_id, _ = resolve_window_id(document)
        if not document.get("name"):
            raise AdaptationError("window is missing a 'name'")

        tabs = document.get("tabs")
        if not isinstance(tabs, list):
            raise AdaptationError(f"window '{window_id}' is missing a 'tabs' array")

        adapted_tabs = []
        seen_tabs = set()
        for tab_index, external_tab in enumerate(tabs):
            tab = self._adapt_tab(external_tab, tab_index, resolver)
            if tab.id in seen_tabs:
                raise AdaptationError(f"duplicate tab id '{tab.id}'", tab_index=tab_index)
            seen_tabs.add(tab.id)
            adapted_tabs.append(tab)

        external_meta = document.get("metadata") or {}
        if not isinstance(external_meta, Mapping):
            raise AdaptationError(f"window '{window_id}' metadata must be a JSON object")
        now = datetime.now().isoformat()
        extra = {k: v for k, v in external_meta.items() if k not in ("version", "lastModified", "source")}
        extra.update({
            "adapted_at": now,
            "original_format": "external-json",
            "internal_format": INTERNAL_FORMAT,
        })

        window = WindowDefinition(
            id=window_id,
            name=document["name"],
            description=document.get("description"),
            window_type=document.get("windowType") or "Transaction",
            tabs=adapted_tabs,
            metadata=WindowMetadata(
                version=str(external_meta.get("version", "1.0.0")),
                last_modified=external_meta.get("lastModified", now),
                source=external_meta.get("source") or source,
                extra=extra,
            ),
        )

        logger.log_adaptation(window.id, len(window.tabs), len(window.all_fields()), len(resolver))
        return window

    def _adapt_tab(self, external_tab: Any, tab_index: int, resolver: ReferenceResolver) -> TabDefinition:
        if not isinstance(external_tab, Mapping):
            raise AdaptationError("tab must be a JSON object", tab_index=tab_index)

        tab_id = resolve_tab_id(external_tab)
        if not tab_id:
            raise AdaptationError("tab is missing 'tabId'/'id' and has no name to derive one", tab_index=tab_index)

        fields = external_tab.get("fields")
        if not isinstance(fields, list):
            raise AdaptationError(f"tab '{tab_id}' is missing a 'fields' array", tab_index=tab_index)

        adapted_fields = []
        seen_fields = set()
        for field_index, external_field in enumerate(fields):
            field = self._adapt_field(external_field, tab_index, field_index, resolver)
            if field.id in seen_fields:
                raise AdaptationError(f"duplicate field id '{field.id}'", tab_index=tab_index, field_index=field_index)
            seen_fields.add(field.id)
            adapted_fields.append(field)

        return TabDefinition(
            id=tab_id,
            name=external_tab.get("name") or tab_id,
            description=external_tab.get("description"),
            sequence=first_set(external_tab.get("sequence"), (tab_index + 1) * 10),
            tab_level=first_set(external_tab.get("tabLevel"), 0),
            is_read_only=bool(external_tab.get("isReadOnly", False)),
            is_single_row=external_tab.get("isSingleRow") is not False,
            fields=adapted_fields,
        )

    def _adapt_field(self, external_field: Any, tab_index: int, field_index: int,
                     resolver: ReferenceResolver) -> FieldDefinition:
        if not isinstance(external_field, Mapping):
            raise AdaptationError("field must be a JSON object", tab_index=tab_index, field_index=field_index)

        field_id = resolve_field_id(external_field)
        if not field_id:
            raise AdaptationError("field is missing 'fieldId'/'id'", tab_index=tab_index, field_index=field_index)

        component = external_field.get("component")
        validation = external_field.get("validation") or {}
        if not isinstance(validation, Mapping):
            raise AdaptationError("field 'validation' must be a JSON object",
                                  tab_index=tab_index, field_index=field_index)
        max_length = first_set(validation.get("maxLength"), external_field.get("fieldLength"))
        try:
            field_length = int(max_length or 0)
        except (TypeError, ValueError) as e:
            raise AdaptationError(f"field '{field_id}' has a non-numeric length: {max_length!r}",
                                  tab_index=tab_index, field_index=field_index) from e
        ui = external_field.get("ui")
        help_text = ui.get("helpText") if isinstance(ui, Mapping) else None

        return FieldDefinition(
            id=field_id,
            name=external_field.get("name") or field_id,
            display_type=self._display_type(component, external_field.get("displayType")),
            sequence=first_set(external_field.get("sequence"), (field_index + 1) * 10),
            is_mandatory=bool(validation.get("required", external_field.get("isMandatory", False))),
            is_read_only=bool(external_field.get("isReadOnly", False)),
            is_displayed=external_field.get("isDisplayed") is not False,
            field_length=field_length,
            help=help_text or external_field.get("help"),
            description=external_field.get("description"),
            display_logic=self._adapt_display_logic(external_field.get("displayLogic"), field_id),
            reference=self._adapt_reference(external_field.get("reference"), field_id, resolver),
            data=self._adapt_payload(external_field.get("data"), component, DATA_DEFAULTS),
            ui=self._adapt_payload(ui, component, UI_DEFAULTS),
            default_value=external_field.get("defaultValue"),
        )

    def _display_type(self, component: Optional[str], declared: Optional[str]) -> DisplayType:
        if component in self.component_map:
            return self.component_map[component]
        if component is None and declared in DisplayType._value2member_map_:
            return DisplayType(declared)
        return DisplayType.STRING

    def _adapt_display_logic(self, expression: Optional[str], field_id: str):
        if not expression:
            return None
        if not self.evaluate_display_logic:
            logger.debug(f"Dropping display logic on field {field_id}")
            return None
        try:
            return display_logic.parse(expression)
        except DisplayLogicError as e:
            logger.warning(f"Ignoring unparsable display logic on field {field_id}: {e}")
            return None

    def _adapt_reference(self, reference: Any, field_id: str,
                         resolver: ReferenceResolver) -> Optional[ReferenceDefinition]:
        if not isinstance(reference, Mapping):
            return None

        inline_values = reference.get("values")
        if not reference.get("id") and not isinstance(inline_values, list):
            return None

        reference_id = reference_id_for(field_id, reference)
        values = convert_reference_values(inline_values or [])

        if is_embedded_reference(reference_id):
            resolver.put(reference_id, values)

        return ReferenceDefinition(
            id=reference_id,
            name=reference.get("name") or "Reference",
            validation_type=reference.get("validationType") or "LIST",
            values=values,
        )

    @staticmethod
    def _adapt_payload(payload: Any, component: Optional[str], defaults: Dict[str, Callable]) -> Any:
        filler = defaults.get(component)
        if filler is None:
            return payload
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            return payload
        return filler(dict(payload))


def field_statistics(window: WindowDefinition) -> Dict[str, Any]:
    """Field counts by type and tab, plus checklist/task/reference totals."""
    stats = {
        "total_fields": 0,
        "fields_by_type": {},
        "fields_by_tab": {},
        "embedded_references": 0,
        "task_list_fields": 0,
        "checklist_items": 0,
    }

    for tab in window.tabs:
        stats["fields_by_tab"][tab.name] = len(tab.fields)
        for field in tab.fields:
            stats["total_fields"] += 1
            type_name = field.display_type.value
            stats["fields_by_type"][type_name] = stats["fields_by_type"].get(type_name, 0) + 1

            if field.display_type == DisplayType.TASK_LIST:
                stats["task_list_fields"] += 1
            if field.display_type in (DisplayType.QR_CHECKLIST, DisplayType.FLIPPABLE_QR_CHECKLIST) \
                    and isinstance(field.data, Mapping):
                stats["checklist_items"] += len(field.data.get("items") or [])
            if field.reference and field.reference.is_embedded:
                stats["embedded_references"] += 1

    return stats
