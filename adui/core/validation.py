"""
Validation engine - checks collected form values against field definitions
before a record is submitted.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional

from . import display_logic
from .schema import DisplayType, FieldDefinition, FieldValue, ValidationIssue, WindowDefinition


def _as_field_value(value: Any) -> Optional[FieldValue]:
    if value is None or isinstance(value, FieldValue):
        return value
    if isinstance(value, Mapping):
        return FieldValue.from_dict(value)
    return FieldValue(raw=value)


def validate_field(value: Any, field_def: FieldDefinition) -> Optional[str]:
    """Return an error message for one field, or None when the value is acceptable."""
    field_value = _as_field_value(value)

    if field_def.is_mandatory and (field_value is None or field_value.is_empty()):
        return f"{field_def.name} is required"

    if field_value is None or field_value.is_empty():
        return None

    raw = field_value.raw
    if field_def.display_type == DisplayType.INTEGER and not isinstance(raw, bool):
        try:
            int(str(raw).strip())
        except ValueError:
            return f"{field_def.name} must be a valid number"

    if field_def.display_type in (DisplayType.STRING, DisplayType.TEXT, DisplayType.QR_CODE) \
            and field_def.field_length and isinstance(raw, str) and len(raw) > field_def.field_length:
        return f"{field_def.name} must be at most {field_def.field_length} characters"

    return None


def validate_fields(form_data: Mapping[str, Any], field_defs: Iterable[FieldDefinition]) -> List[ValidationIssue]:
    """Validate every displayed field whose display logic currently holds."""
    issues = []
    for field_def in field_defs:
        if not field_def.is_displayed or field_def.is_read_only:
            continue
        if not display_logic.is_visible(field_def.display_logic, form_data):
            continue
        message = validate_field(form_data.get(field_def.id), field_def)
        if message:
            issues.append(ValidationIssue(field_id=field_def.id, message=message))
    return issues


def validate_window(form_data: Mapping[str, Any], window: WindowDefinition) -> List[ValidationIssue]:
    return validate_fields(form_data, window.all_fields())


def form_progress(form_data: Dict[str, Any], window: WindowDefinition) -> Dict[str, Any]:
    """Filled/total counts over displayed fields."""
    displayed = [f for f in window.all_fields() if f.is_displayed]
    filled = 0
    for f in displayed:
        value = _as_field_value(form_data.get(f.id))
        if value is not None and not value.is_empty():
            filled += 1
    total = len(displayed)
    return {
        "filled": filled,
        "total": total,
        "percentage": round(filled * 100 / total) if total else 0
    }
