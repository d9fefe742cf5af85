"""
JSON template import - loads an external-shape window document from a local
file or string through a staged pipeline that records a diagnostic per stage.
"""

import asyncio
import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .base import DataProvider, ProviderKind
from ..core import config
from ..core.adapter import SchemaAdapter, convert_reference_values, resolve_tab_id, resolve_window_id
from ..core.cache import TTLCache
from ..core.errors import (
    AduiError,
    StructuralValidationError,
    TemplateImportError,
    TemplateParseError,
    WindowNotFoundError,
)
from ..core.references import ReferenceResolver, reference_id_for
from ..core.schema import (
    FormDataRecord,
    ReferenceValue,
    SaveResult,
    WindowDefinition,
    WindowSummary,
)
from ..util.logging import logger

IMPORT_STAGES = [
    "file_access_check",
    "content_reading",
    "json_parsing",
    "structure_validation",
    "windowid_extraction",
    "metadata_adaptation",
    "data_storage",
    "reference_extraction",
]


@dataclass
class ImportDiagnostic:
    """One entry of the import session log."""
    stage: str
    success: bool
    details: str
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    data: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stage": self.stage,
            "success": self.success,
            "details": self.details,
            "timestamp": self.timestamp,
            "data": self.data
        }


def classify_source(source: str) -> str:
    if source.startswith("file://"):
        return "file_system"
    if source.startswith("content://"):
        return "content_provider"
    if source.startswith("http://") or source.startswith("https://"):
        return "remote_url"
    return "local_path"


def _preview(text: str, limit: int = 200) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


class JSONImportProvider(DataProvider):
    """
    Provider serving windows imported from JSON templates.

    Imported data behaves like a cache entry without TTL: it stays until the
    next import or an explicit `clear_imported_data()`.
    """

    kind = ProviderKind.JSON_FILE

    def __init__(self, adapter: Optional[SchemaAdapter] = None):
        super().__init__()
        self.adapter = adapter or SchemaAdapter()
        self._windows = TTLCache(config.get_cache_ttl("json-file"))
        self._references: Dict[str, List[ReferenceValue]] = {}
        self._diagnostics: List[ImportDiagnostic] = []
        self._template: Optional[Dict[str, Any]] = None
        self._imported_at: Optional[str] = None
        self._last_window_id: Optional[str] = None
        self._stage: Optional[str] = None

    def _record(self, stage: str, success: bool, details: str, data: Optional[Dict[str, Any]] = None):
        self._diagnostics.append(ImportDiagnostic(stage=stage, success=success, details=details, data=data))
        logger.log_import_stage(stage, success, details, data)

    # Import pipeline

    async def import_template(self, source: str, content: Optional[str] = None) -> WindowDefinition:
        """
        Import one template from `source` (a path or file:// URI), or from
        `content` when the text is already in hand.

        Every stage appends a diagnostic. The first failing stage ends the
        import and a single TemplateImportError is raised with the whole log.

        Returns:
            The adapted window, also stored under its resolved id.
        """
        self.clear_imported_data()

        try:
            self._stage = "file_access_check"
            path = self._check_file_access(source, content)

            self._stage = "content_reading"
            raw = await self._read_content(path, content)

            self._stage = "json_parsing"
            template = self._parse(raw)

            self._stage = "structure_validation"
            self._validate_structure(template)

            self._stage = "windowid_extraction"
            window_id = self._extract_window_id(template)

            self._stage = "metadata_adaptation"
            window = self._adapt(template, window_id)

            self._stage = "data_storage"
            self._store(template, window)

            self._stage = "reference_extraction"
            self._extract_references(template)

        except (AduiError, OSError, UnicodeDecodeError) as e:
            failed_stage = self._stage
            data = {"error_type": type(e).__name__}
            if isinstance(e, StructuralValidationError):
                data["invalid_tabs"] = e.invalid_tabs
            self._record(failed_stage, False, f"Error: {e}", data)
            raise TemplateImportError(str(e), failed_stage, self.get_import_diagnostics()) from e
        finally:
            self._stage = None

        self._record("import_complete", True, f"Successfully imported template: {window.id}", {
            "window_id": window.id,
            "window_name": window.name,
            "tab_count": len(window.tabs),
            "reference_count": len(self._references),
            "total_import_stages": len(self._diagnostics) + 1
        })
        return window

    def _check_file_access(self, source: str, content: Optional[str]) -> Optional[Path]:
        kind = classify_source(source)
        data = {"source": source, "uri_type": kind}

        if content is not None:
            self._record("file_access_check", True, f"Using provided content for: {source}", data)
            return None

        if kind in ("remote_url", "content_provider"):
            raise FileNotFoundError(f"Cannot read {kind} source without provided content: {source}")

        path = Path(source[len("file://"):] if kind == "file_system" else source)
        if not path.is_file():
            raise FileNotFoundError(f"No such file: {path}")

        self._record("file_access_check", True, f"File is accessible: {path}", data)
        return path

    async def _read_content(self, path: Optional[Path], content: Optional[str]) -> str:
        if path is None:
            raw = content
            details = "Using provided JSON content"
        else:
            raw = await asyncio.to_thread(path.read_text, encoding="utf-8")
            details = "Successfully read file content"

        self._record("content_reading", True, details, {
            "content_length": len(raw),
            "content_preview": _preview(raw)
        })
        return raw

    def _parse(self, raw: str) -> Any:
        try:
            template = json.loads(raw)
        except json.JSONDecodeError as e:
            raise TemplateParseError(f"Invalid JSON format: {e}") from e

        if not isinstance(template, dict):
            raise TemplateParseError(f"Template must be a JSON object, got {type(template).__name__}")

        self._record("json_parsing", True, "JSON parsing successful", {
            "top_level_keys": list(template.keys()),
            "has_window_id": bool(template.get("windowId") or template.get("id")),
            "has_name": bool(template.get("name")),
            "has_tabs": isinstance(template.get("tabs"), list)
        })
        return template

    def _validate_structure(self, template: Mapping[str, Any]):
        tabs = template.get("tabs")
        results = {
            "has_id": resolve_window_id(template)[0] is not None,
            "has_name": bool(template.get("name")),
            "has_tabs": isinstance(tabs, list) and len(tabs) > 0,
            "tab_count": len(tabs) if isinstance(tabs, list) else 0,
        }

        if not results["has_id"]:
            raise StructuralValidationError("Template missing windowId, id and name")
        if not results["has_name"]:
            raise StructuralValidationError("Template missing required name field")
        if not results["has_tabs"]:
            raise StructuralValidationError("Template missing required non-empty tabs array")

        invalid_tabs = []
        for index, tab in enumerate(tabs):
            is_object = isinstance(tab, Mapping)
            check = {
                "index": index,
                "has_id": is_object and resolve_tab_id(tab) is not None,
                "has_fields": is_object and isinstance(tab.get("fields"), list),
            }
            if not (check["has_id"] and check["has_fields"]):
                invalid_tabs.append(check)

        if invalid_tabs:
            raise StructuralValidationError(f"{len(invalid_tabs)} tabs have invalid structure", invalid_tabs)

        self._record("structure_validation", True, "Template structure validation successful", results)

    def _extract_window_id(self, template: Mapping[str, Any]) -> str:
        window_id, method = resolve_window_id(template)
        if window_id is None:
            raise StructuralValidationError("Cannot determine windowId from template")

        self._record("windowid_extraction", True, "WindowId extraction successful", {
            "raw_window_id": template.get("windowId"),
            "raw_id": template.get("id"),
            "template_name": template.get("name"),
            "extracted_window_id": window_id,
            "extraction_method": method
        })
        return window_id

    def _adapt(self, template: Mapping[str, Any], window_id: str) -> WindowDefinition:
        window = self.adapter.adapt(template, resolver=ReferenceResolver(), source="json-import")
        self._record("metadata_adaptation", True, "Schema adaptation successful", {
            "original_window_id": window_id,
            "adapted_window_id": window.id,
            "adapted_tab_count": len(window.tabs)
        })
        return window

    def _store(self, template: Dict[str, Any], window: WindowDefinition):
        self._template = template
        self._imported_at = datetime.now().isoformat()
        self._windows.set(window.id, window)
        self._last_window_id = window.id
        self._record("data_storage", True, "Data storage successful", {
            "stored_window_id": window.id,
            "window_count": len(self._windows),
            "import_timestamp": self._imported_at
        })

    def _extract_references(self, template: Mapping[str, Any]):
        extracted = []
        skipped = 0
        for tab in template["tabs"]:
            for external_field in tab["fields"]:
                reference = external_field.get("reference") if isinstance(external_field, Mapping) else None
                if not isinstance(reference, Mapping) or not isinstance(reference.get("values"), list):
                    skipped += 1
                    continue

                field_id = external_field.get("fieldId") or external_field.get("id")
                reference_id = reference_id_for(field_id, reference)
                self._references[reference_id] = convert_reference_values(reference["values"])
                extracted.append({
                    "reference_id": reference_id,
                    "field_id": field_id,
                    "value_count": len(reference["values"])
                })

        self._record("reference_extraction", True, "Reference data extraction complete", {
            "total_references": len(extracted),
            "extracted_references": extracted,
            "skipped_fields": skipped
        })

    # Diagnostics

    def get_import_diagnostics(self) -> List[ImportDiagnostic]:
        return list(self._diagnostics)

    def get_import_info(self) -> Dict[str, Any]:
        return {
            "template": self._template,
            "timestamp": self._imported_at,
            "window_count": len(self._windows),
            "diagnostics": [d.to_dict() for d in self._diagnostics],
            "last_window_id": self._last_window_id
        }

    def clear_imported_data(self) -> None:
        self._windows.clear()
        self._references.clear()
        self._records.clear()
        self._diagnostics = []
        self._template = None
        self._imported_at = None
        self._last_window_id = None

    # Provider contract

    async def get_window_definition(self, window_id: str) -> WindowDefinition:
        window = self._windows.get(window_id)
        if window is None:
            raise WindowNotFoundError(window_id, self._windows.keys())
        return window

    async def get_available_windows(self) -> List[WindowSummary]:
        return [self._windows.get(key).summary(category="Imported Templates") for key in self._windows.keys()]

    async def get_reference_values(self, reference_id: str) -> List[ReferenceValue]:
        return list(self._references.get(reference_id, []))

    async def save_form_data(self, window_id: str, record: FormDataRecord) -> SaveResult:
        result = self._validate_for_save(self._windows.get(window_id), record)
        if not result.success:
            return result
        return self._store_record(window_id, record, "IMPORT")

    async def get_form_data(self, window_id: str, record_id: Optional[str] = None) -> FormDataRecord:
        return self._load_record(window_id, record_id)

    async def is_connected(self) -> bool:
        return len(self._windows) > 0

    def has_cached_data(self) -> bool:
        return self._windows.has_valid_entries()

    def get_status(self) -> Dict[str, Any]:
        status = super().get_status()
        status.update({
            "window_count": len(self._windows),
            "reference_count": len(self._references),
            "imported_at": self._imported_at,
            "last_window_id": self._last_window_id
        })
        return status
