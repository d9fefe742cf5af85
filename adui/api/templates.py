"""
Bundled sample templates in the external window shape, served by the
development metadata server and used as import fixtures.
"""

import copy
import json
from pathlib import Path
from typing import Any, Dict, List

from ..core.adapter import resolve_window_id
from ..util.logging import logger

SAMPLE_REFERENCES: Dict[str, Dict[str, Any]] = {
    "CONDITION_LIST": {
        "id": "CONDITION_LIST",
        "name": "Equipment Condition",
        "values": [
            {"key": "EXCELLENT", "display": "Excellent", "color": "#38A169"},
            {"key": "GOOD", "display": "Good", "color": "#3182CE"},
            {"key": "FAIR", "display": "Fair", "color": "#ED8936"},
            {"key": "POOR", "display": "Poor", "color": "#E53E3E"},
        ],
    },
    "RISK_LEVELS": {
        "id": "RISK_LEVELS",
        "name": "Risk Assessment",
        "values": [
            {"key": "LOW", "display": "Low Risk", "sortOrder": 1},
            {"key": "MEDIUM", "display": "Medium Risk", "sortOrder": 2},
            {"key": "HIGH", "display": "High Risk", "sortOrder": 3},
            {"key": "CRITICAL", "display": "Critical Risk", "sortOrder": 4},
        ],
    },
}

SAMPLE_WINDOWS: Dict[str, Dict[str, Any]] = {
    "EQUIP_INSPECTION": {
        "windowId": "EQUIP_INSPECTION",
        "name": "Equipment Inspection",
        "description": "Equipment inspection served by the metadata server",
        "tabs": [
            {
                "tabId": "TAB_GENERAL",
                "name": "General",
                "fields": [
                    {
                        "fieldId": "ASSET_ID",
                        "name": "Asset ID",
                        "component": "QRCodeField",
                        "validation": {"required": True, "maxLength": 50},
                        "ui": {"helpText": "Scan QR code on equipment"},
                    },
                    {
                        "fieldId": "CONDITION",
                        "name": "Condition",
                        "component": "SelectField",
                        "validation": {"required": True},
                        "reference": {"id": "CONDITION_LIST", "name": "Equipment Condition"},
                    },
                    {
                        "fieldId": "PRIORITY",
                        "name": "Priority",
                        "component": "SelectField",
                        "reference": {
                            "name": "Priority",
                            "values": [
                                {"key": "P1", "display": "Urgent"},
                                {"key": "P2", "display": "Normal"},
                                {"key": "P3", "display": "Low"},
                            ],
                        },
                    },
                    {
                        "fieldId": "NOTES",
                        "name": "Inspection Notes",
                        "component": "TextAreaField",
                        "validation": {"maxLength": 2000},
                    },
                ],
            },
            {
                "tabId": "TAB_EVIDENCE",
                "name": "Evidence",
                "fields": [
                    {
                        "fieldId": "SITE_PHOTOS",
                        "name": "Site Photos",
                        "component": "MultiPhotoField",
                        "data": {"maxPhotos": 8},
                    },
                    {
                        "fieldId": "PART_CODES",
                        "name": "Replaced Parts",
                        "component": "QRCollectorField",
                        "data": {"allowDuplicates": True},
                    },
                ],
            },
        ],
        "metadata": {"version": "1.3.0", "source": "external-metadata-server"},
    },
    "PROJECT_TRACKER": {
        "windowId": "PROJECT_TRACKER",
        "name": "Project Tracker",
        "description": "Task board with a scan-to-verify checklist",
        "tabs": [
            {
                "tabId": "TAB_TASKS",
                "name": "Tasks",
                "fields": [
                    {
                        "fieldId": "PROJECT_TASKS",
                        "name": "Project Tasks",
                        "component": "TaskListField",
                        "data": {
                            "tasks": [
                                {"id": "T1", "title": "Survey site", "status": "completed", "priority": "high"},
                                {"id": "T2", "title": "Install racks", "status": "in_progress", "priority": "normal"},
                            ],
                            "relationships": [{"from": "T1", "to": "T2", "type": "blocks"}],
                        },
                        "ui": {"allowZoomGraph": True},
                    },
                    {
                        "fieldId": "HANDOVER_CHECKLIST",
                        "name": "Handover Checklist",
                        "component": "QRChecklistField",
                        "data": {
                            "items": [
                                {"id": "KEYS", "label": "Site keys", "expectedCode": "KEY-001"},
                                {"id": "DOCS", "label": "As-built docs", "expectedCode": "DOC-001"},
                            ]
                        },
                    },
                    {
                        "fieldId": "RISK",
                        "name": "Risk Level",
                        "component": "SelectField",
                        "reference": {"id": "RISK_LEVELS"},
                    },
                ],
            }
        ],
    },
}


def load_templates_dir(directory: str) -> Dict[str, Dict[str, Any]]:
    """
    Read every *.json window document in a directory, keyed by resolved window id.
    Unreadable or id-less files are skipped with a warning.
    """
    templates = {}
    for path in sorted(Path(directory).glob("*.json")):
        try:
            document = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Skipping template {path.name}: {e}")
            continue

        window_id, _ = resolve_window_id(document) if isinstance(document, dict) else (None, None)
        if window_id is None:
            logger.warning(f"Skipping template {path.name}: no windowId, id or name")
            continue
        templates[window_id] = document

    logger.info(f"Loaded {len(templates)} templates from {directory}")
    return templates


def sample_windows() -> Dict[str, Dict[str, Any]]:
    return copy.deepcopy(SAMPLE_WINDOWS)


def sample_references() -> Dict[str, Dict[str, Any]]:
    return copy.deepcopy(SAMPLE_REFERENCES)


def window_summaries(windows: Dict[str, Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [
        {
            "id": window_id,
            "name": document.get("name", window_id),
            "description": document.get("description"),
            "category": document.get("category", "General"),
        }
        for window_id, document in windows.items()
    ]
