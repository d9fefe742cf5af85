"""
Shared fixtures: a controllable clock and representative external window documents.
"""

import copy

import pytest


class FakeClock:
    """Monotonic clock stand-in advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


EXTERNAL_WINDOW = {
    "windowId": "SITE_CHECK",
    "name": "Site Check",
    "description": "Daily site walk",
    "tabs": [
        {
            "tabId": "TAB_MAIN",
            "name": "Main",
            "fields": [
                {
                    "fieldId": "INSPECTOR",
                    "name": "Inspector",
                    "component": "TextField",
                    "validation": {"required": True, "maxLength": 40},
                    "ui": {"helpText": "Your full name"},
                },
                {
                    "fieldId": "SHIFT",
                    "name": "Shift",
                    "component": "SelectField",
                    "reference": {
                        "name": "Shift",
                        "values": [
                            {"key": "AM", "display": "Morning"},
                            {"key": "PM", "display": "Afternoon", "color": "#ED8936"},
                        ],
                    },
                },
                {
                    "fieldId": "AREA",
                    "name": "Area",
                    "component": "SelectField",
                    "reference": {"id": "AREA_LIST", "name": "Areas"},
                },
            ],
        },
        {
            "tabId": "TAB_MEDIA",
            "name": "Media",
            "fields": [
                {"fieldId": "PHOTOS", "name": "Photos", "component": "MultiPhotoField"},
                {"fieldId": "SCANS", "name": "Scans", "component": "QRCollectorField", "data": {"maxCodes": 3}},
            ],
        },
    ],
}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def external_window():
    """A fresh copy of an external-shape window document."""
    return copy.deepcopy(EXTERNAL_WINDOW)
