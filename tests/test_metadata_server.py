"""
Tests for the development metadata server endpoints.
"""

import json

import pytest
from fastapi.testclient import TestClient

from adui.api.main import MetadataStore, app, store
from adui.api.templates import load_templates_dir


@pytest.fixture
def client():
    return TestClient(app)


class TestEndpoints:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["window_count"] == len(store.windows)

    def test_list_windows(self, client):
        body = client.get("/windows").json()

        ids = [w["id"] for w in body["windows"]]
        assert "EQUIP_INSPECTION" in ids
        assert "PROJECT_TRACKER" in ids
        assert body["count"] == len(ids)
        assert body["windows"][0]["isAvailable"] is True

    def test_get_window_external_shape(self, client):
        body = client.get("/windows/PROJECT_TRACKER").json()

        assert body["windowId"] == "PROJECT_TRACKER"
        assert body["tabs"][0]["fields"][0]["component"] == "TaskListField"

    def test_unknown_window_404(self, client):
        assert client.get("/windows/NOPE").status_code == 404

    def test_reference(self, client):
        body = client.get("/references/RISK_LEVELS").json()

        assert body["id"] == "RISK_LEVELS"
        assert body["values"][0] == {
            "key": "LOW", "display": "Low Risk", "description": None,
            "color": None, "icon": None, "sortOrder": 1
        }

    def test_unknown_reference_404(self, client):
        assert client.get("/references/NOPE").status_code == 404


class TestTemplatesDirectory:

    def test_load_templates_dir(self, tmp_path):
        (tmp_path / "audit.json").write_text(json.dumps({"name": "Fire Audit", "tabs": []}), encoding="utf-8")
        (tmp_path / "broken.json").write_text("{", encoding="utf-8")
        (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

        templates = load_templates_dir(str(tmp_path))

        assert list(templates.keys()) == ["FIRE_AUDIT"]

    def test_store_includes_directory_templates(self, tmp_path):
        (tmp_path / "audit.json").write_text(json.dumps({"windowId": "FIRE", "name": "Fire"}), encoding="utf-8")

        custom = MetadataStore.from_config(str(tmp_path))

        assert "FIRE" in custom.windows
        assert "EQUIP_INSPECTION" in custom.windows
