"""Smoke tests for API routes."""

import json
from unittest.mock import MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from conftest import FakeGenerator, question_set_json
from study_command_center.api.routes import router
from study_command_center.generation.client import CONNECTION_FAILED
from study_command_center.planning.schedule import PLAN_FAILED
from study_command_center.storage import vocab_history
from study_command_center.storage.documents import DocumentStore

PLAN = [{"title": "Quant", "duration_min": 90, "type": "Deep Work"}]


@pytest.fixture
def mock_settings():
    settings = MagicMock()
    settings.app_secret = None
    settings.default_discipline_score = 85
    settings.default_weak_subjects = ["Quant Geometry", "English Vocab"]
    settings.target_hours = 7
    settings.recent_sessions_limit = 10
    settings.mock_test_question_count = 2
    settings.mock_test_duration_seconds = 600
    settings.material_content_limit = 20000
    settings.vocab_batch_size = 20
    return settings


@pytest.fixture
def generator_holder():
    return {"generator": FakeGenerator(json.dumps(PLAN))}


@pytest.fixture
def client(mock_settings, generator_holder, tmp_path, monkeypatch):
    monkeypatch.setattr(
        vocab_history, "get_history_path", lambda user_id: tmp_path / f"vocab_{user_id}.json"
    )
    store = DocumentStore(tmp_path / "store")
    app = FastAPI()
    app.include_router(router)
    with (
        patch("study_command_center.api.routes.get_settings", return_value=mock_settings),
        patch("study_command_center.api.routes.get_store", return_value=store),
        patch(
            "study_command_center.api.routes.get_generator",
            side_effect=lambda: generator_holder["generator"],
        ),
    ):
        with TestClient(app) as c:
            yield c


class TestHealthCheck:
    def test_health_returns_ok(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestProfile:
    def test_profile_created_on_first_access(self, client):
        data = client.get("/api/users/alice/profile").json()
        assert data["profile"]["discipline_score"] == 85
        assert data["profile"]["weak_subjects"] == ["Quant Geometry", "English Vocab"]
        assert data["stats"]["discipline_target"] == 95

    def test_invalid_user_id(self, client):
        assert client.get("/api/users/bad$id/profile").status_code == 400

    def test_update_weak_subjects(self, client):
        response = client.put("/api/users/alice/profile/weak-subjects", json={"subjects": ["Polity"]})
        assert response.status_code == 200
        assert response.json()["weak_subjects"] == ["Polity"]


class TestSchedule:
    def test_missing_schedule_is_404(self, client):
        assert client.get("/api/users/alice/schedule").status_code == 404

    def test_generate_then_read(self, client, generator_holder):
        response = client.post("/api/users/alice/schedule/generate")
        assert response.status_code == 200
        assert response.json()["target_minutes"] == 90
        assert "Quant Geometry, English Vocab" in generator_holder["generator"].calls[0][1]

        today = client.get("/api/users/alice/schedule").json()
        assert today["blocks"][0]["status"] == "pending"
        assert today["progress_percent"] == 0

    def test_generation_failure_is_502(self, client, generator_holder):
        generator_holder["generator"] = FakeGenerator(CONNECTION_FAILED)
        response = client.post("/api/users/alice/schedule/generate", json={"weak_areas": ["GA"]})
        assert response.status_code == 502
        assert response.json()["detail"] == PLAN_FAILED


class TestMaterials:
    def test_create_validates(self, client):
        response = client.post("/api/users/alice/materials", json={"title": "", "content": "x"})
        assert response.status_code == 400

    def test_create_list_and_test(self, client, generator_holder):
        created = client.post("/api/users/alice/materials", json={"title": "Geometry", "content": "Triangles"})
        assert created.status_code == 201
        material_id = created.json()["id"]
        assert [m["title"] for m in client.get("/api/users/alice/materials").json()] == ["Geometry"]

        generator_holder["generator"] = FakeGenerator(question_set_json(2))
        test = client.post(f"/api/users/alice/materials/{material_id}/test").json()
        assert test["title"] == "Mock Test: Geometry"
        assert test["questions"][1]["correctIndex"] == 1

    def test_file_material(self, client):
        response = client.post("/api/users/alice/materials/file", json={"filename": "Notes.pdf"})
        assert response.status_code == 201
        assert response.json()["type"] == "pdf"

    def test_missing_material_test_is_404(self, client):
        assert client.post("/api/users/alice/materials/nope/test").status_code == 404


class TestHistory:
    def test_sessions_empty(self, client):
        assert client.get("/api/users/alice/sessions").json() == []

    def test_delete_missing_session(self, client):
        assert client.delete("/api/users/alice/sessions/nope").status_code == 404

    def test_rewatch_missing(self, client):
        assert client.get("/api/users/alice/sessions/nope/rewatch").status_code == 404

    def test_results_empty(self, client):
        assert client.get("/api/users/alice/test-results").json() == []


class TestVocab:
    def test_fetch_and_list(self, client, generator_holder):
        generator_holder["generator"] = FakeGenerator(json.dumps([{"word": "Zeal", "meaning": "Energy"}]))
        assert client.post("/api/users/alice/vocab/fetch").status_code == 200
        assert [w["word"] for w in client.get("/api/users/alice/vocab").json()] == ["Zeal"]

    def test_test_without_history_is_400(self, client):
        assert client.post("/api/users/alice/vocab/test").status_code == 400


class TestMisc:
    def test_analysis(self, client, generator_holder):
        generator_holder["generator"] = FakeGenerator("Stop slacking.")
        assert client.post("/api/users/alice/analysis").json() == {"analysis": "Stop slacking."}

    def test_quote(self, client):
        data = client.get("/api/quote", params={"language": "hi"}).json()
        assert data["language"] == "hi"
        assert client.get("/api/quote", params={"language": "xx"}).status_code == 400

    def test_video_id(self, client):
        data = client.get("/api/video-id", params={"url": "https://youtu.be/dQw4w9WgXcQ"}).json()
        assert data["video_id"] == "dQw4w9WgXcQ"
        assert client.get("/api/video-id", params={"url": "https://vimeo.com/1"}).status_code == 400

    def test_notification_preview(self, client):
        response = client.post("/api/notifications/preview", json={"title": "Hi"})
        assert response.json() == {"title": "Hi", "body": "", "icon": "/vite.svg"}
        assert client.post("/api/notifications/preview", json={}).status_code == 400
