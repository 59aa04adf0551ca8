# tests/test_api.py
# Tests for the HTTP API over a media session

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from api import create_app
from config.settings import AppSettings, CacheSettings
from core.cache.memory_cache import MemoryEmbeddingCache
from core.embedders import EmbeddingEngine, PixelStatsEmbedder
from core.session import MediaSession


@pytest.fixture
def loaded_session(media_folder: Path) -> MediaSession:
    session = MediaSession(
        AppSettings(cache=CacheSettings(enabled=False)),
        cache=MemoryEmbeddingCache(),
        engine=EmbeddingEngine(PixelStatsEmbedder(dim=64)),
    )
    session.load_folder(media_folder)
    yield session
    session.close()


@pytest.fixture
def client(loaded_session: MediaSession) -> TestClient:
    return TestClient(create_app(loaded_session))


class TestApi:

    def test_health_before_indexing(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "ai_enabled": True, "items": 6, "indexed": 0}

    def test_index_reports_progress_and_errors(self, client: TestClient):
        response = client.post("/index")
        assert response.status_code == 200
        payload = response.json()
        assert payload["progress"] == {"total": 6, "processed": 6, "succeeded": 5, "failed": 1}
        assert payload["indexed"] == 5
        assert payload["ai_disabled"] is False
        assert [error["path"] for error in payload["errors"]] == ["holiday/broken.jpg"]
        assert client.get("/health").json()["indexed"] == 5

    def test_similar(self, client: TestClient):
        client.post("/index")
        response = client.get("/similar", params={"path": "holiday/red_0.png", "k": 2})
        assert response.status_code == 200
        results = response.json()["results"]
        assert results[0]["path"] == "holiday/red_0.png"
        assert {result["path"] for result in results[1:]} == {"holiday/red_1.png", "holiday/red_2.png"}

    def test_similar_before_indexing_is_unavailable(self, client: TestClient):
        response = client.get("/similar", params={"path": "holiday/red_0.png"})
        assert response.status_code == 503

    def test_similar_unknown_path(self, client: TestClient):
        client.post("/index")
        response = client.get("/similar", params={"path": "holiday/nope.png"})
        assert response.status_code == 404

    def test_clusters(self, client: TestClient):
        client.post("/index")
        response = client.get("/clusters", params={"seed": 1})
        assert response.status_code == 200
        clusters = response.json()["clusters"]
        assert sum(cluster["size"] for cluster in clusters) == 5
        for cluster in clusters:
            assert cluster["representative"] in cluster["members"]

    def test_ai_disabled(self, media_folder: Path):
        session = MediaSession(
            AppSettings(ai_enabled=False),
            cache=MemoryEmbeddingCache(),
            engine=EmbeddingEngine(PixelStatsEmbedder(dim=16)),
        )
        session.load_folder(media_folder)
        client = TestClient(create_app(session))

        assert client.post("/index").status_code == 503
        assert client.get("/clusters").status_code == 503
        assert client.get("/health").json()["ai_enabled"] is False
