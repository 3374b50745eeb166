from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from menuvision.app.deps import (
    CurrentUser,
    get_current_user,
    get_ingestion_service,
    get_photo_classifier,
    get_photo_repository,
    get_pipeline_queue,
    get_source_lifecycle,
    get_storage,
)
from menuvision.app.domain.errors import StorageError
from menuvision.app.infra.storage.base import StorageProvider
from menuvision.app.main import app
from menuvision.app.services.catalog_service import CatalogService
from menuvision.app.services.ingestion_service import MenuIngestionService
from menuvision.services.errors import QueueFullError
from menuvision.services.extractor import MenuExtractor
from tests.unit.fakes import (
    LanguageModelStub,
    MenuItemRepositoryStub,
    MenuSourceRepositoryStub,
    PhotoRepositoryStub,
    RestaurantAccessStub,
)


class RecordingQueue:
    def __init__(self) -> None:
        self.jobs: list[tuple[str, object, tuple]] = []
        self.full = False

    async def submit(self, name: str, func, *args) -> None:
        if self.full:
            raise QueueFullError(f"Background queue is full, could not schedule {name}")
        self.jobs.append((name, func, args))


class LifecycleStub:
    def run(self, source_id: str, restaurant_id: str) -> None:
        pass


class ClassifierStub:
    def classify(self, photo_id: str, restaurant_id: str, image_url: str) -> None:
        pass


class StorageStub(StorageProvider):
    def __init__(self) -> None:
        self.signed: list[tuple[str, int]] = []
        self.fail = False

    def generate_signed_get_url(self, object_key: str, expires_seconds: int = 3600) -> str:
        if self.fail:
            raise StorageError(f"Object not found: {object_key}")
        self.signed.append((object_key, expires_seconds))
        return f"https://storage.example/{object_key}?token=signed"


class RouteHarness:
    def __init__(self, answers=()) -> None:
        self.sources = MenuSourceRepositoryStub()
        self.items = MenuItemRepositoryStub()
        self.llm = LanguageModelStub(answers)
        self.queue = RecordingQueue()
        self.lifecycle = LifecycleStub()
        self.classifier = ClassifierStub()
        self.storage = StorageStub()
        self.photos = PhotoRepositoryStub()
        self.access = RestaurantAccessStub({"manager-1": {"r1"}})
        self.service = MenuIngestionService(
            self.access,
            self.sources,
            CatalogService(self.items),
            MenuExtractor(self.llm),
        )


@pytest.fixture
def harness():
    h = RouteHarness()
    app.dependency_overrides[get_current_user] = lambda: CurrentUser(id="manager-1")
    app.dependency_overrides[get_ingestion_service] = lambda: h.service
    app.dependency_overrides[get_source_lifecycle] = lambda: h.lifecycle
    app.dependency_overrides[get_pipeline_queue] = lambda: h.queue
    app.dependency_overrides[get_photo_classifier] = lambda: h.classifier
    app.dependency_overrides[get_photo_repository] = lambda: h.photos
    app.dependency_overrides[get_storage] = lambda: h.storage
    yield h
    app.dependency_overrides.clear()


@pytest.fixture
def client(harness) -> TestClient:
    return TestClient(app)


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        assert client.get("/health").json() == {"ok": True}


class TestMenuSources:
    def test_register_returns_pending_and_schedules_run(self, client: TestClient, harness: RouteHarness) -> None:
        response = client.post("/menu/sources", json={"restaurant_id": "r1", "url": "https://elsol.example/menu"})

        assert response.status_code == 202
        body = response.json()
        assert body["status"] == "pending"
        assert body["source_type"] == "url"

        name, func, args = harness.queue.jobs[0]
        assert name == f"menu-source:{body['id']}"
        assert func == harness.lifecycle.run
        assert args == (body["id"], "r1")

    def test_register_for_foreign_restaurant_is_forbidden(self, client: TestClient, harness: RouteHarness) -> None:
        response = client.post("/menu/sources", json={"restaurant_id": "r9", "url": "https://elsol.example/menu"})

        assert response.status_code == 403
        assert harness.queue.jobs == []

    def test_access_lookup_outage_is_server_error(self, client: TestClient, harness: RouteHarness) -> None:
        harness.access.fail_lookups = True

        response = client.post("/menu/sources", json={"restaurant_id": "r1", "url": "https://elsol.example/menu"})

        assert response.status_code == 500
        assert harness.sources.sources == {}
        assert harness.queue.jobs == []

    def test_register_bad_url(self, client: TestClient) -> None:
        response = client.post("/menu/sources", json={"restaurant_id": "r1", "url": "not a url"})
        assert response.status_code == 400

    def test_full_queue_is_unavailable(self, client: TestClient, harness: RouteHarness) -> None:
        harness.queue.full = True

        response = client.post("/menu/sources", json={"restaurant_id": "r1", "url": "https://elsol.example/menu"})

        assert response.status_code == 503
        assert len(harness.sources.sources) == 1

    def test_reprocess_without_source(self, client: TestClient) -> None:
        assert client.post("/menu/reprocess", json={"restaurant_id": "r1"}).status_code == 404

    def test_reprocess_schedules_latest(self, client: TestClient, harness: RouteHarness) -> None:
        source = harness.service.register_url_source("manager-1", "r1", "https://elsol.example/menu")

        response = client.post("/menu/reprocess", json={"restaurant_id": "r1"})

        assert response.status_code == 202
        assert harness.queue.jobs[0][2] == (source.id, "r1")

    def test_latest_status(self, client: TestClient, harness: RouteHarness) -> None:
        assert client.get("/menu/sources/latest", params={"restaurant_id": "r1"}).status_code == 404

        harness.service.register_url_source("manager-1", "r1", "https://elsol.example/menu")
        response = client.get("/menu/sources/latest", params={"restaurant_id": "r1"})

        assert response.status_code == 200
        assert response.json()["source_url"] == "https://elsol.example/menu"


class TestParseImage:
    def test_returns_items_and_count(self, client: TestClient, harness: RouteHarness) -> None:
        harness.llm.answers = [json.dumps({"menuItems": [{"name": "Tacos", "price": 3}, {"name": "Flan"}]})]

        response = client.post(
            "/menu/parse-image",
            data={"restaurant_id": "r1"},
            files={"file": ("menu.jpg", b"jpeg-bytes", "image/jpeg")},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 2
        assert body["items"][0] == {"name": "Tacos", "category": None, "description": None, "price": "3"}
        assert harness.items.rows == {}

    def test_extraction_failure_is_unprocessable(self, client: TestClient, harness: RouteHarness) -> None:
        harness.llm.answers = ['{"menuItems": []}']

        response = client.post(
            "/menu/parse-image",
            data={"restaurant_id": "r1"},
            files={"file": ("menu.jpg", b"jpeg-bytes", "image/jpeg")},
        )

        assert response.status_code == 422

    def test_rejects_non_image(self, client: TestClient) -> None:
        response = client.post(
            "/menu/parse-image",
            data={"restaurant_id": "r1"},
            files={"file": ("menu.pdf", b"%PDF", "application/pdf")},
        )
        assert response.status_code == 400


class TestMenuItems:
    def test_save_list_delete(self, client: TestClient) -> None:
        saved = client.post("/menu/items", json={"restaurant_id": "r1", "name": " Tacos ", "price": "$3"})
        assert saved.status_code == 200
        item_id = saved.json()["id"]

        listed = client.get("/menu/items", params={"restaurant_id": "r1"}).json()
        assert [item["name"] for item in listed] == ["Tacos"]

        assert client.delete(f"/menu/items/{item_id}", params={"restaurant_id": "r1"}).status_code == 204
        assert client.delete(f"/menu/items/{item_id}", params={"restaurant_id": "r1"}).status_code == 404

    def test_blank_name_is_bad_request(self, client: TestClient) -> None:
        response = client.post("/menu/items", json={"restaurant_id": "r1", "name": "  "})
        assert response.status_code == 400


class TestClassifyPhoto:
    def test_with_image_url(self, client: TestClient, harness: RouteHarness) -> None:
        response = client.post(
            "/photos/classify",
            json={"photo_id": "p1", "restaurant_id": "r1", "image_url": "https://cdn.example/p1.jpg"},
        )

        assert response.status_code == 202
        assert response.json() == {"photo_id": "p1", "status": "accepted"}
        name, func, args = harness.queue.jobs[0]
        assert name == "photo-classify:p1"
        assert func == harness.classifier.classify
        assert args == ("p1", "r1", "https://cdn.example/p1.jpg")
        assert harness.storage.signed == []

    def test_with_file_path_signs_for_an_hour(self, client: TestClient, harness: RouteHarness) -> None:
        response = client.post(
            "/photos/classify",
            json={"photo_id": "p1", "restaurant_id": "r1", "file_path": "r1/p1.jpg"},
        )

        assert response.status_code == 202
        assert harness.storage.signed == [("r1/p1.jpg", 3600)]
        assert harness.queue.jobs[0][2][2] == "https://storage.example/r1/p1.jpg?token=signed"

    def test_requires_a_location(self, client: TestClient, harness: RouteHarness) -> None:
        response = client.post("/photos/classify", json={"photo_id": "p1", "restaurant_id": "r1"})

        assert response.status_code == 400
        assert harness.queue.jobs == []

    def test_signing_failure_is_bad_gateway(self, client: TestClient, harness: RouteHarness) -> None:
        harness.storage.fail = True

        response = client.post(
            "/photos/classify",
            json={"photo_id": "p1", "restaurant_id": "r1", "file_path": "r1/missing.jpg"},
        )

        assert response.status_code == 502

    def test_photo_from_another_restaurant_is_not_found(self, client: TestClient, harness: RouteHarness) -> None:
        harness.photos.photos = {"photo-of-B": "B"}

        response = client.post(
            "/photos/classify",
            json={"photo_id": "photo-of-B", "restaurant_id": "A", "image_url": "https://cdn.example/b.jpg"},
        )

        assert response.status_code == 404
        assert harness.queue.jobs == []
        assert harness.storage.signed == []

    def test_ownership_lookup_failure_is_server_error(self, client: TestClient, harness: RouteHarness) -> None:
        harness.photos.fail_lookups = True

        response = client.post(
            "/photos/classify",
            json={"photo_id": "p1", "restaurant_id": "r1", "image_url": "https://cdn.example/p1.jpg"},
        )

        assert response.status_code == 500
        assert harness.queue.jobs == []
