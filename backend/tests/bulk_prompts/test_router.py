from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.testclient import TestClient

from integrations.bulk_prompts.pipeline import BulkPromptPipeline
from integrations.bulk_prompts.router import get_bulk_prompts_router


class StubStore:
    def __init__(self):
        self.records = {}

    def create(self, record):
        record_id = f"rec-{len(self.records) + 1}"
        self.records[record_id] = dict(record)
        return record_id

    def update(self, record_id, patch):
        self.records[record_id].update(patch)

    def get(self, record_id):
        return self.records.get(record_id)


class StubEnricher:
    async def enrich(self, text, record_id, batch_id):
        return f"https://img.example/{record_id}.png"


class FixedClock:
    def now(self):
        return datetime(2024, 1, 1, tzinfo=timezone.utc)


async def no_sleep(delay):
    return None


def build_client(store: StubStore, enricher=None, admin_user_ids=()) -> TestClient:
    pipeline = BulkPromptPipeline(store=store, enricher=enricher, clock=FixedClock(), sleep=no_sleep)
    app = FastAPI()
    app.include_router(get_bulk_prompts_router(pipeline=pipeline, admin_user_ids=admin_user_ids))
    return TestClient(app)


HEADERS = {"X-User-Id": "user-1"}


def test_create_prompts_from_list():
    store = StubStore()
    client = build_client(store, StubEnricher())

    response = client.post(
        "/bulk-prompts",
        json={
            "prompts": [
                {"title": "A", "content": "c", "tag": "X"},
                {"title": "B", "content": "", "tag": "x"},
            ],
            "autoThumbnail": True,
        },
        headers=HEADERS,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["batchId"].startswith("batch-1704067200000-")
    assert body["summary"] == {"total": 2, "success": 1, "failed": 1, "skipped": 0}
    assert body["results"][0] == {
        "recordId": "rec-1",
        "title": "A",
        "row": 1,
        "imageUrl": "https://img.example/rec-1.png",
    }
    assert body["results"][1]["recordId"] == ""
    assert body["results"][1]["error"] == "Row 2: Missing required fields (content)"
    assert store.records["rec-1"]["authorId"] == "user-1"


def test_create_prompts_from_csv():
    client = build_client(StubStore())

    response = client.post(
        "/bulk-prompts/csv",
        json={"csv": 'title,content,tag\n"Quoted, title","Line 1\nLine 2",misc\n'},
        headers=HEADERS,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["summary"]["success"] == 1
    assert body["results"][0]["title"] == "Quoted, title"
    assert body["results"][0]["row"] == 2


def test_missing_columns_returns_400():
    store = StubStore()
    client = build_client(store)

    response = client.post("/bulk-prompts/csv", json={"csv": "title\nx\n"}, headers=HEADERS)

    assert response.status_code == 400
    assert "content, tag" in response.json()["detail"]
    assert store.records == {}


def test_empty_prompt_list_returns_400():
    client = build_client(StubStore())
    response = client.post("/bulk-prompts", json={"prompts": []}, headers=HEADERS)
    assert response.status_code == 400


def test_missing_user_returns_401():
    client = build_client(StubStore())
    response = client.post("/bulk-prompts", json={"prompts": [{"title": "A", "content": "c", "tag": "x"}]})
    assert response.status_code == 401


def test_thumbnail_endpoint():
    store = StubStore()
    store.records["p1"] = {"authorId": "user-1", "title": "T", "content": "Body"}
    client = build_client(store, StubEnricher())

    response = client.post("/bulk-prompts/p1/thumbnail", headers=HEADERS)

    assert response.status_code == 200
    assert response.json() == {"promptId": "p1", "imageUrl": "https://img.example/p1.png"}
    assert store.records["p1"]["imageUrl"] == "https://img.example/p1.png"


def test_thumbnail_endpoint_errors():
    store = StubStore()
    store.records["p1"] = {"authorId": "owner", "title": "T", "content": "Body"}
    store.records["empty"] = {"authorId": "user-1", "title": "T", "content": ""}
    client = build_client(store, StubEnricher())

    assert client.post("/bulk-prompts/missing/thumbnail", headers=HEADERS).status_code == 404
    assert client.post("/bulk-prompts/p1/thumbnail", headers=HEADERS).status_code == 403
    assert client.post("/bulk-prompts/empty/thumbnail", headers=HEADERS).status_code == 422


def test_admin_header_does_not_grant_access():
    store = StubStore()
    store.records["p1"] = {"authorId": "owner", "title": "T", "content": "Body"}
    client = build_client(store, StubEnricher())

    headers = {**HEADERS, "X-User-Admin": "true"}
    assert client.post("/bulk-prompts/p1/thumbnail", headers=headers).status_code == 403


def test_configured_admin_can_generate_any_thumbnail():
    store = StubStore()
    store.records["p1"] = {"authorId": "owner", "title": "T", "content": "Body"}
    client = build_client(store, StubEnricher(), admin_user_ids=["admin-1"])

    response = client.post("/bulk-prompts/p1/thumbnail", headers={"X-User-Id": "admin-1"})

    assert response.status_code == 200
    assert store.records["p1"]["authorId"] == "owner"


def test_thumbnail_endpoint_without_enricher_returns_500():
    store = StubStore()
    store.records["p1"] = {"authorId": "user-1", "title": "T", "content": "Body"}
    client = build_client(store)

    assert client.post("/bulk-prompts/p1/thumbnail", headers=HEADERS).status_code == 500
