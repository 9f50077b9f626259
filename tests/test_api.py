"""HTTP tests for the blog API."""

import pytest
from sqlalchemy.pool import StaticPool

from moody.blog.main import app
from moody.blog.schemas import BlogResponse
from moody.blog.storage import DatabaseStorage, MemStorage, get_storage
from moody.shared.database import make_engine


def as_blog(body: dict) -> BlogResponse:
    return BlogResponse.model_validate(body)


def save_draft(client, **body):
    return client.post("/api/blogs/save-draft", json=body)


def publish(client, **body):
    return client.post("/api/blogs/publish", json=body)


class TestSaveDraft:
    def test_create_then_update(self, client):
        response = save_draft(client, title="A", content="B")
        assert response.status_code == 200
        first = response.json()
        assert first["id"] == 1
        assert first["title"] == "A"
        assert first["content"] == "B"
        assert first["tags"] is None
        assert first["status"] == "draft"
        assert first["created_at"] == first["updated_at"]

        response = save_draft(client, id=1, title="A2")
        assert response.status_code == 200
        second = response.json()
        assert second["id"] == 1
        assert second["title"] == "A2"
        assert second["content"] == "B"
        assert second["status"] == "draft"
        assert second["created_at"] == first["created_at"]
        assert as_blog(second).updated_at > as_blog(first).updated_at

    def test_status_is_always_draft(self, client):
        response = save_draft(client, title="A", status="published")
        assert response.json()["status"] == "draft"

    def test_moves_published_back_to_draft(self, client):
        blog = publish(client, title="A", content="B").json()
        response = save_draft(client, id=blog["id"], content="C")
        assert response.json()["status"] == "draft"

    def test_without_id_always_creates(self, client, storage):
        save_draft(client, title="A")
        save_draft(client, title="A")
        assert [b.id for b in storage.get_all_blogs()] == [2, 1]

    def test_unknown_id(self, client, storage):
        response = save_draft(client, id=5, title="ghost")
        assert response.status_code == 404
        assert response.json()["message"] == "Blog not found"
        assert storage.get_all_blogs() == []

    def test_wrong_type_is_rejected(self, client, storage):
        response = save_draft(client, title=123)
        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Invalid blog data"
        assert body["errors"][0]["loc"] == ["body", "title"]
        assert storage.get_all_blogs() == []

    def test_null_title_is_rejected(self, client):
        response = save_draft(client, title=None, content="x")
        assert response.status_code == 400

    def test_tags(self, client):
        response = save_draft(client, title="A", tags="python, web")
        assert response.json()["tags"] == "python, web"


class TestPublish:
    def test_create(self, client):
        response = publish(client, title="Hello", content="World", tags="x")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "published"
        assert body["tags"] == "x"

    def test_publish_existing_draft(self, client):
        draft = save_draft(client, title="A", content="B", tags="t").json()
        response = publish(client, id=draft["id"], title="A", content="B final")
        body = response.json()
        assert body["id"] == draft["id"]
        assert body["status"] == "published"
        assert body["content"] == "B final"
        assert body["tags"] == "t"

    @pytest.mark.parametrize(
        "body",
        [
            {"title": "", "content": "B"},
            {"title": "A", "content": ""},
            {"content": "B"},
            {"title": "A"},
        ],
    )
    def test_requires_title_and_content(self, client, storage, body):
        response = publish(client, **body)
        assert response.status_code == 400
        assert response.json()["category"] == "validation"
        assert storage.get_all_blogs() == []

    def test_rejected_publish_does_not_touch_existing(self, client, storage):
        draft = save_draft(client, title="A", content="B").json()
        response = publish(client, id=draft["id"], title="", content="B")
        assert response.status_code == 400
        stored = storage.get_blog(draft["id"])
        assert stored.status == "draft"
        assert stored.updated_at == as_blog(draft).updated_at
        assert stored.title == "A"

    def test_unknown_id(self, client):
        response = publish(client, id=9, title="A", content="B")
        assert response.status_code == 404


class TestRead:
    def test_list_sorted_by_last_update(self, client):
        save_draft(client, title="one")
        save_draft(client, title="two")
        save_draft(client, id=1, content="edited")

        titles = [b["title"] for b in client.get("/api/blogs").json()]
        assert titles == ["one", "two"]

    def test_list_empty(self, client):
        response = client.get("/api/blogs")
        assert response.status_code == 200
        assert response.json() == []

    def test_by_status(self, client):
        save_draft(client, title="draft")
        publish(client, title="live", content="c")

        drafts = client.get("/api/blogs/status/draft").json()
        published = client.get("/api/blogs/status/published").json()
        assert [b["title"] for b in drafts] == ["draft"]
        assert [b["title"] for b in published] == ["live"]

    def test_invalid_status(self, client):
        response = client.get("/api/blogs/status/archived")
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid status. Must be 'draft' or 'published'"

    def test_get_one(self, client):
        save_draft(client, title="A")
        response = client.get("/api/blogs/1")
        assert response.status_code == 200
        assert response.json()["title"] == "A"

    def test_get_missing(self, client):
        response = client.get("/api/blogs/3")
        assert response.status_code == 404
        assert response.json()["category"] == "not_found"

    def test_get_non_numeric_id(self, client):
        response = client.get("/api/blogs/abc")
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid blog ID"


class TestDelete:
    def test_delete(self, client, storage):
        save_draft(client, title="A")
        response = client.delete("/api/blogs/1")
        assert response.status_code == 200
        assert response.json() == {"message": "Blog deleted successfully"}
        assert storage.get_blog(1) is None

    def test_delete_missing_leaves_store_unchanged(self, client, storage):
        save_draft(client, title="A")
        before = storage.get_all_blogs()

        response = client.delete("/api/blogs/2")
        assert response.status_code == 404
        assert storage.get_all_blogs() == before

    def test_delete_non_numeric_id(self, client):
        response = client.delete("/api/blogs/one")
        assert response.status_code == 400


class BrokenStorage(MemStorage):
    def get_all_blogs(self):
        raise RuntimeError("disk on fire")

    def create_blog(self, data):
        raise RuntimeError("disk on fire")


class TestServerErrors:
    @pytest.fixture
    def broken_client(self, client):
        app.dependency_overrides[get_storage] = lambda: BrokenStorage()
        return client

    def test_list_failure_is_generic(self, broken_client):
        response = broken_client.get("/api/blogs")
        assert response.status_code == 500
        body = response.json()
        assert body["message"].startswith("Failed to fetch blogs")
        assert "disk on fire" not in body["message"]
        assert body["category"] == "server_error"

    def test_save_failure(self, broken_client):
        response = save_draft(broken_client, title="A")
        assert response.status_code == 500
        assert response.json()["message"].startswith("Failed to save draft")


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "blog", "storage": "memory"}


def test_response_headers(client):
    response = client.get("/api/blogs")
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "no-store" in response.headers["Cache-Control"]


class TestPathIds:
    @pytest.mark.parametrize("raw", ["1_0", "%201", "1%20", "-1", "1.0", "+1"])
    def test_only_plain_digits(self, client, storage, raw):
        save_draft(client, title="A")
        save_draft(client, title="B")

        assert client.get(f"/api/blogs/{raw}").status_code == 400
        response = client.delete(f"/api/blogs/{raw}")
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid blog ID"
        assert len(storage.get_all_blogs()) == 2

    def test_leading_zeros_are_fine(self, client):
        save_draft(client, title="A")
        assert client.get("/api/blogs/001").json()["id"] == 1

    @pytest.fixture
    def db_client(self, client):
        engine = make_engine("sqlite://", poolclass=StaticPool)
        db_storage = DatabaseStorage(bind=engine)
        app.dependency_overrides[get_storage] = lambda: db_storage
        return client

    @pytest.mark.parametrize("raw", [str(2**63), "9" * 30])
    def test_out_of_range_id_is_not_found(self, db_client, raw):
        response = db_client.get(f"/api/blogs/{raw}")
        assert response.status_code == 404
        assert response.json()["message"] == "Blog not found"

        assert db_client.delete(f"/api/blogs/{raw}").status_code == 404

    def test_largest_id_is_looked_up(self, db_client):
        assert db_client.get(f"/api/blogs/{2**63 - 1}").status_code == 404
