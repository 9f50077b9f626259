"""Tests for the httpx API client and its URL-keyed cache."""

import pytest

from moody.blog.client import BlogApiError
from moody.blog.schemas import BlogCreate, BlogStatus


def test_save_draft_then_update(api):
    created = api.save_draft(title="A", content="B")
    assert created.id == 1
    assert created.status == "draft"

    updated = api.save_draft(blog_id=created.id, title="A2")
    assert updated.id == created.id
    assert updated.title == "A2"
    assert updated.content == "B"


def test_publish(api):
    blog = api.publish("Title", "Body", tags="a, b")
    assert blog.status == "published"
    assert blog.tags == "a, b"


def test_get_responses_are_cached(api, storage):
    assert api.list_blogs() == []

    # Written behind the client's back: the cached list is still served
    storage.create_blog(BlogCreate(title="sneaky"))
    assert api.list_blogs() == []

    api.invalidate()
    assert [b.title for b in api.list_blogs()] == ["sneaky"]


def test_writes_invalidate_cache(api):
    api.save_draft(title="first")
    assert len(api.list_blogs()) == 1
    assert len(api.list_blogs(BlogStatus.DRAFT)) == 1
    assert api.get_blog(1).title == "first"

    api.save_draft(blog_id=1, title="renamed")
    api.publish("second", "content")

    assert [b.title for b in api.list_blogs()] == ["second", "renamed"]
    assert [b.title for b in api.list_blogs(BlogStatus.DRAFT)] == ["renamed"]
    assert api.get_blog(1).title == "renamed"


def test_delete(api):
    blog = api.save_draft(title="short-lived")
    api.list_blogs()

    assert api.delete_blog(blog.id) == "Blog deleted successfully"
    assert api.list_blogs() == []


def test_not_found_raises(api):
    with pytest.raises(BlogApiError) as excinfo:
        api.get_blog(404)
    assert excinfo.value.status_code == 404
    assert excinfo.value.message == "Blog not found"


def test_validation_error_carries_field_errors(api):
    with pytest.raises(BlogApiError) as excinfo:
        api.publish("", "content")
    error = excinfo.value
    assert error.status_code == 400
    assert error.message == "Invalid blog data"
    assert error.errors[0]["loc"] == ["body", "title"]


def test_failed_write_keeps_cache(api, storage):
    api.save_draft(title="kept")
    cached = api.list_blogs()

    with pytest.raises(BlogApiError):
        api.delete_blog(99)
    assert api.list_blogs() == cached


def test_health(api):
    assert api.health()["status"] == "ok"
