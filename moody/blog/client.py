"""
Moody API client

Thin httpx wrapper used by the CLI and the auto-saver. GET responses are
cached by URL until the next successful write.
"""
import logging
import os
from typing import Any, Optional

import httpx

from moody.blog.schemas import BlogResponse, BlogStatus

logger = logging.getLogger(__name__)

DEFAULT_API_URL = os.getenv("MOODY_API_URL", "http://localhost:8000")
BLOGS_PATH = "/api/blogs"


class BlogApiError(Exception):
    """Non-2xx response from the blog API."""

    def __init__(self, status_code: int, message: str, errors: Optional[list] = None):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.errors = errors or []


class BlogClient:
    """
    Client for the blog API.

    Pass `http` to reuse an existing httpx.Client (FastAPI's TestClient
    works too); otherwise one is created for `base_url`.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        http: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ):
        self._owns_http = http is None
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self._cache: dict[str, Any] = {}

    def close(self) -> None:
        if self._owns_http:
            self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # ── transport ─────────────────────────────────────────────────────────

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return
        try:
            body = response.json()
        except ValueError:
            body = {}
        message = body.get("message") if isinstance(body, dict) else None
        errors = body.get("errors") if isinstance(body, dict) else None
        raise BlogApiError(response.status_code, message or response.reason_phrase, errors)

    def _get(self, path: str) -> Any:
        if path in self._cache:
            return self._cache[path]
        response = self.http.get(path)
        self._raise_for_status(response)
        data = response.json()
        self._cache[path] = data
        return data

    def _write(self, method: str, path: str, json: Optional[dict] = None) -> Any:
        response = self.http.request(method, path, json=json)
        self._raise_for_status(response)
        self.invalidate(BLOGS_PATH)
        return response.json()

    def invalidate(self, prefix: str = "") -> None:
        """Drop cached responses whose URL starts with `prefix`."""
        for key in [k for k in self._cache if k.startswith(prefix)]:
            del self._cache[key]

    # ── endpoints ─────────────────────────────────────────────────────────

    def health(self) -> dict:
        response = self.http.get("/api/health")
        self._raise_for_status(response)
        return response.json()

    def list_blogs(self, status: Optional[BlogStatus] = None) -> list[BlogResponse]:
        if status is None:
            path = BLOGS_PATH
        else:
            path = f"{BLOGS_PATH}/status/{BlogStatus(status).value}"
        return [BlogResponse.model_validate(item) for item in self._get(path)]

    def get_blog(self, blog_id: int) -> BlogResponse:
        return BlogResponse.model_validate(self._get(f"{BLOGS_PATH}/{blog_id}"))

    def save_draft(self, blog_id: Optional[int] = None, **fields) -> BlogResponse:
        """Save title/content/tags as a draft. Unset fields are left out of the body."""
        body = {k: v for k, v in fields.items() if v is not None}
        if blog_id:
            body["id"] = blog_id
        data = self._write("POST", f"{BLOGS_PATH}/save-draft", body)
        return BlogResponse.model_validate(data)

    def publish(
        self,
        title: str,
        content: str,
        tags: Optional[str] = None,
        blog_id: Optional[int] = None,
    ) -> BlogResponse:
        body = {"title": title, "content": content}
        if tags is not None:
            body["tags"] = tags
        if blog_id:
            body["id"] = blog_id
        data = self._write("POST", f"{BLOGS_PATH}/publish", body)
        return BlogResponse.model_validate(data)

    def delete_blog(self, blog_id: int) -> str:
        data = self._write("DELETE", f"{BLOGS_PATH}/{blog_id}")
        logger.info(f"Deleted blog {blog_id}")
        return data["message"]
