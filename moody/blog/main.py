"""
Blog API

Draft/publish CRUD over blog posts for the Moody editor.
"""
import logging
import re

from fastapi import FastAPI, APIRouter, Depends, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from moody.blog.schemas import (
    BlogCreate,
    BlogDraft,
    BlogPublish,
    BlogResponse,
    BlogStatus,
    BlogUpdate,
    MessageResponse,
)
from moody.blog.storage import BlogStorage, DatabaseStorage, get_storage
from moody.shared.cors import setup_cors
from moody.shared.database import check_db_connection
from moody.shared.errors import error_response, log_and_sanitize_error
from moody.shared.headers import setup_cache_control, setup_nosniff_header

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)

VALID_STATUSES = {s.value for s in BlogStatus}
BLOG_ID_PATTERN = re.compile(r"[0-9]+")
# Largest id an INTEGER primary key can hold
MAX_BLOG_ID = 2**63 - 1

app = FastAPI(
    title="Moody Blog API",
    version="1.0.0",
    description="Draft, publish and manage blog posts",
    docs_url="/api/docs",
    openapi_url="/api/openapi.json",
)

setup_cors(app)
setup_nosniff_header(app)
setup_cache_control(app)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(error["loc"]), "msg": error["msg"], "type": error["type"]}
        for error in exc.errors()
    ]
    return error_response(
        message="Invalid blog data",
        category="validation",
        status_code=status.HTTP_400_BAD_REQUEST,
        errors=errors,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    message = (
        detail.get("message") if isinstance(detail, dict) else str(detail)
    ) or "Request failed."

    if exc.status_code == status.HTTP_404_NOT_FOUND:
        category = "not_found"
    elif exc.status_code >= 500:
        category = "server_error"
    else:
        category = "client_error"

    return error_response(message=message, category=category, status_code=exc.status_code)


@app.exception_handler(Exception)
async def unexpected_exception_handler(request: Request, exc: Exception):
    logger.exception("Unexpected error on %s", request.url.path, exc_info=exc)
    return error_response(
        message="An unexpected server error occurred. Please try again later.",
        category="server_error",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def parse_blog_id(raw: str) -> int:
    """
    Path ids must be plain decimal digits.

    Ids past the storage range cannot exist, so they are reported as not found.
    """
    if not BLOG_ID_PATTERN.fullmatch(raw):
        raise HTTPException(status_code=400, detail="Invalid blog ID")
    blog_id = int(raw)
    if blog_id > MAX_BLOG_ID:
        raise HTTPException(status_code=404, detail="Blog not found")
    return blog_id


def server_error(error: Exception, context: str, user_message: str) -> HTTPException:
    sanitized_msg, _ = log_and_sanitize_error(error, context, user_message)
    return HTTPException(status_code=500, detail=sanitized_msg)


@app.get("/api/health")
def health(storage: BlogStorage = Depends(get_storage)):
    """Health check endpoint."""
    body = {"status": "ok", "service": "blog", "storage": storage.describe()}
    if isinstance(storage, DatabaseStorage):
        db_connected = check_db_connection(storage.engine)
        body["status"] = "ok" if db_connected else "degraded"
        body["database"] = "connected" if db_connected else "disconnected"
    return body


router = APIRouter(prefix="/api/blogs", tags=["blogs"])


@router.get("", response_model=list[BlogResponse])
def list_blogs(storage: BlogStorage = Depends(get_storage)):
    """All blogs, most recently updated first."""
    try:
        return storage.get_all_blogs()
    except Exception as e:
        raise server_error(e, "List blogs", "Failed to fetch blogs")


@router.get("/status/{blog_status}", response_model=list[BlogResponse])
def list_blogs_by_status(blog_status: str, storage: BlogStorage = Depends(get_storage)):
    """Blogs with the given status ("draft" or "published")."""
    if blog_status not in VALID_STATUSES:
        raise HTTPException(
            status_code=400,
            detail="Invalid status. Must be 'draft' or 'published'",
        )
    try:
        return storage.get_blogs_by_status(BlogStatus(blog_status))
    except Exception as e:
        raise server_error(e, "List blogs by status", "Failed to fetch blogs")


@router.get("/{blog_id}", response_model=BlogResponse)
def get_blog(blog_id: str, storage: BlogStorage = Depends(get_storage)):
    """Get a single blog by id."""
    parsed_id = parse_blog_id(blog_id)
    try:
        blog = storage.get_blog(parsed_id)
    except Exception as e:
        raise server_error(e, "Get blog", "Failed to fetch blog")
    if blog is None:
        raise HTTPException(status_code=404, detail="Blog not found")
    return blog


@router.post("/save-draft", response_model=BlogResponse)
def save_draft(payload: BlogDraft, storage: BlogStorage = Depends(get_storage)):
    """
    Create or update a draft.

    With an id, only the fields present in the body are changed.
    The stored status always ends up "draft".
    """
    fields = payload.model_dump(exclude_unset=True, exclude={"id"})
    try:
        if payload.id:
            blog = storage.update_blog(
                payload.id, BlogUpdate(**fields, status=BlogStatus.DRAFT)
            )
        else:
            blog = storage.create_blog(BlogCreate(**fields, status=BlogStatus.DRAFT))
    except Exception as e:
        raise server_error(e, "Save draft", "Failed to save draft")
    if blog is None:
        raise HTTPException(status_code=404, detail="Blog not found")
    return blog


@router.post("/publish", response_model=BlogResponse)
def publish_blog(payload: BlogPublish, storage: BlogStorage = Depends(get_storage)):
    """Create or update a blog and mark it published."""
    fields = payload.model_dump(exclude_unset=True, exclude={"id"})
    try:
        if payload.id:
            blog = storage.update_blog(
                payload.id, BlogUpdate(**fields, status=BlogStatus.PUBLISHED)
            )
        else:
            blog = storage.create_blog(BlogCreate(**fields, status=BlogStatus.PUBLISHED))
    except Exception as e:
        raise server_error(e, "Publish blog", "Failed to publish blog")
    if blog is None:
        raise HTTPException(status_code=404, detail="Blog not found")
    return blog


@router.delete("/{blog_id}", response_model=MessageResponse)
def delete_blog(blog_id: str, storage: BlogStorage = Depends(get_storage)):
    """Delete a blog."""
    parsed_id = parse_blog_id(blog_id)
    try:
        deleted = storage.delete_blog(parsed_id)
    except Exception as e:
        raise server_error(e, "Delete blog", "Failed to delete blog")
    if not deleted:
        raise HTTPException(status_code=404, detail="Blog not found")
    return {"message": "Blog deleted successfully"}


app.include_router(router)
