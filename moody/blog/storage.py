"""
Blog storage

BlogStorage is the interface the API talks to. MemStorage keeps everything in
a process-lifetime dict (the default); DatabaseStorage keeps the same contract
on top of SQLAlchemy for deployments that set BLOG_STORAGE=database.
"""
import logging
import os
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from sqlalchemy.orm import Session, sessionmaker

from moody.blog.models import Blog, User
from moody.blog.schemas import (
    BlogCreate,
    BlogResponse,
    BlogStatus,
    BlogUpdate,
    UserCreate,
    UserResponse,
)
from moody.shared.database import Base, engine as default_engine

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def next_timestamp(previous: datetime, clock: Callable[[], datetime] = utcnow) -> datetime:
    """Current time, bumped past `previous` so updated_at always moves forward."""
    now = clock()
    if now <= previous:
        now = previous + timedelta(microseconds=1)
    return now


def _status_value(status) -> str:
    return status.value if isinstance(status, BlogStatus) else status


def _sort_key(blog: BlogResponse):
    return (blog.updated_at, blog.id)


class BlogStorage(ABC):
    """Operations the API needs from a blog store."""

    # Users
    @abstractmethod
    def get_user(self, user_id: int) -> Optional[UserResponse]: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[UserResponse]: ...

    @abstractmethod
    def create_user(self, data: UserCreate) -> UserResponse: ...

    # Blogs
    @abstractmethod
    def get_all_blogs(self) -> list[BlogResponse]:
        """All blogs, most recently updated first."""

    @abstractmethod
    def get_blogs_by_status(self, status: BlogStatus) -> list[BlogResponse]:
        """Blogs with the given status, most recently updated first."""

    @abstractmethod
    def get_blog(self, blog_id: int) -> Optional[BlogResponse]: ...

    @abstractmethod
    def create_blog(self, data: BlogCreate) -> BlogResponse:
        """Insert a new blog with the next id. Both timestamps are set to now."""

    @abstractmethod
    def update_blog(self, blog_id: int, fields: BlogUpdate) -> Optional[BlogResponse]:
        """
        Merge the explicitly set fields of `fields` into the stored blog.

        created_at is left untouched and updated_at is refreshed.
        Returns None if no blog has that id.
        """

    @abstractmethod
    def delete_blog(self, blog_id: int) -> bool:
        """Remove a blog. Returns True if it existed."""

    def describe(self) -> str:
        return type(self).__name__


class MemStorage(BlogStorage):
    """In-memory store. All state is lost when the process exits."""

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self._users: dict[int, UserResponse] = {}
        self._blogs: dict[int, BlogResponse] = {}
        self._user_current_id = 1
        self._blog_current_id = 1
        self._clock = clock
        # Sync endpoints run on a thread pool
        self._lock = threading.Lock()

    def describe(self) -> str:
        return "memory"

    def get_user(self, user_id: int) -> Optional[UserResponse]:
        user = self._users.get(user_id)
        return user.model_copy() if user else None

    def get_user_by_username(self, username: str) -> Optional[UserResponse]:
        for user in self._users.values():
            if user.username == username:
                return user.model_copy()
        return None

    def create_user(self, data: UserCreate) -> UserResponse:
        with self._lock:
            user_id = self._user_current_id
            self._user_current_id += 1
            user = UserResponse(id=user_id, **data.model_dump())
            self._users[user_id] = user
        return user.model_copy()

    def get_all_blogs(self) -> list[BlogResponse]:
        blogs = sorted(self._blogs.values(), key=_sort_key, reverse=True)
        return [blog.model_copy() for blog in blogs]

    def get_blogs_by_status(self, status: BlogStatus) -> list[BlogResponse]:
        wanted = _status_value(status)
        blogs = sorted(
            (blog for blog in self._blogs.values() if blog.status == wanted),
            key=_sort_key,
            reverse=True,
        )
        return [blog.model_copy() for blog in blogs]

    def get_blog(self, blog_id: int) -> Optional[BlogResponse]:
        blog = self._blogs.get(blog_id)
        return blog.model_copy() if blog else None

    def create_blog(self, data: BlogCreate) -> BlogResponse:
        with self._lock:
            blog_id = self._blog_current_id
            self._blog_current_id += 1
            now = self._clock()
            blog = BlogResponse(
                id=blog_id,
                title=data.title,
                content=data.content,
                tags=data.tags,
                status=_status_value(data.status),
                created_at=now,
                updated_at=now,
            )
            self._blogs[blog_id] = blog
        logger.info(f"Created blog {blog_id} ({blog.status})")
        return blog.model_copy()

    def update_blog(self, blog_id: int, fields: BlogUpdate) -> Optional[BlogResponse]:
        changes = fields.model_dump(exclude_unset=True)
        if "status" in changes:
            changes["status"] = _status_value(changes["status"])

        with self._lock:
            existing = self._blogs.get(blog_id)
            if existing is None:
                return None
            changes["updated_at"] = next_timestamp(existing.updated_at, self._clock)
            updated = existing.model_copy(update=changes)
            self._blogs[blog_id] = updated
        logger.info(f"Updated blog {blog_id} ({updated.status})")
        return updated.model_copy()

    def delete_blog(self, blog_id: int) -> bool:
        with self._lock:
            existed = self._blogs.pop(blog_id, None) is not None
        if existed:
            logger.info(f"Deleted blog {blog_id}")
        return existed


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back out
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class DatabaseStorage(BlogStorage):
    """SQLAlchemy-backed store using the blogs and users tables."""

    def __init__(self, bind=None, clock: Callable[[], datetime] = utcnow):
        self.engine = bind if bind is not None else default_engine
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        self._clock = clock
        Base.metadata.create_all(bind=self.engine)

    def describe(self) -> str:
        return "database"

    def _session(self) -> Session:
        return self._session_factory()

    @staticmethod
    def _to_blog(row: Blog) -> BlogResponse:
        blog = BlogResponse.model_validate(row)
        blog.created_at = _as_utc(blog.created_at)
        blog.updated_at = _as_utc(blog.updated_at)
        return blog

    def get_user(self, user_id: int) -> Optional[UserResponse]:
        with self._session() as db:
            user = db.get(User, user_id)
            return UserResponse.model_validate(user) if user else None

    def get_user_by_username(self, username: str) -> Optional[UserResponse]:
        with self._session() as db:
            user = db.query(User).filter(User.username == username).first()
            return UserResponse.model_validate(user) if user else None

    def create_user(self, data: UserCreate) -> UserResponse:
        with self._session() as db:
            try:
                user = User(**data.model_dump())
                db.add(user)
                db.commit()
                db.refresh(user)
                return UserResponse.model_validate(user)
            except Exception:
                db.rollback()
                raise

    def get_all_blogs(self) -> list[BlogResponse]:
        with self._session() as db:
            rows = (
                db.query(Blog)
                .order_by(Blog.updated_at.desc(), Blog.id.desc())
                .all()
            )
            return [self._to_blog(row) for row in rows]

    def get_blogs_by_status(self, status: BlogStatus) -> list[BlogResponse]:
        with self._session() as db:
            rows = (
                db.query(Blog)
                .filter(Blog.status == _status_value(status))
                .order_by(Blog.updated_at.desc(), Blog.id.desc())
                .all()
            )
            return [self._to_blog(row) for row in rows]

    def get_blog(self, blog_id: int) -> Optional[BlogResponse]:
        with self._session() as db:
            row = db.get(Blog, blog_id)
            return self._to_blog(row) if row else None

    def create_blog(self, data: BlogCreate) -> BlogResponse:
        now = self._clock()
        with self._session() as db:
            try:
                row = Blog(
                    title=data.title,
                    content=data.content,
                    tags=data.tags,
                    status=_status_value(data.status),
                    created_at=now,
                    updated_at=now,
                )
                db.add(row)
                db.commit()
                db.refresh(row)
            except Exception:
                db.rollback()
                raise
            logger.info(f"Created blog {row.id} ({row.status})")
            return self._to_blog(row)

    def update_blog(self, blog_id: int, fields: BlogUpdate) -> Optional[BlogResponse]:
        changes = fields.model_dump(exclude_unset=True)
        if "status" in changes:
            changes["status"] = _status_value(changes["status"])

        with self._session() as db:
            row = db.get(Blog, blog_id)
            if row is None:
                return None
            try:
                for key, value in changes.items():
                    setattr(row, key, value)
                row.updated_at = next_timestamp(_as_utc(row.updated_at), self._clock)
                db.commit()
                db.refresh(row)
            except Exception:
                db.rollback()
                raise
            logger.info(f"Updated blog {blog_id} ({row.status})")
            return self._to_blog(row)

    def delete_blog(self, blog_id: int) -> bool:
        with self._session() as db:
            row = db.get(Blog, blog_id)
            if row is None:
                return False
            try:
                db.delete(row)
                db.commit()
            except Exception:
                db.rollback()
                raise
        logger.info(f"Deleted blog {blog_id}")
        return True


_storage: Optional[BlogStorage] = None
_storage_lock = threading.Lock()


def create_storage(kind: Optional[str] = None) -> BlogStorage:
    """Build the store named by BLOG_STORAGE ("memory" or "database")."""
    kind = (kind or os.getenv("BLOG_STORAGE", "memory")).lower()
    if kind == "memory":
        return MemStorage()
    if kind == "database":
        return DatabaseStorage()
    raise ValueError(f"Unknown BLOG_STORAGE '{kind}'. Use 'memory' or 'database'.")


def get_storage() -> BlogStorage:
    """
    Dependency returning the process-wide store.
    Usage in FastAPI endpoints:

    @router.get("/endpoint")
    def endpoint(storage: BlogStorage = Depends(get_storage)):
        ...
    """
    global _storage
    if _storage is None:
        with _storage_lock:
            if _storage is None:
                _storage = create_storage()
    return _storage
