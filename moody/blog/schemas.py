"""
Pydantic schemas for the Blog API.

Defines request/response models with validation.
"""
from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class BlogStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class BlogDraft(BaseModel):
    """
    Body of POST /api/blogs/save-draft.

    Every field is optional. A truthy id updates that blog, otherwise a new
    one is created. Any status sent by the client is ignored.
    """
    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    title: Optional[str] = None
    content: Optional[str] = None
    tags: Optional[str] = None

    @field_validator("title", "content", mode="before")
    @classmethod
    def reject_null(cls, value):
        # Omitting a field is fine, sending null is not
        if value is None:
            raise ValueError("must be a string, not null")
        return value


class BlogPublish(BaseModel):
    """Body of POST /api/blogs/publish. Title and content must be non-empty."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    tags: Optional[str] = None


class BlogCreate(BaseModel):
    """Fields accepted by BlogStorage.create_blog."""
    title: str = ""
    content: str = ""
    tags: Optional[str] = None
    status: BlogStatus = BlogStatus.DRAFT


class BlogUpdate(BaseModel):
    """Partial update. Only fields that were explicitly set are applied."""
    title: Optional[str] = None
    content: Optional[str] = None
    tags: Optional[str] = None
    status: Optional[BlogStatus] = None


class BlogResponse(BaseModel):
    """A stored blog as returned by the store and the API."""
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: int
    title: str
    content: str
    tags: Optional[str] = None
    status: BlogStatus = BlogStatus.DRAFT
    created_at: datetime
    updated_at: datetime


class UserCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    password: str


class MessageResponse(BaseModel):
    message: str
