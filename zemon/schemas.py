"""
Request bodies accepted by the API.
"""
from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

EVENT_TYPES = ("hackathon", "workshop", "conference", "meetup", "webinar")
EVENT_MODES = ("online", "in-person", "hybrid")
STORE_CATEGORIES = (
    "Developer Tools",
    "Productivity",
    "Design",
    "Testing",
    "Analytics",
    "DevOps",
    "Security",
    "Database",
)
RESOURCE_TYPES = ("PDF", "VIDEO", "TOOL")


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _strip_required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


class RepoCreate(BaseModel):
    github_url: str
    description: Optional[str] = None
    language: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class CommentCreate(BaseModel):
    content: str

    @field_validator("content")
    @classmethod
    def strip_required(cls, value: str) -> str:
        return _strip_required(value)


class IdeaCommentCreate(BaseModel):
    text: str

    @field_validator("text")
    @classmethod
    def strip_required(cls, value: str) -> str:
        return _strip_required(value)


class EventCreate(BaseModel):
    title: str
    description: str
    type: Literal[EVENT_TYPES]
    mode: Literal[EVENT_MODES] = "online"
    location: Optional[str] = None
    start_date: datetime
    end_date: datetime
    image: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    capacity: Optional[int] = Field(None, ge=0)
    registration_url: Optional[str] = None

    @field_validator("title", "description")
    @classmethod
    def strip_required(cls, value: str) -> str:
        return _strip_required(value)

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, value: datetime) -> datetime:
        return to_naive_utc(value)

    @model_validator(mode="after")
    def check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class EventUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    type: Optional[Literal[EVENT_TYPES]] = None
    mode: Optional[Literal[EVENT_MODES]] = None
    location: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    image: Optional[str] = None
    tags: Optional[List[str]] = None
    capacity: Optional[int] = Field(None, ge=0)
    registration_url: Optional[str] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class NewsCreate(BaseModel):
    title: str
    content: str
    excerpt: str = ""
    category: str
    image: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    @field_validator("title", "content", "category")
    @classmethod
    def strip_required(cls, value: str) -> str:
        return _strip_required(value)


class NewsUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    excerpt: Optional[str] = None
    category: Optional[str] = None
    image: Optional[str] = None
    tags: Optional[List[str]] = None


class StoreItemCreate(BaseModel):
    name: str
    description: str
    url: str
    category: Literal[STORE_CATEGORIES]
    thumbnail: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    dev_docs: Optional[str] = None
    github_url: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    price: str = "Free"

    @field_validator("name", "description", "url")
    @classmethod
    def strip_required(cls, value: str) -> str:
        return _strip_required(value)


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None


class IdeaCreate(BaseModel):
    title: str
    description: str

    @field_validator("title", "description")
    @classmethod
    def strip_required(cls, value: str) -> str:
        return _strip_required(value)


class IdeaUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None


class CommunityResourceCreate(BaseModel):
    title: str
    description: str
    resource_type: Literal[RESOURCE_TYPES]
    url: str

    @field_validator("title", "description", "url")
    @classmethod
    def strip_required(cls, value: str) -> str:
        return _strip_required(value)
