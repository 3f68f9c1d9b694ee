"""Pydantic models for stored records."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class Record(BaseModel):
    """Common base for rows read back from the store."""

    id: int = Field(description="Primary key")
    created_at: Optional[str] = Field(default=None, description="ISO-8601 creation timestamp")

    model_config = {
        "extra": "ignore",
    }

    @classmethod
    def from_row(cls, row: Dict[str, Any], **associations: Any):
        """Build a model from a repository row, attaching preloaded associations."""
        return cls.model_validate({**row, **associations})

    def to_row(self) -> Dict[str, Any]:
        """Column values only, without nested associations."""
        return self.model_dump(exclude={"user"})


class User(Record):
    """Account referenced as owner or author. Never mutated here."""

    name: Optional[str] = Field(default=None, description="Display name")
    username: str = Field(description="Unique login name")


class Category(Record):
    """Video category, unique by name."""

    name: str = Field(description="Category name")


class Video(Record):
    """A video owned by exactly one user."""

    url: str
    title: str
    description: str
    slug: Optional[str] = None
    user_id: int = Field(description="Owning user")
    category_id: Optional[int] = Field(default=None, description="Optional category")
    updated_at: Optional[str] = None
    user: Optional[User] = Field(default=None, description="Preloaded owner")


class Annotation(Record):
    """A time-stamped comment on a video."""

    body: str
    at: int = Field(description="Offset into the video in milliseconds")
    video_id: int
    user_id: int = Field(description="Authoring user")
    user: Optional[User] = Field(default=None, description="Preloaded author")
