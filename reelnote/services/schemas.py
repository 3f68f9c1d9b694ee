"""Input models validated by changesets.

Each model lists the fields a caller may set for one operation. Keys not
declared here are dropped before validation, so owner and parent ids can
never be set through input maps.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

BLANK_MESSAGE = "can't be blank"


def _require_present(v: Any) -> Any:
    if v is None or (isinstance(v, str) and not v.strip()):
        raise ValueError(BLANK_MESSAGE)
    return v


class CategoryInput(BaseModel):
    """Fields accepted when creating a category."""

    name: str = Field(..., max_length=255, description="Category name")

    @field_validator("name", mode="before")
    @classmethod
    def validate_required(cls, v: Any) -> Any:
        """Reject missing and blank values."""
        return _require_present(v)


class VideoInput(BaseModel):
    """Fields accepted when creating or updating a video."""

    url: str = Field(..., max_length=2048, description="Video URL")
    title: str = Field(..., max_length=500, description="Video title")
    description: str = Field(..., description="Video description")
    category_id: Optional[int] = Field(default=None, description="Optional category")

    @field_validator("url", "title", "description", mode="before")
    @classmethod
    def validate_required(cls, v: Any) -> Any:
        """Reject missing and blank values."""
        return _require_present(v)

    @field_validator("category_id", mode="before")
    @classmethod
    def blank_category_is_none(cls, v: Any) -> Any:
        """Treat an empty form selection as no category."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class AnnotationInput(BaseModel):
    """Fields accepted when annotating a video."""

    body: str = Field(..., description="Annotation text")
    at: int = Field(..., ge=0, description="Offset into the video in milliseconds")

    @field_validator("body", "at", mode="before")
    @classmethod
    def validate_required(cls, v: Any) -> Any:
        """Reject missing and blank values."""
        return _require_present(v)

    @field_validator("at", mode="before")
    @classmethod
    def reject_bool_offset(cls, v: Any) -> Any:
        if isinstance(v, bool):
            raise ValueError("is invalid")
        return v
