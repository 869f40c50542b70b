from typing import Annotated

from pydantic import BaseModel, Field, model_validator

from blogql.config import settings


# --- User ---

class UserCreate(BaseModel):
    name: str = Field(max_length=256)
    email: str = Field(max_length=256)


class UserLookup(BaseModel):
    user_id: int | None = None
    email: str | None = None


class LoginInput(BaseModel):
    email: str = Field(max_length=256)


# --- Post ---

# Matches Hashtag.name (String(100)).
HashtagName = Annotated[str, Field(min_length=1, max_length=100)]


class PostCreate(BaseModel):
    title: str = Field(max_length=512)
    content: str
    hashtags: list[HashtagName] | None = None


class PostUpdate(BaseModel):
    """
    Partial update.  Only fields explicitly set by the caller are applied
    (``model_dump(exclude_unset=True)``); ``None`` is never written over a
    stored value.
    """

    id: int
    title: str | None = Field(None, max_length=512)
    content: str | None = None
    hashtags: list[HashtagName] | None = None

    @model_validator(mode="after")
    def _reject_explicit_nulls(self):
        for field in ("title", "content"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self

    def changes(self) -> dict:
        """Column changes requested by the caller, hashtags excluded."""
        return self.model_dump(exclude_unset=True, exclude={"id", "hashtags"})


class PostDelete(BaseModel):
    id: int


class PostListQuery(BaseModel):
    page_number: int = Field(1, ge=1)
    limit: int = Field(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE)

    @property
    def offset(self) -> int:
        """SQL OFFSET value computed from the 1-based page and limit."""
        return self.limit * (self.page_number - 1)
