"""
Strawberry object and input types.

Object types are plain snapshots built from ORM instances with
``from_model``; relationship fields (``Post.writer``, ``User.postList``,
``User.blog``) are resolved on demand through the service layer.

Input types mirror the pydantic models in ``blogql.schemas``; resolvers
convert them with ``parse_input`` so validation rules live in one place.
"""
from datetime import datetime
from typing import Optional

import strawberry
from pydantic import BaseModel, ValidationError
from strawberry.types import Info

from blogql.config import settings
from blogql.errors import invalid_argument
from blogql.models import Blog, Post, User
from blogql.services import post_service, user_service


def parse_input(model: type[BaseModel], data) -> BaseModel:
    """
    Build *model* from a strawberry input, leaving ``UNSET`` fields out so
    that ``model_fields_set`` reflects what the client actually sent.
    """
    fields = {k: v for k, v in vars(data).items() if v is not strawberry.UNSET}
    try:
        return model(**fields)
    except ValidationError as exc:
        raise invalid_argument(exc) from exc


# --- Object types ---

@strawberry.type(name="Blog")
class BlogType:
    id: int
    name: str
    owner_id: int
    created_at: datetime
    updated_at: Optional[datetime]

    @classmethod
    def from_model(cls, blog: Blog) -> "BlogType":
        return cls(
            id=blog.id,
            name=blog.name,
            owner_id=blog.owner_id,
            created_at=blog.created_at,
            updated_at=blog.updated_at,
        )


@strawberry.type(name="User")
class UserType:
    id: int
    name: str
    email: str
    deleted_at: Optional[datetime]
    created_at: datetime
    updated_at: Optional[datetime]

    @classmethod
    def from_model(cls, user: User) -> "UserType":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            deleted_at=user.deleted_at,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )

    @strawberry.field(description="Posts written by this user, newest first")
    async def post_list(self, info: Info) -> list["PostType"]:
        async with info.context.session() as db:
            posts = await post_service.read_posts_by_writer(db, self.id)
        return [PostType.from_model(p) for p in posts]

    @strawberry.field(description="The blog owned by this user, if any")
    async def blog(self, info: Info) -> Optional[BlogType]:
        async with info.context.session() as db:
            blog = await user_service.read_blog(db, self.id)
        return BlogType.from_model(blog) if blog else None


@strawberry.type(name="Post")
class PostType:
    id: int
    title: str
    content: str
    writer_id: int
    hashtags: list[str]
    created_at: datetime
    updated_at: Optional[datetime]

    @classmethod
    def from_model(cls, post: Post) -> "PostType":
        return cls(
            id=post.id,
            title=post.title,
            content=post.content,
            writer_id=post.writer_id,
            hashtags=post.hashtag_names,
            created_at=post.created_at,
            updated_at=post.updated_at,
        )

    @strawberry.field(description="The user who wrote this post")
    async def writer(self, info: Info) -> UserType:
        async with info.context.session() as db:
            user = await user_service.read_user_by_option(db, user_id=self.writer_id)
        return UserType.from_model(user)


# --- Input types ---

@strawberry.input
class CreateUserInput:
    name: str
    email: str


@strawberry.input
class ReadUserInput:
    user_id: Optional[int] = None
    email: Optional[str] = None


@strawberry.input
class LoginInput:
    email: str


@strawberry.input
class CreatePostInput:
    title: str
    content: str
    hashtags: Optional[list[str]] = None


@strawberry.input
class ReadPostInput:
    id: int


@strawberry.input
class ReadPostListInput:
    page_number: int = 1
    limit: int = settings.DEFAULT_PAGE_SIZE


@strawberry.input
class UpdatePostInput:
    id: int
    title: Optional[str] = strawberry.UNSET
    content: Optional[str] = strawberry.UNSET
    hashtags: Optional[list[str]] = strawberry.UNSET


@strawberry.input
class DeletePostInput:
    id: int
