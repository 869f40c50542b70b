"""Post queries and mutations."""
from strawberry.types import Info

from blogql.gql_types import (
    CreatePostInput,
    DeletePostInput,
    PostType,
    ReadPostInput,
    ReadPostListInput,
    UpdatePostInput,
    parse_input,
)
from blogql.schemas import PostCreate, PostDelete, PostListQuery, PostUpdate
from blogql.services import post_service


async def read_post(info: Info, input: ReadPostInput) -> PostType:
    async with info.context.session() as db:
        post = await post_service.read_post(db, input.id)
    return PostType.from_model(post)


async def read_post_list(info: Info, input: ReadPostListInput) -> list[PostType]:
    query = parse_input(PostListQuery, input)
    async with info.context.session() as db:
        posts = await post_service.read_post_list(db, query.page_number, query.limit)
    return [PostType.from_model(p) for p in posts]


async def create_post(info: Info, input: CreatePostInput) -> PostType:
    data = parse_input(PostCreate, input)
    async with info.context.session() as db:
        post = await post_service.create_post(db, info.context.user, data)
    return PostType.from_model(post)


async def update_post(info: Info, input: UpdatePostInput) -> PostType:
    data = parse_input(PostUpdate, input)
    async with info.context.session() as db:
        post = await post_service.update_post(db, data, info.context.user)
    return PostType.from_model(post)


async def delete_post(info: Info, input: DeletePostInput) -> bool:
    data = parse_input(PostDelete, input)
    async with info.context.session() as db:
        return await post_service.delete_post(db, data, info.context.user)
