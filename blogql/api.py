"""
GraphQL schema and its FastAPI router.

Errors raised by resolvers reach the client as ``errors[]`` entries whose
``extensions.code`` comes from the ``BlogError`` that was raised.  Stack
traces are included only when ``settings.debug_mode`` is on.
"""
import logging

import strawberry
from fastapi import Request
from strawberry.fastapi import GraphQLRouter
from strawberry.http import GraphQLHTTPResponse
from strawberry.types import ExecutionResult

from blogql.config import settings
from blogql.context import get_context
from blogql.errors import BlogError, format_error
from blogql.gql_types import PostType, UserType
from blogql.permissions import IsUser
from blogql.resolvers import posts, users

logger = logging.getLogger(__name__)


@strawberry.type
class Query:
    read_post: PostType = strawberry.field(resolver=posts.read_post, description="Read one post")
    read_post_list: list[PostType] = strawberry.field(
        resolver=posts.read_post_list, description="Read a page of posts, newest first"
    )
    read_user: UserType = strawberry.field(resolver=users.read_user, description="Read one user")


@strawberry.type
class Mutation:
    create_user: UserType = strawberry.mutation(resolver=users.create_user, description="Sign up")
    login: str = strawberry.mutation(resolver=users.login, description="Issue an access token")
    delete_user: UserType = strawberry.mutation(
        resolver=users.delete_user,
        permission_classes=[IsUser],
        description="Soft-delete the logged-in account",
    )
    create_post: PostType = strawberry.mutation(
        resolver=posts.create_post, permission_classes=[IsUser], description="Write a post"
    )
    update_post: PostType = strawberry.mutation(
        resolver=posts.update_post, permission_classes=[IsUser], description="Edit your post"
    )
    delete_post: bool = strawberry.mutation(
        resolver=posts.delete_post, permission_classes=[IsUser], description="Delete your post"
    )


class BlogSchema(strawberry.Schema):
    def process_errors(self, errors, execution_context=None) -> None:
        for error in errors:
            original = error.original_error
            if isinstance(original, BlogError):
                logger.info("%s at %s: %s", original.code, error.path, original.message)
            else:
                logger.error("graphql error at %s: %s", error.path, error.message, exc_info=original)


class BlogGraphQLRouter(GraphQLRouter):
    async def process_result(self, request: Request, result: ExecutionResult) -> GraphQLHTTPResponse:
        data: GraphQLHTTPResponse = {"data": result.data}
        if result.errors:
            data["errors"] = [
                format_error(err, include_stacktrace=settings.debug_mode) for err in result.errors
            ]
        if result.extensions:
            data["extensions"] = result.extensions
        return data


schema = BlogSchema(query=Query, mutation=Mutation)

graphql_app = BlogGraphQLRouter(
    schema,
    context_getter=get_context,
    graphql_ide="graphiql" if settings.debug_mode else None,
)
