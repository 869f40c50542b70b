"""User and auth queries and mutations."""
from strawberry.types import Info

from blogql.gql_types import CreateUserInput, LoginInput, ReadUserInput, UserType, parse_input
from blogql.schemas import LoginInput as LoginData
from blogql.schemas import UserCreate, UserLookup
from blogql.services import auth_service, user_service


async def read_user(info: Info, input: ReadUserInput) -> UserType:
    lookup = parse_input(UserLookup, input)
    async with info.context.session() as db:
        user = await user_service.read_user_by_option(
            db, user_id=lookup.user_id, email=lookup.email
        )
    return UserType.from_model(user)


async def create_user(info: Info, input: CreateUserInput) -> UserType:
    data = parse_input(UserCreate, input)
    async with info.context.session() as db:
        user = await user_service.create_user(db, data)
    return UserType.from_model(user)


async def login(info: Info, input: LoginInput) -> str:
    data = parse_input(LoginData, input)
    async with info.context.session() as db:
        return await auth_service.login(db, data)


async def delete_user(info: Info) -> UserType:
    async with info.context.session() as db:
        user = await user_service.delete_user(db, info.context.user)
    return UserType.from_model(user)
