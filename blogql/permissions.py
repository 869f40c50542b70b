from typing import Any

from strawberry.permission import BasePermission
from strawberry.types import Info


class IsUser(BasePermission):
    """
    Grants the "USER" role: a valid bearer token for an active account.

    A token that was sent but could not be verified is reported as such
    instead of as a missing login.
    """

    message = "Login is required."
    error_extensions = {"code": "ERR_UNAUTHENTICATED"}

    def has_permission(self, source: Any, info: Info, **kwargs: Any) -> bool:
        if info.context.auth_error is not None:
            raise info.context.auth_error
        return info.context.user is not None
