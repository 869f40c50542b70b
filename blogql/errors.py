"""
Error taxonomy shared by the service layer and the GraphQL surface.

Every error a client can see is a ``BlogError``: a stable machine-readable
``code`` plus a human-readable message.  ``BlogError.extensions`` is read
by graphql-core when a resolver raises, so the code reaches the client
as ``errors[].extensions.code`` without any per-resolver wrapping.

Diagnostics (the brief service trace collected by ``error_trace`` and the
Python traceback) are attached by ``format_error`` only when the caller
asks for them; production responses never carry them.
"""
import traceback
from contextlib import contextmanager

from graphql import GraphQLError
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError


class BlogError(Exception):
    code = "ERR_UNEXPECTED"
    default_message = "An unexpected error occurred."

    def __init__(self, message: str | None = None, *, code: str | None = None) -> None:
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        self.trace: list[str] = []
        super().__init__(self.message)

    @property
    def extensions(self) -> dict:
        return {"code": self.code}

    def add_trace(self, prefix: str) -> None:
        self.trace.append(prefix)


class NotFound(BlogError):
    code = "ERR_NO_DATA"
    default_message = "Post not found."


class AmbiguousResult(BlogError):
    code = "ERR_MULTIPLE_DATA"
    default_message = "More than one post matched where exactly one was expected."


class NotWriter(BlogError):
    code = "ERR_NOT_WRITER"
    default_message = "Only the writer of a post can modify it."


class MissingRequiredField(BlogError):
    code = "ERR_NO_FIELD"
    default_message = "Not enough information to write the post."


class UpdateFailed(BlogError):
    code = "ERR_UPDATE_FAILED"
    default_message = "The post was not updated."


class DeleteFailed(BlogError):
    code = "ERR_DELETE_FAILED"
    default_message = "The post was not deleted."


class DuplicateEmail(BlogError):
    code = "ERR_DUPLICATION_EMAIL"
    default_message = "A user with this email already exists."


class DeletedUser(BlogError):
    code = "ERR_DELETED_USER"
    default_message = "This account has been deleted."


class NoOption(BlogError):
    code = "ERR_NO_OPTION"
    default_message = "A user id or email is required to look up a user."


class NoUser(BlogError):
    code = "ERR_NO_USER"
    default_message = "User not found."


class MultipleUser(BlogError):
    code = "ERR_MULTIPLE_USER"
    default_message = "More than one user matched the lookup."


class InvalidArgument(BlogError):
    code = "ERR_INVALID_ARGUMENT"
    default_message = "Invalid argument."


class InvalidToken(BlogError):
    code = "ERR_INVALID_TOKEN"
    default_message = "The access token is invalid or has expired."


class Unexpected(BlogError):
    code = "ERR_UNEXPECTED"

    def __init__(self, cause: BaseException) -> None:
        super().__init__(str(cause) or type(cause).__name__)
        self.__cause__ = cause


# ---------------------------------------------------------------------------
# Service trace
# ---------------------------------------------------------------------------

@contextmanager
def error_trace(prefix: str):
    """Append *prefix* to the trace of any ``BlogError`` leaving the block."""
    try:
        yield
    except BlogError as exc:
        exc.add_trace(prefix)
        raise


# ---------------------------------------------------------------------------
# Persistence error classification
# ---------------------------------------------------------------------------

UNIQUE_VIOLATION = "unique"
NOT_NULL_VIOLATION = "not_null"

# PostgreSQL SQLSTATE codes (asyncpg) and SQLite message prefixes (aiosqlite).
_SQLSTATES = {"23505": UNIQUE_VIOLATION, "23502": NOT_NULL_VIOLATION}
_SQLITE_MESSAGES = {
    "UNIQUE constraint failed": UNIQUE_VIOLATION,
    "NOT NULL constraint failed": NOT_NULL_VIOLATION,
}


def classify_integrity_error(exc: IntegrityError) -> str | None:
    """
    Return ``UNIQUE_VIOLATION``, ``NOT_NULL_VIOLATION`` or None for an
    integrity error raised by the database driver.
    """
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in _SQLSTATES:
        return _SQLSTATES[sqlstate]
    message = str(orig)
    for prefix, kind in _SQLITE_MESSAGES.items():
        if prefix in message:
            return kind
    return None


def invalid_argument(exc: ValidationError) -> InvalidArgument:
    """Convert a pydantic ``ValidationError`` into a client-facing error."""
    details = "; ".join(
        f"{'.'.join(str(loc) for loc in err['loc']) or 'input'}: {err['msg']}"
        for err in exc.errors()
    )
    return InvalidArgument(details)


# ---------------------------------------------------------------------------
# Client formatting
# ---------------------------------------------------------------------------

# Syntax and schema-validation errors never reach a resolver.
GRAPHQL_VALIDATION = "ERR_GRAPHQL_VALIDATION"


def format_error(error: GraphQLError, include_stacktrace: bool) -> dict:
    """
    Serialise *error* for the response body.

    Unclassified exceptions are reported with ``ERR_UNEXPECTED``.  When
    *include_stacktrace* is false the ``stacktrace`` extension is removed
    even if something upstream attached one, and the message of an
    unclassified exception is replaced by a generic one.
    """
    formatted = error.formatted
    extensions = dict(formatted.get("extensions") or {})
    original = error.original_error
    extensions.setdefault("code", BlogError.code if original is not None else GRAPHQL_VALIDATION)

    unclassified = original is not None and not isinstance(original, (BlogError, GraphQLError))
    if unclassified and not include_stacktrace:
        formatted["message"] = BlogError.default_message

    if include_stacktrace and original is not None:
        stacktrace = []
        if isinstance(original, BlogError):
            stacktrace.extend(original.trace)
        stacktrace.extend(
            line.rstrip("\n")
            for line in traceback.format_exception(type(original), original, original.__traceback__)
        )
        extensions["stacktrace"] = stacktrace
    else:
        extensions.pop("stacktrace", None)

    formatted["extensions"] = extensions
    return formatted
