# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# the business rules for a single domain aggregate:
#
#   auth_service  — login and access-token sign / verify
#   post_service  — post CRUD with ownership checks
#   user_service  — user creation, lookup and soft delete
#
# All service functions accept an AsyncSession as their first argument
# so that the request layer controls the outer transaction boundary via
# the ``get_db`` dependency.  Mutations that must succeed or fail as a
# unit open their own SAVEPOINT inside it.
