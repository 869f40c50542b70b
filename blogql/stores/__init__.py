# Stores package.
#
# Stores are the persistence boundary: thin async functions that issue
# SQLAlchemy statements and return ORM instances or affected-row counts.
# They never classify errors or make authorization decisions; that is
# the job of the service layer.
#
#   user_store  — User and Blog persistence
#   post_store  — Post and Hashtag persistence
