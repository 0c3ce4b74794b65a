# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic and database access:
#
#   post_service    — post lifecycle (create / read / update / delete) + listing cache
#   user_service    — signup, login and profile lookups for User
#   search_service  — multi-stage free-text search with order-preserving dedup
#
# All service functions accept an AsyncSession as their first argument
# so that the router layer controls the transaction boundary via the
# ``get_db`` dependency.
