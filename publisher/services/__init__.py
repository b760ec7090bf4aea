# Services package.
#
# Each module exposes async functions holding the business rules for one
# part of the blog:
#
#   validation        identifier parsing, existence guards, payload checks
#   auth_service      access token issuance / verification
#   user_service      registration and profile lookup
#   article_service   article listing, detail and writes (+ cache)
#   category_service  category listing with counts, creation
#   comment_service   comments scoped to one article
#   search_service    title / full-text search
#
# Service functions take an AsyncSession as their first argument; the
# router layer owns the transaction through the ``get_db`` dependency.
