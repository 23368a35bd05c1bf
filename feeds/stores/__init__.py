"""Data stores for persistence.

Stores handle:
- PostgreSQL: engine construction, session factories, schema helpers
- Feeds: the FeedsStore repository for managers and job proposals

No approval policy in stores - that belongs to the calling service.
"""
