"""Business modules for Dudefest.

Each content type (columns, articles, movies, daily items, comments) is a
self-contained module with its own models, schemas, repository and service.
Shared rules live in ``common`` and the wiring in ``site``.
"""
