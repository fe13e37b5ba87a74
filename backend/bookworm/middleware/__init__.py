"""
BookWorm Backend — Middleware Package
=======================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Access Log] → [CORS] → dependencies → handler

    Per-request database sessions and the bearer-token gate are FastAPI
    dependencies (see bookworm.database and bookworm.dependencies) so they
    run only on the routes that need them, in a fixed order.
"""
