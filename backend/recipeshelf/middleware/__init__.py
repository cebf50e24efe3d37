# Middleware package init
"""
RecipeShelf Backend — Middleware Package
=========================================

Middleware Chain (order matters!):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    Rate limiting runs first so rejected writes cost nothing further; the
    rate limiter's 429 therefore carries no request id. Responses unwind
    in reverse order, which is how Logging sees the final status and duration.
"""
