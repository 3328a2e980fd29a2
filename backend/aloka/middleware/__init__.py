# Middleware package init
"""
ALOKA Backend — Middleware Package
===================================

Middleware Chain (order matters!):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    1. Rate Limit first: abusive clients are rejected before any work
    2. Request ID: correlation ID for logs and error bodies
    3. Logging: one access line per request, tagged with the request ID
"""
