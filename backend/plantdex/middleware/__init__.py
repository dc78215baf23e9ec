# Middleware package init
"""
PlantDex Backend — Middleware Package
======================================

Execution order for a request:
    Request ID → Rate Limit → Logging → GZip → Session → CORS → route

The request ID is assigned first, so every response (429s included) and
every access line carries it. Rate limiting runs next, so rejected requests
never reach the routes.
"""
