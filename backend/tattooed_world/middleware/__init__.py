"""
Tattooed World Backend — Middleware
=====================================

Cross-cutting request handling, registered in main.create_app().

Execution order for an incoming request:
    RateLimit → RequestID → RequestLogging → GZip → CORS → router

    RateLimit      rejects over-quota clients with 429 before any work is done
    RequestID      assigns X-Request-ID and stores it in a ContextVar
    RequestLogging one access-log line per request, level chosen by status
"""
