# Middleware package init
"""
Brainswarm Backend — Middleware Package
========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    1. Rate Limit first: throttled callers are turned away before any work
    2. Request ID: correlation ID for logs and error payloads
    3. Logging: one access line per request, tagged with the request ID

Responses travel the chain in reverse, so the request ID header and the
access log line both see the final status code.
"""
