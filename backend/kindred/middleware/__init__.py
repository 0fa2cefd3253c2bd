# Middleware package init
"""
Kindred Backend — Middleware Package
=====================================

Middleware Chain (outermost first):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    1. Rate Limit: reject abusive clients before any work
    2. Request ID: correlation ID set before anything logs
    3. Logging: one access line per request, with that ID
"""
