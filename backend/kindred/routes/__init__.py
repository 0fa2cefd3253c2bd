# Routes package init
"""
Kindred Backend — API Routes Package
=====================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - profiles.py:  /api/profiles, /api/photos, /api/interests
    - matches.py:   /api/matches (candidates, like/dislike, matches, messages)
    - credits.py:   GET /api/credits
    - scoring.py:   GET /api/scoring/preview
    - analytics.py: /api/analytics (session end, feedback, admin dashboards)
    - health.py:    GET /health

Design Principle:
    Routes are THIN. They read the caller id and request data, call one
    service method, and pick the status code. Business rules live in services.
"""
