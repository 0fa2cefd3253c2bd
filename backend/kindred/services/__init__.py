# Services package init
"""
Kindred Backend — Services Layer
=================================

What:  Business logic between routes (HTTP) and the database (persistence).
How:   Stateless classes with a module-level singleton each. Every method
       takes the request's AsyncSession; the session dependency commits or
       rolls back once the route returns.

Service Inventory:
    - ProfileService:   profiles, photos, interests, candidate listing
    - SwipeService:     like/dislike, score updates, match detection
    - CreditService:    daily like budget
    - MessageService:   match list and chat
    - AnalyticsService: activity counters, feedback, algorithm roll-up
"""
