# Models package init
"""
Kindred Backend — ORM Models
=============================

Importing this package registers every table with Base.metadata, which is
what Alembic autogenerate and metadata.create_all() rely on.
"""

from kindred.models.profile import Interest, Photo, Profile, ProfileInterest
from kindred.models.match import Credit, Match, Message, Swipe
from kindred.models.analytics import AlgorithmMetric, UserFeedback, UserMetric

__all__ = [
    "AlgorithmMetric",
    "Credit",
    "Interest",
    "Match",
    "Message",
    "Photo",
    "Profile",
    "ProfileInterest",
    "Swipe",
    "UserFeedback",
    "UserMetric",
]
