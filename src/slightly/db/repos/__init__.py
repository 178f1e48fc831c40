"""Repository layer.

These repositories encapsulate common query patterns for the app's entities.
Keep them focused on persistence/query shaping; business logic lives elsewhere.
"""

from slightly.db.repos.user_meta import UserMetaRepository
from slightly.db.repos.users import UserRepository

__all__ = [
    "UserMetaRepository",
    "UserRepository",
]
