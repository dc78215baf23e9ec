# Models package init
"""ORM models. Importing this package registers every table on Base.metadata."""

from plantdex.models.plant import Plant
from plantdex.models.user import User

__all__ = ["Plant", "User"]
