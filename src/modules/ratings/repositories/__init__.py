"""Rating repositories package."""

from modules.ratings.repositories.django_repository import RatingDjangoRepository
from modules.ratings.repositories.interfaces import IRatingRepository

__all__ = ["IRatingRepository", "RatingDjangoRepository"]
