"""Persistence layer: database, ORM models and repositories."""

from recordcrate.infrastructure.persistence.database import Database
from recordcrate.infrastructure.persistence.repositories import (
    AlbumReviewRepository,
    UserRepository,
)

__all__ = ["AlbumReviewRepository", "Database", "UserRepository"]
