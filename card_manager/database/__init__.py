"""Database layer initialization."""

from .database_service import DatabaseService
from .card_repository import BusinessCardRepository
from .category_repository import CategoryRepository

__all__ = ["DatabaseService", "BusinessCardRepository", "CategoryRepository"]
