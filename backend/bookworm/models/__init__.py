"""SQLAlchemy ORM models."""

from bookworm.models.saved_book import FavoriteBook, FinishedBook, SavedBook, WishlistBook
from bookworm.models.user import User

__all__ = ["FavoriteBook", "FinishedBook", "SavedBook", "User", "WishlistBook"]
