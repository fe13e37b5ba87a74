"""
BookWorm Backend — List Service
=================================

What:  Add, list and delete saved books in the caller's three lists.
How:   `LIST_MODELS` maps the closed ListKind enum to a fixed ORM class, so
       each operation is one parameterized statement against a table the
       server chose. The owner email always comes from the token claims.
Who:   Called by the list routes with the request's AsyncSession.

Delete semantics:
    Idempotent. Deleting a book that is not on the list (or was already
    removed) succeeds and reports 0 removed rows.
"""

import logging
from typing import Dict, List, Type

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bookworm.exceptions import DatabaseError
from bookworm.models.saved_book import FavoriteBook, FinishedBook, SavedBook, WishlistBook
from bookworm.schemas.books import BookEntry, ListKind

logger = logging.getLogger(__name__)

LIST_MODELS: Dict[ListKind, Type[SavedBook]] = {
    ListKind.FAVORITES: FavoriteBook,
    ListKind.WISHLIST: WishlistBook,
    ListKind.FINISHED: FinishedBook,
}


class ListService:
    """Stateless operations over the favorite / wishlist / finished_reading tables."""

    @staticmethod
    def model_for(kind: ListKind) -> Type[SavedBook]:
        return LIST_MODELS[kind]

    async def add(
        self,
        db: AsyncSession,
        owner_email: str,
        kind: ListKind,
        entry: BookEntry,
    ) -> SavedBook:
        model = self.model_for(kind)
        book = model(
            title=entry.title,
            author=entry.author,
            publisher=entry.publisher,
            year=entry.year,
            identifier=entry.identifier,
            thumbnail=entry.thumbnail,
            user_email=owner_email,
        )
        try:
            db.add(book)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error adding to %s: %s", kind.value, type(e).__name__)
            raise DatabaseError(
                message="Could not save the book. Please try again.",
                context={"list": kind.value, "error_type": type(e).__name__},
            )
        logger.info("Added %s to %s (id=%d)", entry.identifier, kind.value, book.id)
        return book

    async def list_books(self, db: AsyncSession, owner_email: str, kind: ListKind) -> List[SavedBook]:
        model = self.model_for(kind)
        try:
            result = await db.execute(
                select(model).where(model.user_email == owner_email).order_by(model.id)
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing %s: %s", kind.value, type(e).__name__)
            raise DatabaseError(
                message="Could not retrieve your books. Please try again.",
                context={"list": kind.value, "error_type": type(e).__name__},
            )

    async def delete(self, db: AsyncSession, owner_email: str, kind: ListKind, identifier: str) -> int:
        """Remove every entry with this identifier from the caller's list; return the count."""
        model = self.model_for(kind)
        try:
            result = await db.execute(
                delete(model).where(
                    model.identifier == identifier,
                    model.user_email == owner_email,
                )
            )
        except SQLAlchemyError as e:
            logger.error("Database error deleting from %s: %s", kind.value, type(e).__name__)
            raise DatabaseError(
                message="Could not delete the book. Please try again.",
                context={"list": kind.value, "error_type": type(e).__name__},
            )
        deleted = result.rowcount or 0
        logger.info("Deleted %d row(s) for %s from %s", deleted, identifier, kind.value)
        return deleted


list_service = ListService()
