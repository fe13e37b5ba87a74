"""
BookWorm Backend — Saved-Book SQLAlchemy Models
=================================================

What:  Three structurally identical tables, one per list kind:
       `favorite`, `wishlist` and `finished_reading`.
How:   A shared mixin declares the columns; each concrete class only names
       its table. ListService picks the class from the closed `ListKind`
       enum, so no client-supplied string ever becomes a table name.

Invariants:
    - Every entry is owned by an existing user (FK on users.email).
    - (identifier, user_email) is NOT unique; adding the same book twice
      creates two rows.
    - Entries are never updated in place; only inserted and deleted.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import ForeignKey, Integer, String, text
from sqlalchemy.orm import Mapped, declared_attr, mapped_column
from sqlalchemy.types import TIMESTAMP

from bookworm.database import Base


class SavedBook:
    """Columns shared by every list table."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    author: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    publisher: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    year: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    # Google Books volume id
    identifier: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    thumbnail: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)

    @declared_attr
    def user_email(cls) -> Mapped[str]:
        return mapped_column(
            String(255),
            ForeignKey("users.email", ondelete="CASCADE", onupdate="CASCADE"),
            nullable=False,
            index=True,
        )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(identifier='{self.identifier}', user='{self.user_email}')>"


class FavoriteBook(SavedBook, Base):
    __tablename__ = "favorite"


class WishlistBook(SavedBook, Base):
    __tablename__ = "wishlist"


class FinishedBook(SavedBook, Base):
    __tablename__ = "finished_reading"
