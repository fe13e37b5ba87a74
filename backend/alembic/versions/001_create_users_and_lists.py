"""Create users and the three saved-book list tables

Revision ID: 001
Revises: None
Create Date: 2026-10-17 00:00:00.000000+00:00

What:  Creates `users` plus `favorite`, `wishlist` and `finished_reading`.
How:   The list tables share one column layout and reference users.email,
       cascading on delete and on update.

Rollback: downgrade() drops all four tables (all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

LIST_TABLES = ("favorite", "wishlist", "finished_reading")


def _timestamp_column() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.TIMESTAMP(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("username", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False, comment="bcrypt hash"),
        sa.Column("is_admin", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("first_name", sa.String(255), nullable=True),
        sa.Column("last_name", sa.String(255), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        _timestamp_column(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    for table in LIST_TABLES:
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column("title", sa.String(512), nullable=False),
            sa.Column("author", sa.String(512), nullable=True),
            sa.Column("publisher", sa.String(512), nullable=True),
            sa.Column("year", sa.String(32), nullable=True),
            sa.Column("identifier", sa.String(255), nullable=False, comment="Google Books volume id"),
            sa.Column("thumbnail", sa.String(2048), nullable=True),
            sa.Column("user_email", sa.String(255), nullable=False),
            _timestamp_column(),
            sa.ForeignKeyConstraint(
                ["user_email"],
                ["users.email"],
                ondelete="CASCADE",
                onupdate="CASCADE",
            ),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(f"ix_{table}_identifier", table, ["identifier"])
        op.create_index(f"ix_{table}_user_email", table, ["user_email"])


def downgrade() -> None:
    for table in reversed(LIST_TABLES):
        op.drop_index(f"ix_{table}_user_email", table_name=table)
        op.drop_index(f"ix_{table}_identifier", table_name=table)
        op.drop_table(table)

    op.drop_index("ix_users_username", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
