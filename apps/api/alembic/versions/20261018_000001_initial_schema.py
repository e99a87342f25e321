"""create initial schema

Revision ID: 20261018_000001
Revises:
Create Date: 2026-10-18 00:00:01.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261018_000001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("first_name", sa.String(), nullable=True),
        sa.Column("last_name", sa.String(), nullable=True),
        sa.Column("role", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_username"), "users", ["username"], unique=True)

    op.create_table(
        "searches",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("search_term", sa.String(), nullable=False),
        sa.Column("owner_email", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_searches_owner_email"), "searches", ["owner_email"], unique=False)
    op.create_index(op.f("ix_searches_created_at"), "searches", ["created_at"], unique=False)

    op.create_table(
        "summaries",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("search_id", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("summary", sa.Text(), nullable=False),
        sa.Column("date", sa.String(), nullable=False),
        sa.Column("sources_count", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["search_id"], ["searches.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("search_id", "position", name="uq_summaries_search_position"),
    )
    op.create_index(op.f("ix_summaries_search_id"), "summaries", ["search_id"], unique=False)

    op.create_table(
        "downloads",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("first_name", sa.String(), nullable=False),
        sa.Column("last_name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("search_term", sa.String(), nullable=True),
        sa.Column("article_title", sa.String(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("footnotes", sa.JSON(), nullable=True),
        sa.Column("featured_image_url", sa.String(), nullable=True),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True),
        sa.Column("download_sent", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_downloads_email"), "downloads", ["email"], unique=False)
    op.create_index(op.f("ix_downloads_user_id"), "downloads", ["user_id"], unique=False)
    op.create_index(op.f("ix_downloads_created_at"), "downloads", ["created_at"], unique=False)

    op.create_table(
        "temporary_content",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("session_id", sa.String(), nullable=False),
        sa.Column("search_term", sa.String(), nullable=False),
        sa.Column("search_id", sa.Integer(), nullable=True),
        sa.Column("article_title", sa.String(), nullable=True),
        sa.Column("article_content", sa.Text(), nullable=True),
        sa.Column("footnotes", sa.JSON(), nullable=True),
        sa.Column("featured_image_url", sa.String(), nullable=True),
        sa.Column("images", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("claimed_by_email", sa.String(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_temporary_content_session_id"), "temporary_content", ["session_id"], unique=False)
    op.create_index(op.f("ix_temporary_content_expires_at"), "temporary_content", ["expires_at"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_temporary_content_expires_at"), table_name="temporary_content")
    op.drop_index(op.f("ix_temporary_content_session_id"), table_name="temporary_content")
    op.drop_table("temporary_content")
    op.drop_index(op.f("ix_downloads_created_at"), table_name="downloads")
    op.drop_index(op.f("ix_downloads_user_id"), table_name="downloads")
    op.drop_index(op.f("ix_downloads_email"), table_name="downloads")
    op.drop_table("downloads")
    op.drop_index(op.f("ix_summaries_search_id"), table_name="summaries")
    op.drop_table("summaries")
    op.drop_index(op.f("ix_searches_created_at"), table_name="searches")
    op.drop_index(op.f("ix_searches_owner_email"), table_name="searches")
    op.drop_table("searches")
    op.drop_index(op.f("ix_users_username"), table_name="users")
    op.drop_table("users")
