# mypy: ignore-errors
"""
Migration Alembic initiale du moteur de contenu.

Crée les tables des intérêts, du cache fournisseurs, du catalogue dédupliqué, des embeddings
(intérêts et catalogue) et des retours utilisateurs.
"""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Crée les six tables et leurs index."""
    op.create_table(
        "interests",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("slug", sa.String(length=128), nullable=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("cluster", sa.String(length=128), nullable=True),
        sa.Column("synonyms", sa.JSON(), nullable=False),
    )
    op.create_table(
        "content_cache",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("provider", sa.String(length=32), nullable=False),
        sa.Column("query_hash", sa.String(length=64), nullable=False),
        sa.Column("payload_json", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_content_cache_provider_hash", "content_cache", ["provider", "query_hash"]
    )
    op.create_table(
        "content_catalog",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("provider", sa.String(length=32), nullable=False),
        sa.Column("provider_item_id", sa.String(length=512), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("url", sa.Text(), nullable=True),
        sa.Column("image", sa.Text(), nullable=True),
        sa.Column("language", sa.String(length=32), nullable=True),
        sa.Column("country", sa.String(length=32), nullable=True),
        sa.Column("source", sa.String(length=128), nullable=True),
        sa.Column("channel_title", sa.String(length=255), nullable=True),
        sa.Column("published_at", sa.String(length=64), nullable=True),
        sa.Column("meta", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint(
            "provider", "provider_item_id", name="uq_catalog_provider_item"
        ),
    )
    op.create_table(
        "interest_embeddings",
        sa.Column("interest_id", sa.String(length=64), primary_key=True),
        sa.Column("model", sa.String(length=128), nullable=False),
        sa.Column("embedding", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_table(
        "content_embeddings",
        sa.Column("content_id", sa.String(length=36), primary_key=True),
        sa.Column("model", sa.String(length=128), nullable=False),
        sa.Column("embedding", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_table(
        "content_feedback",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(length=64), nullable=True),
        sa.Column("content_id", sa.String(length=512), nullable=False),
        sa.Column("provider", sa.String(length=32), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("interest_ids", sa.JSON(), nullable=False),
        sa.Column("value", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    """Supprime les tables dans l'ordre inverse."""
    op.drop_table("content_feedback")
    op.drop_table("content_embeddings")
    op.drop_table("interest_embeddings")
    op.drop_table("content_catalog")
    op.drop_index("ix_content_cache_provider_hash", table_name="content_cache")
    op.drop_table("content_cache")
    op.drop_table("interests")
