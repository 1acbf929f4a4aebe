# mypy: ignore-errors
"""
Migration Alembic pour créer les tables de contenu du site.

Tables de ressources réconciliées par slug (uses, projects, posts, now_entries), chacune avec un
index unique sur `slug` et un index `(updated_at, id)`, plus la table clé/valeur `meta`.
"""

from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision = "20260220_0001"
down_revision = None
branch_labels = None
depends_on = None

JSON_VALUE = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")
IDENTITY = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def _resource_columns() -> list[sa.Column]:
    return [
        sa.Column("id", IDENTITY, primary_key=True, autoincrement=True),
        sa.Column("slug", sa.Text(), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    ]


def _resource_indexes(table: str) -> None:
    op.create_index(f"{table}_slug_unique_index", table, ["slug"], unique=True)
    op.create_index(f"{table}_updated_at_id_index", table, ["updated_at", "id"])


def upgrade() -> None:
    """Crée les tables `uses`, `projects`, `posts`, `now_entries` et `meta`."""
    op.create_table(
        "uses",
        *_resource_columns(),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("payload", JSON_VALUE, nullable=False),
    )
    _resource_indexes("uses")

    op.create_table(
        "projects",
        *_resource_columns(),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("summary", sa.Text(), nullable=False),
        sa.Column("href", sa.Text(), nullable=True),
        sa.Column("payload", JSON_VALUE, nullable=False),
    )
    _resource_indexes("projects")

    op.create_table(
        "posts",
        *_resource_columns(),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("summary", sa.Text(), nullable=False),
        sa.Column("body_markdown", sa.Text(), nullable=False),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at_source", sa.DateTime(timezone=True), nullable=True),
        sa.Column("author", sa.Text(), nullable=True),
        sa.Column("featured", sa.Boolean(), nullable=False),
        sa.Column("tags", JSON_VALUE, nullable=False),
        sa.Column("reading_time_text", sa.Text(), nullable=True),
        sa.Column("reading_time_minutes", sa.Float(), nullable=True),
        sa.Column("payload", JSON_VALUE, nullable=False),
    )
    _resource_indexes("posts")
    op.create_index(
        "posts_published_at_id_desc_index",
        "posts",
        [sa.text("published_at DESC"), sa.text("id DESC")],
    )

    op.create_table(
        "now_entries",
        *_resource_columns(),
        sa.Column("label", sa.Text(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("href", sa.Text(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("payload", JSON_VALUE, nullable=False),
    )
    _resource_indexes("now_entries")

    op.create_table(
        "meta",
        sa.Column("key", sa.String(), primary_key=True),
        sa.Column("value", JSON_VALUE, nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )


def downgrade() -> None:
    """Supprime les tables créées par `upgrade`."""
    op.drop_table("meta")
    op.drop_table("now_entries")
    op.drop_index("posts_published_at_id_desc_index", table_name="posts")
    op.drop_table("posts")
    op.drop_table("projects")
    op.drop_table("uses")
