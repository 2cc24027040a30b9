"""Add rotation chain and versioning columns to user_api_keys.

Revision ID: 002
Revises: 001
Create Date: 2026-02-02 00:17:46

This migration adds:
1. parent_key_id - the key this one was rotated from (self reference)
2. version - position in the rotation chain, starting at 1
3. rotation_reason / rotated_at - rotation metadata
4. Indexes for chain traversal and per-user version listing
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column(
        "user_api_keys",
        sa.Column("parent_key_id", postgresql.UUID(as_uuid=True), nullable=True),
    )
    op.create_foreign_key(
        "fk_user_api_keys_parent_key_id",
        "user_api_keys",
        "user_api_keys",
        ["parent_key_id"],
        ["id"],
        ondelete="SET NULL",
    )

    # Existing keys become version 1 through the server default
    op.add_column(
        "user_api_keys",
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
    )
    op.add_column("user_api_keys", sa.Column("rotation_reason", sa.Text(), nullable=True))
    op.add_column("user_api_keys", sa.Column("rotated_at", sa.DateTime(), nullable=True))

    op.create_index("idx_user_api_keys_parent_key_id", "user_api_keys", ["parent_key_id"])
    op.create_index("idx_user_api_keys_version", "user_api_keys", ["user_id", "version"])


def downgrade() -> None:
    op.drop_index("idx_user_api_keys_version", table_name="user_api_keys")
    op.drop_index("idx_user_api_keys_parent_key_id", table_name="user_api_keys")
    op.drop_constraint("fk_user_api_keys_parent_key_id", "user_api_keys", type_="foreignkey")
    op.drop_column("user_api_keys", "rotated_at")
    op.drop_column("user_api_keys", "rotation_reason")
    op.drop_column("user_api_keys", "version")
    op.drop_column("user_api_keys", "parent_key_id")
