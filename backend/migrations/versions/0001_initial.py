"""Initial schema – blocks, fields and the typed field satellites

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-16

Creates the block tree table, the field table and one satellite table per
field type, with the foreign keys and indexes required by the application.
"""

from alembic import op
import sqlalchemy as sa

# Alembic revision identifiers
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _satellite(table: str, value_column: sa.Column) -> None:
    op.create_table(
        table,
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        value_column,
        sa.Column("field_id", sa.String(36), sa.ForeignKey("fields.uuid"), nullable=False),
        *_timestamps(),
    )
    op.create_index(f"ix_{table}_field_id", table, ["field_id"], unique=True)


def upgrade() -> None:
    # -- blocks ---------------------------------------------------------
    op.create_table(
        "blocks",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("uuid", sa.String(36), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        # "/" for roots, otherwise "/<root id>/.../<parent id>/"
        sa.Column("path", sa.String(1024), nullable=False),
        sa.Column("block_type", sa.Enum("container", "terminal", name="block_type"), nullable=False),
        sa.Column("created_by_id", sa.String(64), nullable=False),
        sa.Column(
            "parent_id",
            sa.Integer(),
            sa.ForeignKey("blocks.id", ondelete="CASCADE"),
            nullable=True,
        ),
        *_timestamps(),
    )
    op.create_index("ix_blocks_uuid", "blocks", ["uuid"], unique=True)
    op.create_index("ix_blocks_path", "blocks", ["path"])
    op.create_index("ix_blocks_block_type", "blocks", ["block_type"])
    op.create_index("ix_blocks_created_by_id", "blocks", ["created_by_id"])
    op.create_index("ix_blocks_parent_id", "blocks", ["parent_id"])
    # "containers under parent X" – the tree browser's most common query
    op.create_index("blocks_container_parent_idx", "blocks", ["parent_id", "block_type"])

    # -- fields ---------------------------------------------------------
    op.create_table(
        "fields",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("uuid", sa.String(36), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("type", sa.Enum("text", "password", "todo", name="field_type"), nullable=False),
        sa.Column("created_by_id", sa.String(64), nullable=False),
        sa.Column("block_id", sa.String(36), sa.ForeignKey("blocks.uuid"), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_fields_uuid", "fields", ["uuid"], unique=True)
    op.create_index("ix_fields_type", "fields", ["type"])
    op.create_index("ix_fields_created_by_id", "fields", ["created_by_id"])
    op.create_index("ix_fields_block_id", "fields", ["block_id"])

    # -- satellites -----------------------------------------------------
    _satellite("text_fields", sa.Column("text", sa.Text(), nullable=False))
    # base64( nonce || ciphertext || GCM tag ) – never plaintext
    _satellite("password_fields", sa.Column("password", sa.Text(), nullable=False))
    _satellite("todo_fields", sa.Column("is_checked", sa.Boolean(), nullable=False, server_default=sa.false()))


def downgrade() -> None:
    for table in ("todo_fields", "password_fields", "text_fields"):
        op.drop_index(f"ix_{table}_field_id", table_name=table)
        op.drop_table(table)

    for index in ("ix_fields_block_id", "ix_fields_created_by_id", "ix_fields_type", "ix_fields_uuid"):
        op.drop_index(index, table_name="fields")
    op.drop_table("fields")

    for index in (
        "blocks_container_parent_idx",
        "ix_blocks_parent_id",
        "ix_blocks_created_by_id",
        "ix_blocks_block_type",
        "ix_blocks_path",
        "ix_blocks_uuid",
    ):
        op.drop_index(index, table_name="blocks")
    op.drop_table("blocks")
    sa.Enum(name="field_type").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="block_type").drop(op.get_bind(), checkfirst=True)
