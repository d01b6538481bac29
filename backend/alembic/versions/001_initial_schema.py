"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users (provisioned by the identity service)
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("first_name", sa.String(100)),
        sa.Column("last_name", sa.String(100)),
        sa.Column("role", sa.String(20), nullable=False, server_default="buyer"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # Products (one table for every variant)
    op.create_table(
        "products",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("seller_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("condition", sa.String(20), nullable=False),
        sa.Column("brand", sa.String(100)),
        sa.Column("model", sa.String(100)),
        sa.Column("sku", sa.String(40), unique=True),
        sa.Column("authenticity", sa.String(20), nullable=False, server_default="unknown"),
        sa.Column("tags", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("images", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("auction_type", sa.String(20), nullable=False),
        # Retail / Anti-Piece
        sa.Column("price", sa.Numeric(12, 2)),
        sa.Column("stocks", sa.Integer()),
        sa.Column("discount", sa.Numeric(5, 2), nullable=False, server_default="0"),
        # Auction
        sa.Column("starting_bid", sa.Numeric(12, 2)),
        sa.Column("auction_end_date", sa.DateTime(timezone=True)),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending_review"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_featured", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("view_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("auction_type IN ('Retail', 'Auction', 'Anti-Piece')", name="ck_products_auction_type"),
        sa.CheckConstraint("discount >= 0 AND discount <= 100", name="ck_products_discount"),
        sa.CheckConstraint("view_count >= 0", name="ck_products_view_count"),
    )

    op.create_index("idx_products_seller_id", "products", ["seller_id"])
    op.create_index("idx_products_partition", "products", ["auction_type", "status", "is_active"])
    op.create_index("idx_products_category", "products", ["category"])
    op.create_index("idx_products_view_count", "products", ["view_count"])
    op.create_index("idx_products_created_at", "products", ["created_at"])
    op.create_index("idx_products_auction_end_date", "products", ["auction_end_date"])


def downgrade() -> None:
    op.drop_table("products")
    op.drop_table("users")
