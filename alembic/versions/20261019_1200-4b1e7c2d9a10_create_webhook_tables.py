"""create_webhook_tables

Revision ID: 4b1e7c2d9a10
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "4b1e7c2d9a10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSONType = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "webhook_queue",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("topic", sa.String(length=100), nullable=False),
        sa.Column("shopify_id", sa.String(length=255), nullable=False),
        sa.Column("payload", JSONType, nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("retry_count", sa.Integer(), nullable=False),
        sa.Column("max_retries", sa.Integer(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("retry_count >= 0", name="ck_webhook_queue_retry_count"),
        sa.CheckConstraint("max_retries > 0", name="ck_webhook_queue_max_retries"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_webhook_queue_topic"), "webhook_queue", ["topic"], unique=False)
    op.create_index(op.f("ix_webhook_queue_shopify_id"), "webhook_queue", ["shopify_id"], unique=False)
    op.create_index("ix_webhook_queue_status_created_at", "webhook_queue", ["status", "created_at"], unique=False)

    op.create_table(
        "webhook_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("webhook_topic", sa.String(length=100), nullable=False),
        sa.Column("shopify_id", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=50), nullable=False),
        sa.Column("payload", JSONType, nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("retry_count", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_webhook_logs_webhook_topic"), "webhook_logs", ["webhook_topic"], unique=False)
    op.create_index(op.f("ix_webhook_logs_shopify_id"), "webhook_logs", ["shopify_id"], unique=False)
    op.create_index(op.f("ix_webhook_logs_status"), "webhook_logs", ["status"], unique=False)

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("shopify_product_id", sa.String(length=255), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("handle", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("product_type", sa.String(length=255), nullable=False),
        sa.Column("vendor", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=50), nullable=True),
        sa.Column("tags", JSONType, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_products_shopify_product_id"), "products", ["shopify_product_id"], unique=True)
    op.create_index(op.f("ix_products_handle"), "products", ["handle"], unique=False)

    op.create_table(
        "inventory_levels",
        sa.Column("inventory_item_id", sa.String(length=255), nullable=False),
        sa.Column("location_id", sa.String(length=255), nullable=False),
        sa.Column("available", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("inventory_item_id", "location_id"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("inventory_levels")
    op.drop_index(op.f("ix_products_handle"), table_name="products")
    op.drop_index(op.f("ix_products_shopify_product_id"), table_name="products")
    op.drop_table("products")
    op.drop_index(op.f("ix_webhook_logs_status"), table_name="webhook_logs")
    op.drop_index(op.f("ix_webhook_logs_shopify_id"), table_name="webhook_logs")
    op.drop_index(op.f("ix_webhook_logs_webhook_topic"), table_name="webhook_logs")
    op.drop_table("webhook_logs")
    op.drop_index("ix_webhook_queue_status_created_at", table_name="webhook_queue")
    op.drop_index(op.f("ix_webhook_queue_shopify_id"), table_name="webhook_queue")
    op.drop_index(op.f("ix_webhook_queue_topic"), table_name="webhook_queue")
    op.drop_table("webhook_queue")
