"""create_sync_and_metric_tables

Revision ID: 4f1c2a9e7b30
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '4f1c2a9e7b30'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    op.create_table(
        'stores',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, server_default=''),
        sa.Column('platform', sa.String(50), nullable=False, server_default='shopify'),
        sa.Column('currency', sa.String(10), nullable=True),
        sa.Column('shop_domain', sa.String(255), nullable=False, server_default=''),
        sa.Column('access_token', sa.Text(), nullable=False, server_default=''),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('syncing', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('last_sync_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cogs_ratio', sa.Numeric(5, 4), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_stores_platform', 'stores', ['platform'])

    op.create_table(
        'orders',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('uuid_generate_v4()')),
        sa.Column('store_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('stores.id', ondelete='CASCADE'), nullable=False),
        sa.Column('platform_order_id', sa.String(100), nullable=False),
        sa.Column('order_number', sa.String(100), nullable=False),
        sa.Column('source', sa.String(100), nullable=True),
        sa.Column('ordered_at', postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('customer_name', sa.Text(), nullable=False, server_default='Unknown'),
        sa.Column('platform_customer_id', sa.String(100), nullable=False, server_default=''),
        sa.Column('fulfillment_status', sa.String(50), nullable=False, server_default='Unfulfilled'),
        sa.Column('currency', sa.String(10), nullable=True),
        sa.Column('paid', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('tax', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('shipping_paid', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('shipping_country', sa.String(100), nullable=False, server_default='N/A'),
        sa.Column('shipping_region', sa.String(100), nullable=False, server_default='N/A'),
        sa.Column('discount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('cogs', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('gross_profit', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('synced_at', postgresql.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('store_id', 'platform_order_id', name='uq_store_platform_order'),
    )
    op.create_index('idx_orders_store_ordered_at', 'orders', ['store_id', 'ordered_at'])

    op.create_table(
        'line_items',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('uuid_generate_v4()')),
        sa.Column('order_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('platform_line_item_id', sa.String(100), nullable=False),
        sa.Column('platform_product_id', sa.String(100), nullable=False, server_default=''),
        sa.Column('platform_variant_id', sa.String(100), nullable=False, server_default=''),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('paid', sa.Numeric(12, 2), nullable=False),
        sa.Column('discount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('product_cost', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('pre_tax_gross_profit', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('pre_tax_gross_margin', sa.Numeric(5, 2), nullable=False, server_default='0'),
        sa.UniqueConstraint('order_id', 'platform_line_item_id', name='uq_order_platform_line_item'),
    )

    op.create_table(
        'products',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('uuid_generate_v4()')),
        sa.Column('store_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('stores.id', ondelete='CASCADE'), nullable=False),
        sa.Column('platform_product_id', sa.String(100), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('vendor', sa.String(255), nullable=True),
        sa.Column('product_type', sa.String(255), nullable=True),
        sa.Column('platform_created_at', postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('platform_updated_at', postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('synced_at', postgresql.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('store_id', 'platform_product_id', name='uq_store_platform_product'),
    )

    op.create_table(
        'product_variants',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('uuid_generate_v4()')),
        sa.Column('product_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False),
        sa.Column('platform_variant_id', sa.String(100), nullable=False),
        sa.Column('title', sa.String(255), nullable=True),
        sa.Column('sku', sa.String(100), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=True),
        sa.Column('inventory_quantity', sa.Integer(), nullable=True, server_default='0'),
        sa.Column('platform_created_at', postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('platform_updated_at', postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('synced_at', postgresql.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('product_id', 'platform_variant_id', name='uq_product_platform_variant'),
    )

    op.create_table(
        'customer_order_histories',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('uuid_generate_v4()')),
        sa.Column('store_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('stores.id', ondelete='CASCADE'), nullable=False),
        sa.Column('platform_customer_id', sa.String(100), nullable=False),
        sa.Column('order_dates', postgresql.ARRAY(postgresql.TIMESTAMP(timezone=True)), nullable=False),
        sa.Column('updated_at', postgresql.TIMESTAMP(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('store_id', 'platform_customer_id', name='uq_store_customer_history'),
    )

    op.create_table(
        'metrics',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('store_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('stores.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('metric_type', sa.String(64), nullable=False),
        sa.Column('value', sa.Numeric(18, 4), nullable=False, server_default='0'),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('updated_at', postgresql.TIMESTAMP(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('store_id', 'date', 'metric_type', name='uq_store_date_metric_type'),
    )
    op.create_index('idx_metrics_store_date', 'metrics', ['store_id', 'date'])


def downgrade() -> None:
    op.drop_index('idx_metrics_store_date', table_name='metrics')
    op.drop_table('metrics')
    op.drop_table('customer_order_histories')
    op.drop_table('product_variants')
    op.drop_table('products')
    op.drop_table('line_items')
    op.drop_index('idx_orders_store_ordered_at', table_name='orders')
    op.drop_table('orders')
    op.drop_index('ix_stores_platform', table_name='stores')
    op.drop_table('stores')
