"""Initial schema

Raw materials, products and recipes, orders, the raw material usage
ledger, work orders, delivery orders and finished goods.

Revision ID: 001_initial_schema
Revises:
Create Date: 2025-12-01
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Inventory
    op.create_table(
        'raw_materials',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(50), nullable=True, unique=True, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('unit', sa.String(20), nullable=False, server_default='pcs'),
        sa.Column('stock', sa.Numeric(18, 4), nullable=False, server_default='0'),
        sa.Column('lower_limit', sa.Numeric(18, 4), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint('stock >= 0', name='ck_raw_materials_stock_non_negative'),
    )

    # Catalogue
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(50), nullable=True, unique=True, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('unit', sa.String(20), nullable=False, server_default='pcs'),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_table(
        'product_ingredients',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('raw_material_id', sa.Integer(), sa.ForeignKey('raw_materials.id'), nullable=False, index=True),
        sa.Column('quantity', sa.Numeric(18, 4), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False, server_default='1'),
        sa.UniqueConstraint('product_id', 'raw_material_id', name='uq_product_ingredient_material'),
    )

    # Orders
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('order_number', sa.String(50), nullable=False, unique=True, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('delivery_address', sa.Text(), nullable=True),
        sa.Column('po_number', sa.String(100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(50), nullable=False, server_default='draft', index=True),
        sa.Column('confirmed_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.Column('created_by', sa.String(100), nullable=True),
        sa.Column('deleted_at', sa.DateTime(), nullable=True, index=True),
    )
    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False, index=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('remark', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('order_id', 'product_id', name='uq_order_items_order_product'),
    )

    # Raw material ledger
    op.create_table(
        'raw_material_usages',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id'), nullable=True, index=True),
        sa.Column('order_item_id', sa.Integer(), sa.ForeignKey('order_items.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=True, index=True),
        sa.Column('raw_material_id', sa.Integer(), sa.ForeignKey('raw_materials.id'), nullable=False, index=True),
        sa.Column('quantity_used', sa.Numeric(18, 4), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.Column('created_by', sa.String(100), nullable=True),
    )

    # Fulfillment
    op.create_table(
        'work_orders',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id'), nullable=False, index=True),
        sa.Column('no_surat', sa.String(50), nullable=False, unique=True, index=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(50), nullable=False, server_default='pending', index=True),
        *_timestamps(),
        sa.Column('created_by', sa.String(100), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(), nullable=True, index=True),
    )
    op.create_table(
        'delivery_orders',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('order_code', sa.String(50), nullable=False, unique=True, index=True),
        sa.Column('work_order_id', sa.Integer(), sa.ForeignKey('work_orders.id'), nullable=False, index=True),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id'), nullable=False, index=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(50), nullable=False, server_default='pending', index=True),
        sa.Column('planned_delivery_date', sa.Date(), nullable=True),
        sa.Column('shipped_at', sa.DateTime(), nullable=True),
        sa.Column('delivered_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.Column('created_by', sa.String(100), nullable=True),
    )
    op.create_table(
        'delivery_order_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('delivery_order_id', sa.Integer(), sa.ForeignKey('delivery_orders.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False, index=True),
        sa.Column('product_name', sa.String(255), nullable=False),
        sa.Column('unit', sa.String(20), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        'finished_goods',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('work_order_id', sa.Integer(), sa.ForeignKey('work_orders.id'), nullable=False, index=True),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False, index=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('produced_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        *_timestamps(),
        sa.Column('created_by', sa.String(100), nullable=True),
    )


def downgrade() -> None:
    op.drop_table('finished_goods')
    op.drop_table('delivery_order_items')
    op.drop_table('delivery_orders')
    op.drop_table('work_orders')
    op.drop_table('raw_material_usages')
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('product_ingredients')
    op.drop_table('products')
    op.drop_table('raw_materials')
