"""Shop principals, menus and orders

Learn: tbl_users may already exist (created by the old shop backend with
plaintext passwords), so it is only created when missing; its password
column is widened to hold bcrypt hashes. Everything else is new.

Revision ID: 3f1c9a7d2b10
Revises:
Create Date: 2026-10-19 09:12:44.118203
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    existing = sa.inspect(op.get_bind()).get_table_names()

    # ─── Principals ─────────────────────────────────────
    if 'tbl_users' not in existing:
        op.create_table(
            'tbl_users',
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('firstname', sa.String(100)),
            sa.Column('fullname', sa.String(255)),
            sa.Column('lastname', sa.String(100)),
            sa.Column('username', sa.String(100), nullable=False, unique=True),
            sa.Column('password', sa.String(255), nullable=False),
            sa.Column('address', sa.Text()),
            sa.Column('sex', sa.String(20)),
            sa.Column('birthday', sa.Date()),
            sa.Column('status', sa.String(20), nullable=False, server_default='active'),
            *_timestamps(),
        )
    else:
        op.alter_column('tbl_users', 'password', type_=sa.String(255), existing_nullable=False)

    op.create_table(
        'tbl_customers',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('username', sa.String(255), nullable=False, unique=True),
        sa.Column('fullname', sa.String(255)),
        sa.Column('password', sa.String(255), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        *_timestamps(),
    )

    # ─── Catalogue ──────────────────────────────────────
    op.create_table(
        'tbl_restaurants',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        'tbl_menus',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('restaurant_id', sa.Integer(), sa.ForeignKey('tbl_restaurants.id'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('price', sa.Numeric(10, 2)),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # ─── Orders ─────────────────────────────────────────
    op.create_table(
        'tbl_orders',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('tbl_customers.id'), nullable=False),
        sa.Column('restaurant_id', sa.Integer(), sa.ForeignKey('tbl_restaurants.id'), nullable=False),
        sa.Column('total_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_tbl_orders_customer_id', 'tbl_orders', ['customer_id'])

    op.create_table(
        'tbl_order_items',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('tbl_orders.id'), nullable=False),
        sa.Column('menu_id', sa.Integer(), sa.ForeignKey('tbl_menus.id'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('subtotal', sa.Numeric(10, 2), nullable=False),
    )
    op.create_index('ix_tbl_order_items_order_id', 'tbl_order_items', ['order_id'])


def downgrade() -> None:
    op.drop_index('ix_tbl_order_items_order_id', table_name='tbl_order_items')
    op.drop_table('tbl_order_items')
    op.drop_index('ix_tbl_orders_customer_id', table_name='tbl_orders')
    op.drop_table('tbl_orders')
    op.drop_table('tbl_menus')
    op.drop_table('tbl_restaurants')
    op.drop_table('tbl_customers')
    # tbl_users predates this service and is left in place.
