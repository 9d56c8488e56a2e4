"""Initial migration

Revision ID: 001
Revises:
Create Date: 2026-01-09 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create categories table
    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('code', sa.String(10), unique=True, nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(255), unique=True, nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('image', sa.String(500)),
        sa.Column('sort_order', sa.Integer(), default=0),
        sa.Column('is_active', sa.Boolean(), default=True),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
    )

    # Create products table
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('external_id', sa.String(100)),
        sa.Column('sku', sa.String(100), unique=True, nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('brand', sa.String(100)),
        sa.Column('price', sa.Numeric(10, 2), nullable=False, default=0),
        sa.Column('is_taxable', sa.Boolean(), default=True),
        sa.Column('track_inventory', sa.Boolean(), default=True),
        sa.Column('stock', sa.Integer(), default=0),
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('categories.id', ondelete='SET NULL')),
        sa.Column('is_active', sa.Boolean(), default=True),
        sa.Column('is_featured', sa.Boolean(), default=False),
        sa.Column('age_restricted', sa.Boolean(), default=True),
        sa.Column('image', sa.String(500)),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
    )

    # Create customers table
    op.create_table(
        'customers',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('email', sa.String(255), unique=True, nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(20)),
        sa.Column('dob', sa.Date()),
        sa.Column('is_subscribed', sa.Boolean(), default=False),
        sa.Column('source', sa.String(50), default='website'),
        sa.Column('notes', sa.Text()),
        sa.Column('total_reservations', sa.Integer(), default=0),
        sa.Column('total_spent', sa.Numeric(10, 2), default=0),
        sa.Column('last_reservation_at', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
    )

    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id', ondelete='SET NULL')),
        sa.Column('email', sa.String(255), unique=True, nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255)),
        sa.Column('role', sa.Enum('ADMIN', 'CUSTOMER', name='userrole'), default='CUSTOMER'),
        sa.Column('is_active', sa.Boolean(), default=True),
        sa.Column('refresh_token', sa.String(500)),
        sa.Column('last_login', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
    )

    # Create reservations table
    op.create_table(
        'reservations',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('confirmation_number', sa.String(20), unique=True, nullable=False),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('subtotal', sa.Numeric(10, 2), default=0),
        sa.Column('tax_amount', sa.Numeric(10, 2), default=0),
        sa.Column('total_price', sa.Numeric(10, 2), default=0),
        sa.Column('item_count', sa.Integer(), default=0),
        sa.Column('status', sa.String(20), nullable=False, default='pending'),
        sa.Column('notes', sa.Text()),
        sa.Column('processed_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('processed_at', sa.DateTime()),
        sa.Column('ready_at', sa.DateTime()),
        sa.Column('cancelled_at', sa.DateTime()),
        sa.Column('cancellation_reason', sa.String(30)),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
        sa.CheckConstraint(
            "status IN ('pending', 'ready', 'completed', 'cancelled', 'expired')",
            name='reservation_status',
        ),
    )
    op.create_index('ix_reservations_status_created_at', 'reservations', ['status', 'created_at'])

    # Create reservation_items table
    op.create_table(
        'reservation_items',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('reservation_id', sa.Integer(), sa.ForeignKey('reservations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id', ondelete='SET NULL')),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('subtotal', sa.Numeric(10, 2), nullable=False),
        sa.Column('tax_rate', sa.Numeric(5, 4), default=0),
        sa.Column('tax_amount', sa.Numeric(10, 2), default=0),
        sa.Column('total_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('product_name', sa.String(255), nullable=False),
        sa.Column('product_sku', sa.String(100)),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
    )

    # Create age_verifications table
    op.create_table(
        'age_verifications',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('session_id', sa.String(100)),
        sa.Column('ip_address', sa.String(50)),
        sa.Column('user_agent', sa.Text()),
        sa.Column('verified', sa.Boolean(), default=True),
        sa.Column('verified_at', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table('age_verifications')
    op.drop_table('reservation_items')
    op.drop_index('ix_reservations_status_created_at', table_name='reservations')
    op.drop_table('reservations')
    op.drop_table('users')
    op.drop_table('customers')
    op.drop_table('products')
    op.drop_table('categories')
    sa.Enum(name='userrole').drop(op.get_bind(), checkfirst=True)
