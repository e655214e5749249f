"""initial schema: users, receipts, receipt items, user selections

Revision ID: 0001
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(), nullable=False, unique=True),
        sa.Column('display_name', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    user_type = postgresql.ENUM('payer', 'sharer', name='usertype')
    op.create_table(
        'receipts',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('merchant_name', sa.String(), nullable=True),
        sa.Column('merchant_name_en', sa.String(), nullable=True),
        sa.Column('original_language', sa.String(8), nullable=True),
        sa.Column('currency', sa.String(3), nullable=False, server_default='THB'),
        sa.Column('tax_percent', sa.Numeric(5, 2), nullable=False, server_default='0'),
        sa.Column('service_percent', sa.Numeric(5, 2), nullable=False, server_default='0'),
        sa.Column('rounding', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False),
        sa.Column('total', sa.Numeric(12, 2), nullable=False),
        sa.Column('raw_json', postgresql.JSONB(), nullable=True),
        sa.Column('parser_version', sa.String(), nullable=True),
        sa.Column('issued_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('storage_key', sa.String(), nullable=True),
        sa.Column('user_type', user_type, nullable=False, server_default='payer'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        'receipt_items',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('receipt_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('receipts.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('name_en', sa.String(), nullable=True),
        sa.Column('qty', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('receipt_id', 'position'),
        sa.CheckConstraint('qty > 0', name='ck_receipt_items_qty_positive'),
        sa.CheckConstraint('unit_price >= 0', name='ck_receipt_items_unit_price_non_negative'),
    )

    op.create_table(
        'user_selections',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('receipt_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('receipts.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('selected_items', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('item_shares', postgresql.JSONB(), nullable=False, server_default='{}'),
        sa.Column('calculated_total', sa.Double(), nullable=False, server_default='0'),
        sa.Column('tax_amount', sa.Double(), nullable=False, server_default='0'),
        sa.Column('service_amount', sa.Double(), nullable=False, server_default='0'),
        sa.Column('rounding_amount', sa.Double(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', 'receipt_id', name='uq_user_selections_user_receipt'),
    )


def downgrade() -> None:
    op.drop_table('user_selections')
    op.drop_table('receipt_items')
    op.drop_table('receipts')
    op.drop_table('users')
    postgresql.ENUM(name='usertype').drop(op.get_bind(), checkfirst=True)
