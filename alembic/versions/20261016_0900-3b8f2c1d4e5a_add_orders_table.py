"""add_orders_table

Revision ID: 3b8f2c1d4e5a
Revises:
Create Date: 2026-10-16 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3b8f2c1d4e5a'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create orders table (payment columns only)
    op.create_table(
        'orders',
        sa.Column('id', sa.String(length=64), nullable=False, comment='订单ID'),
        sa.Column('total_amount', sa.Numeric(precision=15, scale=2), nullable=False, comment='订单总额'),
        sa.Column('customer_name', sa.String(length=200), nullable=True, comment='客户姓名'),
        sa.Column('customer_email', sa.String(length=255), nullable=True, comment='客户邮箱'),
        sa.Column('payment_provider', sa.String(length=50), nullable=True, comment='支付渠道: combank/paypal/stripe'),
        sa.Column('is_paid', sa.Boolean(), nullable=False, server_default=sa.false(), comment='是否已支付'),
        sa.Column('is_payment_failed', sa.Boolean(), nullable=False, server_default=sa.false(), comment='是否支付失败'),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True, comment='支付完成时间'),
        sa.Column('payment_result', sa.JSON(), nullable=True, comment='网关关联字段与原始响应'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='创建时间'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='更新时间'),
        sa.PrimaryKeyConstraint('id'),
        comment='订单表（支付视角）'
    )

    # Create indexes
    op.create_index('ix_orders_id', 'orders', ['id'], unique=False)
    op.create_index('ix_orders_payment_provider', 'orders', ['payment_provider'], unique=False)
    op.create_index('ix_orders_created_at', 'orders', ['created_at'], unique=False)
    op.create_index('ix_orders_payment_status', 'orders', ['is_paid', 'is_payment_failed'], unique=False)


def downgrade() -> None:
    # Drop indexes
    op.drop_index('ix_orders_payment_status', table_name='orders')
    op.drop_index('ix_orders_created_at', table_name='orders')
    op.drop_index('ix_orders_payment_provider', table_name='orders')
    op.drop_index('ix_orders_id', table_name='orders')

    # Drop table
    op.drop_table('orders')
