"""create waitlist_entries

Revision ID: 20261019_waitlist_entries
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from app.core.types import GUID

# revision identifiers, used by Alembic.
revision: str = '20261019_waitlist_entries'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

WAITLIST_STATUS = sa.Enum('Pending', 'Approved', 'Rejected', name='waitliststatus')


def upgrade() -> None:
    op.create_table(
        'waitlist_entries',
        sa.Column('id', GUID(), primary_key=True),
        sa.Column('email', sa.String(length=254), nullable=False),
        sa.Column('product_id', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('status', WAITLIST_STATUS, nullable=False, server_default='Pending'),
        sa.Column('shopify_customer_id', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        # Only the pair is unique: one customer may wait for several products
        sa.UniqueConstraint('email', 'product_id', name='uq_waitlist_email_product'),
    )
    op.create_index('ix_waitlist_entries_email', 'waitlist_entries', ['email'])
    op.create_index('ix_waitlist_entries_product_id', 'waitlist_entries', ['product_id'])
    op.create_index('ix_waitlist_entries_status', 'waitlist_entries', ['status'])
    op.create_index('ix_waitlist_entries_created_at', 'waitlist_entries', ['created_at'])
    op.create_index('ix_waitlist_status_created', 'waitlist_entries', ['status', 'created_at'])


def downgrade() -> None:
    op.drop_index('ix_waitlist_status_created', table_name='waitlist_entries')
    op.drop_index('ix_waitlist_entries_created_at', table_name='waitlist_entries')
    op.drop_index('ix_waitlist_entries_status', table_name='waitlist_entries')
    op.drop_index('ix_waitlist_entries_product_id', table_name='waitlist_entries')
    op.drop_index('ix_waitlist_entries_email', table_name='waitlist_entries')
    op.drop_table('waitlist_entries')
    WAITLIST_STATUS.drop(op.get_bind(), checkfirst=True)
