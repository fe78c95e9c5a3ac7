"""Initial migration

Revision ID: 001_initial
Revises: 
Create Date: 2026-02-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Local collections: estimates, contracts, invoices, settings, catalogs
    op.create_table(
        'local_records',
        sa.Column('seq', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('collection', sa.String(), nullable=False),
        sa.Column('record_id', sa.String(), nullable=False),
        sa.Column('data', sa.JSON(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('seq'),
        sa.UniqueConstraint('collection', 'record_id', name='uq_local_records_collection_record')
    )
    op.create_index(op.f('ix_local_records_collection'), 'local_records', ['collection'], unique=False)
    op.create_index(op.f('ix_local_records_record_id'), 'local_records', ['record_id'], unique=False)

    # Remote replica rows, one per (collection, record, owner)
    op.create_table(
        'remote_records',
        sa.Column('collection', sa.String(), nullable=False),
        sa.Column('record_id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('data', sa.JSON(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('collection', 'record_id', 'user_id', name='pk_remote_records')
    )
    op.create_index(op.f('ix_remote_records_user_id'), 'remote_records', ['user_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_remote_records_user_id'), table_name='remote_records')
    op.drop_table('remote_records')
    op.drop_index(op.f('ix_local_records_record_id'), table_name='local_records')
    op.drop_index(op.f('ix_local_records_collection'), table_name='local_records')
    op.drop_table('local_records')
