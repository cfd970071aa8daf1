"""initial migration with case records

Revision ID: 3b7c1e92a4d0
Revises:
Create Date: 2026-10-19 10:12:41.518302

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3b7c1e92a4d0'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('case_records',
    sa.Column('id', sa.String(length=64), nullable=False),
    sa.Column('position', sa.Integer(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('display_date', sa.String(length=32), nullable=False),
    sa.Column('region', sa.String(length=64), nullable=False),
    sa.Column('crop_name', sa.String(length=100), nullable=False),
    sa.Column('disease_name', sa.String(length=255), nullable=False),
    sa.Column('confidence', sa.Integer(), nullable=False),
    sa.Column('severity', sa.String(length=16), nullable=False),
    sa.Column('status', sa.String(length=16), nullable=False),
    sa.Column('description', sa.Text(), nullable=False),
    sa.Column('causes', sa.Text(), nullable=False),
    sa.Column('organic_treatment', sa.Text(), nullable=False),
    sa.Column('soil_care', sa.Text(), nullable=False),
    sa.Column('local_recommendation', sa.Text(), nullable=False),
    sa.Column('government_scheme', sa.Text(), nullable=False),
    sa.Column('warning', sa.Text(), nullable=False),
    sa.Column('symptoms', sa.JSON(), nullable=False),
    sa.Column('chemical_treatment', sa.JSON(), nullable=False),
    sa.Column('recovery_plan', sa.JSON(), nullable=False),
    sa.Column('notes', sa.JSON(), nullable=False),
    sa.Column('last_updated', sa.DateTime(timezone=True), nullable=True),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_status_position', 'case_records', ['status', 'position'], unique=False)
    op.create_index(op.f('ix_case_records_created_at'), 'case_records', ['created_at'], unique=False)
    op.create_index(op.f('ix_case_records_crop_name'), 'case_records', ['crop_name'], unique=False)
    op.create_index(op.f('ix_case_records_position'), 'case_records', ['position'], unique=False)
    op.create_index(op.f('ix_case_records_region'), 'case_records', ['region'], unique=False)
    op.create_index(op.f('ix_case_records_status'), 'case_records', ['status'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_case_records_status'), table_name='case_records')
    op.drop_index(op.f('ix_case_records_region'), table_name='case_records')
    op.drop_index(op.f('ix_case_records_position'), table_name='case_records')
    op.drop_index(op.f('ix_case_records_crop_name'), table_name='case_records')
    op.drop_index(op.f('ix_case_records_created_at'), table_name='case_records')
    op.drop_index('idx_status_position', table_name='case_records')
    op.drop_table('case_records')
