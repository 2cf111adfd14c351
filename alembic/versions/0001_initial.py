"""Create user and entry tables

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    user_role_enum = sa.Enum('admin', 'user', name='user_role_enum')

    op.create_table(
        'user',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('name', sa.String(length=200), nullable=True),
        sa.Column('avatar_url', sa.String(length=512), nullable=True),
        sa.Column('role', user_role_enum, server_default=sa.text("'user'"), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_user_email'), 'user', ['email'], unique=False)

    op.create_table(
        'entry',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('caption', sa.Text(), nullable=True),
        sa.Column(
            'media_asset_ids',
            postgresql.JSONB().with_variant(sa.JSON(), 'sqlite'),
            nullable=False,
        ),
        sa.Column('local_date', sa.Date(), nullable=False),
        sa.Column('day_month', sa.String(length=5), nullable=False),
        sa.Column('media_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('has_caption', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.CheckConstraint('media_count >= 0', name='check_media_count_positive'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_entry_id'), 'entry', ['id'], unique=False)
    op.create_index(op.f('ix_entry_user_id'), 'entry', ['user_id'], unique=False)
    op.create_index(op.f('ix_entry_local_date'), 'entry', ['local_date'], unique=False)
    op.create_index(op.f('ix_entry_day_month'), 'entry', ['day_month'], unique=False)
    op.create_index('idx_entry_user_local_date', 'entry', ['user_id', 'local_date'], unique=False)
    op.create_index('idx_entry_user_day_month', 'entry', ['user_id', 'day_month'], unique=False)


def downgrade() -> None:
    op.drop_index('idx_entry_user_day_month', table_name='entry')
    op.drop_index('idx_entry_user_local_date', table_name='entry')
    op.drop_index(op.f('ix_entry_day_month'), table_name='entry')
    op.drop_index(op.f('ix_entry_local_date'), table_name='entry')
    op.drop_index(op.f('ix_entry_user_id'), table_name='entry')
    op.drop_index(op.f('ix_entry_id'), table_name='entry')
    op.drop_table('entry')

    op.drop_index(op.f('ix_user_email'), table_name='user')
    op.drop_table('user')
    sa.Enum(name='user_role_enum').drop(op.get_bind(), checkfirst=True)
