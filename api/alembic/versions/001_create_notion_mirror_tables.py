"""create_notion_mirror_tables

Revision ID: 001
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _mirror_columns() -> list:
    """Columnas técnicas comunes a las tablas espejo."""
    return [
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('notion_page_id', sa.String(length=64), nullable=False),
        sa.Column('notion_database_id', sa.String(length=64), nullable=False),
        sa.Column('properties', sa.JSON(), nullable=False),
        sa.Column('notion_snapshot', sa.JSON(), nullable=True),
        sa.Column('notion_last_edited_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('last_synced_at', sa.DateTime(timezone=True), nullable=True),
    ]


# tabla -> columnas de dominio
MIRROR_TABLES = {
    'people': [
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('origin_of_connection', sa.Text(), nullable=True),
        sa.Column('star_sign', sa.String(length=64), nullable=True),
        sa.Column('image', sa.JSON(), nullable=True),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('currently_at', sa.Text(), nullable=True),
        sa.Column('age', sa.Float(), nullable=True),
        sa.Column('tier', sa.JSON(), nullable=True),
        sa.Column('occupation', sa.Text(), nullable=True),
        sa.Column('birthday', sa.String(length=64), nullable=True),
        sa.Column('contact_freq', sa.String(length=64), nullable=True),
        sa.Column('from_location', sa.Text(), nullable=True),
        sa.Column('birth_date', sa.Date(), nullable=True),
        sa.Column('nicknames', sa.Text(), nullable=True),
    ],
    'media': [
        sa.Column('name', sa.String(length=512), nullable=False),
        sa.Column('category', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=255), nullable=True),
        sa.Column('url', sa.Text(), nullable=True),
        sa.Column('by', sa.JSON(), nullable=True),
        sa.Column('topic', sa.JSON(), nullable=True),
        sa.Column('thumbnail', sa.JSON(), nullable=True),
        sa.Column('thumbnail_url', sa.Text(), nullable=True),
        sa.Column('ai_synopsis', sa.Text(), nullable=True),
        sa.Column('created', sa.DateTime(timezone=True), nullable=True),
        sa.Column('related_notion_page_ids', sa.JSON(), nullable=True),
        sa.Column('monthly_tracking_id', sa.String(length=36), nullable=True),
    ],
    'finances_assets': [
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('symbol', sa.String(length=64), nullable=True),
        sa.Column('current_price', sa.Float(), nullable=True),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('currency', sa.String(length=16), nullable=True),
        sa.Column('icon', sa.JSON(), nullable=True),
        sa.Column('icon_url', sa.Text(), nullable=True),
    ],
    'finances_places': [
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('place_type', sa.String(length=255), nullable=True),
        sa.Column('balance', sa.Float(), nullable=True),
        sa.Column('total_value', sa.Float(), nullable=True),
        sa.Column('currency', sa.String(length=16), nullable=True),
        sa.Column('icon_url', sa.Text(), nullable=True),
    ],
    'finances_individual_investments': [
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('asset_id', sa.String(length=36), nullable=True),
        sa.Column('place_id', sa.String(length=36), nullable=True),
        sa.Column('quantity', sa.Float(), nullable=True),
        sa.Column('purchase_price', sa.Float(), nullable=True),
        sa.Column('purchase_date', sa.Date(), nullable=True),
        sa.Column('current_price', sa.Float(), nullable=True),
        sa.Column('current_value', sa.Float(), nullable=True),
        sa.Column('currency', sa.String(length=16), nullable=True),
    ],
    'todos': [
        sa.Column('title', sa.String(length=512), nullable=False),
        sa.Column('status', sa.String(length=255), nullable=True),
        sa.Column('priority', sa.String(length=255), nullable=True),
        sa.Column('do_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('mega_tags', sa.JSON(), nullable=True),
        sa.Column('assignee', sa.JSON(), nullable=True),
        sa.Column('gcal_id', sa.String(length=255), nullable=True),
        sa.Column('duration_hours', sa.Float(), nullable=True),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('projects', sa.JSON(), nullable=True),
    ],
}

TRACKING_TABLES = (
    'tracking_daily',
    'tracking_weekly',
    'tracking_monthly',
    'tracking_quarterly',
    'tracking_yearly',
)


def _all_mirror_tables() -> dict:
    tables = dict(MIRROR_TABLES)
    for name in TRACKING_TABLES:
        tables[name] = [
            sa.Column('title', sa.String(length=512), nullable=False),
            sa.Column('period', sa.String(length=32), nullable=False),
        ]
    return tables


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table('notion_bindings'):
        op.create_table('notion_bindings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('notion_database_id', sa.String(length=64), nullable=False),
        sa.Column('domain_type', sa.String(length=64), nullable=False),
        sa.Column('period', sa.String(length=32), nullable=False, server_default=''),
        sa.Column('database_name', sa.String(length=255), nullable=True),
        sa.Column('schema_properties', sa.JSON(), nullable=False),
        sa.Column('sync_mode', sa.String(length=32), nullable=False, server_default='manual'),
        sa.Column('last_sync', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'user_id', 'notion_database_id', 'domain_type', 'period',
            name='uq_notion_bindings_user_db_domain_period'
        )
        )
        op.create_index(op.f('ix_notion_bindings_user_id'), 'notion_bindings', ['user_id'], unique=False)
        op.create_index(
            op.f('ix_notion_bindings_notion_database_id'), 'notion_bindings', ['notion_database_id'], unique=False
        )

    for table_name, domain_columns in _all_mirror_tables().items():
        if inspector.has_table(table_name):
            continue
        op.create_table(
            table_name,
            *_mirror_columns(),
            *domain_columns,
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id', 'notion_page_id', name=f'uq_{table_name}_user_page'),
        )
        for column in ('user_id', 'notion_page_id', 'notion_database_id'):
            op.create_index(op.f(f'ix_{table_name}_{column}'), table_name, [column], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    for table_name in _all_mirror_tables():
        if inspector.has_table(table_name):
            op.drop_table(table_name)

    if inspector.has_table('notion_bindings'):
        op.drop_table('notion_bindings')
