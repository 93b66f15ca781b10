"""create_events_sources_domains

Revision ID: 3f9a1c2b7d40
Revises:
Create Date: 2025-02-03 10:12:44.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9a1c2b7d40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'events',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column(
            'admin_period', sa.String(), nullable=False,
            server_default='OTHER',
            comment='TRUMP_1, TRUMP_2 or OTHER, derived from start_date'
        ),
        sa.Column(
            'created_at', sa.DateTime(), nullable=False,
            server_default=sa.text('CURRENT_TIMESTAMP')
        ),
        sa.Column(
            'updated_at', sa.DateTime(), nullable=False,
            server_default=sa.text('CURRENT_TIMESTAMP')
        ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_events_title', 'events', ['title'])
    op.create_index('ix_events_start_date', 'events', ['start_date'])
    op.create_index('ix_events_admin_period', 'events', ['admin_period'])

    op.create_table(
        'sources',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('event_id', sa.String(), nullable=True),
        sa.Column('url', sa.String(), nullable=False),
        sa.Column('article_title', sa.String(), nullable=True),
        sa.Column(
            'bias_rating', sa.Integer(), nullable=False,
            comment='-3 to 3'
        ),
        sa.Column(
            'date_accessed', sa.DateTime(), nullable=False,
            server_default=sa.text('CURRENT_TIMESTAMP')
        ),
        sa.Column(
            'is_archived', sa.Boolean(), nullable=False,
            server_default='false'
        ),
        sa.Column(
            'created_at', sa.DateTime(), nullable=False,
            server_default=sa.text('CURRENT_TIMESTAMP')
        ),
        sa.ForeignKeyConstraint(['event_id'], ['events.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            'bias_rating BETWEEN -3 AND 3',
            name='ck_sources_bias_rating_range'
        ),
    )
    op.create_index('ix_sources_event_id', 'sources', ['event_id'])
    op.create_index('ix_sources_url', 'sources', ['url'])

    op.create_table(
        'domains',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column(
            'normalized_domain', sa.String(), nullable=False,
            comment='Lowercase hostname without www.'
        ),
        sa.Column(
            'total_sources', sa.Integer(), nullable=False,
            server_default='0'
        ),
        sa.Column('avg_bias_rating', sa.Numeric(3, 2), nullable=True),
        sa.Column(
            'usage_frequency', sa.Integer(), nullable=False,
            server_default='0'
        ),
        sa.Column(
            'first_seen', sa.DateTime(), nullable=False,
            server_default=sa.text('CURRENT_TIMESTAMP')
        ),
        sa.Column(
            'last_used', sa.DateTime(), nullable=False,
            server_default=sa.text('CURRENT_TIMESTAMP')
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            'total_sources >= 0', name='ck_domains_total_sources'
        ),
        sa.CheckConstraint(
            'avg_bias_rating IS NULL OR avg_bias_rating BETWEEN -3 AND 3',
            name='ck_domains_avg_bias_range'
        ),
        comment='Per-domain bias rating statistics'
    )
    op.create_index(
        'ix_domains_normalized_domain',
        'domains',
        ['normalized_domain'],
        unique=True
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_domains_normalized_domain', table_name='domains')
    op.drop_table('domains')
    op.drop_index('ix_sources_url', table_name='sources')
    op.drop_index('ix_sources_event_id', table_name='sources')
    op.drop_table('sources')
    op.drop_index('ix_events_admin_period', table_name='events')
    op.drop_index('ix_events_start_date', table_name='events')
    op.drop_index('ix_events_title', table_name='events')
    op.drop_table('events')
