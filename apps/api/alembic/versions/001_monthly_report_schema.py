"""monthly report schema

Revision ID: 001
Revises: 
Create Date: 2024-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'athlete',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('email', sa.Text(), nullable=True),
        sa.Column('role', sa.Text(), server_default='athlete', nullable=False),
        sa.Column('display_name', sa.Text(), nullable=True),
        sa.Column('is_blocked', sa.Boolean(), server_default=sa.text('false'), nullable=False),
    )
    op.create_index('ix_athlete_email', 'athlete', ['email'], unique=True)

    op.create_table(
        'subscriptions',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('athlete_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('athlete.id'), nullable=False),
        sa.Column('status', sa.Text(), nullable=True),
        sa.Column('subscribed_modules', postgresql.JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_subscriptions_athlete_id', 'subscriptions', ['athlete_id'], unique=True)

    op.create_table(
        'video',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('athlete_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('athlete.id'), nullable=False),
        sa.Column('sport', sa.Text(), nullable=False),
        sa.Column('module', sa.Text(), nullable=False),
        sa.Column('efficiency_score', sa.Float(), nullable=True),
        sa.Column('ai_analysis', postgresql.JSONB(), nullable=True),
        sa.Column('session_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_video_athlete_id', 'video', ['athlete_id'])
    op.create_index('ix_video_athlete_created', 'video', ['athlete_id', 'created_at'])

    op.create_table(
        'video_annotation',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('video_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('video.id'), nullable=False),
        sa.Column('player_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('athlete.id'), nullable=False),
        sa.Column('scout_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('athlete.id'), nullable=True),
        sa.Column('annotator_type', sa.Text(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_video_annotation_video_id', 'video_annotation', ['video_id'])
    op.create_index('ix_video_annotation_player_id', 'video_annotation', ['player_id'])
    op.create_index('ix_video_annotation_player_created', 'video_annotation', ['player_id', 'created_at'])

    op.create_table(
        'nutrition_streak',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('athlete_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('athlete.id'), nullable=False, unique=True),
        sa.Column('current_streak', sa.Integer(), server_default='0', nullable=False),
        sa.Column('longest_streak', sa.Integer(), server_default='0', nullable=False),
        sa.Column('total_visits', sa.Integer(), server_default='0', nullable=False),
        sa.Column('tips_collected', sa.Integer(), server_default='0', nullable=False),
        sa.Column('badges_earned', postgresql.JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )

    op.create_table(
        'nutrition_daily_tip',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('category', sa.Text(), nullable=True),
        sa.Column('tip_text', sa.Text(), nullable=False),
    )

    op.create_table(
        'user_viewed_tip',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('athlete_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('athlete.id'), nullable=False),
        sa.Column('tip_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('nutrition_daily_tip.id'), nullable=False),
        sa.Column('viewed_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_user_viewed_tip_athlete_id', 'user_viewed_tip', ['athlete_id'])

    op.create_table(
        'user_report_cycle',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('athlete_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('athlete.id'), nullable=False),
        sa.Column('cycle_start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('next_report_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('reports_generated', sa.Integer(), server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_user_report_cycle_athlete_id', 'user_report_cycle', ['athlete_id'], unique=True)
    op.create_index('ix_user_report_cycle_next_report_date', 'user_report_cycle', ['next_report_date'])

    op.create_table(
        'monthly_report',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('athlete_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('athlete.id'), nullable=False),
        sa.Column('report_period_start', sa.DateTime(timezone=True), nullable=False),
        sa.Column('report_period_end', sa.DateTime(timezone=True), nullable=False),
        sa.Column('revision', sa.Integer(), server_default='0', nullable=False),
        sa.Column('report_data', postgresql.JSONB(), nullable=False),
        sa.Column('status', sa.Text(), server_default='generated', nullable=False),
        sa.Column('viewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('downloaded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('saved_to_library', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.UniqueConstraint(
            'athlete_id', 'report_period_start', 'revision',
            name='uq_monthly_report_athlete_period_revision',
        ),
    )
    op.create_index('ix_monthly_report_athlete_id', 'monthly_report', ['athlete_id'])
    op.create_index('ix_monthly_report_athlete_period', 'monthly_report', ['athlete_id', 'report_period_start'])


def downgrade() -> None:
    op.drop_table('monthly_report')
    op.drop_table('user_report_cycle')
    op.drop_table('user_viewed_tip')
    op.drop_table('nutrition_daily_tip')
    op.drop_table('nutrition_streak')
    op.drop_table('video_annotation')
    op.drop_table('video')
    op.drop_table('subscriptions')
    op.drop_table('athlete')
