"""Initial schema: games, user profiles with taste vectors, feedback.

Revision ID: 001_initial_taste_vector_schema
Revises:
Create Date: 2026-01-21

This migration adds:
- pgvector extension
- games table with a vector(384) embedding column and an HNSW cosine index
- user_profiles table with float64 preference/learned vectors
- user_feedback table, one active row per (user, game)
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql
from pgvector.sqlalchemy import Vector

# revision identifiers, used by Alembic.
revision: str = '001_initial_taste_vector_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Must match EMBEDDING_DIMENSION; a 1536-dim deployment needs its own migration
EMBEDDING_DIM = 384


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS vector")

    op.create_table(
        'games',
        sa.Column('app_id', sa.BigInteger, primary_key=True),
        sa.Column('name', sa.String(500), nullable=False),
        sa.Column('genres', postgresql.ARRAY(sa.Text), nullable=True),
        sa.Column('tags', postgresql.ARRAY(sa.Text), nullable=True),
        sa.Column('metadata', postgresql.JSONB, nullable=True),
        sa.Column('embedding', Vector(EMBEDDING_DIM), nullable=True),
        sa.Column('release_year', sa.Integer, nullable=True),
        sa.Column('review_positive_pct', sa.Integer, nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.Column('updated_at', sa.DateTime, nullable=True),
    )
    op.create_index('idx_games_release_year', 'games', ['release_year'])
    op.execute(
        "CREATE INDEX IF NOT EXISTS idx_games_embedding_hnsw "
        "ON games USING hnsw (embedding vector_cosine_ops)"
    )

    op.create_table(
        'user_profiles',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('steam_id', sa.String(32), nullable=True, unique=True),
        sa.Column('preference_vector', postgresql.ARRAY(postgresql.DOUBLE_PRECISION), nullable=True),
        sa.Column('learned_vector', postgresql.ARRAY(postgresql.DOUBLE_PRECISION), nullable=True),
        sa.Column('last_updated', sa.DateTime, nullable=True),
        sa.Column('games_analyzed', sa.Integer, nullable=False, server_default='0'),
        sa.Column('total_playtime_hours', sa.Float, nullable=False, server_default='0'),
        sa.Column('feedback_likes_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('feedback_dislikes_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('subscription_tier', sa.String(20), nullable=False, server_default='free'),
        sa.Column('subscription_expires_at', sa.DateTime, nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.Column('updated_at', sa.DateTime, nullable=True),
    )
    op.create_index('idx_user_profiles_tier', 'user_profiles', ['subscription_tier'])

    op.create_table(
        'user_feedback',
        sa.Column('user_id', sa.String(64), sa.ForeignKey('user_profiles.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('app_id', sa.BigInteger, sa.ForeignKey('games.app_id', ondelete='CASCADE'), primary_key=True),
        sa.Column('feedback_type', sa.String(20), nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('updated_at', sa.DateTime, nullable=True),
        sa.CheckConstraint(
            "feedback_type IN ('love', 'like', 'dislike', 'not_interested')",
            name='ck_user_feedback_type',
        ),
    )
    op.create_index('idx_user_feedback_user', 'user_feedback', ['user_id'])
    op.create_index('idx_user_feedback_type', 'user_feedback', ['user_id', 'feedback_type'])


def downgrade() -> None:
    op.drop_table('user_feedback')
    op.drop_table('user_profiles')
    op.execute("DROP INDEX IF EXISTS idx_games_embedding_hnsw")
    op.drop_table('games')
