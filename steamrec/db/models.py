"""
SQLAlchemy ORM models for the taste-vector service.

============================================================================
WHO WRITES WHAT
============================================================================
- Game: populated by the external ingestion pipeline (Steam/SteamSpy/IGDB
  metadata + text embedding). READ-ONLY here.
- UserProfile: owned by this service. preference_vector is replaced
  wholesale on every library rebuild; learned_vector is only ever nudged
  by feedback (or cleared by a taste reset).
- UserFeedback: one active row per (user, game). Re-submitting feedback
  overwrites the row, it never accumulates.

User vectors are stored as double precision[] rather than pgvector's
float32 type because repeated renormalization is sensitive to precision.
Game embeddings use pgvector so the cosine distance operator (<=>) and
its indexes are available for nearest-neighbour search.
============================================================================
"""

from datetime import datetime
from sqlalchemy import (
    Column, String, Integer, Float, Text, DateTime,
    ForeignKey, ARRAY, Index, BigInteger, CheckConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB, DOUBLE_PRECISION
from pgvector.sqlalchemy import Vector

from steamrec.config import get_settings
from steamrec.db.database import Base

settings = get_settings()


class Game(Base):
    """Steam game metadata and its text embedding."""

    __tablename__ = "games"

    app_id = Column(BigInteger, primary_key=True)  # Steam app ID
    name = Column(String(500), nullable=False)
    genres = Column(ARRAY(Text))  # Ordered, first entry is the primary genre
    tags = Column(ARRAY(Text))  # SteamSpy user tags
    # "metadata" is reserved on declarative classes
    game_metadata = Column("metadata", JSONB)
    embedding = Column(Vector(settings.embedding_dimension))
    release_year = Column(Integer)
    review_positive_pct = Column(Integer)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("idx_games_release_year", "release_year"),
    )


class UserProfile(Base):
    """Per-user taste vectors and denormalized library stats."""

    __tablename__ = "user_profiles"

    id = Column(String(64), primary_key=True)
    steam_id = Column(String(32), unique=True)
    preference_vector = Column(ARRAY(DOUBLE_PRECISION))  # Unit-normalized, D floats
    learned_vector = Column(ARRAY(DOUBLE_PRECISION))  # NULL until first feedback
    last_updated = Column(DateTime)  # Last preference vector rebuild
    games_analyzed = Column(Integer, nullable=False, default=0)
    total_playtime_hours = Column(Float, nullable=False, default=0.0)
    feedback_likes_count = Column(Integer, nullable=False, default=0)
    feedback_dislikes_count = Column(Integer, nullable=False, default=0)
    subscription_tier = Column(String(20), nullable=False, default="free")
    subscription_expires_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("idx_user_profiles_tier", "subscription_tier"),
    )


class UserFeedback(Base):
    """Explicit feedback on a recommended game."""

    __tablename__ = "user_feedback"

    user_id = Column(
        String(64), ForeignKey("user_profiles.id", ondelete="CASCADE"), primary_key=True
    )
    app_id = Column(
        BigInteger, ForeignKey("games.app_id", ondelete="CASCADE"), primary_key=True
    )
    feedback_type = Column(String(20), nullable=False)  # love, like, dislike, not_interested
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("idx_user_feedback_user", "user_id"),
        Index("idx_user_feedback_type", "user_id", "feedback_type"),
        CheckConstraint(
            "feedback_type IN ('love', 'like', 'dislike', 'not_interested')",
            name="ck_user_feedback_type",
        ),
    )
