"""Pydantic schemas for API request/response validation."""

from dataclasses import asdict
from datetime import datetime
from pydantic import BaseModel, Field

from steamrec.services.vector_learning import FeedbackType
from steamrec.services.weighting import LibraryEntry, WeightingOptions


# ============ Library / Preference Schemas ============

class LibraryEntryIn(BaseModel):
    """One owned game from the user's Steam library."""
    app_id: int
    playtime_minutes: int = Field(ge=0)
    last_played: datetime | None = None
    achievements_earned: int | None = Field(default=None, ge=0)
    achievements_total: int | None = Field(default=None, ge=0)
    genres: list[str] = []  # First entry is the primary genre
    tags: list[str] = []
    avg_completion_hours: float | None = Field(default=None, gt=0)

    def to_entry(self) -> LibraryEntry:
        return LibraryEntry(
            app_id=self.app_id,
            playtime_minutes=self.playtime_minutes,
            last_played=self.last_played,
            achievements_earned=self.achievements_earned,
            achievements_total=self.achievements_total,
            genres=list(self.genres),
            tags=list(self.tags),
            avg_completion_hours=self.avg_completion_hours,
        )


class WeightingOptionsIn(BaseModel):
    """Per-request overrides of the builder defaults."""
    recency_decay_months: float | None = Field(default=None, gt=0)
    enable_genre_diversification: bool | None = None
    min_playtime_hours: float | None = Field(default=None, ge=0)
    max_games_to_include: int | None = Field(default=None, ge=1)
    enable_quality_weighting: bool | None = None

    def merge(self, defaults: WeightingOptions) -> WeightingOptions:
        overrides = self.model_dump(exclude_none=True)
        return WeightingOptions(**{**asdict(defaults), **overrides})


class PreferenceVectorRequest(BaseModel):
    games: list[LibraryEntryIn]
    options: WeightingOptionsIn | None = None


class PreferenceVectorResponse(BaseModel):
    success: bool
    games_analyzed: int


class TasteProfileResponse(BaseModel):
    """Summary of the stored taste vectors for a user."""
    user_id: str
    has_preference_vector: bool
    has_learned_vector: bool
    games_analyzed: int
    total_playtime_hours: float
    feedback_likes_count: int
    feedback_dislikes_count: int
    feedback_count: int
    last_updated: datetime | None = None


class ResetTasteRequest(BaseModel):
    clear_feedback_history: bool = False


class ResetTasteResponse(BaseModel):
    success: bool
    feedback_deleted: int
    message: str


# ============ Feedback Schemas ============

class FeedbackRequest(BaseModel):
    user_id: str = Field(min_length=1)
    app_id: int
    feedback_type: FeedbackType


class FeedbackResponse(BaseModel):
    success: bool
    feedback_recorded: bool
    vector_updated: bool
    message: str


class FeedbackItem(BaseModel):
    app_id: str  # String so 64-bit ids survive JavaScript clients
    feedback_type: str
    created_at: datetime
    game_name: str | None = None


class FeedbackHistoryResponse(BaseModel):
    feedback: list[FeedbackItem]
    count: int


# ============ Recommendation Schemas ============

class GameMatch(BaseModel):
    """A game returned by nearest-neighbour search."""
    app_id: int
    name: str
    similarity: float  # 0-1, 1 = identical direction
    genres: list[str] = []
    release_year: int | None = None
    review_positive_pct: int | None = None


class RecommendationsResponse(BaseModel):
    user_id: str
    recommendations: list[GameMatch]
    used_hybrid_vector: bool
    games_excluded: int


class SimilarGamesResponse(BaseModel):
    app_id: int
    similar: list[GameMatch]


class SearchResponse(BaseModel):
    query: str
    results: list[GameMatch]
