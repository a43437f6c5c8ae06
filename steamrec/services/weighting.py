"""Per-game weighting functions for preference vector generation.

These helpers are intentionally dependency-free so they can be unit-tested
without a database. None of them raise: missing inputs fall back to
neutral values.

A game's weight is the product of three signals:
- playtime: logarithmic, near-flat past 200 hours
- recency: exponential half-life decay, floored so old favourites count
- quality: completion ratio and achievement ratio adjustments
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

# Months are approximated as 30 days for the recency decay
DAYS_PER_MONTH = 30

# Ceilings of the two upper playtime regimes. The log curves overshoot
# them (2.65 just under 200h, 2.70 at 10k hours), which would break
# monotonicity at the 200h boundary and the flat cap past it.
DEEP_ENGAGEMENT_CAP = 2.45
PLAYTIME_WEIGHT_CAP = 2.55

# Recency weight for games with no last-played timestamp
NEUTRAL_RECENCY_WEIGHT = 0.5
MIN_RECENCY_WEIGHT = 0.2


@dataclass
class LibraryEntry:
    """One owned game, as supplied by the library ingestion layer."""

    app_id: int
    playtime_minutes: int
    last_played: Optional[datetime] = None
    achievements_earned: Optional[int] = None
    achievements_total: Optional[int] = None
    genres: list[str] = field(default_factory=list)  # First entry = primary genre
    tags: list[str] = field(default_factory=list)
    avg_completion_hours: Optional[float] = None  # e.g. from HowLongToBeat

    @property
    def playtime_hours(self) -> float:
        return max(self.playtime_minutes, 0) / 60


@dataclass
class WeightingOptions:
    """Options recognised by the preference vector builder."""

    recency_decay_months: float = 24.0
    enable_genre_diversification: bool = True
    min_playtime_hours: float = 0.5
    max_games_to_include: int = 200
    enable_quality_weighting: bool = True

    @classmethod
    def from_settings(cls, settings) -> "WeightingOptions":
        return cls(
            recency_decay_months=settings.recency_decay_months,
            enable_genre_diversification=settings.enable_genre_diversification,
            min_playtime_hours=settings.min_playtime_hours,
            max_games_to_include=settings.max_games_to_include,
            enable_quality_weighting=settings.enable_quality_weighting,
        )


def calculate_playtime_weight(play_hours: float) -> float:
    """
    Logarithmic playtime weight.

    - < 2h: 0.1 to 0.5 (tried it, maybe refunded)
    - 2-10h: 0.5 to 1.0
    - 10-50h: 1.0 to ~1.8 (genuine interest)
    - 50-200h: 2.0 to 2.45 (capped)
    - 200h+: 2.5 to 2.55 (capped), near-flat so one game can't dominate
    """
    play_hours = max(play_hours, 0.0)

    if play_hours < 2:
        return 0.1 + (play_hours / 2) * 0.4
    if play_hours < 10:
        return 0.5 + ((play_hours - 2) / 8) * 0.5
    if play_hours < 50:
        return 1.0 + math.log10(play_hours - 9) * 0.5
    if play_hours < 200:
        return min(2.0 + math.log10(play_hours - 49) * 0.3, DEEP_ENGAGEMENT_CAP)
    return min(2.5 + math.log10(play_hours - 199) * 0.05, PLAYTIME_WEIGHT_CAP)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def calculate_recency_weight(
    last_played: Optional[datetime],
    decay_months: float = 24.0,
    now: Optional[datetime] = None,
) -> float:
    """
    Exponential decay with a `decay_months` half-life, floored at 0.2.

    Returns 0.5 when the last-played date is unknown.
    """
    if last_played is None:
        return NEUTRAL_RECENCY_WEIGHT
    if decay_months <= 0:
        return 1.0

    now = _as_utc(now) if now else datetime.now(timezone.utc)
    elapsed_days = (now - _as_utc(last_played)).total_seconds() / 86400
    months_ago = max(elapsed_days, 0.0) / DAYS_PER_MONTH

    weight = 0.5 ** (months_ago / decay_months)
    return max(MIN_RECENCY_WEIGHT, weight)


def calculate_quality_weight(
    play_hours: float,
    avg_completion_hours: Optional[float] = None,
    achievements_earned: Optional[int] = None,
    achievements_total: Optional[int] = None,
) -> float:
    """Completion and achievement adjustments, compounded multiplicatively."""
    weight = 1.0

    if avg_completion_hours and avg_completion_hours > 0:
        completion_ratio = play_hours / avg_completion_hours
        if completion_ratio > 0.8:
            weight *= 1.3  # Completed or near-completed
        elif completion_ratio < 0.2:
            weight *= 0.7  # Abandoned early

    if (
        achievements_earned is not None
        and achievements_total is not None
        and achievements_total > 0
    ):
        achievement_ratio = achievements_earned / achievements_total
        if achievement_ratio > 0.5:
            weight *= 1.2
        elif achievement_ratio < 0.1 and play_hours > 10:
            weight *= 0.9  # Lots of playtime, little engagement

    return weight


def calculate_game_weight(
    entry: LibraryEntry,
    options: Optional[WeightingOptions] = None,
    now: Optional[datetime] = None,
) -> float:
    """Combined playtime x recency x quality weight for one library entry."""
    options = options or WeightingOptions()
    play_hours = entry.playtime_hours

    playtime_weight = calculate_playtime_weight(play_hours)
    recency_weight = calculate_recency_weight(
        entry.last_played, options.recency_decay_months, now=now
    )

    if options.enable_quality_weighting:
        quality_weight = calculate_quality_weight(
            play_hours,
            avg_completion_hours=entry.avg_completion_hours,
            achievements_earned=entry.achievements_earned,
            achievements_total=entry.achievements_total,
        )
    else:
        quality_weight = 1.0

    return playtime_weight * recency_weight * quality_weight
