"""
Genre and franchise diversity normalization.

A user with 500 hours across ten FPS games would otherwise get FPS-only
recommendations, and three Total War: Warhammer entries would pull the
whole vector toward one series. Each game's weight is divided by the
square root of how often its primary genre (and its most represented
franchise) appears in the candidate set. The sqrt softens the penalty
rather than cancelling volume out completely.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Hashable

logger = logging.getLogger(__name__)

UNKNOWN_GENRE = "Unknown"

# Tag substrings that identify a series or shared universe
FRANCHISE_MARKERS = (
    "Warhammer",
    "Total War",
    "Call of Duty",
    "Assassin's Creed",
    "Grand Theft Auto",
    "The Elder Scrolls",
    "Fallout",
    "Battlefield",
    "Far Cry",
    "Civilization",
    "Dark Souls",
    "Souls-like",
    "Pokemon",
    "Final Fantasy",
    "LEGO",
    "Star Wars",
    "Marvel",
    "DC Comics",
    "Harry Potter",
    "Lord of the Rings",
    "Witcher",
    "Dragon Age",
    "Mass Effect",
    "Borderlands",
    "Metro",
    "Resident Evil",
    "Silent Hill",
    "Persona",
    "Kingdom Hearts",
)


@dataclass
class WeightedGame:
    """A candidate game for diversity normalization."""

    app_id: Hashable
    weight: float
    genres: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)

    @property
    def primary_genre(self) -> str:
        return self.genres[0] if self.genres else UNKNOWN_GENRE


def match_franchises(
    tags: list[str],
    markers: tuple[str, ...] = FRANCHISE_MARKERS,
) -> list[str]:
    """Return every franchise marker found (case-insensitive substring) in the tags."""
    lowered = [tag.lower() for tag in tags or []]
    return [
        marker for marker in markers
        if any(marker.lower() in tag for tag in lowered)
    ]


class DiversityNormalizer:
    """Apply sqrt genre and franchise penalties to raw game weights."""

    def __init__(self, franchise_markers: tuple[str, ...] = FRANCHISE_MARKERS):
        self.franchise_markers = franchise_markers

    def normalize(self, games: list[WeightedGame]) -> dict[Hashable, float]:
        """
        Compute diversity-adjusted weights.

        Args:
            games: Candidate set (already filtered and truncated)

        Returns:
            Mapping of app_id -> adjusted weight
        """
        genre_counts: dict[str, int] = {}
        franchise_counts: dict[str, int] = {}
        matches: dict[Hashable, list[str]] = {}

        for game in games:
            genre = game.primary_genre
            genre_counts[genre] = genre_counts.get(genre, 0) + 1

            franchises = match_franchises(game.tags, self.franchise_markers)
            matches[game.app_id] = franchises
            for franchise in franchises:
                franchise_counts[franchise] = franchise_counts.get(franchise, 0) + 1

        adjusted = {}
        for game in games:
            genre_penalty = 1 / math.sqrt(genre_counts.get(game.primary_genre, 1))

            franchise_penalty = 1.0
            franchises = matches[game.app_id]
            if franchises:
                # Strongest represented franchise wins
                max_count = max(franchise_counts.get(f, 1) for f in franchises)
                franchise_penalty = 1 / math.sqrt(max_count)

            adjusted[game.app_id] = game.weight * genre_penalty * franchise_penalty

        if franchise_counts:
            logger.debug(f"Franchise counts for diversity penalty: {franchise_counts}")

        return adjusted


def normalize_for_diversity(games: list[WeightedGame]) -> dict[Hashable, float]:
    """Convenience wrapper using the default franchise catalogue."""
    return DiversityNormalizer().normalize(games)
