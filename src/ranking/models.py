"""
Ranking Data Model

Plain value types shared by the point distribution calculator and the
season aggregator:
- TournamentType: closed set of tournament categories
- TournamentTypeConfig: per-type payout coefficients and result cap
- PointDistribution: per-placement beans for one tournament
- PlacementFact: beans earned by one player at one tournament
- LeaderboardEntry: one player's aggregated season total
- LeaderboardFilter: faction/format/tag predicate applied before aggregation
"""

from dataclasses import dataclass, field
from enum import Enum

import pandas as pd

from src.config import (
    EXTRA_POINTS_PER_PERSON,
    MAX_TOURNAMENTS_PER_TYPE,
    MIN_PLAYERS_TO_BE_LEGAL,
    PERCENT_FOR_FIRST_PLACE,
    PERCENT_RECEIVING_POINTS,
    TOURNAMENT_POINTS,
    WINNER_TAKE_ALL_TYPES,
)
from src.ranking.errors import InvalidInputError
from src.utils import (
    normalize_tags,
    validate_count,
    validate_fraction,
    validate_non_negative,
)


class TournamentType(str, Enum):
    CIRCUIT_OPENER = "circuit opener"
    NATIONAL = "national championship"
    CONTINENTAL = "continental championship"
    INTERCONTINENTAL = "intercontinental championship"
    WORLDS = "worlds championship"

    @classmethod
    def parse(cls, value) -> "TournamentType":
        """
        Resolve a TournamentType from an enum member or its label.

        Labels are matched case-insensitively ("National Championship" works).

        Raises:
            InvalidInputError: If value is not a known tournament type
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            label = " ".join(value.strip().lower().split())
            for member in cls:
                if member.value == label:
                    return member
        raise InvalidInputError(
            f"Unknown tournament type: {value!r}. "
            f"Allowed values: {', '.join(m.value for m in cls)}"
        )


@dataclass(frozen=True)
class TournamentTypeConfig:
    """Payout coefficients and season cap for one tournament type."""
    tournament_type: TournamentType
    baseline_points: float
    points_per_player: float = EXTRA_POINTS_PER_PERSON
    min_players_to_be_legal: int = MIN_PLAYERS_TO_BE_LEGAL
    first_place_fraction: float = PERCENT_FOR_FIRST_PLACE
    receiving_fraction: float = PERCENT_RECEIVING_POINTS
    tournament_limit: int = 1
    winner_take_all: bool = False

    def __post_init__(self):
        object.__setattr__(self, "tournament_type", TournamentType.parse(self.tournament_type))
        validate_non_negative(self.baseline_points, "baseline_points")
        validate_non_negative(self.points_per_player, "points_per_player")
        validate_count(self.min_players_to_be_legal, "min_players_to_be_legal")
        validate_fraction(self.first_place_fraction, "first_place_fraction")
        validate_fraction(self.receiving_fraction, "receiving_fraction")
        validate_count(self.tournament_limit, "tournament_limit")
        if self.tournament_limit < 1:
            raise InvalidInputError(f"tournament_limit must be >= 1, got {self.tournament_limit}")

    def to_dict(self) -> dict:
        return {
            "code": self.tournament_type.value,
            "baseline_points": self.baseline_points,
            "points_per_player": self.points_per_player,
            "min_players_to_be_legal": self.min_players_to_be_legal,
            "first_place_fraction": self.first_place_fraction,
            "receiving_fraction": self.receiving_fraction,
            "tournament_limit": self.tournament_limit,
            "winner_take_all": self.winner_take_all,
        }


def default_tournament_configs() -> dict[TournamentType, TournamentTypeConfig]:
    """Build the default per-type table from src.config."""
    return {
        t: TournamentTypeConfig(
            tournament_type=t,
            baseline_points=TOURNAMENT_POINTS[t.value],
            tournament_limit=MAX_TOURNAMENTS_PER_TYPE[t.value],
            winner_take_all=t.value in WINNER_TAKE_ALL_TYPES,
        )
        for t in TournamentType
    }


DEFAULT_TOURNAMENT_CONFIGS = default_tournament_configs()


@dataclass(frozen=True)
class PointDistribution:
    """
    Beans per placement for one tournament.

    points[0] is first place. adjusted_total is the budget the payout curve
    was calibrated against (baseline plus per-player points).
    """
    points: tuple[float, ...]
    adjusted_total: float

    def __len__(self):
        return len(self.points)

    def __iter__(self):
        return iter(self.points)

    def __getitem__(self, index):
        return self.points[index]

    @property
    def total(self) -> float:
        return float(sum(self.points))

    def cumulative_percentages(self) -> list[float]:
        """Running payout sum at each placement as a percentage of adjusted_total."""
        if self.adjusted_total == 0:
            return [0.0] * len(self.points)
        cumulative = []
        running = 0.0
        for value in self.points:
            running += value
            cumulative.append(running / self.adjusted_total * 100.0)
        return cumulative

    def to_dataframe(self) -> pd.DataFrame:
        """
        Preview table for the distribution.

        Returns:
            DataFrame with columns [placement, points, cumulative], values
            rounded to 2 decimals; adjusted_total is stored in df.attrs.
        """
        df = pd.DataFrame({
            'placement': range(1, len(self.points) + 1),
            'points': [round(p, 2) for p in self.points],
            'cumulative': [round(c, 2) for c in self.cumulative_percentages()],
        })
        df.attrs['adjusted_total'] = self.adjusted_total
        return df


@dataclass(frozen=True)
class PlacementFact:
    """Beans earned by one player at one tournament. Replaced on re-ingestion, never mutated."""
    player_id: str
    tournament_id: str
    tournament_type: TournamentType
    season_id: int
    placement: int
    points: float
    faction: str | None = None
    format: str | None = None
    tags: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self):
        object.__setattr__(self, "tournament_type", TournamentType.parse(self.tournament_type))
        object.__setattr__(self, "tags", normalize_tags(self.tags))
        validate_count(self.placement, "placement")
        if self.placement < 1:
            raise InvalidInputError(f"placement must be >= 1, got {self.placement}")
        validate_non_negative(self.points, "points")


@dataclass(frozen=True)
class LeaderboardEntry:
    """A player's season total. Derived from PlacementFacts on every query."""
    player_id: str
    season_id: int
    total_points: float
    contributing_placements: tuple[PlacementFact, ...]
    rank: int = 0

    @property
    def num_results(self) -> int:
        return len(self.contributing_placements)


@dataclass(frozen=True)
class LeaderboardFilter:
    """
    Restricts which facts participate in a leaderboard view.

    Unset criteria match everything. tags match when a fact carries any of them.
    """
    faction: str | None = None
    format: str | None = None
    tags: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self):
        object.__setattr__(self, "tags", normalize_tags(self.tags))

    def matches(self, fact: PlacementFact) -> bool:
        if self.faction is not None and fact.faction != self.faction:
            return False
        if self.format is not None and fact.format != self.format:
            return False
        if self.tags and not (self.tags & fact.tags):
            return False
        return True
