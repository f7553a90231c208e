"""
Season Configuration

Each season carries its own immutable per-type table. The registry resolves
a season id to that table and refuses to guess when a season is unknown:
an empty leaderboard would be indistinguishable from a season with no
results yet.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from src.config import DEFAULT_SEASON_ID, DEFAULT_SEASON_NAME
from src.ranking.errors import InvalidInputError, UnresolvedContextError
from src.ranking.models import (
    DEFAULT_TOURNAMENT_CONFIGS,
    TournamentType,
    TournamentTypeConfig,
)
from src.utils import setup_logging

# --- Module Logger ---
logger = setup_logging(__name__)


@dataclass(frozen=True)
class SeasonConfig:
    season_id: int
    name: str
    # Read-only view; hashing goes by season id and name
    tournament_configs: Mapping[TournamentType, TournamentTypeConfig] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        configs = {}
        for key, config in dict(self.tournament_configs).items():
            t = TournamentType.parse(key)
            if config.tournament_type != t:
                raise InvalidInputError(
                    f"Season {self.season_id}: config for '{config.tournament_type.value}' "
                    f"registered under '{t.value}'"
                )
            configs[t] = config
        object.__setattr__(self, "tournament_configs", MappingProxyType(configs))

    def config_for(self, tournament_type) -> TournamentTypeConfig:
        """
        Raises:
            UnresolvedContextError: If the season does not configure this type
        """
        t = TournamentType.parse(tournament_type)
        try:
            return self.tournament_configs[t]
        except KeyError:
            raise UnresolvedContextError(
                f"Season {self.season_id} has no configuration for '{t.value}'"
            ) from None


def default_season_config(season_id: int = DEFAULT_SEASON_ID, name: str = DEFAULT_SEASON_NAME) -> SeasonConfig:
    return SeasonConfig(season_id=season_id, name=name, tournament_configs=DEFAULT_TOURNAMENT_CONFIGS)


class SeasonRegistry:
    """Season id -> SeasonConfig. A registered season's config is never replaced."""

    def __init__(self, seasons=()):
        self._seasons: dict[int, SeasonConfig] = {}
        for season in seasons:
            self.register(season)

    def register(self, season: SeasonConfig) -> None:
        if season.season_id in self._seasons:
            raise InvalidInputError(f"Season {season.season_id} is already registered")
        self._seasons[season.season_id] = season
        logger.debug(f"Registered season {season.season_id} ({season.name})")

    def resolve(self, season_id: int) -> SeasonConfig:
        """
        Raises:
            UnresolvedContextError: If no configuration exists for season_id
        """
        try:
            return self._seasons[season_id]
        except KeyError:
            raise UnresolvedContextError(f"No configuration for season {season_id}") from None

    def current(self) -> SeasonConfig:
        """The most recent (highest id) season."""
        if not self._seasons:
            raise UnresolvedContextError("No seasons are registered")
        return self._seasons[max(self._seasons)]

    def seasons(self) -> list[SeasonConfig]:
        return [self._seasons[k] for k in sorted(self._seasons)]

    def __contains__(self, season_id):
        return season_id in self._seasons

    def __len__(self):
        return len(self._seasons)


def ranking_config(season: SeasonConfig) -> dict:
    """
    Configuration surface for one season, keyed by tournament type label.

    Returns:
        {'season_id', 'name', 'tournament_configs': {code: {...}}}
    """
    return {
        'season_id': season.season_id,
        'name': season.name,
        'tournament_configs': {
            t.value: season.tournament_configs[t].to_dict()
            for t in TournamentType
            if t in season.tournament_configs
        },
    }
