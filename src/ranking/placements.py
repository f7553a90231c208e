"""
Placement Facts

Applies a tournament's point distribution to its final standings, producing
one PlacementFact per player. Re-ingesting a tournament builds a fresh list
of facts; callers replace the old ones wholesale.
"""

from typing import Iterable, Mapping, Sequence

import pandas as pd

from src.config import TAG_SEPARATOR
from src.ranking.distribution import distribute_for_config
from src.ranking.errors import InvalidInputError
from src.ranking.models import PlacementFact, TournamentType, TournamentTypeConfig
from src.utils import normalize_tags, setup_logging, validate_count

# --- Module Logger ---
logger = setup_logging(__name__)

REQUIRED_RESULT_COLUMNS = ['tournament_id', 'tournament_type', 'season_id', 'player_id', 'placement']


def build_placement_facts(
    tournament_id: str,
    tournament_type,
    season_id: int,
    standings: Sequence[str],
    type_config: TournamentTypeConfig,
    *,
    num_players: int | None = None,
    faction_by_player: Mapping[str, str] | None = None,
    format: str | None = None,
    tags: Iterable[str] = (),
) -> list[PlacementFact]:
    """
    Build PlacementFacts from a tournament's final standings.

    Args:
        tournament_id: Tournament identity
        tournament_type: TournamentType or its label
        season_id: Season the tournament belongs to
        standings: Player ids in finishing order (index 0 = first place)
        type_config: Configuration of the tournament's type in that season
        num_players: Field size used for the payout; defaults to len(standings)
            (larger when only the top of the standings is known)
        faction_by_player: Optional player_id -> faction played
        format: Optional game format of the tournament
        tags: Tournament tags (normalized on the facts)

    Returns:
        One PlacementFact per player in standings order

    Raises:
        InvalidInputError: On duplicate players, a type mismatch with
            type_config, or num_players smaller than the standings
    """
    t = TournamentType.parse(tournament_type)
    if t != type_config.tournament_type:
        raise InvalidInputError(
            f"Tournament {tournament_id} is a '{t.value}' but was given the "
            f"'{type_config.tournament_type.value}' configuration"
        )

    if len(set(standings)) != len(standings):
        raise InvalidInputError(f"Tournament {tournament_id} lists a player more than once")

    if num_players is None:
        num_players = len(standings)
    validate_count(num_players, "num_players")
    if num_players < len(standings):
        raise InvalidInputError(
            f"Tournament {tournament_id}: num_players ({num_players}) is smaller "
            f"than the standings ({len(standings)})"
        )

    distribution = distribute_for_config(type_config, num_players)
    factions = faction_by_player or {}
    tag_set = normalize_tags(tags)

    facts = [
        PlacementFact(
            player_id=player_id,
            tournament_id=tournament_id,
            tournament_type=t,
            season_id=season_id,
            placement=placement,
            points=distribution[placement - 1],
            faction=factions.get(player_id),
            format=format,
            tags=tag_set,
        )
        for placement, player_id in enumerate(standings, start=1)
    ]

    logger.debug(
        f"Tournament {tournament_id} ({t.value}, {num_players} players): "
        f"{sum(f.points for f in facts):.2f} beans awarded"
    )
    return facts


def _optional_str(value) -> str | None:
    if value is None or pd.isna(value) or value == "":
        return None
    return str(value)


def _split_tags(value) -> list[str]:
    if _optional_str(value) is None:
        return []
    return [t for t in str(value).split(TAG_SEPARATOR) if t.strip()]


def placement_facts_from_dataframe(results_df: pd.DataFrame, season_config) -> list[PlacementFact]:
    """
    Build PlacementFacts from a flat results table.

    Args:
        results_df: DataFrame with columns [tournament_id, tournament_type,
            season_id, player_id, placement] and optional [num_players,
            faction, format, tags] (tags separated by TAG_SEPARATOR)
        season_config: SeasonConfig whose per-type table prices the tournaments

    Returns:
        List of PlacementFacts, ordered by tournament then placement

    Raises:
        InvalidInputError: If required columns are missing or a tournament has
            inconsistent type/season values, or belongs to another season
        UnresolvedContextError: If a tournament's type is not configured for the season
    """
    missing = [c for c in REQUIRED_RESULT_COLUMNS if c not in results_df.columns]
    if missing:
        raise InvalidInputError(f"Results table is missing columns: {', '.join(missing)}")

    if results_df.empty:
        logger.warning("Results table is empty, no placement facts built")
        return []

    df = results_df.copy()
    df['tournament_id'] = df['tournament_id'].astype(str)
    df['player_id'] = df['player_id'].astype(str)
    df = df.sort_values(['tournament_id', 'placement'], kind='mergesort')

    facts: list[PlacementFact] = []
    for tournament_id, group in df.groupby('tournament_id', sort=True):
        types = group['tournament_type'].unique()
        seasons = group['season_id'].unique()
        if len(types) != 1 or len(seasons) != 1:
            raise InvalidInputError(f"Tournament {tournament_id} has inconsistent type or season values")

        expected = list(range(1, len(group) + 1))
        if [int(p) for p in group['placement']] != expected:
            raise InvalidInputError(f"Tournament {tournament_id} placements are not 1..{len(group)}")

        season_id = int(seasons[0])
        if season_id != season_config.season_id:
            raise InvalidInputError(
                f"Tournament {tournament_id} belongs to season {season_id}, "
                f"not season {season_config.season_id}"
            )

        t = TournamentType.parse(types[0])
        num_players = None
        if 'num_players' in group.columns and group['num_players'].notna().any():
            num_players = int(group['num_players'].max())

        factions = {}
        if 'faction' in group.columns:
            factions = {
                row['player_id']: _optional_str(row['faction'])
                for _, row in group.iterrows()
            }

        fmt = _optional_str(group['format'].iloc[0]) if 'format' in group.columns else None
        tags = _split_tags(group['tags'].iloc[0]) if 'tags' in group.columns else []

        facts.extend(build_placement_facts(
            tournament_id,
            t,
            season_id,
            list(group['player_id']),
            season_config.config_for(t),
            num_players=num_players,
            faction_by_player=factions,
            format=fmt,
            tags=tags,
        ))

    logger.info(f"Built {len(facts)} placement facts from {df['tournament_id'].nunique()} tournaments")
    return facts
