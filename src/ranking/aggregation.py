"""
Season Leaderboard Aggregation

Turns a season's placement facts into leaderboard rows:
- Facts are filtered (season, faction, format, tags) before grouping
- Each player's results are grouped by tournament type
- Only the best `tournament_limit` results of each type count
- Players are ordered by total beans, ties broken by player id

Usage:
    python -m src.ranking.aggregation
    OR
    from src.ranking.aggregation import aggregate_season
"""

import sys
from pathlib import Path

# Enable both `python src/ranking/aggregation.py` and `python -m src.ranking.aggregation` execution.
# Required for src.config/src.utils imports to resolve correctly.
_project_root = str(Path(__file__).parent.parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from collections import defaultdict
from typing import Iterable, Mapping

import pandas as pd

from src.config import LEADERBOARD_TEMPLATE, OUTPUT_FOLDER, RESULTS_PATTERN, TAG_SEPARATOR
from src.ranking.errors import UnresolvedContextError
from src.ranking.models import (
    LeaderboardEntry,
    LeaderboardFilter,
    PlacementFact,
    TournamentType,
    TournamentTypeConfig,
)
from src.ranking.placements import placement_facts_from_dataframe
from src.ranking.seasons import SeasonConfig, SeasonRegistry, default_season_config
from src.utils import atomic_write_csv, setup_logging

# --- Module Logger ---
logger = setup_logging(__name__)


def result_sort_key(fact: PlacementFact):
    """Best result first; equal points fall back to tournament id, then placement."""
    return (-fact.points, fact.tournament_id, fact.placement)


def _resolve_configs(season_id, configs) -> Mapping[TournamentType, TournamentTypeConfig]:
    if isinstance(configs, SeasonConfig):
        if configs.season_id != season_id:
            raise UnresolvedContextError(
                f"Requested season {season_id} but was given the configuration of season {configs.season_id}"
            )
        configs = configs.tournament_configs
    if not configs:
        raise UnresolvedContextError(f"No tournament configuration available for season {season_id}")
    return configs


def select_counted_results(facts: Iterable[PlacementFact], tournament_limit: int) -> list[PlacementFact]:
    """The `tournament_limit` highest-scoring facts, in a reproducible order."""
    return sorted(facts, key=result_sort_key)[:tournament_limit]


def aggregate_season(
    season_id: int,
    placement_facts: Iterable[PlacementFact],
    configs,
    *,
    filters: LeaderboardFilter | None = None,
) -> list[LeaderboardEntry]:
    """
    Aggregate a season's placement facts into a leaderboard.

    Args:
        season_id: Season to aggregate; facts from other seasons are ignored
        placement_facts: All placement facts available for the season
        configs: SeasonConfig or mapping TournamentType -> TournamentTypeConfig
        filters: Optional faction/format/tag filter applied to the input facts

    Returns:
        LeaderboardEntry list sorted by total points descending, then player id,
        with rank set to the 1-based position

    Raises:
        UnresolvedContextError: If no configuration is available for the season
            or for a tournament type present in its facts
    """
    type_configs = _resolve_configs(season_id, configs)

    facts = [f for f in placement_facts if f.season_id == season_id]
    total_facts = len(facts)
    if filters is not None:
        facts = [f for f in facts if filters.matches(f)]

    # player -> tournament type -> facts
    by_player: defaultdict[str, defaultdict[TournamentType, list[PlacementFact]]] = defaultdict(
        lambda: defaultdict(list)
    )
    for fact in facts:
        if fact.tournament_type not in type_configs:
            raise UnresolvedContextError(
                f"Season {season_id} has no configuration for '{fact.tournament_type.value}'"
            )
        by_player[fact.player_id][fact.tournament_type].append(fact)

    rows = []
    for player_id, by_type in by_player.items():
        counted: list[PlacementFact] = []
        for t in TournamentType:
            if t in by_type:
                counted.extend(select_counted_results(by_type[t], type_configs[t].tournament_limit))
        total = sum(f.points for f in counted)
        rows.append((player_id, total, tuple(counted)))

    rows.sort(key=lambda row: (-row[1], row[0]))

    entries = [
        LeaderboardEntry(
            player_id=player_id,
            season_id=season_id,
            total_points=total,
            contributing_placements=counted,
            rank=rank,
        )
        for rank, (player_id, total, counted) in enumerate(rows, start=1)
    ]

    logger.info(
        f"Season {season_id}: {len(facts)}/{total_facts} placement facts considered, "
        f"{len(entries)} players ranked"
    )
    return entries


def leaderboard_for_season(
    registry: SeasonRegistry,
    season_id: int,
    placement_facts: Iterable[PlacementFact],
    *,
    filters: LeaderboardFilter | None = None,
) -> list[LeaderboardEntry]:
    """aggregate_season with the season's configuration looked up in a registry."""
    return aggregate_season(season_id, placement_facts, registry.resolve(season_id), filters=filters)


def leaderboard_to_dataframe(entries: list[LeaderboardEntry]) -> pd.DataFrame:
    """
    Flatten leaderboard entries into a DataFrame.

    Returns:
        DataFrame with columns [rank, player_id, season_id, total_points, num_results]
    """
    columns = ['rank', 'player_id', 'season_id', 'total_points', 'num_results']
    return pd.DataFrame(
        [
            {
                'rank': e.rank,
                'player_id': e.player_id,
                'season_id': e.season_id,
                'total_points': round(e.total_points, 2),
                'num_results': e.num_results,
            }
            for e in entries
        ],
        columns=columns,
    )


def placement_facts_to_dataframe(facts: Iterable[PlacementFact]) -> pd.DataFrame:
    columns = ['player_id', 'tournament_id', 'tournament_type', 'season_id', 'placement',
               'points', 'faction', 'format', 'tags']
    return pd.DataFrame(
        [
            {
                'player_id': f.player_id,
                'tournament_id': f.tournament_id,
                'tournament_type': f.tournament_type.value,
                'season_id': f.season_id,
                'placement': f.placement,
                'points': f.points,
                'faction': f.faction,
                'format': f.format,
                'tags': TAG_SEPARATOR.join(sorted(f.tags)),
            }
            for f in facts
        ],
        columns=columns,
    )


def process_season(results_csv: Path, season: SeasonConfig, output_folder: Path = OUTPUT_FOLDER) -> pd.DataFrame:
    """
    Build a season leaderboard from a results CSV and export it.

    Args:
        results_csv: Flat results table (see placement_facts_from_dataframe)
        season: Configuration of the season the results belong to
        output_folder: Folder the leaderboard CSV is written to

    Returns:
        Leaderboard DataFrame
    """
    logger.info("=" * 60)
    logger.info(f"Processing season {season.season_id} ({season.name})")
    logger.info("=" * 60)
    logger.info(f"Loading results from {results_csv}")
    df = pd.read_csv(results_csv)
    logger.info(f"Loaded {len(df)} rows, {df['tournament_id'].nunique()} tournaments")

    facts = placement_facts_from_dataframe(df, season)
    entries = aggregate_season(season.season_id, facts, season)
    leaderboard = leaderboard_to_dataframe(entries)

    logger.info(f"Top 20 Players ({season.name}):")
    logger.info("\n" + leaderboard.head(20).to_string(index=False))

    output_csv = output_folder / LEADERBOARD_TEMPLATE.format(season_id=season.season_id)
    atomic_write_csv(leaderboard, output_csv, index=False)
    logger.info(f"Exported leaderboard: {output_csv}")

    return leaderboard


def main(folder: Path = OUTPUT_FOLDER):
    """
    Build a leaderboard for every season_<id>_results.csv in folder.

    Files whose season id is not an integer are skipped with a warning.

    Returns:
        Dict of season id -> leaderboard DataFrame
    """
    results_files = sorted(folder.glob(RESULTS_PATTERN))
    if not results_files:
        logger.error(f"No files matching {RESULTS_PATTERN} found in {folder}")
        return {}

    leaderboards = {}
    for results_csv in results_files:
        # season_<id>_results.csv
        try:
            season_id = int(results_csv.stem.split('_')[1])
        except ValueError:
            logger.warning(f"Skipping {results_csv.name}: season id is not an integer")
            continue
        season = default_season_config(season_id, f"Season {season_id}")
        leaderboards[season_id] = process_season(results_csv, season, output_folder=folder)

    return leaderboards


if __name__ == "__main__":
    results = main()
