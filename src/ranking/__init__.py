"""
Ranking Core

Modules:
- distribution: Per-placement bean payout for one tournament
- placements: Applying a payout to final standings
- seasons: Per-season tournament type configuration
- aggregation: Season leaderboard with per-type result caps
"""

_EXPORTS = {
    "calculate_point_distribution": "src.ranking.distribution",
    "distribute_for_config": "src.ranking.distribution",
    "point_distribution_preview": "src.ranking.distribution",
    "build_placement_facts": "src.ranking.placements",
    "placement_facts_from_dataframe": "src.ranking.placements",
    "SeasonConfig": "src.ranking.seasons",
    "SeasonRegistry": "src.ranking.seasons",
    "aggregate_season": "src.ranking.aggregation",
    "TournamentType": "src.ranking.models",
    "TournamentTypeConfig": "src.ranking.models",
    "PlacementFact": "src.ranking.models",
    "LeaderboardFilter": "src.ranking.models",
}


def __getattr__(name):
    """Lazy imports to avoid RuntimeWarning when running modules directly."""
    if name in _EXPORTS:
        import importlib
        return getattr(importlib.import_module(_EXPORTS[name]), name)
    if name == "run_leaderboard":
        from src.ranking.aggregation import main
        return main
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
