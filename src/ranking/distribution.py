"""
Tournament Point Distribution

Given a tournament's size and type, computes how many beans each placement
receives. The payout curve is a decaying power law anchored on a fixed
first-place payout:

    points(i) = first_place_points / i ** alpha     for i in 1..total_winners

where alpha is found by bisection so the payout sum lands on the adjusted
total (baseline plus points per participant). Placements past the receiving
fraction of the field get nothing.

Usage:
    from src.ranking.distribution import calculate_point_distribution
    dist = calculate_point_distribution(1000, 64, "national championship")
"""

import math
from functools import lru_cache
from typing import Mapping

import numpy as np
import pandas as pd

from src.config import (
    ALPHA_LOWER_BOUND,
    ALPHA_UPPER_BOUND,
    CONVERGENCE_THRESHOLD,
    EXTRA_POINTS_PER_PERSON,
    MIN_PLAYERS_TO_BE_LEGAL,
    PERCENT_FOR_FIRST_PLACE,
    PERCENT_RECEIVING_POINTS,
    SUM_TOLERANCE,
)
from src.ranking.errors import InvalidInputError
from src.ranking.models import (
    DEFAULT_TOURNAMENT_CONFIGS,
    PointDistribution,
    TournamentType,
    TournamentTypeConfig,
)
from src.utils import (
    setup_logging,
    validate_count,
    validate_fraction,
    validate_non_negative,
)

# --- Module Logger ---
logger = setup_logging(__name__)


def resolve_type_config(tournament_type, type_configs=None) -> TournamentTypeConfig | None:
    """
    Look up the configuration for a tournament type.

    Args:
        tournament_type: TournamentType, its label, or None for no type rules
        type_configs: Per-type table (default: DEFAULT_TOURNAMENT_CONFIGS)

    Returns:
        The type's config, or None when tournament_type is None

    Raises:
        InvalidInputError: If the type is unknown or missing from type_configs
    """
    if tournament_type is None:
        return None
    t = TournamentType.parse(tournament_type)
    configs = DEFAULT_TOURNAMENT_CONFIGS if type_configs is None else type_configs
    if t not in configs:
        raise InvalidInputError(f"No configuration for tournament type '{t.value}'")
    return configs[t]


def decaying_payout(first_place_points, num_players, total_winners, alpha):
    """Payout vector for a given decay exponent; placements past total_winners get 0."""
    points = np.zeros(num_players, dtype=np.float64)
    ranks = np.arange(1, total_winners + 1, dtype=np.float64)
    points[:total_winners] = first_place_points / ranks ** alpha
    return points


def calculate_point_distribution(
    baseline_points,
    num_players,
    tournament_type=None,
    first_place_fraction=PERCENT_FOR_FIRST_PLACE,
    receiving_fraction=PERCENT_RECEIVING_POINTS,
    extra_points_per_player=EXTRA_POINTS_PER_PERSON,
    *,
    type_configs: Mapping[TournamentType, TournamentTypeConfig] | None = None,
    threshold=CONVERGENCE_THRESHOLD,
) -> PointDistribution:
    """
    Calculate the point distribution for one tournament.

    Args:
        baseline_points: Baseline beans the tournament distributes before size scaling
        num_players: Total number of players in the tournament
        tournament_type: Type used for the winner-take-all and minimum-size rules.
            None applies neither rule type-specifically (global minimum only).
        first_place_fraction: Fraction of the adjusted total that first place receives
        receiving_fraction: Fraction of the field that receives any points
        extra_points_per_player: Beans added to the pool per participant
        type_configs: Per-type table (default: DEFAULT_TOURNAMENT_CONFIGS)
        threshold: Bisection stops once the alpha search interval is narrower than this

    Returns:
        PointDistribution with len(points) == num_players

    Raises:
        InvalidInputError: On negative counts, fractions outside (0, 1] or unknown types
    """
    validate_non_negative(baseline_points, "baseline_points")
    validate_count(num_players, "num_players")
    validate_fraction(first_place_fraction, "first_place_fraction")
    validate_fraction(receiving_fraction, "receiving_fraction")
    validate_non_negative(extra_points_per_player, "extra_points_per_player")
    validate_non_negative(threshold, "threshold")
    if threshold == 0:
        raise InvalidInputError("threshold must be > 0")
    # numpy scalars from DataFrame columns
    num_players = int(num_players)
    config = resolve_type_config(tournament_type, type_configs)

    # Winner take all: qualifier-aggregating events are not distributed by rank
    if config is not None and config.winner_take_all:
        points = [0.0] * num_players
        if num_players:
            points[0] = float(baseline_points)
        return PointDistribution(points=tuple(points), adjusted_total=float(baseline_points))

    # Must have enough players to earn any points
    min_players = config.min_players_to_be_legal if config is not None else MIN_PLAYERS_TO_BE_LEGAL
    if num_players < min_players:
        logger.debug(f"{num_players} players is below the minimum of {min_players}, no payout")
        return PointDistribution(points=(0.0,) * num_players, adjusted_total=float(baseline_points))

    adjusted_total = float(baseline_points + num_players * extra_points_per_player)
    total_winners = min(num_players, math.ceil(num_players * receiving_fraction))
    first_place_points = adjusted_total * first_place_fraction

    lower = ALPHA_LOWER_BOUND
    upper = ALPHA_UPPER_BOUND
    points = np.zeros(num_players, dtype=np.float64)
    alpha = lower
    iterations = 0

    while upper - lower > threshold:
        alpha = (upper + lower) / 2
        points = decaying_payout(first_place_points, num_players, total_winners, alpha)
        iterations += 1

        # Payout too generous -> decay must be steeper
        if float(points.sum()) > adjusted_total:
            lower = alpha
        else:
            upper = alpha

    logger.debug(
        f"Calibrated alpha={alpha:.4f} after {iterations} iterations "
        f"({total_winners}/{num_players} paid, pool {adjusted_total:.2f})"
    )
    paid = float(points.sum())
    if paid > adjusted_total * (1 + SUM_TOLERANCE):
        logger.warning(
            f"Payout of {paid:.2f} exceeds the pool of {adjusted_total:.2f}: no alpha in "
            f"[{ALPHA_LOWER_BOUND}, {ALPHA_UPPER_BOUND}] fits first_place_fraction={first_place_fraction}"
        )

    return PointDistribution(
        points=tuple(float(p) for p in points),
        adjusted_total=adjusted_total,
    )


def distribute_for_config(config: TournamentTypeConfig, num_players, *, threshold=CONVERGENCE_THRESHOLD) -> PointDistribution:
    """Run the calculator with a tournament type's own coefficients."""
    return calculate_point_distribution(
        config.baseline_points,
        num_players,
        config.tournament_type,
        first_place_fraction=config.first_place_fraction,
        receiving_fraction=config.receiving_fraction,
        extra_points_per_player=config.points_per_player,
        type_configs={config.tournament_type: config},
        threshold=threshold,
    )


@lru_cache(maxsize=1024)
def cached_point_distribution(
    baseline_points,
    num_players,
    tournament_type=None,
    first_place_fraction=PERCENT_FOR_FIRST_PLACE,
    receiving_fraction=PERCENT_RECEIVING_POINTS,
    extra_points_per_player=EXTRA_POINTS_PER_PERSON,
) -> PointDistribution:
    """Memoized calculate_point_distribution against the default type table."""
    return calculate_point_distribution(
        baseline_points,
        num_players,
        tournament_type,
        first_place_fraction,
        receiving_fraction,
        extra_points_per_player,
    )


def point_distribution_preview(
    baseline_points,
    num_players,
    tournament_type=None,
    **kwargs,
) -> pd.DataFrame:
    """
    Tabular preview of a distribution for display collaborators.

    Returns:
        DataFrame with columns [placement, points, cumulative]; cumulative is
        the running payout as a percentage of the adjusted total.
    """
    dist = calculate_point_distribution(baseline_points, num_players, tournament_type, **kwargs)
    return dist.to_dataframe()
