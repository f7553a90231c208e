"""
Central configuration for the Beanstalk ranking core.

All shared constants and configuration values should be defined here
to avoid duplication and ensure consistency across modules.
"""

from pathlib import Path

# --- Project Paths ---
PROJECT_ROOT = Path(__file__).parent.parent
DATA_FOLDER = PROJECT_ROOT / "data"
OUTPUT_FOLDER = DATA_FOLDER / "processed"

# Input/output file patterns
RESULTS_PATTERN = "season_*_results.csv"
LEADERBOARD_TEMPLATE = "season_{season_id}_leaderboard.csv"

# --- Point Distribution Configuration ---
PERCENT_RECEIVING_POINTS = 0.5  # Fraction of the field that receives any points
PERCENT_FOR_FIRST_PLACE = 0.15  # Fraction of the adjusted total paid to first place
EXTRA_POINTS_PER_PERSON = 20  # Added to the pool per participant
MIN_PLAYERS_TO_BE_LEGAL = 12  # Smaller fields pay nothing

# Bisection search over the decay exponent
ALPHA_LOWER_BOUND = 0.0
ALPHA_UPPER_BOUND = 3.0
CONVERGENCE_THRESHOLD = 0.001  # Stop when upper - lower drops below this

# Relative slack allowed between a payout sum and its adjusted total
SUM_TOLERANCE = 0.01

# --- Tournament Types ---
# Baseline point total per tournament type before the per-player points are added
TOURNAMENT_POINTS = {
    "worlds championship": 4000,
    "continental championship": 2000,
    "national championship": 1000,
    "intercontinental championship": 200,
    "circuit opener": 50,
}

# Number of results per type that count toward a season total (best N kept)
MAX_TOURNAMENTS_PER_TYPE = {
    "worlds championship": 1,
    "continental championship": 1,
    "national championship": 3,
    "intercontinental championship": 1,
    "circuit opener": 5,
}

# Types paid entirely to first place (qualifier-aggregating events)
WINNER_TAKE_ALL_TYPES = frozenset({"intercontinental championship"})

# --- Leaderboard Configuration ---
TAG_SEPARATOR = ";"  # Separator for multiple tags in a results CSV cell
DEFAULT_SEASON_ID = 0
DEFAULT_SEASON_NAME = "Season 0"
