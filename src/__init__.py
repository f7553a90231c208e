"""
Beanstalk Ranking Core

This package contains the core modules for:
- Tournament point distribution ("beans") per placement (src.ranking)
- Season leaderboard aggregation with per-type result caps
- Shared configuration and utilities
"""

from src.config import *
