"""Exceptions raised by the ranking core."""


class RankingError(Exception):
    """Base exception for point distribution and leaderboard errors"""
    pass


class InvalidInputError(RankingError, ValueError):
    """Raised for negative counts, out-of-range fractions or unknown tournament types"""
    pass


class UnresolvedContextError(RankingError, LookupError):
    """Raised when no configuration exists for a requested season or tournament type"""
    pass
