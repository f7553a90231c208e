"""
Shared utilities for the Beanstalk ranking core.

This module provides common functions used across multiple modules
to avoid code duplication.
"""

import logging
import math
import numbers
import shutil
import tempfile
import unicodedata
from pathlib import Path

from src.ranking.errors import InvalidInputError


# --- Logging Setup ---
def setup_logging(name: str | None = None, level: int = logging.INFO) -> logging.Logger:
    """
    Configure and return a logger with consistent formatting.

    Args:
        name: Logger name (usually __name__ from the calling module)
        level: Logging level (default: INFO)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(level)
    return logger


# --- File Operations ---
def atomic_write_csv(df, path: Path, **kwargs) -> None:
    """
    Write a DataFrame to CSV atomically using a temporary file.

    This prevents a half-written leaderboard if the write is interrupted.

    Args:
        df: pandas DataFrame to write
        path: Destination path for the CSV file
        **kwargs: Additional arguments to pass to df.to_csv()
    """
    logger = setup_logging(__name__)

    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with tempfile.NamedTemporaryFile(
            mode='w',
            delete=False,
            suffix='.csv',
            dir=path.parent  # Same filesystem for atomic move
        ) as tmp:
            df.to_csv(tmp.name, **kwargs)
            tmp_path = Path(tmp.name)

        shutil.move(str(tmp_path), str(path))
        logger.debug(f"Atomically wrote {len(df)} rows to {path}")

    except Exception:
        if 'tmp_path' in locals() and tmp_path.exists():
            tmp_path.unlink()
        raise


# --- Validation ---
def validate_non_negative(value, name: str) -> None:
    """
    Validate that a numeric input is finite and >= 0.

    Raises:
        InvalidInputError: If value is negative, NaN or infinite
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidInputError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value) or value < 0:
        raise InvalidInputError(f"{name} must be a finite number >= 0, got {value!r}")


def validate_count(value, name: str) -> None:
    """
    Validate that a count is an integer >= 0.

    Raises:
        InvalidInputError: If value is not an integer or is negative
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidInputError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidInputError(f"{name} must be >= 0, got {value}")


def validate_fraction(value, name: str) -> None:
    """
    Validate that a fraction lies in the half-open interval (0, 1].

    Raises:
        InvalidInputError: If value is outside (0, 1]
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidInputError(f"{name} must be a number, got {value!r}")
    if not (0 < value <= 1):
        raise InvalidInputError(f"{name} must be in (0, 1], got {value!r}")


# --- Tags ---
def normalize_tag_name(name: str) -> str:
    """Lowercase a tag name and join its words with '-' ("Online Events" -> "online-events")."""
    return "-".join(chunk.lower() for chunk in unicodedata.normalize("NFC", name).split())


def normalize_tags(tags) -> frozenset[str]:
    """
    Normalize a collection of tag names into a frozenset.

    Raises:
        InvalidInputError: If tags is a single string rather than a collection
    """
    if isinstance(tags, str):
        raise InvalidInputError(f"tags must be a collection of tag names, got the string {tags!r}")
    return frozenset(normalize_tag_name(t) for t in tags)


__all__ = [
    # Logging
    'setup_logging',
    # File operations
    'atomic_write_csv',
    # Validation
    'validate_non_negative',
    'validate_count',
    'validate_fraction',
    # Tags
    'normalize_tag_name',
    'normalize_tags',
]
