import logging
import math
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from pathlib import Path
from typing import Iterator, Sequence, TypeVar
import pandas as pd

logger = logging.getLogger(__name__)

T = TypeVar("T")


def get_date_suffix_for_filename() -> str:
    """Returns the current date as a YYYY-MM-DD string for filenames."""
    return datetime.now().strftime("%Y-%m-%d")


def is_missing(value) -> bool:
    """True for None and for float NaN (pandas' NULL)."""
    return value is None or (isinstance(value, float) and math.isnan(value))


def round_half_up(value: float | None, places: int = 2) -> float | None:
    """
    Rounds half away from zero, the way SQL ROUND treats decimals.
    Python's round() uses banker's rounding and would turn 0.125 into 0.12.
    """
    if is_missing(value):
        return None
    if not math.isfinite(value):
        return value
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def safe_divide(numerator: float | None, denominator: float | None) -> float | None:
    """numerator / NULLIF(denominator, 0); None stands for the SQL NULL result."""
    if is_missing(numerator) or is_missing(denominator) or denominator == 0:
        return None
    return numerator / denominator


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yields consecutive slices of at most `size` items."""
    if size < 1:
        raise ValueError("chunk size must be at least 1")
    for start in range(0, len(items), size):
        yield items[start : start + size]


def load_csv(file_path: Path) -> pd.DataFrame | None:
    """
    A CSV loader with an encoding fallback.
    It will attempt to read a file in the following order:
    1. UTF-8 with BOM support ('utf-8-sig').
    2. Latin-1, which can read any byte sequence.
    """
    try:
        return pd.read_csv(file_path, encoding="utf-8-sig")

    except UnicodeDecodeError:
        logger.info(f"UTF-8 decoding failed for {file_path.name}. Retrying with 'latin-1'.")
        try:
            return pd.read_csv(file_path, encoding="latin-1")
        except (OSError, ValueError) as e_latin1:
            logger.error(
                f"Could not read {file_path.name} even with latin-1. Reason: {e_latin1}"
            )
            return None

    except FileNotFoundError:
        logger.error(f"Dataset not found at {file_path}.")
        return None
