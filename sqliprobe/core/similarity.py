"""Response comparison helpers: edit-distance similarity and correlation."""

import statistics
from typing import Sequence

from rapidfuzz.distance import Levenshtein


def levenshtein(a: str, b: str) -> int:
    """Classic edit distance (unit-cost insert / delete / substitute)."""
    return Levenshtein.distance(a or "", b or "")


def similarity(a: str, b: str) -> int:
    """Percentage 0..100; two empty strings are 100% similar."""
    a = a or ""
    b = b or ""
    longest = max(len(a), len(b))
    if longest == 0:
        return 100
    return round((1 - levenshtein(a, b) / longest) * 100)


def pearson(xs: Sequence[float], ys: Sequence[float]) -> float:
    """
    Pearson correlation of two equal-length series.

    A single observation carries no variance to compare and is treated as
    a perfect fit; a constant series gives 0.0.
    """
    if len(xs) != len(ys) or not xs:
        return 0.0
    if len(xs) == 1:
        return 1.0
    try:
        return statistics.correlation([float(x) for x in xs], [float(y) for y in ys])
    except statistics.StatisticsError:
        return 0.0
