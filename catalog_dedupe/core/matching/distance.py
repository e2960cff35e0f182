"""
String distance capability.

Distances are computed by rapidfuzz and normalized to [0, 1], where 0 means
identical. Comparisons involving an empty string are undefined and return
None so callers can treat them as "no match" without special casing.
"""

from __future__ import annotations

from typing import Callable, Optional, Protocol

from rapidfuzz.distance import (
    DamerauLevenshtein,
    Indel,
    Jaro,
    JaroWinkler,
    Levenshtein,
    OSA,
)

METHODS: dict[str, Callable[..., float]] = {
    "jaro": Jaro.normalized_distance,
    "jaro_winkler": JaroWinkler.normalized_distance,
    "levenshtein": Levenshtein.normalized_distance,
    "osa": OSA.normalized_distance,
    "damerau_levenshtein": DamerauLevenshtein.normalized_distance,
    "indel": Indel.normalized_distance,
}


class StringDistance(Protocol):
    def __call__(self, a: str, b: str) -> Optional[float]: ...


class RapidFuzzDistance:
    """Normalized distance backed by one of the rapidfuzz metrics."""

    def __init__(self, method: str = "jaro", prefix_weight: float = 0.0) -> None:
        try:
            self._scorer = METHODS[method]
        except KeyError:
            known = ", ".join(sorted(METHODS))
            raise ValueError(f"Unknown distance method {method!r} (expected one of: {known})") from None
        self.method = method
        self.prefix_weight = prefix_weight

    def __call__(self, a: str, b: str) -> Optional[float]:
        if not a or not b:
            return None
        if self.method == "jaro_winkler":
            return self._scorer(a, b, prefix_weight=self.prefix_weight)
        return self._scorer(a, b)

    def __repr__(self) -> str:
        return f"RapidFuzzDistance(method={self.method!r}, prefix_weight={self.prefix_weight})"


def build_distance(method: str = "jaro", prefix_weight: float = 0.0) -> StringDistance:
    return RapidFuzzDistance(method, prefix_weight)


__all__ = ["METHODS", "RapidFuzzDistance", "StringDistance", "build_distance"]
