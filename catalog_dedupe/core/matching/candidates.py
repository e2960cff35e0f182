"""
Candidate search for a single term.

A term is compared against every member of a population and the members
within the distance threshold are returned, together with a boolean mask
aligned to the population so callers can subset it.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Optional

from .distance import StringDistance, build_distance
from .models import CandidateMatch


def is_pure_digit(term: str) -> bool:
    return term.isascii() and term.isdigit()


class CandidateFinder:
    """
    Finds population members that are approximately equal to a term.

    Usage:
        finder = CandidateFinder()
        result = finder.find("mega man", ["mega man!", "tetris"], max_distance=0.1)
        result.matches  # -> ("mega man!",)
    """

    def __init__(self, distance: Optional[StringDistance] = None) -> None:
        self.distance = distance or build_distance()
        self.comparisons = 0

    def find(
        self,
        term: str,
        population: Sequence[str],
        max_distance: float = 0.1,
        min_length: Optional[int] = None,
        skip_numeric: bool = False,
    ) -> CandidateMatch:
        """
        Compare `term` against every member of `population`.

        Terms shorter than `min_length`, and purely numeric terms when
        `skip_numeric` is set, are not tested at all: similarity between
        very short or digit-only strings is too unreliable to act on.

        Args:
            term: The term under evaluation
            population: Terms to compare against
            max_distance: Largest normalized distance that still counts as a match
            min_length: Minimum number of characters a term needs to be tested
            skip_numeric: Skip terms made only of digits

        Returns:
            CandidateMatch with the population mask and matched members
        """
        if self._skip(term, min_length, skip_numeric):
            return CandidateMatch(mask=(False,) * len(population))

        mask = []
        for member in population:
            distance = self.distance(term, member)
            self.comparisons += 1
            mask.append(distance is not None and distance <= max_distance)

        matches = tuple(member for member, hit in zip(population, mask) if hit)
        return CandidateMatch(mask=tuple(mask), matches=matches)

    @staticmethod
    def _skip(term: str, min_length: Optional[int], skip_numeric: bool) -> bool:
        if min_length is not None and len(term) < min_length:
            return True
        if skip_numeric and is_pure_digit(term):
            return True
        return False


__all__ = ["CandidateFinder", "is_pure_digit"]
